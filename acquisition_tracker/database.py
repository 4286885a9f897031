import asyncio

import aiosqlite

from .config import DATABASE_URL


async def get_db_connection(database_url: str = DATABASE_URL):
    db = await aiosqlite.connect(database_url)
    db.row_factory = aiosqlite.Row
    return db


async def create_tables(database_url: str = DATABASE_URL):
    async with aiosqlite.connect(database_url) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS cache_entries (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                expires_at REAL NOT NULL
            )
        """)
        await db.commit()

if __name__ == "__main__":
    asyncio.run(create_tables())
