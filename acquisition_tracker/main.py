import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import database
from .cache import MemoryCache, SqliteCache, TieredCache
from .client import SleeperClient
from .cancellation import CancellationToken
from .config import CORS_ORIGINS, DISCONNECT_POLL_SECONDS, LOG_LEVEL, RESULT_CACHE_TTL_SECONDS
from .errors import ResolutionCancelled, UpstreamFetchError
from .models.acquisition import AcquisitionRecord, RosterView, SeasonNode
from .models.sleeper import League, User
from .services.lineage import walk_lineage
from .services.resolver import AcquisitionResolver
from .services.roster_view import build_roster_view

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=LOG_LEVEL)
    await database.create_tables()
    cache = TieredCache(MemoryCache(), SqliteCache(), fast_ttl=RESULT_CACHE_TTL_SECONDS)
    async with httpx.AsyncClient(timeout=30.0) as http:
        app.state.client = SleeperClient(http, cache=cache)
        app.state.resolver = AcquisitionResolver(app.state.client, cache=cache)
        yield


app = FastAPI(lifespan=lifespan)

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UpstreamFetchError)
async def upstream_fetch_error_handler(request: Request, exc: UpstreamFetchError):
    logger.error("Upstream failure serving %s: %s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(ResolutionCancelled)
async def resolution_cancelled_handler(request: Request, exc: ResolutionCancelled):
    return JSONResponse(status_code=499, content={"detail": "Request cancelled"})


def get_client(request: Request) -> SleeperClient:
    return request.app.state.client


def get_resolver(request: Request) -> AcquisitionResolver:
    return request.app.state.resolver


async def watch_for_disconnect(request: Request, token: CancellationToken, interval: float = DISCONNECT_POLL_SECONDS) -> None:
    while not token.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected from %s, cancelling resolution", request.url.path)
            token.cancel()
            return
        await asyncio.sleep(interval)


async def get_cancellation_token(request: Request):
    """One token per request, cancelled when the client goes away."""
    token = CancellationToken()
    watcher = asyncio.create_task(watch_for_disconnect(request, token))
    try:
        yield token
    finally:
        watcher.cancel()


async def _require_user(client: SleeperClient, username: str) -> User:
    user = await client.get_user(username)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@app.get("/")
def read_root():
    return {"status": "ok"}


@app.get("/user/{username}", response_model=User)
async def get_user(username: str, client: SleeperClient = Depends(get_client)):
    return await _require_user(client, username)


@app.get("/user/{username}/seasons", response_model=List[str])
async def get_user_seasons(
    username: str,
    client: SleeperClient = Depends(get_client),
    token: CancellationToken = Depends(get_cancellation_token),
):
    user = await _require_user(client, username)
    return await client.get_user_seasons(user.user_id, token)


@app.get("/user/{username}/leagues/{season}", response_model=List[League])
async def get_leagues_for_user(username: str, season: str, client: SleeperClient = Depends(get_client)):
    user = await _require_user(client, username)
    return await client.get_user_leagues(user.user_id, season)


@app.get("/league/{league_id}/history", response_model=List[SeasonNode])
async def get_league_history(league_id: str, client: SleeperClient = Depends(get_client)):
    return await walk_lineage(client, league_id)


@app.get("/league/{league_id}/user/{username}/acquisitions", response_model=Dict[str, AcquisitionRecord])
async def get_player_acquisitions(
    league_id: str,
    username: str,
    client: SleeperClient = Depends(get_client),
    resolver: AcquisitionResolver = Depends(get_resolver),
    token: CancellationToken = Depends(get_cancellation_token),
):
    user = await _require_user(client, username)
    roster = await resolver.get_current_roster(league_id, user.user_id, token)
    if roster is None:
        raise HTTPException(status_code=404, detail="Roster not found")
    return await resolver.resolve(user.user_id, league_id, roster=roster, token=token)


@app.get("/league/{league_id}/user/{username}/roster", response_model=RosterView)
async def get_roster_view(
    league_id: str,
    username: str,
    client: SleeperClient = Depends(get_client),
    resolver: AcquisitionResolver = Depends(get_resolver),
    token: CancellationToken = Depends(get_cancellation_token),
):
    """The participant's roster with player details, acquisition records and a per-kind summary."""
    user = await _require_user(client, username)
    roster = await resolver.get_current_roster(league_id, user.user_id, token)
    if roster is None:
        raise HTTPException(status_code=404, detail="Roster not found")

    records = await resolver.resolve(user.user_id, league_id, roster=roster, token=token)
    league = await resolver.get_league_facts(league_id, token)
    players = await client.get_players()
    return build_roster_view(league_id, roster, records, players, league)
