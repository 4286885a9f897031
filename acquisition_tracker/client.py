import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import httpx

from .cache import Cache, url_cache_key
from .cancellation import CancellationToken, ensure_token
from .config import API_URL, API_CACHE_TTL_SECONDS, FIRST_SLEEPER_SEASON, MAX_CONCURRENT_FETCHES
from .errors import ResolutionCancelled, UpstreamFetchError
from .models.sleeper import User, League, Roster, Draft, DraftPick, Transaction, Player

logger = logging.getLogger(__name__)


class HistorySource(Protocol):
    """Read-only accessors the resolver needs from a league history provider."""

    async def get_league(self, league_id: str) -> Optional[League]:
        ...

    async def get_rosters(self, league_id: str) -> List[Roster]:
        ...

    async def get_drafts(self, league_id: str) -> List[Draft]:
        ...

    async def get_draft_picks(self, draft_id: str) -> List[DraftPick]:
        ...

    async def get_transactions(self, league_id: str, week: int) -> List[Transaction]:
        ...


class SleeperClient:
    """Sleeper REST API client with optional read-through response caching."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: Optional[Cache] = None,
        base_url: str = API_URL,
        cache_ttl: float = API_CACHE_TTL_SECONDS,
        max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES,
    ):
        self.http = http
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.cache_ttl = cache_ttl
        self.max_concurrent_fetches = max_concurrent_fetches

    async def get(self, url: str, not_found: Any = None) -> Any:
        """
        A generic, caching GET request for the Sleeper API.

        Returns ``not_found`` for 404 responses and for empty bodies.
        """
        key = url_cache_key(url)
        # 1. Check cache
        if self.cache is not None:
            cached_data = await self.cache.get(key)
            if cached_data is not None:
                return cached_data

        # 2. If not in cache or stale, fetch from API
        try:
            response = await self.http.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return not_found
            raise UpstreamFetchError(url, e.response.status_code) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(url, message=repr(e)) from e

        if not response.content:
            return not_found
        try:
            fresh_data = response.json()
        except ValueError as e:
            raise UpstreamFetchError(url, response.status_code, message="invalid JSON body") from e
        if fresh_data is None:
            return not_found

        # 3. Store in cache
        if self.cache is not None:
            await self.cache.set(key, fresh_data, self.cache_ttl)
        return fresh_data

    async def get_user(self, username: str) -> Optional[User]:
        data = await self.get(f"{self.base_url}/user/{username}")
        return User(**data) if data else None

    async def get_user_leagues(self, user_id: str, season: str) -> List[League]:
        data = await self.get(f"{self.base_url}/user/{user_id}/leagues/nfl/{season}", not_found=[])
        return [League(**league) for league in data]

    async def get_user_seasons(self, user_id: str, token: Optional[CancellationToken] = None) -> List[str]:
        """Seasons in which the user belongs to at least one league, newest first."""
        token = ensure_token(token)
        next_year = datetime.now().year + 1
        years = [str(year) for year in range(FIRST_SLEEPER_SEASON, next_year + 1)]

        semaphore = asyncio.Semaphore(self.max_concurrent_fetches)

        async def fetch_year(year: str) -> List[League]:
            async with semaphore:
                return await token.guard(self.get_user_leagues(user_id, year))

        tasks = [fetch_year(year) for year in years]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        seasons = []
        for year, result in zip(years, results):
            if isinstance(result, ResolutionCancelled):
                raise result
            if isinstance(result, Exception):
                logger.warning("Could not check season %s for user %s: %s", year, user_id, result)
                continue
            if result:
                seasons.append(year)

        return sorted(seasons, key=int, reverse=True)

    async def get_players(self) -> Dict[str, Player]:
        data = await self.get(f"{self.base_url}/players/nfl", not_found={})
        players: Dict[str, Player] = {}
        for player_id, raw in data.items():
            if not raw:
                continue
            name = " ".join(part for part in (raw.get("first_name"), raw.get("last_name")) if part)
            players[player_id] = Player(
                player_id=player_id,
                full_name=name or raw.get("full_name"),
                position=raw.get("position") or "",
                team=raw.get("team") or "FA",
            )
        return players

    async def get_league(self, league_id: str) -> Optional[League]:
        data = await self.get(f"{self.base_url}/league/{league_id}")
        return League(**data) if data else None

    async def get_rosters(self, league_id: str) -> List[Roster]:
        data = await self.get(f"{self.base_url}/league/{league_id}/rosters", not_found=[])
        return [Roster(**roster) for roster in data]

    async def get_drafts(self, league_id: str) -> List[Draft]:
        data = await self.get(f"{self.base_url}/league/{league_id}/drafts", not_found=[])
        return [Draft(**draft) for draft in data]

    async def get_draft_picks(self, draft_id: str) -> List[DraftPick]:
        data = await self.get(f"{self.base_url}/draft/{draft_id}/picks", not_found=[])
        return [DraftPick(**pick) for pick in data]

    async def get_transactions(self, league_id: str, week: int) -> List[Transaction]:
        data = await self.get(f"{self.base_url}/league/{league_id}/transactions/{week}", not_found=[])
        return [Transaction(**tx) for tx in data]


def player_image_url(player_id: str) -> str:
    player_id = str(player_id).strip()
    if not player_id:
        return ""
    return f"https://sleepercdn.com/content/nfl/players/{player_id}.jpg"
