import logging
from typing import Any, Dict, Optional

from ..cache import Cache, acquisitions_cache_key, league_facts_cache_key
from ..cancellation import CancellationToken, ensure_token
from ..client import HistorySource
from ..config import (
    DEFAULT_TEAM_COUNT,
    EMPTY_WEEKS_BEFORE_STOP,
    MAX_CONCURRENT_FETCHES,
    MAX_LINEAGE_DEPTH,
    RESULT_CACHE_TTL_SECONDS,
)
from ..errors import ResolutionCancelled, UpstreamFetchError
from ..models.acquisition import AcquisitionRecord, RosterSnapshot
from ..models.sleeper import League
from .aggregator import SeasonAggregator
from .classifier import classify_startup
from .fuser import apply_fallback, fuse_acquisitions
from .lineage import walk_lineage

logger = logging.getLogger(__name__)


class AcquisitionResolver:
    """Works out how each player on a participant's roster was acquired.

    Walks the league's lineage, gathers every season's drafts and transactions,
    and replays them onto the current roster. Finished results are written to
    the injected cache and served from it on later calls.
    """

    def __init__(
        self,
        source: HistorySource,
        cache: Optional[Cache] = None,
        result_ttl: float = RESULT_CACHE_TTL_SECONDS,
        max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES,
        max_lineage_depth: int = MAX_LINEAGE_DEPTH,
        empty_weeks_before_stop: int = EMPTY_WEEKS_BEFORE_STOP,
    ):
        self.source = source
        self.cache = cache
        self.result_ttl = result_ttl
        self.max_concurrent_fetches = max_concurrent_fetches
        self.max_lineage_depth = max_lineage_depth
        self.empty_weeks_before_stop = empty_weeks_before_stop

    async def _cache_get(self, key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None

    async def _cache_set(self, key: str, value: Any) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, self.result_ttl)
        except Exception as e:
            logger.warning("Cache write failed for %s: %s", key, e)

    async def get_league_facts(self, league_id: str, token: Optional[CancellationToken] = None) -> Optional[League]:
        """League details needed for resolution, cached without the bulky settings."""
        token = ensure_token(token)
        key = league_facts_cache_key(league_id)
        cached = await self._cache_get(key)
        if cached is not None:
            return League(**cached)

        try:
            league = await token.guard(self.source.get_league(league_id))
        except ResolutionCancelled:
            raise
        except Exception as e:
            logger.error("Could not fetch league details for %s: %s", league_id, e)
            return None
        if league is None:
            return None

        await self._cache_set(
            key,
            {
                "league_id": league.league_id,
                "name": league.name,
                "season": league.season,
                "total_rosters": league.total_rosters,
                "previous_league_id": league.previous_league_id,
                "settings": {"type": league.league_type},
            },
        )
        return league

    async def get_current_roster(
        self,
        league_id: str,
        participant_id: str,
        token: Optional[CancellationToken] = None,
    ) -> Optional[RosterSnapshot]:
        token = ensure_token(token)
        try:
            rosters = await token.guard(self.source.get_rosters(league_id))
        except (ResolutionCancelled, UpstreamFetchError):
            raise
        except Exception as e:
            raise UpstreamFetchError(f"league/{league_id}/rosters", message=repr(e)) from e

        roster = next((r for r in rosters if r.owner_id == participant_id), None)
        if roster is None:
            return None
        return RosterSnapshot(roster_id=roster.roster_id, owner_id=roster.owner_id, player_ids=list(roster.players or []))

    async def resolve(
        self,
        participant_id: str,
        league_id: str,
        roster: Optional[RosterSnapshot] = None,
        token: Optional[CancellationToken] = None,
    ) -> Dict[str, AcquisitionRecord]:
        """Map each player on the participant's current roster to how they were acquired.

        Raises ``ResolutionCancelled`` if ``token`` is cancelled. Upstream
        failures for individual seasons only reduce the data available.
        """
        token = ensure_token(token)
        key = acquisitions_cache_key(participant_id, league_id)
        cached = await self._cache_get(key)
        if cached is not None:
            logger.debug("Serving acquisitions for %s in %s from cache", participant_id, league_id)
            return {player_id: AcquisitionRecord(**record) for player_id, record in cached.items()}

        if roster is None:
            roster = await self.get_current_roster(league_id, participant_id, token)
            if roster is None:
                logger.info("Participant %s has no roster in league %s", participant_id, league_id)
                return {}

        league = await self.get_league_facts(league_id, token)
        teams = league.total_rosters if league is not None and league.total_rosters else DEFAULT_TEAM_COUNT
        redraft = league is not None and league.is_redraft

        nodes = await walk_lineage(self.source, league_id, token, self.max_lineage_depth)
        aggregator = SeasonAggregator(
            self.source,
            token,
            max_concurrent_fetches=self.max_concurrent_fetches,
            empty_weeks_before_stop=self.empty_weeks_before_stop,
        )
        seasons = await aggregator.aggregate(nodes, participant_id)
        token.raise_if_cancelled()

        classification = classify_startup(seasons, participant_id)
        fuser = fuse_acquisitions(seasons, participant_id, roster, classification, teams, redraft)
        records = apply_fallback(fuser.records, classification, fuser.startup_picks)

        # Fusion is complete, so the result is kept even if cancellation arrives now.
        await self._cache_set(key, {player_id: record.model_dump(mode="json") for player_id, record in records.items()})
        token.raise_if_cancelled()

        logger.info(
            "Resolved %d acquisitions for %s in league %s across %d seasons",
            len(records),
            participant_id,
            league_id,
            len(seasons),
        )
        return records
