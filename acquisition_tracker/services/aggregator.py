import asyncio
import logging
from typing import Awaitable, List, Optional, TypeVar

from ..cancellation import CancellationToken, ensure_token
from ..client import HistorySource
from ..config import (
    MAX_CONCURRENT_FETCHES,
    EMPTY_WEEKS_BEFORE_STOP,
    TRANSACTION_WEEKS,
    TRANSACTION_MIN_WEEKS,
)
from ..errors import ResolutionCancelled
from ..models.acquisition import DraftRecord, RosterSnapshot, SeasonData, SeasonNode
from ..models.sleeper import Draft, Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _raise_first_failure(results: list) -> None:
    """Re-raise a cancellation among gathered results, otherwise the first failure."""
    for result in results:
        if isinstance(result, (ResolutionCancelled, asyncio.CancelledError)):
            raise result
    for result in results:
        if isinstance(result, BaseException):
            raise result


class SeasonAggregator:
    """Fetches roster, drafts with picks and transactions for every season of a lineage.

    All fetches share one semaphore so fan-out across seasons and drafts stays
    bounded, and every fetch is raced against the cancellation token.
    """

    def __init__(
        self,
        source: HistorySource,
        token: Optional[CancellationToken] = None,
        max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES,
        empty_weeks_before_stop: int = EMPTY_WEEKS_BEFORE_STOP,
    ):
        self.source = source
        self.token = ensure_token(token)
        self.semaphore = asyncio.Semaphore(max_concurrent_fetches)
        self.empty_weeks_before_stop = empty_weeks_before_stop

    async def _fetch(self, awaitable: Awaitable[T]) -> T:
        async with self.semaphore:
            return await self.token.guard(awaitable)

    async def fetch_roster(self, league_id: str, participant_id: str) -> Optional[RosterSnapshot]:
        try:
            rosters = await self._fetch(self.source.get_rosters(league_id))
        except ResolutionCancelled:
            raise
        except Exception as e:
            logger.error("Error fetching rosters for league %s: %s", league_id, e)
            return None

        roster = next((r for r in rosters if r.owner_id == participant_id), None)
        if roster is None:
            return None
        return RosterSnapshot(roster_id=roster.roster_id, owner_id=roster.owner_id, player_ids=list(roster.players or []))

    async def fetch_drafts(self, league_id: str) -> List[DraftRecord]:
        drafts = await self._fetch(self.source.get_drafts(league_id))

        async def with_picks(draft: Draft) -> DraftRecord:
            picks = await self._fetch(self.source.get_draft_picks(draft.draft_id))
            return DraftRecord(draft_id=draft.draft_id, declared_type=draft.declared_type, picks=picks)

        results = await asyncio.gather(*(with_picks(d) for d in drafts if d.draft_id), return_exceptions=True)
        # A failed pick fetch fails the whole season, like the draft list itself.
        _raise_first_failure(results)
        return list(results)

    async def fetch_season_transactions(self, league_id: str) -> List[Transaction]:
        """Scan weeks in order; consecutive empty weeks after the early weeks end the scan."""
        all_transactions: List[Transaction] = []
        empty_streak = 0
        for week in range(1, TRANSACTION_WEEKS + 1):
            self.token.raise_if_cancelled()
            weekly_transactions = await self._fetch(self.source.get_transactions(league_id, week))
            if weekly_transactions:
                all_transactions.extend(weekly_transactions)
                empty_streak = 0
                continue
            if week <= TRANSACTION_MIN_WEEKS:
                continue
            empty_streak += 1
            if empty_streak >= self.empty_weeks_before_stop:
                break
        return all_transactions

    async def fetch_season(self, node: SeasonNode, participant_id: str) -> Optional[SeasonData]:
        results = await asyncio.gather(
            self.fetch_roster(node.league_id, participant_id),
            self.fetch_drafts(node.league_id),
            self.fetch_season_transactions(node.league_id),
            return_exceptions=True,
        )
        try:
            _raise_first_failure(results)
        except ResolutionCancelled:
            raise
        except Exception as e:
            logger.error("Error fetching data for season %s in league %s: %s", node.season, node.league_id, e)
            return None

        roster, drafts, transactions = results

        return SeasonData(node=node, roster=roster, drafts=drafts, transactions=transactions)

    async def aggregate(self, nodes: List[SeasonNode], participant_id: str) -> List[SeasonData]:
        """Fetch every season concurrently; seasons that fail are dropped, order is kept."""
        self.token.raise_if_cancelled()
        tasks = [self.fetch_season(node, participant_id) for node in nodes]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        seasons: List[SeasonData] = []
        for node, result in zip(nodes, results):
            if isinstance(result, (ResolutionCancelled, asyncio.CancelledError)):
                raise result
            if isinstance(result, BaseException):
                logger.error("Unexpected failure aggregating league %s: %r", node.league_id, result)
                continue
            if result is not None:
                seasons.append(result)

        self.token.raise_if_cancelled()
        return seasons


async def aggregate_seasons(
    source: HistorySource,
    nodes: List[SeasonNode],
    participant_id: str,
    token: Optional[CancellationToken] = None,
    **options,
) -> List[SeasonData]:
    return await SeasonAggregator(source, token, **options).aggregate(nodes, participant_id)
