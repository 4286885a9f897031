import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from acquisition_tracker.models.sleeper import Draft, DraftPick, League, Player, Roster, Transaction, User

USER_ID = "u1"
OTHER_ID = "u2"

JUNE_1_2022 = 1654041600000
JUNE_1_2023 = 1685577600000
MAY_1_2023 = 1682899200000
SEP_10_2023 = 1694304000000
OCT_1_2023 = 1696118400000


class FakeSource:
    """In-memory league history keyed the same way as the Sleeper API."""

    def __init__(self):
        self.leagues: Dict[str, League] = {}
        self.rosters: Dict[str, List[Roster]] = {}
        self.drafts: Dict[str, List[Draft]] = {}
        self.picks: Dict[str, List[DraftPick]] = {}
        self.transactions: Dict[Tuple[str, int], List[Transaction]] = {}
        self.users: Dict[str, User] = {}
        self.players: Dict[str, Player] = {}
        self.failures = set()
        self.blocked = set()
        self.started = asyncio.Event()
        self.calls: List[Tuple[str, str]] = []

    async def _call(self, name: str, key: str):
        self.calls.append((name, key))
        if (name, key) in self.blocked:
            self.started.set()
            await asyncio.Event().wait()
        if (name, key) in self.failures:
            raise RuntimeError(f"{name} {key} unavailable")

    def add_league(self, league_id, season, previous=None, total_rosters=12, league_type=2):
        self.leagues[league_id] = League(
            league_id=league_id,
            name=f"League {season}",
            season=season,
            total_rosters=total_rosters,
            previous_league_id=previous,
            settings={"type": league_type},
        )

    def add_roster(self, league_id, roster_id, owner_id, players):
        self.rosters.setdefault(league_id, []).append(
            Roster(roster_id=roster_id, league_id=league_id, owner_id=owner_id, players=list(players))
        )

    def add_draft(self, league_id, draft_id, picks, draft_type="snake"):
        self.drafts.setdefault(league_id, []).append(Draft(draft_id=draft_id, league_id=league_id, type=draft_type))
        self.picks[draft_id] = [
            DraftPick(player_id=player_id, picked_by=picked_by, round=round, pick_no=pick_no)
            for player_id, picked_by, round, pick_no in picks
        ]

    def add_transaction(self, league_id, week, transaction_id, tx_type, roster_ids, adds, created, waiver_bid=None):
        settings = {"waiver_bid": waiver_bid} if waiver_bid is not None else None
        self.transactions.setdefault((league_id, week), []).append(
            Transaction(
                transaction_id=transaction_id,
                type=tx_type,
                status="complete",
                roster_ids=roster_ids,
                adds=adds,
                created=created,
                settings=settings,
            )
        )

    async def get_league(self, league_id: str) -> Optional[League]:
        await self._call("league", league_id)
        return self.leagues.get(league_id)

    async def get_rosters(self, league_id: str) -> List[Roster]:
        await self._call("rosters", league_id)
        return self.rosters.get(league_id, [])

    async def get_drafts(self, league_id: str) -> List[Draft]:
        await self._call("drafts", league_id)
        return self.drafts.get(league_id, [])

    async def get_draft_picks(self, draft_id: str) -> List[DraftPick]:
        await self._call("picks", draft_id)
        return self.picks.get(draft_id, [])

    async def get_transactions(self, league_id: str, week: int) -> List[Transaction]:
        await self._call("transactions", f"{league_id}/{week}")
        return self.transactions.get((league_id, week), [])

    async def get_user(self, username: str) -> Optional[User]:
        await self._call("user", username)
        return self.users.get(username)

    async def get_user_leagues(self, user_id: str, season: str) -> List[League]:
        return [league for league in self.leagues.values() if league.season == season]

    async def get_user_seasons(self, user_id: str, token=None) -> List[str]:
        return sorted({league.season for league in self.leagues.values()}, key=int, reverse=True)

    async def get_players(self) -> Dict[str, Player]:
        return self.players


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def dynasty_source():
    """Two-season dynasty league the participant started with a startup draft."""
    source = FakeSource()
    source.add_league("L2022", "2022")
    source.add_league("L2023", "2023", previous="L2022")

    source.add_roster("L2022", 1, USER_ID, ["p1", "p2", "p3"])
    source.add_roster("L2022", 2, OTHER_ID, ["p9"])
    source.add_draft("L2022", "100", [("p1", USER_ID, 1, 3), ("p9", OTHER_ID, 1, 4), ("p2", USER_ID, 2, 22)])

    source.add_roster("L2023", 1, USER_ID, ["p1", "p2", "p4", "p5", "p6"])
    source.add_roster("L2023", 2, OTHER_ID, ["p3", "p9"])
    source.add_draft("L2023", "200", [("p4", USER_ID, 1, 7)])
    source.add_transaction("L2023", 1, "t1", "trade", [1, 2], {"p5": 1, "p3": 2}, SEP_10_2023)
    source.add_transaction("L2023", 3, "t2", "waiver", [1], {"p6": 1}, OCT_1_2023, waiver_bid=15)
    return source
