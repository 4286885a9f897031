from collections import Counter
from typing import Dict, List, Optional

from ..client import player_image_url
from ..models.acquisition import (
    AcquisitionCount,
    AcquisitionKind,
    AcquisitionRecord,
    RosterPlayer,
    RosterSnapshot,
    RosterView,
)
from ..models.sleeper import League, Player

SUMMARY_ORDER = [
    AcquisitionKind.STARTUP_DRAFT,
    AcquisitionKind.ROOKIE_DRAFT,
    AcquisitionKind.TRADE,
    AcquisitionKind.WAIVER,
    AcquisitionKind.FREE_AGENCY,
    AcquisitionKind.PREVIOUS_OWNER,
    AcquisitionKind.UNKNOWN_TRANSACTION,
    AcquisitionKind.UNKNOWN,
]


def summarize(records: Dict[str, AcquisitionRecord]) -> List[AcquisitionCount]:
    counts = Counter(record.kind for record in records.values())
    return [AcquisitionCount(kind=kind, count=counts.get(kind, 0)) for kind in SUMMARY_ORDER]


def build_roster_view(
    league_id: str,
    roster: RosterSnapshot,
    records: Dict[str, AcquisitionRecord],
    players: Dict[str, Player],
    league: Optional[League] = None,
) -> RosterView:
    roster_players = []
    for player_id in roster.player_ids:
        info = players.get(player_id) or Player(player_id=player_id)
        roster_players.append(
            RosterPlayer(
                player_id=player_id,
                full_name=info.full_name,
                position=info.position,
                team=info.team,
                avatar_url=player_image_url(player_id),
                acquisition=records.get(player_id) or AcquisitionRecord(),
            )
        )

    return RosterView(
        league_id=league_id,
        season=league.season if league else "",
        league_name=league.name if league else None,
        roster_id=roster.roster_id,
        owner_id=roster.owner_id or "",
        players=roster_players,
        summary=summarize(records),
    )
