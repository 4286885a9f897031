import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..config import DEFAULT_TEAM_COUNT
from ..models.acquisition import (
    AcquisitionKind,
    AcquisitionRecord,
    DraftRecord,
    RosterSnapshot,
    SeasonData,
    SeasonNode,
    StartupClassification,
)
from ..models.sleeper import DraftPick, Transaction, TransactionKind
from .classifier import is_startup_draft, sort_drafts

logger = logging.getLogger(__name__)

PREVIOUS_OWNER_DETAIL = "on roster when participant took over team"

TRANSACTION_KINDS = {
    TransactionKind.TRADE: AcquisitionKind.TRADE,
    TransactionKind.WAIVER: AcquisitionKind.WAIVER,
    TransactionKind.FREE_AGENT: AcquisitionKind.FREE_AGENCY,
}


def format_pick(round: int, pick_no: int, teams: int = DEFAULT_TEAM_COUNT) -> str:
    """Round and within-round slot, e.g. overall pick 25 of a 12-team draft is ``3.01``."""
    teams = teams if teams and teams > 0 else DEFAULT_TEAM_COUNT
    slot = ((pick_no - 1) % teams) + 1
    return f"{round}.{slot:02d}"


def nominal_draft_timestamp(season: str) -> Optional[int]:
    """Drafts carry no timestamp; June 1 of the season stands in for one."""
    if not season or not season.isdigit():
        return None
    return int(datetime(int(season), 6, 1, tzinfo=timezone.utc).timestamp() * 1000)


def format_transaction_date(created: Optional[int]) -> str:
    if created is None:
        return "unknown date"
    date = datetime.fromtimestamp(created / 1000, tz=timezone.utc)
    return f"{date:%b} {date.day}, {date.year}"


def transaction_record(transaction: Transaction) -> AcquisitionRecord:
    date = format_transaction_date(transaction.created)
    kind = TRANSACTION_KINDS.get(transaction.kind, AcquisitionKind.UNKNOWN_TRANSACTION)
    detail = f"Acquired on {date}"
    if kind == AcquisitionKind.WAIVER and transaction.waiver_bid:
        detail = f"Paid {transaction.waiver_bid} FAAB on {date}"
    return AcquisitionRecord(kind=kind, detail=detail, acquired_at=transaction.created)


class AcquisitionFuser:
    """Replays draft picks and transactions, oldest season first, onto the current roster.

    Only players on ``roster`` are tracked. Draft picks fill records that have
    no dated acquisition yet; a transaction replaces a record when it is newer.
    """

    def __init__(
        self,
        participant_id: str,
        roster: RosterSnapshot,
        classification: StartupClassification,
        teams: int = DEFAULT_TEAM_COUNT,
        redraft: bool = False,
    ):
        self.participant_id = participant_id
        self.classification = classification
        self.teams = teams
        self.redraft = redraft
        self.records: Dict[str, AcquisitionRecord] = {
            player_id: AcquisitionRecord() for player_id in roster.player_ids
        }
        self.startup_picks = 0

    def apply_draft_pick(self, node: SeasonNode, draft: DraftRecord, pick: DraftPick) -> bool:
        current = self.records.get(pick.player_id)
        if current is None:
            return False
        if not current.is_unknown and current.acquired_at is not None:
            return False

        startup = is_startup_draft(self.classification, node, draft.draft_id, self.redraft)
        slot = format_pick(pick.round, pick.pick_no, self.teams)
        if startup:
            kind, detail = AcquisitionKind.STARTUP_DRAFT, slot
            self.startup_picks += 1
        else:
            kind, detail = AcquisitionKind.ROOKIE_DRAFT, f"{node.season} {slot}"

        self.records[pick.player_id] = AcquisitionRecord(
            kind=kind,
            detail=detail,
            acquired_at=nominal_draft_timestamp(node.season),
        )
        return True

    def apply_transaction(self, roster_id: int, transaction: Transaction) -> List[str]:
        if roster_id not in transaction.roster_ids or not transaction.adds:
            return []

        applied = []
        created = transaction.created
        for player_id in transaction.adds:
            current = self.records.get(player_id)
            if current is None:
                continue
            newer = created is not None and (current.acquired_at is None or created > current.acquired_at)
            if current.is_unknown or newer:
                self.records[player_id] = transaction_record(transaction)
                applied.append(player_id)
        return applied

    def apply_season(self, season: SeasonData) -> None:
        if season.roster is None:
            return

        for draft in sort_drafts(season.drafts):
            for pick in draft.picks:
                if pick.picked_by == self.participant_id and pick.player_id:
                    self.apply_draft_pick(season.node, draft, pick)

        for transaction in season.transactions:
            self.apply_transaction(season.roster.roster_id, transaction)

    def fuse(self, seasons: List[SeasonData]) -> Dict[str, AcquisitionRecord]:
        for season in seasons:
            self.apply_season(season)
        return self.records


def fuse_acquisitions(
    seasons: List[SeasonData],
    participant_id: str,
    roster: RosterSnapshot,
    classification: StartupClassification,
    teams: int = DEFAULT_TEAM_COUNT,
    redraft: bool = False,
) -> AcquisitionFuser:
    fuser = AcquisitionFuser(participant_id, roster, classification, teams, redraft)
    fuser.fuse(seasons)
    return fuser


def took_over_team(classification: StartupClassification, startup_picks: int) -> bool:
    """Whether the lineage shows the participant inherited an existing roster."""
    if classification.drafts_before_participant or not classification.found_participant:
        return True
    if classification.startup_draft_id is None:
        return True
    return startup_picks == 0


def apply_fallback(
    records: Dict[str, AcquisitionRecord],
    classification: StartupClassification,
    startup_picks: int,
) -> Dict[str, AcquisitionRecord]:
    """Resolve every remaining ``Unknown`` record to ``Previous Owner``."""
    unresolved = [player_id for player_id, record in records.items() if record.is_unknown]
    if not unresolved:
        return records

    if not took_over_team(classification, startup_picks):
        # Participant stocked this roster in a startup draft, yet these players
        # have no recorded event (commissioner moves, missing history).
        logger.warning("No acquisition event found for players %s; attributing to previous owner", unresolved)

    for player_id in unresolved:
        records[player_id] = AcquisitionRecord(kind=AcquisitionKind.PREVIOUS_OWNER, detail=PREVIOUS_OWNER_DETAIL)
    return records
