from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .sleeper import DraftPick, DraftType, Transaction


class AcquisitionKind(str, Enum):
    STARTUP_DRAFT = "Startup Draft"
    ROOKIE_DRAFT = "Rookie Draft"
    TRADE = "Trade"
    WAIVER = "Waiver Wire"
    FREE_AGENCY = "Free Agency"
    PREVIOUS_OWNER = "Previous Owner"
    UNKNOWN_TRANSACTION = "Unknown Transaction"
    UNKNOWN = "Unknown"


class SeasonNode(BaseModel):
    """One season's instance of a league in the lineage."""

    model_config = ConfigDict(frozen=True)

    league_id: str
    season: str = ""
    previous_league_id: Optional[str] = None


class RosterSnapshot(BaseModel):
    roster_id: int
    owner_id: Optional[str] = None
    player_ids: List[str] = []


class DraftRecord(BaseModel):
    draft_id: str
    declared_type: Optional[DraftType] = None
    picks: List[DraftPick] = []


class SeasonData(BaseModel):
    """Everything fetched for one season of the lineage."""

    node: SeasonNode
    roster: Optional[RosterSnapshot] = None  # None when the participant had no team that season
    drafts: List[DraftRecord] = []
    transactions: List[Transaction] = []


class StartupClassification(BaseModel):
    found_participant: bool = False
    earliest_season: Optional[SeasonNode] = None
    startup_draft_id: Optional[str] = None
    drafts_before_participant: bool = False


class AcquisitionRecord(BaseModel):
    kind: AcquisitionKind = AcquisitionKind.UNKNOWN
    detail: str = ""
    acquired_at: Optional[int] = None  # Unix timestamp in ms

    @property
    def is_unknown(self) -> bool:
        return self.kind == AcquisitionKind.UNKNOWN


class AcquisitionCount(BaseModel):
    kind: AcquisitionKind
    count: int


class RosterPlayer(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    position: str = ""
    team: str = "FA"
    avatar_url: str = ""
    acquisition: AcquisitionRecord


class RosterView(BaseModel):
    league_id: str
    season: str = ""
    league_name: Optional[str] = None
    roster_id: int
    owner_id: str
    players: List[RosterPlayer]
    summary: List[AcquisitionCount]
