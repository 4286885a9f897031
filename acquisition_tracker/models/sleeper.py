from enum import Enum
from typing import List, Dict, Any, Optional

from pydantic import BaseModel, field_validator


class DraftType(str, Enum):
    STARTUP = "startup"
    ROOKIE = "rookie"
    OTHER = "other"


class TransactionKind(str, Enum):
    TRADE = "trade"
    WAIVER = "waiver"
    FREE_AGENT = "free_agent"
    OTHER = "other"


class User(BaseModel):
    user_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class League(BaseModel):
    league_id: str
    name: Optional[str] = None
    season: str = ""
    total_rosters: Optional[int] = None
    status: Optional[str] = None
    previous_league_id: Optional[str] = None
    settings: Dict[str, Any] = {}

    @field_validator("league_id", mode="before")
    @classmethod
    def _league_id_as_text(cls, value):
        return str(value)

    @field_validator("season", mode="before")
    @classmethod
    def _season_as_text(cls, value):
        return "" if value is None else str(value)

    @field_validator("previous_league_id", mode="before")
    @classmethod
    def _blank_previous_league(cls, value):
        # Sleeper reports "0" for leagues without a previous season.
        if value in (None, "", "0", 0):
            return None
        return str(value)

    @field_validator("settings", mode="before")
    @classmethod
    def _settings_dict(cls, value):
        return value or {}

    @property
    def league_type(self) -> Optional[int]:
        return self.settings.get("type")

    @property
    def is_redraft(self) -> bool:
        return self.league_type == 0


class Roster(BaseModel):
    roster_id: int
    league_id: Optional[str] = None
    owner_id: Optional[str] = None
    players: Optional[List[str]] = None


class Draft(BaseModel):
    draft_id: str
    league_id: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    season: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("draft_id", "season", mode="before")
    @classmethod
    def _as_text(cls, value):
        return value if value is None else str(value)

    @property
    def declared_type(self) -> Optional[DraftType]:
        if not self.type:
            return None
        try:
            return DraftType(self.type.lower())
        except ValueError:
            return DraftType.OTHER


class DraftPick(BaseModel):
    player_id: Optional[str] = None
    picked_by: Optional[str] = None
    round: int = 0
    pick_no: int = 0
    roster_id: Optional[int] = None


class Transaction(BaseModel):
    transaction_id: str
    type: str = ""
    status: Optional[str] = None
    roster_ids: List[int] = []
    adds: Optional[Dict[str, Any]] = None
    drops: Optional[Dict[str, Any]] = None
    created: Optional[int] = None  # Unix timestamp in ms
    settings: Optional[Dict[str, Any]] = None

    @field_validator("roster_ids", mode="before")
    @classmethod
    def _roster_ids_list(cls, value):
        return value or []

    @property
    def kind(self) -> TransactionKind:
        try:
            return TransactionKind(self.type)
        except ValueError:
            return TransactionKind.OTHER

    @property
    def waiver_bid(self) -> Optional[int]:
        return (self.settings or {}).get("waiver_bid")


class Player(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    position: str = ""
    team: str = "FA"
