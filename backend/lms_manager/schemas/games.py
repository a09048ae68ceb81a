from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from lms_manager.core.game_config import (
    DEFAULT_MAX_WINNERS,
    DEFAULT_POSTPONE_AS_WIN,
    RolloverMode,
    WinnerMode,
)


class GameCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    group_id: Optional[int] = None
    player_names: list[str] = Field(default_factory=list)

    postpone_as_win: bool = DEFAULT_POSTPONE_AS_WIN
    winner_mode: WinnerMode = WinnerMode.SINGLE
    rollover_mode: RolloverMode = RolloverMode.ROUND
    max_winners: int = Field(default=DEFAULT_MAX_WINNERS, ge=1)


class ParticipantsAdd(BaseModel):
    player_names: list[str] = Field(min_length=1)


class ParticipantOut(BaseModel):
    id: int
    player_name: str
    is_active: bool
    eliminated_in_round: Optional[int] = None

    model_config = {"from_attributes": True}


class GameOut(BaseModel):
    id: int
    name: str
    group_id: Optional[int] = None
    status: str
    winner_names: Optional[list[str]] = None

    postpone_as_win: bool
    winner_mode: str
    rollover_mode: str
    max_winners: int

    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StandingsOut(BaseModel):
    game_id: int
    status: str
    current_round: Optional[int] = None
    active: list[ParticipantOut]
    eliminated: list[ParticipantOut]
    winners: list[str]

    model_config = {"from_attributes": True}


class TeamSummaryOut(BaseModel):
    team_name: str
    count: int
    result: Optional[str] = None
    manager_picked: bool = False

    model_config = {"from_attributes": True}


class RoundReportOut(BaseModel):
    round_number: int
    status: str
    is_void: bool
    active_players: int
    team_summary: list[TeamSummaryOut]
    eliminated: list[str]

    model_config = {"from_attributes": True}


class GameReportOut(BaseModel):
    game_id: int
    game_name: str
    status: str
    winner_names: list[str]
    rounds: list[RoundReportOut]

    model_config = {"from_attributes": True}


class PickRecordOut(BaseModel):
    round_number: int
    player_name: str
    team_name: str
    result: Optional[str] = None
    auto_assigned: bool
    is_void: bool

    model_config = {"from_attributes": True}
