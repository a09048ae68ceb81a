from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lms_manager.core.game_config import OutcomeKind, PickResult


class RoundOut(BaseModel):
    id: int
    game_id: int
    round_number: int
    status: str
    is_void: bool
    created_at: datetime
    closed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PickCreate(BaseModel):
    participant_id: int
    team_id: int


class PickUpdate(BaseModel):
    team_id: int


class PickOut(BaseModel):
    id: int
    round_id: int
    participant_id: int
    player_name: str
    team_id: Optional[int] = None
    team_name: str
    result: Optional[str] = None
    auto_assigned: bool


class TeamResultIn(BaseModel):
    result: PickResult


class ResolveRequest(BaseModel):
    # team_id -> result; teams left out use the staged result
    results: dict[int, PickResult] = {}
    auto_assign_missing: bool = True


class RoundOutcomeOut(BaseModel):
    kind: OutcomeKind
    game_id: int
    round_number: int
    eliminated: list[str]
    survivors: list[str]
    winners: list[str]
    next_round_number: Optional[int] = None
    auto_assigned: list[str]

    model_config = {"from_attributes": True}
