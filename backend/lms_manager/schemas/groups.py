from datetime import datetime

from pydantic import BaseModel, Field


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    team_names: list[str] = Field(default_factory=list)


class GroupOut(BaseModel):
    id: int
    name: str
    created_at: datetime
    team_count: int = 0

    model_config = {"from_attributes": True}


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    rank: int = 0


class TeamUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    rank: int | None = None


class TeamOut(BaseModel):
    id: int
    group_id: int
    name: str
    rank: int

    model_config = {"from_attributes": True}
