from datetime import datetime

from pydantic import BaseModel, Field


class PlayerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class PlayerOut(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True
