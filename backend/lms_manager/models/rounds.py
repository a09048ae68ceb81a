from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from lms_manager.core.game_config import RoundStatus
from lms_manager.db.base import Base


class Round(Base):
    __tablename__ = "rounds"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=RoundStatus.OPEN.value)  # 'open' | 'closed'

    # True when a wipeout was rolled back: eliminations undone, picks still count as used
    is_void = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    closed_at = Column(DateTime, nullable=True)

    game = relationship("Game", back_populates="rounds")
    picks = relationship(
        "Pick",
        back_populates="round",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_open(self) -> bool:
        return self.status == RoundStatus.OPEN.value

    __table_args__ = (
        UniqueConstraint("game_id", "round_number", name="uq_round_game_number"),
    )


class Pick(Base):
    __tablename__ = "picks"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    round_id = Column(Integer, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # NULL once the team's group is deleted; team_name keeps the history readable
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)
    team_name = Column(String, nullable=False)

    result = Column(String, nullable=True)  # NULL = pendiente; 'win' | 'loss' | 'draw' | 'postponed'
    auto_assigned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    round = relationship("Round", back_populates="picks")
    participant = relationship("Participant", lazy="joined")
    team = relationship("Team", lazy="joined")

    __table_args__ = (
        UniqueConstraint("round_id", "participant_id", name="uq_pick_round_participant"),
        # reuse check: teams already used by a participant in a game
        Index("ix_pick_game_participant_team", "game_id", "participant_id", "team_id"),
    )
