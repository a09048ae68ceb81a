from datetime import datetime

from sqlalchemy import (
    JSON,
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

from lms_manager.core.game_config import (
    DEFAULT_MAX_WINNERS,
    DEFAULT_POSTPONE_AS_WIN,
    DEFAULT_ROLLOVER_MODE,
    DEFAULT_WINNER_MODE,
    GameStatus,
)
from lms_manager.db.base import Base


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    manager_email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(String, nullable=False, default=GameStatus.ACTIVE.value)  # 'active' | 'completed'
    winner_names = Column(JSON, nullable=True)  # solo al completar (varios = ganadores conjuntos)

    # --- config ---
    postpone_as_win = Column(Boolean, nullable=False, default=DEFAULT_POSTPONE_AS_WIN)
    winner_mode = Column(String, nullable=False, default=DEFAULT_WINNER_MODE.value)
    rollover_mode = Column(String, nullable=False, default=DEFAULT_ROLLOVER_MODE.value)
    max_winners = Column(Integer, nullable=False, default=DEFAULT_MAX_WINNERS)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    group = relationship("Group", lazy="joined")
    participants = relationship(
        "Participant",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Participant.player_name",
    )
    rounds = relationship(
        "Round",
        back_populates="game",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Round.round_number",
    )

    @property
    def is_active(self) -> bool:
        return self.status == GameStatus.ACTIVE.value

    __table_args__ = (
        Index("ix_game_manager_status", "manager_email", "status"),
    )


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    player_name = Column(String, nullable=False)    # texto libre, no es un usuario
    is_active = Column(Boolean, nullable=False, default=True)
    eliminated_in_round = Column(Integer, nullable=True)

    game = relationship("Game", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("game_id", "player_name", name="uq_participant_game_player"),
    )
