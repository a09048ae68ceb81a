from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from lms_manager.db.base import Base


class Player(Base):
    """Manager's reusable roster entry. Not linked to any login identity."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    manager_email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("manager_email", "name", name="uq_player_manager_name"),
    )
