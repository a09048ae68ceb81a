from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from lms_manager.db.base import Base


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    manager_email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)                   # ej: "Premier League 25/26"
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    teams = relationship(
        "Team",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Team.name",
    )

    __table_args__ = (
        UniqueConstraint("manager_email", "name", name="uq_group_manager_name"),
    )


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    rank = Column(Integer, nullable=False, default=0)   # display only (lower = stronger)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    group = relationship("Group", back_populates="teams")

    __table_args__ = (
        UniqueConstraint("group_id", "name", name="uq_team_group_name"),
        Index("ix_team_group_name", "group_id", "name"),
    )
