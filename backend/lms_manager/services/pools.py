from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from lms_manager.core.errors import DuplicateNameError, InvalidStateError, NotFoundError
from lms_manager.core.game_config import GameStatus
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import transaction
from lms_manager.models.games import Game
from lms_manager.models.players import Player
from lms_manager.models.teams import Group, Team

logger = logging.getLogger(__name__)


def _clean(name: Optional[str], what: str) -> str:
    value = (name or "").strip()
    if not value:
        raise InvalidStateError(f"{what} name required")
    return value


# ---------------------------------------------------------------------------
# Groups / teams
# ---------------------------------------------------------------------------


def get_group(db: Session, scope: ManagerScope, group_id: int) -> Group:
    g = db.query(Group).filter_by(id=group_id, manager_email=scope.manager_email).first()
    if not g:
        raise NotFoundError("Group not found", group_id=group_id)
    return g


def list_groups(db: Session, scope: ManagerScope) -> List[tuple[Group, int]]:
    """Groups of the manager with their team count, newest first."""
    rows = (
        db.query(Group, func.count(Team.id))
        .outerjoin(Team, Team.group_id == Group.id)
        .filter(Group.manager_email == scope.manager_email)
        .group_by(Group.id)
        .order_by(Group.created_at.desc(), Group.id.desc())
        .all()
    )
    return [(g, int(n)) for g, n in rows]


def create_group(db: Session, scope: ManagerScope, name: str, team_names: Iterable[str] = ()) -> Group:
    name = _clean(name, "Group")
    with transaction(db):
        exists = db.query(Group).filter_by(manager_email=scope.manager_email, name=name).first()
        if exists:
            raise DuplicateNameError("Group name already exists", group_name=name)

        g = Group(manager_email=scope.manager_email, name=name)
        db.add(g)
        db.flush()

        seen = set()
        for tn in team_names:
            tn = _clean(tn, "Team")
            if tn in seen:
                continue
            seen.add(tn)
            db.add(Team(group_id=g.id, name=tn))

    db.refresh(g)
    logger.info("group created id=%s name=%r teams=%d manager=%s", g.id, g.name, len(g.teams), scope.manager_email)
    return g


def _ensure_group_editable(db: Session, group: Group) -> None:
    # Pool is frozen while a live game uses it
    live = (
        db.query(Game.id)
        .filter(Game.group_id == group.id, Game.status == GameStatus.ACTIVE.value)
        .first()
    )
    if live:
        raise InvalidStateError("Group is used by an active game", group_id=group.id, game_id=live[0])


def delete_group(db: Session, scope: ManagerScope, group_id: int) -> None:
    with transaction(db):
        g = get_group(db, scope, group_id)
        _ensure_group_editable(db, g)
        db.delete(g)
    logger.info("group deleted id=%s manager=%s", group_id, scope.manager_email)


def list_teams(db: Session, scope: ManagerScope, group_id: int) -> List[Team]:
    g = get_group(db, scope, group_id)
    return db.query(Team).filter_by(group_id=g.id).order_by(func.lower(Team.name), Team.name).all()


def get_team(db: Session, scope: ManagerScope, team_id: int) -> Team:
    t = (
        db.query(Team)
        .join(Group, Group.id == Team.group_id)
        .filter(Team.id == team_id, Group.manager_email == scope.manager_email)
        .first()
    )
    if not t:
        raise NotFoundError("Team not found", team_id=team_id)
    return t


def create_team(db: Session, scope: ManagerScope, group_id: int, name: str, rank: int = 0) -> Team:
    name = _clean(name, "Team")
    with transaction(db):
        g = get_group(db, scope, group_id)
        _ensure_group_editable(db, g)
        if db.query(Team).filter_by(group_id=g.id, name=name).first():
            raise DuplicateNameError("Team already exists in group", group_id=g.id, team_name=name)
        t = Team(group_id=g.id, name=name, rank=int(rank or 0))
        db.add(t)
    db.refresh(t)
    return t


def update_team(
    db: Session,
    scope: ManagerScope,
    team_id: int,
    name: Optional[str] = None,
    rank: Optional[int] = None,
) -> Team:
    with transaction(db):
        t = get_team(db, scope, team_id)
        _ensure_group_editable(db, t.group)

        if name is not None:
            name = _clean(name, "Team")
            clash = (
                db.query(Team)
                .filter(Team.group_id == t.group_id, Team.name == name, Team.id != t.id)
                .first()
            )
            if clash:
                raise DuplicateNameError("Team already exists in group", group_id=t.group_id, team_name=name)
            t.name = name
        if rank is not None:
            t.rank = int(rank)
    db.refresh(t)
    return t


def delete_team(db: Session, scope: ManagerScope, team_id: int) -> None:
    with transaction(db):
        t = get_team(db, scope, team_id)
        _ensure_group_editable(db, t.group)
        db.delete(t)


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


def list_players(db: Session, scope: ManagerScope) -> List[Player]:
    return (
        db.query(Player)
        .filter_by(manager_email=scope.manager_email)
        .order_by(Player.name.asc())
        .all()
    )


def create_player(db: Session, scope: ManagerScope, name: str) -> Player:
    name = _clean(name, "Player")
    with transaction(db):
        if db.query(Player).filter_by(manager_email=scope.manager_email, name=name).first():
            raise DuplicateNameError("Player already exists", player_name=name)
        p = Player(manager_email=scope.manager_email, name=name)
        db.add(p)
    db.refresh(p)
    return p


def delete_player(db: Session, scope: ManagerScope, player_id: int) -> None:
    # Participants keep their own copy of the name; games are unaffected
    with transaction(db):
        p = db.query(Player).filter_by(id=player_id, manager_email=scope.manager_email).first()
        if not p:
            raise NotFoundError("Player not found", player_id=player_id)
        db.delete(p)


def ensure_players(db: Session, scope: ManagerScope, names: Iterable[str]) -> int:
    """Add any missing names to the manager's pool. Caller owns the transaction.

    Returns the number of players inserted.
    """
    inserted = 0
    existing = {
        n for (n,) in db.query(Player.name).filter_by(manager_email=scope.manager_email).all()
    }
    for name in names:
        name = (name or "").strip()
        if not name or name in existing:
            continue
        db.add(Player(manager_email=scope.manager_email, name=name))
        existing.add(name)
        inserted += 1
    if inserted:
        db.flush()
    return inserted
