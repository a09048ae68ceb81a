from __future__ import annotations

import logging
from typing import List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from lms_manager.core.errors import (
    DuplicatePickError,
    InvalidStateError,
    NotFoundError,
    ParticipantInactiveError,
    RoundClosedError,
    TeamAlreadyUsedError,
)
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import game_transaction
from lms_manager.models.games import Game, Participant
from lms_manager.models.rounds import Pick, Round
from lms_manager.models.teams import Team
from lms_manager.services.games import (
    active_participants,
    find_round_game_id,
    get_game,
    get_round,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def used_team_ids(db: Session, game: Game, participant_id: int, exclude_pick_id: Optional[int] = None) -> Set[int]:
    """Teams this participant already holds a pick on in this game.

    Picks of voided (rolled back) rounds still count.
    """
    q = db.query(Pick.team_id).filter(Pick.game_id == game.id, Pick.participant_id == participant_id)
    if exclude_pick_id is not None:
        q = q.filter(Pick.id != exclude_pick_id)
    return {tid for (tid,) in q.all()}


def group_teams(db: Session, game: Game) -> List[Team]:
    """Teams of the game's group, alphabetical ignoring case."""
    if game.group_id is None:
        return []
    return (
        db.query(Team)
        .filter(Team.group_id == game.group_id)
        .order_by(func.lower(Team.name), Team.name, Team.id)
        .all()
    )


def list_picks(db: Session, rnd: Round) -> List[Pick]:
    return (
        db.query(Pick)
        .join(Participant, Participant.id == Pick.participant_id)
        .filter(Pick.round_id == rnd.id)
        .order_by(Participant.player_name.asc())
        .all()
    )


def get_participant(db: Session, game: Game, participant_id: int) -> Participant:
    p = db.query(Participant).filter_by(id=participant_id, game_id=game.id).first()
    if not p:
        raise NotFoundError("Participant not found", game_id=game.id, participant_id=participant_id)
    return p


def players_without_pick(db: Session, game: Game, rnd: Round) -> List[Participant]:
    picked = {pid for (pid,) in db.query(Pick.participant_id).filter(Pick.round_id == rnd.id).all()}
    return [p for p in active_participants(db, game) if p.id not in picked]


def available_teams(db: Session, game: Game, participant_id: int) -> List[Team]:
    used = used_team_ids(db, game, participant_id)
    return [t for t in group_teams(db, game) if t.id not in used]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def ensure_round_open(game: Game, rnd: Round) -> None:
    if not game.is_active or not rnd.is_open:
        raise RoundClosedError("Round is not open", game_id=game.id, round_number=rnd.round_number)


def _ensure_participant_active(game: Game, rnd: Round, participant: Participant) -> None:
    if not participant.is_active:
        raise ParticipantInactiveError(
            "Participant is eliminated",
            game_id=game.id,
            round_number=rnd.round_number,
            player_name=participant.player_name,
            eliminated_in_round=participant.eliminated_in_round,
        )


def _resolve_team(db: Session, game: Game, team_id: int) -> Team:
    if game.group_id is None:
        raise InvalidStateError("Game has no team group", game_id=game.id)
    t = db.query(Team).filter_by(id=team_id).first()
    if not t:
        raise NotFoundError("Team not found", game_id=game.id, team_id=team_id)
    if t.group_id != game.group_id:
        raise InvalidStateError("Team is not in the game's group", game_id=game.id, team_id=team_id)
    return t


def _ensure_team_unused(
    db: Session,
    game: Game,
    rnd: Round,
    participant: Participant,
    team: Team,
    exclude_pick_id: Optional[int] = None,
) -> None:
    if team.id in used_team_ids(db, game, participant.id, exclude_pick_id=exclude_pick_id):
        raise TeamAlreadyUsedError(
            "Team already used by this participant",
            game_id=game.id,
            round_number=rnd.round_number,
            player_name=participant.player_name,
            team_id=team.id,
            team_name=team.name,
        )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def _load(db: Session, scope: ManagerScope, round_id: int) -> tuple[Game, Round]:
    game_id = find_round_game_id(db, scope, round_id)
    game = get_game(db, scope, game_id, for_update=True)
    return game, get_round(db, game, round_id)


def submit_pick(db: Session, scope: ManagerScope, round_id: int, participant_id: int, team_id: int) -> Pick:
    game_id = find_round_game_id(db, scope, round_id)
    with game_transaction(db, game_id):
        game, rnd = _load(db, scope, round_id)
        ensure_round_open(game, rnd)

        participant = get_participant(db, game, participant_id)
        _ensure_participant_active(game, rnd, participant)

        dup = db.query(Pick.id).filter_by(round_id=rnd.id, participant_id=participant.id).first()
        if dup:
            raise DuplicatePickError(
                "Participant already picked this round",
                game_id=game.id,
                round_number=rnd.round_number,
                player_name=participant.player_name,
            )

        team = _resolve_team(db, game, team_id)
        _ensure_team_unused(db, game, rnd, participant, team)

        pick = Pick(
            game_id=game.id,
            round_id=rnd.id,
            participant_id=participant.id,
            team_id=team.id,
            team_name=team.name,
            auto_assigned=False,
        )
        db.add(pick)
        db.flush()

    db.refresh(pick)
    logger.info(
        "game %s round %s: %s picked %s",
        game.id, rnd.round_number, participant.player_name, team.name,
    )
    return pick


def _get_pick(db: Session, scope: ManagerScope, pick_id: int) -> Pick:
    pick = (
        db.query(Pick)
        .join(Game, Game.id == Pick.game_id)
        .filter(Pick.id == pick_id, Game.manager_email == scope.manager_email)
        .first()
    )
    if not pick:
        raise NotFoundError("Pick not found", pick_id=pick_id)
    return pick


def change_pick(db: Session, scope: ManagerScope, pick_id: int, team_id: int) -> Pick:
    """Swap the team of a pick while its round is still open."""
    game_id = _get_pick(db, scope, pick_id).game_id
    with game_transaction(db, game_id):
        pick = _get_pick(db, scope, pick_id)
        game = get_game(db, scope, pick.game_id, for_update=True)
        rnd = pick.round
        ensure_round_open(game, rnd)

        team = _resolve_team(db, game, team_id)
        _ensure_team_unused(db, game, rnd, pick.participant, team, exclude_pick_id=pick.id)

        pick.team_id = team.id
        pick.team_name = team.name
        pick.result = None
        pick.auto_assigned = False
        db.flush()

    db.refresh(pick)
    return pick


def remove_pick(db: Session, scope: ManagerScope, pick_id: int) -> None:
    game_id = _get_pick(db, scope, pick_id).game_id
    with game_transaction(db, game_id):
        pick = _get_pick(db, scope, pick_id)
        game = get_game(db, scope, pick.game_id, for_update=True)
        ensure_round_open(game, pick.round)
        db.delete(pick)
