from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from lms_manager.core.errors import (
    DuplicateParticipantError,
    InvalidStateError,
    NotFoundError,
)
from lms_manager.core.game_config import (
    DEFAULT_MAX_WINNERS,
    DEFAULT_POSTPONE_AS_WIN,
    DEFAULT_ROLLOVER_MODE,
    DEFAULT_WINNER_MODE,
    FIRST_ROUND_NUMBER,
    GameStatus,
    RolloverMode,
    RoundStatus,
    WinnerMode,
)
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import game_transaction, transaction
from lms_manager.models.games import Game, Participant
from lms_manager.models.rounds import Round
from lms_manager.services.locks import forget_game_lock
from lms_manager.services.pools import ensure_players, get_group

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_game(db: Session, scope: ManagerScope, game_id: int, *, for_update: bool = False) -> Game:
    q = db.query(Game).filter_by(id=game_id, manager_email=scope.manager_email)
    if for_update:
        q = q.with_for_update(of=Game)
    g = q.first()
    if not g:
        raise NotFoundError("Game not found", game_id=game_id)
    return g


def list_games(db: Session, scope: ManagerScope, status: Optional[str] = None) -> List[Game]:
    q = db.query(Game).filter_by(manager_email=scope.manager_email)
    if status:
        q = q.filter(Game.status == status)
    return q.order_by(Game.created_at.desc(), Game.id.desc()).all()


def current_round(db: Session, game: Game) -> Optional[Round]:
    return (
        db.query(Round)
        .filter(Round.game_id == game.id)
        .order_by(Round.round_number.desc())
        .first()
    )


def get_round(db: Session, game: Game, round_id: int) -> Round:
    rnd = db.query(Round).filter_by(id=round_id, game_id=game.id).first()
    if not rnd:
        raise NotFoundError("Round not found", game_id=game.id, round_id=round_id)
    return rnd


def find_round_game_id(db: Session, scope: ManagerScope, round_id: int) -> int:
    """Game id owning `round_id`, checked against the manager scope."""
    row = (
        db.query(Round.game_id)
        .join(Game, Game.id == Round.game_id)
        .filter(Round.id == round_id, Game.manager_email == scope.manager_email)
        .first()
    )
    if not row:
        raise NotFoundError("Round not found", round_id=round_id)
    return int(row[0])


def active_participants(db: Session, game: Game) -> List[Participant]:
    return (
        db.query(Participant)
        .filter(Participant.game_id == game.id, Participant.is_active.is_(True))
        .order_by(Participant.player_name.asc())
        .all()
    )


def count_active(db: Session, game: Game) -> int:
    return (
        db.query(func.count(Participant.id))
        .filter(Participant.game_id == game.id, Participant.is_active.is_(True))
        .scalar()
        or 0
    )


def open_round(db: Session, game: Game, round_number: int) -> Round:
    rnd = Round(game_id=game.id, round_number=round_number, status=RoundStatus.OPEN.value)
    db.add(rnd)
    db.flush()
    logger.info("game %s: round %s opened", game.id, round_number)
    return rnd


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def _parse_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = sorted(e.value for e in enum_cls)
        raise InvalidStateError(f"Invalid {field}. Allowed: {allowed}", value=value)


def _clean_names(names: Iterable[str], game_id: Optional[int] = None) -> List[str]:
    cleaned: List[str] = []
    for n in names:
        n = (n or "").strip()
        if not n:
            raise InvalidStateError("Participant name required", game_id=game_id)
        if n in cleaned:
            raise DuplicateParticipantError("Participant listed twice", game_id=game_id, player_name=n)
        cleaned.append(n)
    return cleaned


def create_game(
    db: Session,
    scope: ManagerScope,
    name: str,
    player_names: Iterable[str] = (),
    group_id: Optional[int] = None,
    postpone_as_win: bool = DEFAULT_POSTPONE_AS_WIN,
    winner_mode: str = DEFAULT_WINNER_MODE.value,
    rollover_mode: str = DEFAULT_ROLLOVER_MODE.value,
    max_winners: int = DEFAULT_MAX_WINNERS,
) -> Game:
    """Create an active game with round 1 open and every name as an active participant."""
    name = (name or "").strip()
    if not name:
        raise InvalidStateError("Game name required")

    wm = _parse_enum(WinnerMode, winner_mode, "winner_mode")
    rm = _parse_enum(RolloverMode, rollover_mode, "rollover_mode")
    if int(max_winners) < 1:
        raise InvalidStateError("max_winners must be at least 1", max_winners=max_winners)

    names = _clean_names(player_names)

    with transaction(db):
        if group_id is not None:
            get_group(db, scope, group_id)

        game = Game(
            manager_email=scope.manager_email,
            name=name,
            group_id=group_id,
            status=GameStatus.ACTIVE.value,
            postpone_as_win=bool(postpone_as_win),
            winner_mode=wm.value,
            rollover_mode=rm.value,
            max_winners=int(max_winners),
        )
        db.add(game)
        db.flush()

        ensure_players(db, scope, names)
        db.add_all([Participant(game_id=game.id, player_name=n, is_active=True) for n in names])
        open_round(db, game, FIRST_ROUND_NUMBER)

    db.refresh(game)
    logger.info(
        "game created id=%s name=%r participants=%d winner_mode=%s rollover_mode=%s",
        game.id, game.name, len(names), game.winner_mode, game.rollover_mode,
    )
    return game


def add_participants(db: Session, scope: ManagerScope, game_id: int, player_names: Iterable[str]) -> List[Participant]:
    """Join more names to a game that has not closed any round yet."""
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        names = _clean_names(player_names, game_id=game.id)

        if not game.is_active:
            raise InvalidStateError("Game is completed", game_id=game.id)
        closed = (
            db.query(Round.id)
            .filter(Round.game_id == game.id, Round.status == RoundStatus.CLOSED.value)
            .first()
        )
        if closed:
            raise InvalidStateError("Participants can only join before the first round closes", game_id=game.id)

        existing = {
            n for (n,) in db.query(Participant.player_name).filter_by(game_id=game.id).all()
        }
        for n in names:
            if n in existing:
                raise DuplicateParticipantError("Player already in game", game_id=game.id, player_name=n)

        ensure_players(db, scope, names)
        added = [Participant(game_id=game.id, player_name=n, is_active=True) for n in names]
        db.add_all(added)
        db.flush()

    logger.info("game %s: %d participant(s) added", game_id, len(added))
    return added


def delete_game(db: Session, scope: ManagerScope, game_id: int) -> None:
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        db.delete(game)
    forget_game_lock(game_id)
    logger.info("game deleted id=%s manager=%s", game_id, scope.manager_email)


# ---------------------------------------------------------------------------
# Termination
# ---------------------------------------------------------------------------


def _single_winner_reached(game: Game, active: int) -> bool:
    if active == 0:
        # a wipeout is handled before termination runs
        raise InvalidStateError("No active participants left without a wipeout", game_id=game.id)
    return active == 1


def _multiple_winners_reached(game: Game, active: int) -> bool:
    return active <= int(game.max_winners)


_TERMINATION_RULES: Dict[WinnerMode, Callable[[Game, int], bool]] = {
    WinnerMode.SINGLE: _single_winner_reached,
    WinnerMode.MULTIPLE: _multiple_winners_reached,
}


def evaluate_termination(db: Session, game: Game, eliminated_this_round: int) -> Optional[List[str]]:
    """Winner names if the game ends after this round, else None.

    Only a round that eliminated somebody can end the game, so a game that
    starts at or below its winner threshold still has to play an eliminating
    round.
    """
    active = active_participants(db, game)
    reached = _TERMINATION_RULES[WinnerMode(game.winner_mode)](game, len(active))
    if not reached or eliminated_this_round <= 0:
        return None
    return sorted(p.player_name for p in active)


def complete_game(db: Session, game: Game, winners: List[str]) -> None:
    game.status = GameStatus.COMPLETED.value
    game.winner_names = list(winners)
    game.completed_at = _now()
    db.flush()
    logger.info("game %s completed, winners=%s", game.id, winners)


def declare_winners(db: Session, scope: ManagerScope, game_id: int) -> List[str]:
    """End the game now with every active participant as joint winner.

    The open round is dropped if nobody picked yet, otherwise it is closed as
    void without applying any result.
    """
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        if not game.is_active:
            raise InvalidStateError("Game is already completed", game_id=game.id)

        winners = sorted(p.player_name for p in active_participants(db, game))
        if not winners:
            raise InvalidStateError("No active players to declare as winners", game_id=game.id)

        rnd = current_round(db, game)
        if rnd is not None and rnd.is_open:
            if not rnd.picks:
                db.delete(rnd)
            else:
                rnd.status = RoundStatus.CLOSED.value
                rnd.is_void = True
                rnd.closed_at = _now()

        complete_game(db, game, winners)
    return winners
