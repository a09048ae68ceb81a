from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from lms_manager.core.errors import InvalidStateError
from lms_manager.core.game_config import FIRST_ROUND_NUMBER
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import game_transaction
from lms_manager.models.games import Game, Participant
from lms_manager.models.rounds import Pick, Round
from lms_manager.services.games import get_game, open_round

logger = logging.getLogger(__name__)


def rollback_round(db: Session, game: Game, rnd: Round) -> Round:
    """Undo the eliminations of a closed round and open the next one.

    The round stays closed and is marked void. Its picks are kept, so the
    teams in it still count as used.
    """
    reverted: List[Participant] = (
        db.query(Participant)
        .filter(Participant.game_id == game.id, Participant.eliminated_in_round == rnd.round_number)
        .all()
    )
    for p in reverted:
        p.is_active = True
        p.eliminated_in_round = None

    rnd.is_void = True
    db.flush()

    logger.info("game %s: round %s rolled back (%d reinstated)", game.id, rnd.round_number, len(reverted))
    return open_round(db, game, rnd.round_number + 1)


def is_pristine(db: Session, game: Game) -> bool:
    """True if the game is exactly as created: round 1 open, no picks, nobody out."""
    rounds = db.query(Round).filter(Round.game_id == game.id).all()
    if len(rounds) != 1:
        return False
    only = rounds[0]
    if only.round_number != FIRST_ROUND_NUMBER or not only.is_open or only.is_void:
        return False
    if db.query(Pick.id).filter(Pick.game_id == game.id).first():
        return False
    out = (
        db.query(Participant.id)
        .filter(
            Participant.game_id == game.id,
            (Participant.is_active.is_(False)) | (Participant.eliminated_in_round.isnot(None)),
        )
        .first()
    )
    return out is None


def restart_game(db: Session, game: Game) -> bool:
    """Wipe every round and pick, reactivate everybody and reopen round 1.

    Returns False when there was nothing to wipe.
    """
    if is_pristine(db, game):
        return False

    for pick in db.query(Pick).filter(Pick.game_id == game.id).all():
        db.delete(pick)
    for rnd in db.query(Round).filter(Round.game_id == game.id).all():
        db.delete(rnd)
    # deletes must hit the DB before round 1 is inserted again (unique round number)
    db.flush()
    db.expire(game, ["rounds"])

    for p in db.query(Participant).filter(Participant.game_id == game.id).all():
        p.is_active = True
        p.eliminated_in_round = None

    open_round(db, game, FIRST_ROUND_NUMBER)
    logger.warning("game %s: full restart, history discarded", game.id)
    return True


def reset_game(db: Session, scope: ManagerScope, game_id: int) -> bool:
    """Administrative full restart. Repeating it is a no-op."""
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        if not game.is_active:
            raise InvalidStateError("Completed games cannot be reset", game_id=game.id)
        changed = restart_game(db, game)
    return changed
