from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from lms_manager.core.errors import NoTeamsAvailableError
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import game_transaction
from lms_manager.models.games import Game
from lms_manager.models.rounds import Pick, Round
from lms_manager.services.games import find_round_game_id, get_game, get_round
from lms_manager.services.picks import (
    ensure_round_open,
    group_teams,
    players_without_pick,
    used_team_ids,
)

logger = logging.getLogger(__name__)


def assign_missing(db: Session, game: Game, rnd: Round) -> List[Pick]:
    """Give every active participant without a pick the first unused team by name.

    Runs inside the caller's transaction. Participants that already picked
    are left alone, so calling it again is a no-op.
    """
    ensure_round_open(game, rnd)

    missing = players_without_pick(db, game, rnd)
    if not missing:
        return []

    teams = group_teams(db, game)
    created: List[Pick] = []
    for participant in missing:
        used = used_team_ids(db, game, participant.id)
        team = next((t for t in teams if t.id not in used), None)
        if team is None:
            raise NoTeamsAvailableError(
                "Participant has used every team in the group",
                game_id=game.id,
                round_number=rnd.round_number,
                player_name=participant.player_name,
                group_id=game.group_id,
            )

        pick = Pick(
            game_id=game.id,
            round_id=rnd.id,
            participant_id=participant.id,
            team_id=team.id,
            team_name=team.name,
            auto_assigned=True,
        )
        db.add(pick)
        created.append(pick)
        logger.info(
            "game %s round %s: auto-assigned %s to %s",
            game.id, rnd.round_number, team.name, participant.player_name,
        )

    db.flush()
    return created


def auto_assign(db: Session, scope: ManagerScope, round_id: int) -> List[Pick]:
    game_id = find_round_game_id(db, scope, round_id)
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        rnd = get_round(db, game, round_id)
        created = assign_missing(db, game, rnd)

    if created:
        logger.info("game %s: %d pick(s) auto-assigned", game_id, len(created))
    return created
