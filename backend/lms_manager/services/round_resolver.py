from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from lms_manager.core.errors import InvalidStateError, MissingResultError, NotFoundError
from lms_manager.core.game_config import (
    FIRST_ROUND_NUMBER,
    OutcomeKind,
    PickResult,
    RolloverMode,
    RoundStatus,
)
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import game_transaction
from lms_manager.models.games import Game
from lms_manager.models.rounds import Pick, Round
from lms_manager.services.auto_assign import assign_missing
from lms_manager.services.games import (
    active_participants,
    complete_game,
    count_active,
    current_round,
    evaluate_termination,
    find_round_game_id,
    get_game,
    get_round,
    open_round,
)
from lms_manager.services.picks import ensure_round_open, list_picks, players_without_pick
from lms_manager.services.rollover import restart_game, rollback_round

logger = logging.getLogger(__name__)


@dataclass
class RoundOutcome:
    kind: OutcomeKind
    game_id: int
    round_number: int
    eliminated: List[str] = field(default_factory=list)
    survivors: List[str] = field(default_factory=list)
    winners: List[str] = field(default_factory=list)
    next_round_number: Optional[int] = None
    auto_assigned: List[str] = field(default_factory=list)


# win / loss / draw are fixed; postponed depends on the game
_SURVIVES: Dict[PickResult, bool] = {
    PickResult.WIN: True,
    PickResult.LOSS: False,
    PickResult.DRAW: False,
}


def survives(result: PickResult, postpone_as_win: bool) -> bool:
    if result is PickResult.POSTPONED:
        return bool(postpone_as_win)
    return _SURVIVES[result]


def _parse_result(value, **context) -> PickResult:
    try:
        return PickResult(value)
    except ValueError:
        allowed = sorted(r.value for r in PickResult)
        raise InvalidStateError(f"Invalid result. Allowed: {allowed}", result=value, **context)


def _results_for_picks(
    game: Game,
    rnd: Round,
    picks: List[Pick],
    results: Mapping[int, object],
) -> Dict[int, PickResult]:
    """Result per pick id: explicit results first, staged pick results second."""
    given = {int(tid): _parse_result(v, game_id=game.id, team_id=tid) for tid, v in results.items()}

    out: Dict[int, PickResult] = {}
    missing: Dict[int, str] = {}
    for pick in picks:
        res = given.get(pick.team_id)
        if res is None and pick.result:
            res = PickResult(pick.result)
        if res is None:
            missing[pick.team_id] = pick.team_name
            continue
        out[pick.id] = res

    if missing:
        raise MissingResultError(
            "Missing result for picked team(s)",
            game_id=game.id,
            round_number=rnd.round_number,
            team_ids=sorted(missing),
            team_names=sorted(missing.values()),
        )
    return out


# ---------------------------------------------------------------------------
# Rollover strategies (wipeout)
# ---------------------------------------------------------------------------


def _rollover_round(db: Session, game: Game, rnd: Round) -> Tuple[OutcomeKind, int]:
    nxt = rollback_round(db, game, rnd)
    return OutcomeKind.ROLLED_BACK, nxt.round_number


def _rollover_game(db: Session, game: Game, rnd: Round) -> Tuple[OutcomeKind, int]:
    restart_game(db, game)
    return OutcomeKind.GAME_RESET, FIRST_ROUND_NUMBER


_ROLLOVER_STRATEGIES: Dict[RolloverMode, Callable[[Session, Game, Round], Tuple[OutcomeKind, int]]] = {
    RolloverMode.ROUND: _rollover_round,
    RolloverMode.GAME: _rollover_game,
}


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


def _ensure_resolvable(db: Session, game: Game, rnd: Round) -> None:
    if not game.is_active:
        raise InvalidStateError("Game is completed", game_id=game.id, round_number=rnd.round_number)
    if not rnd.is_open:
        raise InvalidStateError("Round is not open", game_id=game.id, round_number=rnd.round_number)
    latest = current_round(db, game)
    if latest is None or latest.id != rnd.id:
        raise InvalidStateError("Only the latest round can be resolved", game_id=game.id, round_number=rnd.round_number)


def resolve_round(
    db: Session,
    scope: ManagerScope,
    round_id: int,
    results: Optional[Mapping[int, object]] = None,
    auto_assign_missing: bool = True,
) -> RoundOutcome:
    """Apply team results to an open round and move the game on.

    `results` maps team id to 'win' | 'loss' | 'draw' | 'postponed'; teams left
    out fall back to results staged with `set_team_result`. Either the whole
    resolution is committed or nothing is.
    """
    game_id = find_round_game_id(db, scope, round_id)
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        rnd = get_round(db, game, round_id)
        _ensure_resolvable(db, game, rnd)

        entering = active_participants(db, game)
        if not entering:
            raise InvalidStateError("Game has no active participants", game_id=game.id)

        auto = assign_missing(db, game, rnd) if auto_assign_missing else []
        waiting = players_without_pick(db, game, rnd)
        if waiting:
            raise InvalidStateError(
                "Active participants without a pick",
                game_id=game.id,
                round_number=rnd.round_number,
                player_names=[p.player_name for p in waiting],
            )

        picks = list_picks(db, rnd)
        per_pick = _results_for_picks(game, rnd, picks, results or {})

        eliminated: List[str] = []
        survivors: List[str] = []
        for pick in picks:
            res = per_pick[pick.id]
            pick.result = res.value
            participant = pick.participant
            if survives(res, game.postpone_as_win):
                survivors.append(participant.player_name)
            else:
                participant.is_active = False
                participant.eliminated_in_round = rnd.round_number
                eliminated.append(participant.player_name)

        rnd.status = RoundStatus.CLOSED.value
        rnd.closed_at = datetime.now(timezone.utc)
        db.flush()

        outcome = RoundOutcome(
            kind=OutcomeKind.ADVANCED,
            game_id=game.id,
            round_number=rnd.round_number,
            eliminated=sorted(eliminated),
            survivors=sorted(survivors),
            auto_assigned=sorted(p.participant.player_name for p in auto),
        )

        if count_active(db, game) == 0:
            logger.warning(
                "game %s round %s: wipeout (%d eliminated), rollover=%s",
                game.id, rnd.round_number, len(eliminated), game.rollover_mode,
            )
            strategy = _ROLLOVER_STRATEGIES[RolloverMode(game.rollover_mode)]
            outcome.kind, outcome.next_round_number = strategy(db, game, rnd)
        else:
            winners = evaluate_termination(db, game, len(eliminated))
            if winners:
                complete_game(db, game, winners)
                outcome.kind = OutcomeKind.COMPLETED
                outcome.winners = winners
            else:
                nxt = open_round(db, game, rnd.round_number + 1)
                outcome.next_round_number = nxt.round_number

    logger.info(
        "game %s round %s resolved: %s, eliminated=%d survivors=%d",
        outcome.game_id, outcome.round_number, outcome.kind.value,
        len(outcome.eliminated), len(outcome.survivors),
    )
    return outcome


def set_team_result(db: Session, scope: ManagerScope, round_id: int, team_id: int, result: str) -> int:
    """Stage a result on every pick of `team_id` in an open round. Returns picks updated."""
    game_id = find_round_game_id(db, scope, round_id)
    with game_transaction(db, game_id):
        game = get_game(db, scope, game_id, for_update=True)
        rnd = get_round(db, game, round_id)
        ensure_round_open(game, rnd)
        res = _parse_result(result, game_id=game.id, team_id=team_id)

        picks = db.query(Pick).filter(Pick.round_id == rnd.id, Pick.team_id == team_id).all()
        if not picks:
            raise NotFoundError("No picks for this team in the round", game_id=game.id,
                                round_number=rnd.round_number, team_id=team_id)
        for pick in picks:
            pick.result = res.value
        db.flush()
    return len(picks)
