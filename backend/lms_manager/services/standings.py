from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from lms_manager.core.errors import NotFoundError
from lms_manager.core.game_config import RoundStatus
from lms_manager.core.scope import ManagerScope
from lms_manager.models.games import Game, Participant
from lms_manager.models.players import Player
from lms_manager.models.rounds import Pick, Round
from lms_manager.services.games import get_game


@dataclass
class Standings:
    game_id: int
    status: str
    current_round: Optional[int]
    active: List[Participant]
    eliminated: List[Participant]
    winners: List[str]


@dataclass
class TeamSummary:
    team_name: str
    count: int
    result: Optional[str] = None
    manager_picked: bool = False


@dataclass
class RoundReport:
    round_number: int
    status: str
    is_void: bool
    active_players: int
    team_summary: List[TeamSummary] = field(default_factory=list)
    eliminated: List[str] = field(default_factory=list)


@dataclass
class GameReport:
    game_id: int
    game_name: str
    status: str
    winner_names: List[str]
    rounds: List[RoundReport]


@dataclass
class PickRecord:
    round_number: int
    player_name: str
    team_name: str
    result: Optional[str]
    auto_assigned: bool
    is_void: bool


def get_standings(db: Session, scope: ManagerScope, game_id: int) -> Standings:
    game = get_game(db, scope, game_id)
    participants = db.query(Participant).filter_by(game_id=game.id).all()

    active = sorted((p for p in participants if p.is_active), key=lambda p: p.player_name)
    # latest eliminations first, then by name
    eliminated = sorted(
        (p for p in participants if not p.is_active),
        key=lambda p: (-(p.eliminated_in_round or 0), p.player_name),
    )
    last = db.query(Round.round_number).filter_by(game_id=game.id).order_by(Round.round_number.desc()).first()

    return Standings(
        game_id=game.id,
        status=game.status,
        current_round=last[0] if last else None,
        active=active,
        eliminated=eliminated,
        winners=list(game.winner_names or []),
    )


def get_report(db: Session, game_id: int) -> GameReport:
    """Round by round summary. No manager scope: used by the public embed view."""
    game = db.query(Game).filter_by(id=game_id).first()
    if not game:
        raise NotFoundError("Game not found", game_id=game_id)

    participants = db.query(Participant).filter_by(game_id=game.id).all()
    rounds = db.query(Round).filter_by(game_id=game.id).order_by(Round.round_number.asc()).all()
    pool = {n for (n,) in db.query(Player.name).filter_by(manager_email=game.manager_email).all()}

    out: List[RoundReport] = []
    for rnd in rounds:
        # active entering the round: never eliminated, or eliminated here or later
        active_players = sum(
            1 for p in participants
            if p.eliminated_in_round is None or p.eliminated_in_round >= rnd.round_number
        )

        rows = (
            db.query(Pick.team_name, Pick.result, Participant.player_name)
            .join(Participant, Participant.id == Pick.participant_id)
            .filter(Pick.round_id == rnd.id)
            .all()
        )
        counts = Counter(name for name, _, _ in rows)
        results = {name: res for name, res, _ in rows}
        # teams picked by someone still in the manager's player pool
        by_pool = {name for name, _, player in rows if player in pool}
        summary = [
            TeamSummary(team_name=name, count=n, result=results.get(name), manager_picked=name in by_pool)
            for name, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

        eliminated: List[str] = []
        if rnd.status == RoundStatus.CLOSED.value:
            eliminated = sorted(p.player_name for p in participants if p.eliminated_in_round == rnd.round_number)

        out.append(
            RoundReport(
                round_number=rnd.round_number,
                status=rnd.status,
                is_void=bool(rnd.is_void),
                active_players=active_players,
                team_summary=summary,
                eliminated=eliminated,
            )
        )

    return GameReport(
        game_id=game.id,
        game_name=game.name,
        status=game.status,
        winner_names=list(game.winner_names or []),
        rounds=out,
    )


def get_pick_history(db: Session, scope: ManagerScope, game_id: int) -> List[PickRecord]:
    game = get_game(db, scope, game_id)
    rows = (
        db.query(Round.round_number, Participant.player_name, Pick.team_name, Pick.result, Pick.auto_assigned, Round.is_void)
        .select_from(Pick)
        .join(Round, Round.id == Pick.round_id)
        .join(Participant, Participant.id == Pick.participant_id)
        .filter(Pick.game_id == game.id)
        .order_by(Round.round_number.asc(), Participant.player_name.asc())
        .all()
    )
    return [
        PickRecord(
            round_number=rn,
            player_name=player,
            team_name=team,
            result=result,
            auto_assigned=bool(auto),
            is_void=bool(void),
        )
        for rn, player, team, result, auto, void in rows
    ]
