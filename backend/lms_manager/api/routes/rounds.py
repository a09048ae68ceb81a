from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from lms_manager.core.scope import ManagerScope
from lms_manager.core.security import get_current_manager, get_db
from lms_manager.models.rounds import Pick
from lms_manager.schemas.games import ParticipantOut
from lms_manager.schemas.groups import TeamOut
from lms_manager.schemas.rounds import (
    PickCreate,
    PickOut,
    PickUpdate,
    ResolveRequest,
    RoundOut,
    RoundOutcomeOut,
    TeamResultIn,
)
from lms_manager.services import games as games_service
from lms_manager.services import picks as picks_service
from lms_manager.services.auto_assign import auto_assign
from lms_manager.services.round_resolver import resolve_round, set_team_result

router = APIRouter(prefix="/api/v1", tags=["rounds"])


def _pick_out(p: Pick) -> PickOut:
    return PickOut(
        id=p.id,
        round_id=p.round_id,
        participant_id=p.participant_id,
        player_name=p.participant.player_name,
        team_id=p.team_id,
        team_name=p.team_name,
        result=p.result,
        auto_assigned=bool(p.auto_assigned),
    )


def _load_round(db: Session, scope: ManagerScope, round_id: int):
    game_id = games_service.find_round_game_id(db, scope, round_id)
    game = games_service.get_game(db, scope, game_id)
    return game, games_service.get_round(db, game, round_id)


@router.get("/games/{game_id}/rounds", response_model=list[RoundOut])
def list_rounds(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    game = games_service.get_game(db, scope, game_id)
    return game.rounds


@router.get("/rounds/{round_id}/picks", response_model=list[PickOut])
def list_picks(round_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    _, rnd = _load_round(db, scope, round_id)
    return [_pick_out(p) for p in picks_service.list_picks(db, rnd)]


@router.post("/rounds/{round_id}/picks", response_model=PickOut, status_code=201)
def submit_pick(
    round_id: int,
    payload: PickCreate,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    p = picks_service.submit_pick(db, scope, round_id, payload.participant_id, payload.team_id)
    return _pick_out(p)


@router.put("/picks/{pick_id}", response_model=PickOut)
def change_pick(
    pick_id: int,
    payload: PickUpdate,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return _pick_out(picks_service.change_pick(db, scope, pick_id, payload.team_id))


@router.delete("/picks/{pick_id}", status_code=204)
def remove_pick(pick_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    picks_service.remove_pick(db, scope, pick_id)
    return Response(status_code=204)


@router.post("/rounds/{round_id}/auto-assign", response_model=list[PickOut])
def run_auto_assign(round_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return [_pick_out(p) for p in auto_assign(db, scope, round_id)]


@router.put("/rounds/{round_id}/teams/{team_id}/result")
def put_team_result(
    round_id: int,
    team_id: int,
    payload: TeamResultIn,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    updated = set_team_result(db, scope, round_id, team_id, payload.result.value)
    return {"success": True, "updated": updated}


@router.post("/rounds/{round_id}/resolve", response_model=RoundOutcomeOut)
def resolve(
    round_id: int,
    payload: ResolveRequest,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    results = {tid: res.value for tid, res in payload.results.items()}
    return resolve_round(db, scope, round_id, results, auto_assign_missing=payload.auto_assign_missing)


@router.get("/rounds/{round_id}/available-teams", response_model=list[TeamOut])
def available_teams(
    round_id: int,
    participant_id: int = Query(...),
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    game, _ = _load_round(db, scope, round_id)
    participant = picks_service.get_participant(db, game, participant_id)
    return picks_service.available_teams(db, game, participant.id)


@router.get("/rounds/{round_id}/available-players", response_model=list[ParticipantOut])
def available_players(round_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    game, rnd = _load_round(db, scope, round_id)
    return picks_service.players_without_pick(db, game, rnd)
