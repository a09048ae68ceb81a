from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from lms_manager.core.scope import ManagerScope
from lms_manager.core.security import get_current_manager, get_db
from lms_manager.schemas.games import (
    GameCreate,
    GameOut,
    GameReportOut,
    ParticipantOut,
    ParticipantsAdd,
    PickRecordOut,
    StandingsOut,
)
from lms_manager.services import games as games_service
from lms_manager.services import rollover, standings

router = APIRouter(prefix="/api/v1", tags=["games"])


@router.get("/games", response_model=list[GameOut])
def list_games(
    status: Optional[str] = None,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return games_service.list_games(db, scope, status=status)


@router.post("/games", response_model=GameOut, status_code=201)
def create_game(payload: GameCreate, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return games_service.create_game(
        db,
        scope,
        name=payload.name,
        player_names=payload.player_names,
        group_id=payload.group_id,
        postpone_as_win=payload.postpone_as_win,
        winner_mode=payload.winner_mode.value,
        rollover_mode=payload.rollover_mode.value,
        max_winners=payload.max_winners,
    )


@router.get("/games/{game_id}", response_model=GameOut)
def get_game(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return games_service.get_game(db, scope, game_id)


@router.delete("/games/{game_id}", status_code=204)
def delete_game(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    games_service.delete_game(db, scope, game_id)
    return Response(status_code=204)


@router.post("/games/{game_id}/participants", response_model=list[ParticipantOut], status_code=201)
def add_participants(
    game_id: int,
    payload: ParticipantsAdd,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return games_service.add_participants(db, scope, game_id, payload.player_names)


@router.post("/games/{game_id}/declare-winners")
def declare_winners(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    winners = games_service.declare_winners(db, scope, game_id)
    return {"success": True, "winners": winners}


@router.post("/games/{game_id}/reset")
def reset_game(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    changed = rollover.reset_game(db, scope, game_id)
    return {"success": True, "reset": changed}


@router.get("/games/{game_id}/standings", response_model=StandingsOut)
def get_standings(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return StandingsOut.model_validate(standings.get_standings(db, scope, game_id))


@router.get("/games/{game_id}/history", response_model=list[PickRecordOut])
def get_history(game_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return standings.get_pick_history(db, scope, game_id)


# Public (embed mode): no manager token required
@router.get("/games/{game_id}/report", response_model=GameReportOut)
def get_report(game_id: int, db: Session = Depends(get_db)):
    return standings.get_report(db, game_id)
