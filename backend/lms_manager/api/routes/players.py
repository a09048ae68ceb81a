from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from lms_manager.core.scope import ManagerScope
from lms_manager.core.security import get_current_manager, get_db
from lms_manager.schemas.players import PlayerCreate, PlayerOut
from lms_manager.services import pools

router = APIRouter(prefix="/api/v1", tags=["players"])


@router.get("/players", response_model=list[PlayerOut])
def list_players(scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return pools.list_players(db, scope)


@router.post("/players", response_model=PlayerOut, status_code=201)
def create_player(payload: PlayerCreate, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return pools.create_player(db, scope, payload.name)


@router.delete("/players/{player_id}", status_code=204)
def delete_player(player_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    pools.delete_player(db, scope, player_id)
    return Response(status_code=204)
