from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from lms_manager.core.scope import ManagerScope
from lms_manager.core.security import get_current_manager, get_db
from lms_manager.schemas.groups import GroupCreate, GroupOut, TeamCreate, TeamOut, TeamUpdate
from lms_manager.services import pools

router = APIRouter(prefix="/api/v1", tags=["groups"])


@router.get("/groups", response_model=list[GroupOut])
def list_groups(scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return [
        GroupOut(id=g.id, name=g.name, created_at=g.created_at, team_count=n)
        for g, n in pools.list_groups(db, scope)
    ]


@router.post("/groups", response_model=GroupOut, status_code=201)
def create_group(payload: GroupCreate, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    g = pools.create_group(db, scope, payload.name, payload.team_names)
    return GroupOut(id=g.id, name=g.name, created_at=g.created_at, team_count=len(g.teams))


@router.delete("/groups/{group_id}", status_code=204)
def delete_group(group_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    pools.delete_group(db, scope, group_id)
    return Response(status_code=204)


@router.get("/groups/{group_id}/teams", response_model=list[TeamOut])
def list_teams(group_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    return pools.list_teams(db, scope, group_id)


@router.post("/groups/{group_id}/teams", response_model=TeamOut, status_code=201)
def create_team(
    group_id: int,
    payload: TeamCreate,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return pools.create_team(db, scope, group_id, payload.name, payload.rank)


@router.patch("/teams/{team_id}", response_model=TeamOut)
def update_team(
    team_id: int,
    payload: TeamUpdate,
    scope: ManagerScope = Depends(get_current_manager),
    db: Session = Depends(get_db),
):
    return pools.update_team(db, scope, team_id, name=payload.name, rank=payload.rank)


@router.delete("/teams/{team_id}", status_code=204)
def delete_team(team_id: int, scope: ManagerScope = Depends(get_current_manager), db: Session = Depends(get_db)):
    pools.delete_team(db, scope, team_id)
    return Response(status_code=204)
