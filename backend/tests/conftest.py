import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import lms_manager.models  # noqa: F401
from lms_manager.core.scope import ManagerScope
from lms_manager.core.security import create_access_token
from lms_manager.db.base import Base
from lms_manager.db.session import enable_sqlite_foreign_keys, get_db
from lms_manager.main import app
from lms_manager.services import games, pools

MANAGER = "manager@example.com"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(eng)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def scope():
    return ManagerScope.of(MANAGER)


@pytest.fixture
def make_group(db, scope):
    def _make(team_names=("Arsenal", "Brentford", "Chelsea", "Everton", "Fulham"), name="League"):
        return pools.create_group(db, scope, name, team_names)

    return _make


@pytest.fixture
def make_game(db, scope, make_group):
    def _make(players=("Alice", "Bob", "Carla"), group=None, **config):
        group = group or make_group()
        return games.create_game(db, scope, "Test LMS", players, group_id=group.id, **config)

    return _make


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": MANAGER})
    return {"Authorization": f"Bearer {token}"}


def teams_by_name(group):
    return {t.name: t for t in group.teams}


def participants_by_name(game):
    return {p.player_name: p for p in game.participants}
