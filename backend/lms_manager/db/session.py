from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from lms_manager.core.config import settings
from lms_manager.core.errors import StorageError
from lms_manager.services.locks import game_lock

# Para SQLite hace falta este argumento si vas a usarlo con FastAPI (varios hilos)
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DB_ECHO,
)


def enable_sqlite_foreign_keys(bind) -> None:
    """SQLite ignores ON DELETE CASCADE unless the pragma is on per connection."""
    if bind.dialect.name != "sqlite":
        return

    @event.listens_for(bind, "connect")
    def _set_pragma(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# Dependencia para FastAPI: te da una sesión de BD y la cierra al final
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing.

    Domain errors roll back and propagate unchanged; store errors roll back
    and surface as StorageError.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Database error: {exc.__class__.__name__}", original=exc) from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def game_transaction(db: Session, game_id: int) -> Iterator[Session]:
    # lock first, then transaction: one state-mutating operation per game at a time
    with game_lock(game_id, timeout_s=settings.GAME_LOCK_TIMEOUT_S):
        with transaction(db):
            yield db
