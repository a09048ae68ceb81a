import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lms_manager.core.config import settings
from lms_manager.core.errors import (
    DuplicateNameError,
    DuplicateParticipantError,
    DuplicatePickError,
    InvalidStateError,
    LmsError,
    MissingResultError,
    NoTeamsAvailableError,
    NotFoundError,
    ParticipantInactiveError,
    RoundClosedError,
    StorageError,
    TeamAlreadyUsedError,
)
from lms_manager.db.init_db import init_db
from lms_manager.api.routes.groups import router as groups_router
from lms_manager.api.routes.players import router as players_router
from lms_manager.api.routes.games import router as games_router
from lms_manager.api.routes.rounds import router as rounds_router

logger = logging.getLogger(__name__)

# Error kind -> HTTP status
ERROR_STATUS = {
    NotFoundError: 404,
    DuplicateNameError: 409,
    DuplicateParticipantError: 409,
    DuplicatePickError: 409,
    TeamAlreadyUsedError: 409,
    RoundClosedError: 409,
    ParticipantInactiveError: 409,
    NoTeamsAvailableError: 409,
    InvalidStateError: 409,
    MissingResultError: 422,
}


def error_status(exc: LmsError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


app = FastAPI(title="LMS Manager")
app.include_router(groups_router)
app.include_router(players_router)
app.include_router(games_router)
app.include_router(rounds_router)


@app.exception_handler(LmsError)
async def lms_error_handler(request: Request, exc: LmsError):
    return JSONResponse(
        status_code=error_status(exc),
        content={"detail": exc.message, "error": type(exc).__name__, "context": exc.context},
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("storage error on %s %s: %s", request.method, request.url.path, exc.original)
    return JSONResponse(status_code=503, content={"detail": str(exc), "error": "StorageError"})


@app.exception_handler(TimeoutError)
async def game_busy_handler(request: Request, exc: TimeoutError):
    logger.warning("game lock timeout on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Game is busy, retry", "error": "GameBusy"})


@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()


@app.get("/health")
def health():
    return {"ok": True, "service": "lms-manager"}
