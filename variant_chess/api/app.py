"""Application factory: settings -> logging, persistence, middleware, routes and error translation."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from variant_chess.api import relay, routes
from variant_chess.api.dependencies import fixed_repository_scope, sql_repository_scope
from variant_chess.core.config import Settings
from variant_chess.core.exceptions import (
    GameError,
    NotYourTurnError,
    RepositoryError,
    RoomFullError,
)
from variant_chess.db.database import build_session_factory
from variant_chess.db.repository import InMemoryRoomStore, RoomRepository

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# first match wins, anything not listed is a bad request
ERROR_STATUS_CODES: list[tuple[type[GameError], int]] = [
    (RepositoryError, 404),
    (NotYourTurnError, 409),
    (RoomFullError, 409),
]


def status_code_for(exc: GameError) -> int:
    return next((code for error_type, code in ERROR_STATUS_CODES if isinstance(exc, error_type)), 400)


async def handle_game_error(request: Request, exc: GameError) -> JSONResponse:
    code = status_code_for(exc)
    logger.info("%s %s -> %d %s: %s", request.method, request.url.path, code, type(exc).__name__, exc)
    return JSONResponse(status_code=code, content={"error": type(exc).__name__, "detail": str(exc)})


def create_app(settings: Optional[Settings] = None, repository: Optional[RoomRepository] = None) -> FastAPI:
    """
    Build the application.
    ----

    * an explicit `repository` wins (tests)
    * otherwise a configured database URL selects the SQLAlchemy repository
    * otherwise rooms live in an in-memory store owned by this app
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = FastAPI(title="Variant Chess", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if repository is not None:
        app.state.repository_scope = fixed_repository_scope(repository)
    elif settings.database_url:
        app.state.repository_scope = sql_repository_scope(build_session_factory(settings))
    else:
        logger.info("No database configured, rooms are kept in memory")
        app.state.repository_scope = fixed_repository_scope(InMemoryRoomStore())
    app.state.connections = relay.RoomConnections()

    app.add_exception_handler(GameError, handle_game_error)  # type: ignore[arg-type]
    app.include_router(routes.router)
    app.include_router(relay.router)
    return app
