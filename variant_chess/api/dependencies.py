"""Wiring the service layer into FastAPI: a RoomService per request (or websocket message)."""

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional

from fastapi import FastAPI, Request
from sqlalchemy.orm import Session, sessionmaker

from variant_chess.db.database import get_db
from variant_chess.db.repository import RoomRepository
from variant_chess.db.sql_repository import SQLRoomRepository
from variant_chess.services.room_service import RoomService

RepositoryScope = Callable[[], ContextManager[RoomRepository]]


def fixed_repository_scope(repository: RoomRepository) -> RepositoryScope:
    """The same repository object for every unit of work (in-memory store, tests)."""

    @contextmanager
    def scope() -> Iterator[RoomRepository]:
        yield repository

    return scope


def sql_repository_scope(session_factory: sessionmaker[Session]) -> RepositoryScope:
    """A fresh session (and SQLRoomRepository) per unit of work."""

    @contextmanager
    def scope() -> Iterator[RoomRepository]:
        with get_db(session_factory) as db:
            yield SQLRoomRepository(db)

    return scope


@contextmanager
def service_scope(app: FastAPI) -> Iterator[RoomService]:
    repository_scope: Optional[RepositoryScope] = getattr(app.state, "repository_scope", None)
    assert repository_scope is not None, "App was not built with create_app()"
    with repository_scope() as repository:
        yield RoomService(repository)


def get_room_service(request: Request) -> Iterator[RoomService]:
    with service_scope(request.app) as service:
        yield service
