"""Write side of the movie resource: create, update and delete as atomic units."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from app.models import MovieUpdateEvent
from app.services.database import DatabaseService
from app.services.events import MOVIE_UPDATED_TOPIC

logger = logging.getLogger(__name__)


class ResponseType(str, Enum):
    NOT_FOUND = "NotFound"
    DUPLICATE = "Duplicate"


@dataclass
class RequestResult:
    status: bool = True
    response_type: ResponseType | None = None
    movie_id: int | None = None

    @classmethod
    def failed(cls, response_type: ResponseType) -> "RequestResult":
        return cls(status=False, response_type=response_type)


class Publisher(Protocol):
    def publish(self, topic: str, event: BaseModel) -> None: ...


class MovieWriteService:
    """
    Duplicate and not-found checks run inside the same transaction as the
    write they guard. Expected outcomes come back as a RequestResult; storage
    errors roll the transaction back and propagate.
    """

    def __init__(self, db: DatabaseService, notifier: Publisher):
        self._db = db
        self._notifier = notifier

    def create(self, name: str, director_id: int) -> RequestResult:
        with self._db.transaction() as conn:
            if conn.execute("SELECT 1 FROM movies WHERE name = ? LIMIT 1", (name,)).fetchone():
                logger.info("Create rejected, duplicate name %r", name)
                return RequestResult.failed(ResponseType.DUPLICATE)
            cursor = conn.execute(
                "INSERT INTO movies (name, director_id) VALUES (?, ?)",
                (name, director_id),
            )
            movie_id = cursor.lastrowid

        logger.info("Created movie id=%d name=%r", movie_id, name)
        return RequestResult(movie_id=movie_id)

    def update(self, movie_id: int, name: str, director_id: int) -> RequestResult:
        with self._db.transaction() as conn:
            if conn.execute(
                "SELECT 1 FROM movies WHERE name = ? AND id != ? LIMIT 1", (name, movie_id)
            ).fetchone():
                logger.info("Update of id=%d rejected, duplicate name %r", movie_id, name)
                return RequestResult.failed(ResponseType.DUPLICATE)
            cursor = conn.execute(
                "UPDATE movies SET name = ?, director_id = ? WHERE id = ?",
                (name, director_id, movie_id),
            )
            if cursor.rowcount == 0:
                logger.info("Update rejected, movie id=%d not found", movie_id)
                return RequestResult.failed(ResponseType.NOT_FOUND)

        # Committed; the event is published only now.
        logger.info("Updated movie id=%d name=%r", movie_id, name)
        self._notifier.publish(
            MOVIE_UPDATED_TOPIC,
            MovieUpdateEvent(id=movie_id, name=name, director_id=director_id),
        )
        return RequestResult(movie_id=movie_id)

    def delete(self, movie_id: int) -> RequestResult:
        with self._db.transaction() as conn:
            if not conn.execute("SELECT 1 FROM movies WHERE id = ?", (movie_id,)).fetchone():
                logger.info("Delete rejected, movie id=%d not found", movie_id)
                return RequestResult.failed(ResponseType.NOT_FOUND)
            links = conn.execute("DELETE FROM movie_actors WHERE movie_id = ?", (movie_id,)).rowcount
            conn.execute("DELETE FROM movies WHERE id = ?", (movie_id,))

        logger.info("Deleted movie id=%d with %d actor links", movie_id, links)
        return RequestResult(movie_id=movie_id)
