"""Read side of the movie resource: filtered, sorted, paged search and detail lookup."""

import logging
import sqlite3
from dataclasses import dataclass

from app.models import ActorOut, DirectorOut, MovieDetail, MovieSearchResult, PagingResult
from app.services.database import DatabaseService
from app.services.paging import Paging, build_paging_header
from app.services.sorting import Sorting, parse_sort_clause, resolve_order_by

logger = logging.getLogger(__name__)

SQLITE_MAX_INTEGER = 2**63 - 1


@dataclass
class MovieFiltering:
    name: str | None = ""


class MovieQueryService:
    SORTABLE_COLUMNS = {
        "id": "m.id",
        "name": "m.name",
        "director": "director",
    }

    def __init__(self, db: DatabaseService):
        self._db = db

    def search(self, filtering: MovieFiltering, sorting: Sorting, paging: Paging) -> PagingResult:
        clauses: list[str] = []
        params: list = []

        name = (filtering.name or "").strip().casefold()
        if name:
            clauses.append("instr(casefold(m.name), ?) > 0")
            params.append(name)

        where = " AND ".join(clauses) if clauses else "1=1"

        order_by = resolve_order_by(parse_sort_clause(sorting.sort_by), self.SORTABLE_COLUMNS)
        # Unsorted results keep insertion order; sorted ones break ties on id.
        order = ", ".join([*(order_by or []), "m.id ASC"])

        base = f"""
            FROM movies m
            LEFT JOIN directors d ON d.id = m.director_id
            WHERE {where}
        """

        with self._db.connect() as conn:
            total_count = conn.execute(f"SELECT COUNT(*) {base}", params).fetchone()[0]
            rows = []
            # Offsets past the last match may exceed SQLite's integer range.
            if paging.offset < total_count:
                rows = conn.execute(
                    f"""
                    SELECT m.id, m.name, COALESCE(d.name, '') AS director
                    {base}
                    ORDER BY {order}
                    LIMIT ? OFFSET ?
                    """,
                    [*params, min(paging.page_size, SQLITE_MAX_INTEGER), paging.offset],
                ).fetchall()
            actors = self._actor_names(conn, [r["id"] for r in rows])

        header = build_paging_header(paging.page_number, paging.page_size, total_count)
        data = [
            MovieSearchResult(
                id=r["id"],
                name=r["name"],
                director=r["director"],
                actors=actors.get(r["id"], []),
            )
            for r in rows
        ]
        logger.debug(
            "Search name=%r sort=%r page=%d/%d -> %d of %d",
            name, sorting.sort_by, paging.page_number, header.total_page, len(data), total_count,
        )
        return PagingResult(paging_header=header, paging_data=data)

    def get(self, movie_id: int) -> MovieDetail | None:
        with self._db.connect() as conn:
            row = conn.execute(
                """SELECT m.id, m.name, d.id AS director_id, d.name AS director_name
                   FROM movies m
                   LEFT JOIN directors d ON d.id = m.director_id
                   WHERE m.id = ?""",
                (movie_id,),
            ).fetchone()
            if not row:
                return None

            actors = [
                ActorOut(id=r["id"], name=r["name"])
                for r in conn.execute(
                    "SELECT a.id, a.name FROM actors a "
                    "JOIN movie_actors ma ON a.id = ma.actor_id "
                    "WHERE ma.movie_id = ? ORDER BY ma.id",
                    (movie_id,),
                ).fetchall()
            ]

        director = None
        if row["director_id"] is not None:
            director = DirectorOut(id=row["director_id"], name=row["director_name"])
        return MovieDetail(id=row["id"], name=row["name"], director=director, actors=actors)

    def _actor_names(self, conn: sqlite3.Connection, movie_ids: list[int]) -> dict[int, list[str]]:
        """Actor names per movie, fetched only for the movies on the current page."""
        if not movie_ids:
            return {}
        placeholders = ", ".join("?" for _ in movie_ids)
        names: dict[int, list[str]] = {mid: [] for mid in movie_ids}
        for r in conn.execute(
            f"SELECT ma.movie_id, a.name FROM movie_actors ma "
            f"JOIN actors a ON a.id = ma.actor_id "
            f"WHERE ma.movie_id IN ({placeholders}) ORDER BY ma.id",
            movie_ids,
        ).fetchall():
            names[r["movie_id"]].append(r["name"])
        return names
