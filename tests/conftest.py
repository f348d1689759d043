"""Shared fixtures: a seeded SQLite database in a temporary directory."""

import pytest

from app.services.database import DatabaseService

DIRECTORS = [(1, "Christopher Nolan"), (2, "Tim Burton"), (3, "Richard Donner")]
ACTORS = [(1, "Leonardo DiCaprio"), (2, "Elliot Page"), (3, "Michael Keaton"), (4, "Jack Nicholson")]
MOVIES = [(1, "Inception", 1), (2, "Batman", 2), (3, "Superman", 3)]
MOVIE_ACTORS = [(1, 1), (1, 2), (2, 3), (2, 4)]


def seed(db: DatabaseService) -> None:
    with db.transaction() as conn:
        conn.executemany("INSERT INTO directors (id, name) VALUES (?, ?)", DIRECTORS)
        conn.executemany("INSERT INTO actors (id, name) VALUES (?, ?)", ACTORS)
        conn.executemany("INSERT INTO movies (id, name, director_id) VALUES (?, ?, ?)", MOVIES)
        conn.executemany("INSERT INTO movie_actors (movie_id, actor_id) VALUES (?, ?)", MOVIE_ACTORS)


@pytest.fixture()
def empty_db(tmp_path):
    db = DatabaseService(tmp_path / "movies.db")
    db.initialise()
    return db


@pytest.fixture()
def db(empty_db):
    seed(empty_db)
    return empty_db
