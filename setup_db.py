"""
setup_db.py: build a local SQLite database from the CSV seed files.

Data sources:
  seed/directors.csv     id,name
  seed/actors.csv        id,name
  seed/movies.csv        id,name,director_id
  seed/movie_actors.csv  movie_id,actor_id

Output: the database at MOVIE_API_DB_PATH (default movies.db)
"""

import csv
import os
import sqlite3
import sys
import time
from pathlib import Path

from app.config import settings
from app.services.database import DatabaseService

BASE_DIR = Path(__file__).resolve().parent
SEED_DIR = BASE_DIR / "seed"

DIRECTORS_CSV = SEED_DIR / "directors.csv"
ACTORS_CSV = SEED_DIR / "actors.csv"
MOVIES_CSV = SEED_DIR / "movies.csv"
MOVIE_ACTORS_CSV = SEED_DIR / "movie_actors.csv"


def read_rows(path: Path) -> list[dict]:
    with open(path, encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))


def load_people(cur: sqlite3.Cursor, table: str, path: Path) -> int:
    """Load directors or actors (id,name). Returns count of inserted rows."""
    rows = [(int(r["id"]), r["name"].strip()) for r in read_rows(path)]
    cur.executemany(f"INSERT INTO {table} (id, name) VALUES (?, ?)", rows)
    return len(rows)


def load_movies(cur: sqlite3.Cursor) -> set[int]:
    """Load movies.csv. Returns set of loaded movie ids."""
    movie_ids = set()
    for row in read_rows(MOVIES_CSV):
        movie_id = int(row["id"])
        movie_ids.add(movie_id)
        cur.execute(
            "INSERT INTO movies (id, name, director_id) VALUES (?, ?, ?)",
            (movie_id, row["name"].strip(), int(row["director_id"])),
        )
    return movie_ids


def load_movie_actors(cur: sqlite3.Cursor, movie_ids: set[int]) -> int:
    """Load join rows, skipping movies that were not loaded."""
    batch = [
        (int(r["movie_id"]), int(r["actor_id"]))
        for r in read_rows(MOVIE_ACTORS_CSV)
        if int(r["movie_id"]) in movie_ids
    ]
    cur.executemany("INSERT INTO movie_actors (movie_id, actor_id) VALUES (?, ?)", batch)
    return len(batch)


def print_summary(cur: sqlite3.Cursor) -> None:
    tables = ["directors", "actors", "movies", "movie_actors"]
    print("\n=== Database Summary ===")
    for table in tables:
        cur.execute(f"SELECT COUNT(*) FROM {table}")
        count = cur.fetchone()[0]
        print(f"  {table:20s}: {count:>8,} rows")

    print("\n=== Sample: movies with director and cast ===")
    cur.execute("""
        SELECT m.name, COALESCE(d.name, '') AS director,
               GROUP_CONCAT(a.name, ', ') AS actors
        FROM movies m
        LEFT JOIN directors d ON d.id = m.director_id
        LEFT JOIN movie_actors ma ON ma.movie_id = m.id
        LEFT JOIN actors a ON a.id = ma.actor_id
        GROUP BY m.id
        ORDER BY m.id
        LIMIT 5
    """)
    for name, director, actors in cur.fetchall():
        print(f"  {name} | Director: {director} | Cast: {actors or '-'}")


def main() -> None:
    for path in (DIRECTORS_CSV, ACTORS_CSV, MOVIES_CSV, MOVIE_ACTORS_CSV):
        if not path.exists():
            print(f"ERROR: Missing seed file: {path}", file=sys.stderr)
            sys.exit(1)

    db_path = settings.db_path
    if db_path.exists():
        os.remove(db_path)
        print(f"Removed existing {db_path.name}")

    t0 = time.perf_counter()
    db = DatabaseService(db_path)
    print("Creating schema...")
    db.initialise()

    with db.transaction() as conn:
        cur = conn.cursor()
        print("Loading directors & actors...")
        n_directors = load_people(cur, "directors", DIRECTORS_CSV)
        n_actors = load_people(cur, "actors", ACTORS_CSV)
        print(f"  Loaded {n_directors} directors, {n_actors} actors")

        print("Loading movies...")
        movie_ids = load_movies(cur)
        n_links = load_movie_actors(cur, movie_ids)
        print(f"  Loaded {len(movie_ids)} movies, {n_links} actor links")

    with db.connect() as conn:
        print_summary(conn.cursor())

    elapsed = time.perf_counter() - t0
    print(f"\nDone. Database written to {db_path}  ({elapsed:.1f}s)")


if __name__ == "__main__":
    main()
