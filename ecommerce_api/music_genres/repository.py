"""
Music genre persistence (raw SQL).
"""

from __future__ import annotations

from ecommerce_api.core import db


async def list_genres() -> list[dict]:
    return await db.fetch_all(
        """
        SELECT
          mg.id, mg.name,
          (SELECT count(*) FROM groups g WHERE g.music_genre_id = mg.id)::int AS total_groups
        FROM music_genres mg
        ORDER BY mg.name ASC
        """
    )


async def get_genre(genre_id: int) -> dict | None:
    return await db.fetch_one(
        "SELECT id, name FROM music_genres WHERE id = $1",
        genre_id,
    )


async def name_taken(name: str, *, exclude_id: int | None = None) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM music_genres
        WHERE lower(name) = lower($1)
          AND ($2::int IS NULL OR id <> $2)
        LIMIT 1
        """,
        name,
        exclude_id,
    )
    return row is not None


async def create_genre(name: str) -> dict:
    row = await db.fetch_one(
        "INSERT INTO music_genres (name) VALUES ($1) RETURNING id, name",
        name,
    )
    if row is None:
        raise RuntimeError("Failed to create music genre.")
    return row


async def update_genre(genre_id: int, name: str) -> dict | None:
    return await db.fetch_one(
        "UPDATE music_genres SET name = $2 WHERE id = $1 RETURNING id, name",
        genre_id,
        name,
    )


async def delete_genre(genre_id: int) -> bool:
    status = await db.execute("DELETE FROM music_genres WHERE id = $1", genre_id)
    return db.affected_rows(status) > 0


async def has_groups(genre_id: int) -> bool:
    row = await db.fetch_one(
        "SELECT 1 AS ok FROM groups WHERE music_genre_id = $1 LIMIT 1",
        genre_id,
    )
    return row is not None
