"""
Group (artist) persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any

from ecommerce_api.core import db

UPDATABLE_COLUMNS = ("name", "image", "music_genre_id")


async def list_groups() -> list[dict]:
    return await db.fetch_all(
        """
        SELECT
          g.id, g.name, g.image, g.music_genre_id,
          mg.name AS name_music_genre,
          (SELECT count(*) FROM records r WHERE r.group_id = g.id)::int AS total_records
        FROM groups g
        LEFT JOIN music_genres mg ON mg.id = g.music_genre_id
        ORDER BY g.name ASC, g.id ASC
        """
    )


async def get_group(group_id: int) -> dict | None:
    return await db.fetch_one(
        """
        SELECT
          g.id, g.name, g.image, g.music_genre_id,
          mg.name AS name_music_genre
        FROM groups g
        LEFT JOIN music_genres mg ON mg.id = g.music_genre_id
        WHERE g.id = $1
        """,
        group_id,
    )


async def group_exists(group_id: int) -> bool:
    row = await db.fetch_one("SELECT 1 AS ok FROM groups WHERE id = $1", group_id)
    return row is not None


async def create_group(*, name: str, image: str | None, music_genre_id: int) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO groups (name, image, music_genre_id)
        VALUES ($1, $2, $3)
        RETURNING id, name, image, music_genre_id
        """,
        name,
        image,
        music_genre_id,
    )
    if row is None:
        raise RuntimeError("Failed to create group.")
    return row


async def update_group(group_id: int, fields: dict[str, Any]) -> dict | None:
    columns = [name for name in UPDATABLE_COLUMNS if name in fields]
    if not columns:
        return await get_group(group_id)

    assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(columns, start=2))
    return await db.fetch_one(
        f"""
        UPDATE groups
        SET {assignments}
        WHERE id = $1
        RETURNING id, name, image, music_genre_id
        """,
        group_id,
        *[fields[name] for name in columns],
    )


async def delete_group(group_id: int) -> bool:
    status = await db.execute("DELETE FROM groups WHERE id = $1", group_id)
    return db.affected_rows(status) > 0


async def has_records(group_id: int) -> bool:
    row = await db.fetch_one(
        "SELECT 1 AS ok FROM records WHERE group_id = $1 LIMIT 1",
        group_id,
    )
    return row is not None
