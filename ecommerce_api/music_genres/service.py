"""
Music genre business logic.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException, status

from . import repository

logger = logging.getLogger(__name__)


def _to_genre_response(row: dict) -> dict:
    genre = {"id": int(row["id"]), "name": str(row["name"])}
    if "total_groups" in row:
        genre["total_groups"] = int(row["total_groups"] or 0)
    return genre


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Music genre name is required.")
    return name


def _duplicate(name: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"The Music Genre '{name}' already exists.",
    )


async def list_genres() -> list[dict]:
    return [_to_genre_response(row) for row in await repository.list_genres()]


async def get_genre(genre_id: int) -> dict:
    row = await repository.get_genre(genre_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Music genre not found.")
    return _to_genre_response(row)


async def create_genre(name: str) -> dict:
    name = _clean_name(name)
    if await repository.name_taken(name):
        raise _duplicate(name)
    try:
        row = await repository.create_genre(name)
    except asyncpg.UniqueViolationError as exc:
        raise _duplicate(name) from exc
    logger.info("music_genre_created genre_id=%s", row["id"])
    return _to_genre_response(row)


async def update_genre(genre_id: int, name: str) -> dict:
    name = _clean_name(name)
    if await repository.get_genre(genre_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Music genre not found.")
    if await repository.name_taken(name, exclude_id=genre_id):
        raise _duplicate(name)
    try:
        row = await repository.update_genre(genre_id, name)
    except asyncpg.UniqueViolationError as exc:
        raise _duplicate(name) from exc
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Music genre not found.")
    return _to_genre_response(row)


async def delete_genre(genre_id: int) -> None:
    if await repository.get_genre(genre_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Music genre not found.")
    if await repository.has_groups(genre_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The music genre has groups and cannot be deleted.",
        )
    await repository.delete_genre(genre_id)
    logger.info("music_genre_deleted genre_id=%s", genre_id)
