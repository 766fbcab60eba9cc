"""
Group (artist) business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, UploadFile, status

from ecommerce_api.core import storage
from ecommerce_api.music_genres import repository as genres_repository
from ecommerce_api.records import repository as records_repository
from ecommerce_api.records.service import to_record_response

from . import repository

logger = logging.getLogger(__name__)


def to_group_response(row: dict) -> dict:
    group = {
        "id": int(row["id"]),
        "name": str(row["name"]),
        "image": row.get("image"),
        "music_genre_id": int(row["music_genre_id"]),
        "name_music_genre": row.get("name_music_genre"),
    }
    if "total_records" in row:
        group["total_records"] = int(row["total_records"] or 0)
    return group


async def _require_genre(genre_id: int) -> None:
    if await genres_repository.get_genre(genre_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The Music Genre with ID {genre_id} does not exist.",
        )


async def list_groups() -> list[dict]:
    return [to_group_response(row) for row in await repository.list_groups()]


async def get_group_with_records(group_id: int) -> dict:
    row = await repository.get_group(group_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found.")

    records = await records_repository.list_records_by_group(group_id)
    group = to_group_response(row)
    group["records"] = [
        to_record_response({**record, "group_id": group_id, "name_group": group["name"]})
        for record in records
    ]
    group["total_records"] = len(records)
    return group


async def create_group(*, name: str, music_genre_id: int, photo: UploadFile | None = None) -> dict:
    name = (name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Group name is required.")
    await _require_genre(music_genre_id)

    image = await storage.save_image(photo)
    try:
        row = await repository.create_group(name=name, image=image, music_genre_id=music_genre_id)
    except Exception:
        storage.delete_image(image)
        raise
    logger.info("group_created group_id=%s", row["id"])
    return to_group_response(row)


async def update_group(group_id: int, fields: dict[str, Any], photo: UploadFile | None = None) -> dict:
    existing = await repository.get_group(group_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found.")

    updates = {k: v for k, v in fields.items() if v is not None}
    if "name" in updates:
        updates["name"] = str(updates["name"]).strip()
        if not updates["name"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Group name cannot be empty.")
    if "music_genre_id" in updates:
        await _require_genre(int(updates["music_genre_id"]))

    new_image = await storage.save_image(photo)
    if new_image is not None:
        updates["image"] = new_image

    try:
        row = await repository.update_group(group_id, updates)
    except Exception:
        storage.delete_image(new_image)
        raise
    if row is None:
        storage.delete_image(new_image)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found.")

    if new_image is not None:
        storage.delete_image(existing.get("image"))
    logger.info("group_updated group_id=%s fields=%s", group_id, sorted(updates))
    return to_group_response(row)


async def delete_group(group_id: int) -> None:
    existing = await repository.get_group(group_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found.")
    if await repository.has_records(group_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The group has records and cannot be deleted.",
        )

    await repository.delete_group(group_id)
    storage.delete_image(existing.get("image"))
    logger.info("group_deleted group_id=%s", group_id)
