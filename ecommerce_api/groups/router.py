"""
Group (artist) endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from ecommerce_api.auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/api/groups")


@router.get("")
async def list_groups() -> dict:
    groups = await service.list_groups()
    return {"groups": groups, "count": len(groups)}


@router.get("/{group_id}")
async def get_group(group_id: int) -> dict:
    """
    A group together with its records.
    """
    return await service.get_group_with_records(group_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_group(
    response: Response,
    name: str = Form(..., min_length=1, max_length=100),
    music_genre_id: int = Form(..., ge=1),
    photo: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    group = await service.create_group(name=name, music_genre_id=music_genre_id, photo=photo)
    response.headers["Location"] = f"/api/groups/{group['id']}"
    return group


@router.put("/{group_id}")
async def update_group(
    group_id: int,
    name: str | None = Form(default=None, max_length=100),
    music_genre_id: int | None = Form(default=None, ge=1),
    photo: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.update_group(
        group_id,
        {"name": name, "music_genre_id": music_genre_id},
        photo=photo,
    )


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> Response:
    await service.delete_group(group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
