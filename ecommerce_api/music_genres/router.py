"""
Music genre endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ecommerce_api.auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/api/music-genres")


@router.get("")
async def list_genres() -> dict:
    genres = await service.list_genres()
    return {"music_genres": genres, "count": len(genres)}


@router.get("/{genre_id}")
async def get_genre(genre_id: int) -> dict:
    return await service.get_genre(genre_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_genre(
    request: schemas.MusicGenreRequest,
    response: Response,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    genre = await service.create_genre(request.name)
    response.headers["Location"] = f"/api/music-genres/{genre['id']}"
    return genre


@router.put("/{genre_id}")
async def update_genre(
    genre_id: int,
    request: schemas.MusicGenreRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.update_genre(genre_id, request.name)


@router.delete("/{genre_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_genre(
    genre_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> Response:
    await service.delete_genre(genre_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
