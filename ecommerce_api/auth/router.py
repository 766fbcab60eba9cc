"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from . import dependencies, schemas, service

router = APIRouter(prefix="/api/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: schemas.RegisterRequest) -> schemas.AuthResponse:
    return await service.register(payload)


@router.post("/login")
async def login(payload: schemas.LoginRequest) -> schemas.TokenResponse:
    return await service.login(payload)


@router.get("/me")
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> schemas.UserResponse:
    return schemas.UserResponse(**current_user)
