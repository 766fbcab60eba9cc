"""
User management endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ecommerce_api.auth import dependencies as auth_dependencies

from . import repository, schemas, service

router = APIRouter(prefix="/api/users")


@router.get("")
async def list_users(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    users = await service.list_users()
    return {"users": users, "count": len(users)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: schemas.CreateUserRequest,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.create_user(email=payload.email, password=payload.password, role=payload.role)


@router.get("/{email}")
async def get_user(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.get_user(email)


@router.put("/{email}/password")
async def change_password(
    email: str,
    payload: schemas.ChangePasswordRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    is_self = repository.normalize_email(current_user["email"]) == repository.normalize_email(email)
    return await service.change_password(
        email,
        old_password=payload.old_password,
        new_password=payload.new_password,
        check_old_password=is_self or not auth_dependencies.is_admin(current_user),
    )


@router.delete("/{email}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    email: str,
    _: dict = Depends(auth_dependencies.require_admin),
) -> Response:
    await service.delete_user(email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
