"""
Cart endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ecommerce_api.auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/api/carts")


@router.get("")
async def list_active_carts(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    carts = await service.list_active_carts()
    return {"carts": carts, "count": len(carts)}


@router.get("/id/{cart_id}")
async def get_cart_by_id(
    cart_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    owner_email = None if auth_dependencies.is_admin(current_user) else str(current_user["email"])
    return await service.get_cart_by_id(cart_id, owner_email=owner_email)


@router.get("/{email}")
async def get_cart(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    The user's active cart with its lines.
    """
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.get_active_cart_with_details(email)


@router.get("/{email}/status")
async def get_cart_status(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.get_cart_status(email)


@router.post("/{email}")
async def create_cart(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.create_cart(email)


@router.post("/{email}/disable")
async def disable_cart(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.disable_cart(email)


@router.post("/{email}/enable")
async def enable_cart(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.enable_cart(email)
