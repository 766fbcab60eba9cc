"""
Cart line endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ecommerce_api.auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/api/cart-details")


@router.get("/{email}")
async def list_cart_details(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    items = await service.list_cart_details(email)
    return {"items": items, "count": len(items)}


@router.post("/{email}/add")
async def add_to_cart(
    email: str,
    record_id: int = Query(..., ge=1),
    amount: int = Query(1, ge=1, le=1000),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.add_to_cart(email, record_id, amount)


@router.post("/{email}/remove")
async def remove_from_cart(
    email: str,
    record_id: int = Query(..., ge=1),
    amount: int = Query(1, ge=1, le=1000),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    return await service.remove_from_cart(email, record_id, amount)
