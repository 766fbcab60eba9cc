"""
Order endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ecommerce_api.auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/api/orders")


@router.get("")
async def list_all_orders(_: dict = Depends(auth_dependencies.require_admin)) -> dict:
    orders = await service.list_all_orders()
    return {"orders": orders, "count": len(orders)}


@router.get("/id/{order_id}")
async def get_order(
    order_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    owner_email = None if auth_dependencies.is_admin(current_user) else str(current_user["email"])
    return await service.get_order(order_id, owner_email=owner_email)


@router.get("/{email}")
async def list_orders_for_user(
    email: str,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    orders = await service.list_orders_for_user(email)
    return {"orders": orders, "count": len(orders)}


@router.post("/{email}", status_code=status.HTTP_201_CREATED)
async def place_order(
    email: str,
    request: schemas.PlaceOrderRequest,
    response: Response,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    auth_dependencies.ensure_owner_or_admin(current_user, email)
    order = await service.place_order(email, request.payment_method)
    response.headers["Location"] = f"/api/orders/id/{order['id']}"
    return order
