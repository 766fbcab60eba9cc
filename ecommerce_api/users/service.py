"""
User business logic.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException, status

from ecommerce_api.auth import security
from ecommerce_api.carts import repository as carts_repository
from ecommerce_api.carts import service as carts_service
from ecommerce_api.core import db

from . import repository

logger = logging.getLogger(__name__)


def to_user_response(row: dict) -> dict:
    return {
        "email": str(row["email"]),
        "role": str(row["role"]),
        "cart_id": int(row["cart_id"]) if row.get("cart_id") is not None else None,
        "created_at": row.get("created_at"),
    }


async def create_user(*, email: str, password: str, role: str = security.ROLE_USER) -> dict:
    """
    Insert a user, then give them a cart.

    The user row is committed first. `create_cart` stores the cart id on the
    user; if it fails here it is logged, and a later `create_cart` call
    (`POST /api/carts/{email}`) creates the cart and links it.
    """
    email = repository.normalize_email(email)
    if not security.is_valid_role(role):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Role must be one of {list(security.ROLES)}.")

    if await repository.get_user_by_email(email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists.",
        )

    password_hash = security.hash_password(password)
    try:
        user_row = await repository.create_user(email=email, password_hash=password_hash, role=role)
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists.",
        ) from exc

    logger.info("user_created email=%s role=%s", email, role)

    try:
        cart = await carts_service.create_cart(email)
    except (HTTPException, asyncpg.PostgresError):
        logger.exception("cart_create_failed_after_registration email=%s", email)
        return to_user_response(user_row)

    return to_user_response({**user_row, "cart_id": cart["id"]})


async def list_users() -> list[dict]:
    return [to_user_response(row) for row in await repository.list_users()]


async def get_user(email: str) -> dict:
    row = await repository.get_user_by_email(email)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return to_user_response(row)


async def change_password(
    email: str,
    *,
    old_password: str | None,
    new_password: str,
    check_old_password: bool = True,
) -> dict[str, bool]:
    row = await repository.get_user_by_email(email)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    if check_old_password and not security.verify_password(old_password or "", str(row.get("password_hash") or "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect.",
        )

    await repository.update_password_hash(str(row["email"]), security.hash_password(new_password))
    logger.info("user_password_changed email=%s", row["email"])
    return {"ok": True}


async def delete_user(email: str) -> None:
    """
    Remove a user together with their cart and orders.

    Stock reserved by the cart is returned first.
    """
    email = repository.normalize_email(email)
    async with db.transaction() as conn:
        if not await repository.user_exists(email, conn=conn):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

        cart = await carts_repository.get_cart_by_email(email, conn=conn)
        if cart is not None:
            await carts_repository.release_cart_stock(int(cart["id"]), conn=conn)
            await carts_repository.delete_cart(int(cart["id"]), conn=conn)

        orders_deleted = await repository.delete_orders_for_user(email, conn=conn)
        await repository.delete_user(email, conn=conn)

    logger.info("user_deleted email=%s orders_deleted=%s", email, orders_deleted)
