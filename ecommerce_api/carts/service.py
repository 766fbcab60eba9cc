"""
Cart business logic.

Invariants:
- one cart row per user, created lazily and never duplicated, even when two
  requests race to create it;
- stock held by cart lines is reserved: it was taken out of `records.stock`
  when the line was added and goes back when the cart is disabled;
- `total_price` equals the sum of `price * amount` over the cart lines.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import asyncpg
from fastapi import HTTPException, status

from ecommerce_api.cart_details import repository as cart_details_repository
from ecommerce_api.core import db
from ecommerce_api.users import repository as users_repository

from . import repository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    normalized = users_repository.normalize_email(email)
    if not normalized:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required.")
    return normalized


def to_money(value: object) -> float:
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01")))


def to_cart_response(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "user_email": str(row["user_email"]),
        "total_price": to_money(row["total_price"]),
        "enabled": bool(row["enabled"]),
    }


def to_cart_line(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "cart_id": int(row["cart_id"]),
        "record_id": int(row["record_id"]),
        "amount": int(row["amount"]),
        "price": to_money(row["price"]),
        "total": to_money(row.get("total", Decimal(str(row["price"])) * int(row["amount"]))),
        "title_record": row.get("title_record"),
        "image_record": row.get("image_record"),
        "name_group": row.get("name_group"),
    }


async def get_cart_status(email: str) -> dict:
    cart = await get_cart_by_email(email)
    return {"enabled": bool(cart["enabled"]) if cart is not None else False}


async def get_active_cart(email: str) -> dict | None:
    return await repository.get_active_cart_by_email(normalize_email(email))


async def get_cart_by_email(email: str) -> dict | None:
    return await repository.get_cart_by_email(normalize_email(email))


async def get_cart_by_id(cart_id: int, *, owner_email: str | None = None) -> dict:
    """
    Fetch a cart by id. With `owner_email`, another user's cart reads as missing.
    """
    cart = await repository.get_cart_by_id(cart_id)
    if cart is None or (
        owner_email is not None
        and users_repository.normalize_email(str(cart["user_email"])) != users_repository.normalize_email(owner_email)
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart not found.")
    return to_cart_response(cart)


async def _link_to_user(email: str, cart: dict) -> dict:
    # Also repairs users whose cart_id was never written.
    await users_repository.set_cart_id(email, int(cart["id"]))
    return to_cart_response(cart)


async def create_cart(email: str) -> dict:
    """
    Return the user's active cart, creating (or re-enabling) it if needed.

    The cart id is stored on the user on every path.
    """
    email = normalize_email(email)
    if not await users_repository.user_exists(email):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {email} not found.",
        )

    existing = await repository.get_active_cart_by_email(email)
    if existing is not None:
        # A total with no lines behind it is stale.
        if Decimal(str(existing["total_price"])) > 0 and await repository.count_details(int(existing["id"])) == 0:
            logger.info("cart_total_reset cart_id=%s email=%s", existing["id"], email)
            await repository.set_total_price(int(existing["id"]), Decimal("0"))
            existing = {**existing, "total_price": Decimal("0")}
        return await _link_to_user(email, existing)

    try:
        cart = await repository.upsert_enabled_cart(email)
    except asyncpg.UniqueViolationError:
        logger.info("cart_create_race email=%s", email)
        cart = await repository.get_active_cart_by_email(email)
        if cart is None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Failed to find cart after concurrent creation.",
            )
        return await _link_to_user(email, cart)

    logger.info("cart_created cart_id=%s email=%s", cart["id"], email)
    return await _link_to_user(email, cart)


async def update_cart_total_price(
    cart_id: int,
    price_to_add: Decimal,
    *,
    conn: asyncpg.Connection | None = None,
) -> float:
    """
    Shift the cart total by `price_to_add`; the result is rounded to cents and never below 0.
    """
    new_total = await repository.add_to_total_price(cart_id, Decimal(str(price_to_add)), conn=conn)
    if new_total is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart not found.")
    return to_money(new_total)


async def disable_cart(email: str) -> dict:
    """
    Return all reserved stock, empty the cart and disable it.
    """
    email = normalize_email(email)
    async with db.transaction() as conn:
        cart = await repository.get_cart_by_email(email, conn=conn)
        if cart is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No cart found for this user.",
            )
        cart_id = int(cart["id"])
        released = await repository.release_cart_stock(cart_id, conn=conn)
        if cart["enabled"]:
            await repository.set_enabled(cart_id, False, conn=conn)

    logger.info("cart_disabled cart_id=%s email=%s released_lines=%s", cart_id, email, released)
    return {"cart_id": cart_id, "enabled": False, "released_lines": released}


async def enable_cart(email: str) -> dict:
    email = normalize_email(email)
    cart = await repository.enable_disabled_cart(email)
    if cart is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No disabled cart found for this user to enable.",
        )
    logger.info("cart_enabled cart_id=%s", cart["id"])
    return await _link_to_user(email, cart)


async def get_active_cart_with_details(email: str) -> dict:
    cart = await repository.get_active_cart_by_email(normalize_email(email))
    if cart is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active cart for this user.")

    lines = await cart_details_repository.list_by_cart_id(int(cart["id"]))
    items = [to_cart_line(line) for line in lines]
    return {
        **to_cart_response(cart),
        "items": items,
        "items_count": len(items),
        "total_items": sum(item["amount"] for item in items),
    }


async def list_active_carts() -> list[dict]:
    return [to_cart_response(row) for row in await repository.list_active_carts()]
