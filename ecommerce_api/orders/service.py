"""
Order placement and history.

Flow for `place_order`:
1) Lock the user's active cart
2) Copy its lines into an order + order details
3) Empty the cart and zero its total

Stock was reserved when lines were added to the cart, so it is not touched.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from fastapi import HTTPException, status

from ecommerce_api.cart_details import repository as cart_details_repository
from ecommerce_api.carts import repository as carts_repository
from ecommerce_api.carts.service import normalize_email, to_money
from ecommerce_api.core import db

from . import repository

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _to_detail_response(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "record_id": int(row["record_id"]),
        "title_record": row.get("title_record"),
        "amount": int(row["amount"]),
        "price": to_money(row["price"]),
        "total": to_money(row["total"]),
    }


def _to_order_response(row: dict, details: list[dict]) -> dict:
    return {
        "id": int(row["id"]),
        "order_date": row["order_date"],
        "payment_method": str(row["payment_method"]),
        "total": to_money(row["total"]),
        "user_email": str(row["user_email"]),
        "cart_id": int(row["cart_id"]),
        "details": [_to_detail_response(d) for d in details],
    }


async def _attach_details(orders: list[dict]) -> list[dict]:
    details = await repository.list_details_for_orders([int(o["id"]) for o in orders])
    by_order: dict[int, list[dict]] = defaultdict(list)
    for detail in details:
        by_order[int(detail["order_id"])].append(detail)
    return [_to_order_response(o, by_order[int(o["id"])]) for o in orders]


async def place_order(email: str, payment_method: str) -> dict:
    email = normalize_email(email)
    payment_method = (payment_method or "").strip()
    if not payment_method:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Payment method is required.")

    async with db.transaction() as conn:
        cart = await carts_repository.get_active_cart_by_email(email, conn=conn, for_update=True)
        if cart is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active cart for this user.")

        cart_id = int(cart["id"])
        lines = await cart_details_repository.list_by_cart_id(cart_id, conn=conn)
        if not lines:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The cart is empty.")

        order_lines: list[tuple[int, int, Decimal, Decimal]] = []
        total = Decimal("0")
        for line in lines:
            price = Decimal(str(line["price"]))
            amount = int(line["amount"])
            line_total = (price * amount).quantize(CENTS)
            total += line_total
            order_lines.append((int(line["record_id"]), amount, price, line_total))

        order = await repository.insert_order(
            user_email=email,
            cart_id=cart_id,
            payment_method=payment_method,
            total=total,
            conn=conn,
        )
        order_id = int(order["id"])
        await repository.insert_order_details(order_id, order_lines, conn=conn)
        await cart_details_repository.delete_by_cart_id(cart_id, conn=conn)
        await carts_repository.set_total_price(cart_id, Decimal("0"), conn=conn)
        details = await repository.list_details_for_orders([order_id], conn=conn)

    logger.info(
        "order_placed order_id=%s email=%s lines=%s total=%s",
        order_id,
        email,
        len(order_lines),
        total,
    )
    return _to_order_response(order, details)


async def list_orders_for_user(email: str) -> list[dict]:
    orders = await repository.list_orders(user_email=normalize_email(email))
    return await _attach_details(orders)


async def list_all_orders() -> list[dict]:
    orders = await repository.list_orders()
    return await _attach_details(orders)


async def get_order(order_id: int, *, owner_email: str | None = None) -> dict:
    """
    Fetch one order. With `owner_email`, another user's order reads as missing.
    """
    order = await repository.get_order(order_id)
    if order is None or (owner_email is not None and str(order["user_email"]) != normalize_email(owner_email)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found.")
    details = await repository.list_details_for_orders([order_id])
    return _to_order_response(order, details)
