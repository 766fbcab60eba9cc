"""
Cart line business logic.

Adding a line moves stock from the record into the cart; removing a line
moves it back. Both directions update the cart total inside the same
transaction as the stock change.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import HTTPException, status

from ecommerce_api.carts import repository as carts_repository
from ecommerce_api.carts import service as carts_service
from ecommerce_api.core import db
from ecommerce_api.records import repository as records_repository

from . import repository

logger = logging.getLogger(__name__)


def _require_positive(amount: int) -> int:
    if amount < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Amount must be at least 1.")
    return amount


async def list_cart_details(email: str) -> list[dict]:
    cart = await carts_service.get_active_cart(email)
    if cart is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active cart for this user.")
    rows = await repository.list_by_cart_id(int(cart["id"]))
    return [carts_service.to_cart_line(row) for row in rows]


async def add_to_cart(email: str, record_id: int, amount: int) -> dict:
    email = carts_service.normalize_email(email)
    amount = _require_positive(amount)

    async with db.transaction() as conn:
        cart = await carts_repository.get_active_cart_by_email(email, conn=conn, for_update=True)
        if cart is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active cart for this user.")

        record = await records_repository.get_record(record_id, conn=conn)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Record with ID {record_id} not found.")
        if record["discontinued"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Record is discontinued.")

        new_stock = await records_repository.adjust_stock(record_id, -amount, conn=conn)
        if new_stock is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Not enough stock. Available: {int(record['stock'])}.",
            )

        cart_id = int(cart["id"])
        detail = await repository.add_amount(
            cart_id,
            record_id,
            amount=amount,
            price=Decimal(str(record["price"])),
            conn=conn,
        )
        # The line keeps its first price, so charge that one.
        line_price = Decimal(str(detail["price"]))
        new_total = await carts_service.update_cart_total_price(cart_id, line_price * amount, conn=conn)

    logger.info(
        "cart_item_added cart_id=%s record_id=%s amount=%s stock_left=%s",
        cart_id,
        record_id,
        amount,
        new_stock,
    )
    return {
        "cart_id": cart_id,
        "record_id": record_id,
        "amount": int(detail["amount"]),
        "price": carts_service.to_money(line_price),
        "total_price": new_total,
        "stock": new_stock,
    }


async def remove_from_cart(email: str, record_id: int, amount: int) -> dict:
    email = carts_service.normalize_email(email)
    amount = _require_positive(amount)

    async with db.transaction() as conn:
        cart = await carts_repository.get_active_cart_by_email(email, conn=conn, for_update=True)
        if cart is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active cart for this user.")

        cart_id = int(cart["id"])
        detail = await repository.get_detail(cart_id, record_id, conn=conn)
        if detail is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record is not in the cart.")
        if amount > int(detail["amount"]):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot remove {amount} units; the cart holds {int(detail['amount'])}.",
            )

        remaining = await repository.reduce_amount(int(detail["id"]), amount=amount, conn=conn)
        new_stock = await records_repository.adjust_stock(record_id, amount, conn=conn)
        line_price = Decimal(str(detail["price"]))
        new_total = await carts_service.update_cart_total_price(cart_id, -(line_price * amount), conn=conn)

    logger.info(
        "cart_item_removed cart_id=%s record_id=%s amount=%s remaining=%s",
        cart_id,
        record_id,
        amount,
        remaining,
    )
    return {
        "cart_id": cart_id,
        "record_id": record_id,
        "amount": remaining,
        "price": carts_service.to_money(line_price),
        "total_price": new_total,
        "stock": new_stock,
    }
