"""
Record (product) business logic.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from fastapi import HTTPException, UploadFile, status

from ecommerce_api.carts.service import to_money
from ecommerce_api.core import db, storage
from ecommerce_api.groups import repository as groups_repository

from . import repository

logger = logging.getLogger(__name__)

MAX_PRICE = Decimal("100000000")


def to_record_response(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "title": str(row["title"]),
        "year_of_publication": int(row["year_of_publication"]),
        "image": row.get("image"),
        "price": to_money(row["price"]),
        "stock": int(row["stock"]),
        "discontinued": bool(row["discontinued"]),
        "group_id": int(row["group_id"]),
        "name_group": row.get("name_group"),
    }


def _parse_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value).strip())
        if not price.is_finite():
            raise InvalidOperation(f"non-finite price {value!r}")
        price = price.quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Price must be a number.") from exc
    if price < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Price cannot be negative.")
    # records.price is numeric(10,2).
    if price >= MAX_PRICE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Price must be less than {MAX_PRICE}.",
        )
    return price


async def _require_group(group_id: int) -> None:
    if not await groups_repository.group_exists(group_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The Group with ID {group_id} does not exist.",
        )


async def list_records() -> list[dict]:
    return [to_record_response(row) for row in await repository.list_records()]


async def get_record(record_id: int) -> dict:
    row = await repository.get_record(record_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found.")
    return to_record_response(row)


async def create_record(
    *,
    title: str,
    year_of_publication: int,
    price: Any,
    stock: int,
    discontinued: bool,
    group_id: int,
    photo: UploadFile | None = None,
) -> dict:
    title = (title or "").strip()
    if not title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required.")
    if stock < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Stock cannot be negative.")
    parsed_price = _parse_price(price)
    await _require_group(group_id)

    image = await storage.save_image(photo)
    try:
        row = await repository.create_record(
            title=title,
            year_of_publication=year_of_publication,
            image=image,
            price=parsed_price,
            stock=stock,
            discontinued=discontinued,
            group_id=group_id,
        )
    except Exception:
        storage.delete_image(image)
        raise
    logger.info("record_created record_id=%s group_id=%s", row["id"], group_id)
    return to_record_response(row)


async def update_record(record_id: int, fields: dict[str, Any], photo: UploadFile | None = None) -> dict:
    """
    Apply a partial update. `fields` holds only what the client sent.
    """
    existing = await repository.get_record(record_id)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Record with ID {record_id} not found.")

    updates = {k: v for k, v in fields.items() if v is not None}
    if "title" in updates:
        updates["title"] = str(updates["title"]).strip()
        if not updates["title"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title cannot be empty.")
    if "price" in updates:
        updates["price"] = _parse_price(updates["price"])
    if "stock" in updates and updates["stock"] < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Stock cannot be negative.")
    if "group_id" in updates:
        await _require_group(int(updates["group_id"]))

    new_image = await storage.save_image(photo)
    if new_image is not None:
        updates["image"] = new_image

    try:
        row = await repository.update_record(record_id, updates)
    except Exception:
        storage.delete_image(new_image)
        raise
    if row is None:
        storage.delete_image(new_image)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Record with ID {record_id} not found.")

    if new_image is not None:
        storage.delete_image(existing.get("image"))
    logger.info("record_updated record_id=%s fields=%s", record_id, sorted(updates))
    return to_record_response(row)


async def delete_record(record_id: int) -> None:
    """
    Delete a record no cart holds.

    The record row is locked first, so a concurrent add-to-cart either
    finishes before the in-use check or waits until the delete commits.
    """
    async with db.transaction() as conn:
        existing = await repository.get_record(record_id, conn=conn, for_update=True)
        if existing is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found.")
        if await repository.is_in_use(record_id, conn=conn):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Record is in a cart and cannot be deleted.",
            )
        await repository.delete_record(record_id, conn=conn)

    storage.delete_image(existing.get("image"))
    logger.info("record_deleted record_id=%s", record_id)


async def update_stock(record_id: int, amount: int) -> dict:
    """
    Add `amount` to the record's stock; a negative amount decreases it.
    """
    new_stock = await repository.adjust_stock(record_id, amount)
    if new_stock is None:
        if await repository.get_record(record_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Record with ID {record_id} not found.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The decrease cannot be greater than the available stock.",
        )
    logger.info("record_stock_updated record_id=%s amount=%s new_stock=%s", record_id, amount, new_stock)
    return {"id": record_id, "amount": amount, "new_stock": new_stock}
