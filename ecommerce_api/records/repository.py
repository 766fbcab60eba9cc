"""
Record (product) persistence (raw SQL).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import asyncpg

from ecommerce_api.core import db

# Columns a caller may pass to `update_record`.
UPDATABLE_COLUMNS = (
    "title",
    "year_of_publication",
    "image",
    "price",
    "stock",
    "discontinued",
    "group_id",
)


async def list_records() -> list[dict]:
    return await db.fetch_all(
        """
        SELECT
          r.id, r.title, r.year_of_publication, r.image, r.price,
          r.stock, r.discontinued, r.group_id, g.name AS name_group
        FROM records r
        LEFT JOIN groups g ON g.id = r.group_id
        ORDER BY r.id ASC
        """
    )


async def get_record(
    record_id: int,
    *,
    conn: asyncpg.Connection | None = None,
    for_update: bool = False,
) -> dict | None:
    # The join is outer, so only the records row can be locked.
    lock = "FOR UPDATE OF r" if for_update else ""
    return await db.fetch_one(
        f"""
        SELECT
          r.id, r.title, r.year_of_publication, r.image, r.price,
          r.stock, r.discontinued, r.group_id, g.name AS name_group
        FROM records r
        LEFT JOIN groups g ON g.id = r.group_id
        WHERE r.id = $1
        {lock}
        """,
        record_id,
        conn=conn,
    )


async def list_records_by_group(group_id: int) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT id, title, year_of_publication, image, price, stock, discontinued
        FROM records
        WHERE group_id = $1
        ORDER BY year_of_publication ASC, id ASC
        """,
        group_id,
    )


async def create_record(
    *,
    title: str,
    year_of_publication: int,
    image: str | None,
    price: Decimal,
    stock: int,
    discontinued: bool,
    group_id: int,
) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO records (title, year_of_publication, image, price, stock, discontinued, group_id)
        VALUES ($1, $2, $3, $4, $5, $6, $7)
        RETURNING id, title, year_of_publication, image, price, stock, discontinued, group_id
        """,
        title,
        year_of_publication,
        image,
        price,
        stock,
        discontinued,
        group_id,
    )
    if row is None:
        raise RuntimeError("Failed to create record.")
    return row


async def update_record(record_id: int, fields: dict[str, Any]) -> dict | None:
    """
    Partial update. Only keys listed in UPDATABLE_COLUMNS are written.
    """
    columns = [name for name in UPDATABLE_COLUMNS if name in fields]
    if not columns:
        return await get_record(record_id)

    assignments = ", ".join(f"{name} = ${i}" for i, name in enumerate(columns, start=2))
    return await db.fetch_one(
        f"""
        UPDATE records
        SET {assignments}
        WHERE id = $1
        RETURNING id, title, year_of_publication, image, price, stock, discontinued, group_id
        """,
        record_id,
        *[fields[name] for name in columns],
    )


async def delete_record(record_id: int, *, conn: asyncpg.Connection | None = None) -> bool:
    status = await db.execute("DELETE FROM records WHERE id = $1", record_id, conn=conn)
    return db.affected_rows(status) > 0


async def is_in_use(record_id: int, *, conn: asyncpg.Connection | None = None) -> bool:
    row = await db.fetch_one(
        "SELECT 1 AS ok FROM cart_details WHERE record_id = $1 LIMIT 1",
        record_id,
        conn=conn,
    )
    return row is not None


async def adjust_stock(
    record_id: int,
    amount: int,
    *,
    conn: asyncpg.Connection | None = None,
) -> int | None:
    """
    Atomically add `amount` (may be negative) to stock.

    Returns the new stock, or None if the record is missing or the
    decrease would take stock below zero.
    """
    value = await db.fetch_val(
        """
        UPDATE records
        SET stock = stock + $2
        WHERE id = $1
          AND stock + $2 >= 0
        RETURNING stock
        """,
        record_id,
        amount,
        conn=conn,
    )
    return int(value) if value is not None else None
