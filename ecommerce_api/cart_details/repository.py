"""
Cart line persistence (raw SQL).
"""

from __future__ import annotations

from decimal import Decimal

import asyncpg

from ecommerce_api.core import db


async def list_by_cart_id(cart_id: int, *, conn: asyncpg.Connection | None = None) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT
          d.id,
          d.cart_id,
          d.record_id,
          d.amount,
          d.price,
          round(d.price * d.amount, 2) AS total,
          r.title AS title_record,
          r.image AS image_record,
          g.name AS name_group
        FROM cart_details d
        JOIN records r ON r.id = d.record_id
        LEFT JOIN groups g ON g.id = r.group_id
        WHERE d.cart_id = $1
        ORDER BY d.id ASC
        """,
        cart_id,
        conn=conn,
    )


async def get_detail(
    cart_id: int,
    record_id: int,
    *,
    conn: asyncpg.Connection | None = None,
) -> dict | None:
    return await db.fetch_one(
        """
        SELECT id, cart_id, record_id, amount, price
        FROM cart_details
        WHERE cart_id = $1
          AND record_id = $2
        FOR UPDATE
        """,
        cart_id,
        record_id,
        conn=conn,
    )


async def add_amount(
    cart_id: int,
    record_id: int,
    *,
    amount: int,
    price: Decimal,
    conn: asyncpg.Connection,
) -> dict:
    """
    Insert a cart line or add `amount` to the existing one.

    The price captured on first insert is kept.
    """
    row = await db.fetch_one(
        """
        INSERT INTO cart_details (cart_id, record_id, amount, price)
        VALUES ($1, $2, $3, $4)
        ON CONFLICT (cart_id, record_id) DO UPDATE
        SET amount = cart_details.amount + EXCLUDED.amount
        RETURNING id, cart_id, record_id, amount, price
        """,
        cart_id,
        record_id,
        amount,
        price,
        conn=conn,
    )
    if row is None:
        raise RuntimeError("Failed to upsert cart detail.")
    return row


async def reduce_amount(detail_id: int, *, amount: int, conn: asyncpg.Connection) -> int:
    """
    Subtract `amount` from a line and delete it when it reaches zero.

    Returns the remaining amount.
    """
    remaining = await db.fetch_val(
        """
        UPDATE cart_details
        SET amount = amount - $2
        WHERE id = $1
          AND amount > $2
        RETURNING amount
        """,
        detail_id,
        amount,
        conn=conn,
    )
    if remaining is not None:
        return int(remaining)

    await db.execute("DELETE FROM cart_details WHERE id = $1", detail_id, conn=conn)
    return 0


async def delete_by_cart_id(cart_id: int, *, conn: asyncpg.Connection) -> int:
    status = await db.execute("DELETE FROM cart_details WHERE cart_id = $1", cart_id, conn=conn)
    return db.affected_rows(status)
