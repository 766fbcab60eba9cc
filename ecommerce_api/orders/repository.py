"""
Order persistence (raw SQL).
"""

from __future__ import annotations

from decimal import Decimal

import asyncpg

from ecommerce_api.core import db

_ORDER_COLUMNS = "id, order_date, payment_method, total, user_email, cart_id"


async def insert_order(
    *,
    user_email: str,
    cart_id: int,
    payment_method: str,
    total: Decimal,
    conn: asyncpg.Connection,
) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO orders (order_date, payment_method, total, user_email, cart_id)
        VALUES (now(), $1, $2, $3, $4)
        RETURNING {_ORDER_COLUMNS}
        """,
        payment_method,
        total,
        user_email,
        cart_id,
        conn=conn,
    )
    if row is None:
        raise RuntimeError("Failed to insert order.")
    return row


async def insert_order_details(
    order_id: int,
    lines: list[tuple[int, int, Decimal, Decimal]],
    *,
    conn: asyncpg.Connection,
) -> None:
    """
    `lines` is [(record_id, amount, price, total), ...]
    """
    if not lines:
        return
    await conn.executemany(
        """
        INSERT INTO order_details (order_id, record_id, amount, price, total)
        VALUES ($1, $2, $3, $4, $5)
        """,
        [(order_id, *line) for line in lines],
    )


async def get_order(order_id: int, *, conn: asyncpg.Connection | None = None) -> dict | None:
    return await db.fetch_one(
        f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = $1",
        order_id,
        conn=conn,
    )


async def list_orders(*, user_email: str | None = None) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {_ORDER_COLUMNS}
        FROM orders
        WHERE ($1::text IS NULL OR user_email = $1)
        ORDER BY order_date DESC, id DESC
        """,
        user_email,
    )


async def list_details_for_orders(
    order_ids: list[int],
    *,
    conn: asyncpg.Connection | None = None,
) -> list[dict]:
    if not order_ids:
        return []
    return await db.fetch_all(
        """
        SELECT
          od.id, od.order_id, od.record_id, od.amount, od.price, od.total,
          r.title AS title_record
        FROM order_details od
        LEFT JOIN records r ON r.id = od.record_id
        WHERE od.order_id = ANY($1::int[])
        ORDER BY od.order_id, od.id
        """,
        order_ids,
        conn=conn,
    )
