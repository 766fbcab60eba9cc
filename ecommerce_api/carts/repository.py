"""
Cart persistence (raw SQL).

A user owns at most one cart row (`carts.user_email` is unique); "disabled"
carts are kept and re-enabled rather than recreated.
"""

from __future__ import annotations

from decimal import Decimal

import asyncpg

from ecommerce_api.core import db

_COLUMNS = "id, user_email, total_price, enabled"


async def get_cart_by_id(cart_id: int, *, conn: asyncpg.Connection | None = None) -> dict | None:
    return await db.fetch_one(
        f"SELECT {_COLUMNS} FROM carts WHERE id = $1",
        cart_id,
        conn=conn,
    )


async def get_cart_by_email(email: str, *, conn: asyncpg.Connection | None = None) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM carts
        WHERE lower(trim(user_email)) = $1
        LIMIT 1
        """,
        email,
        conn=conn,
    )


async def get_active_cart_by_email(
    email: str,
    *,
    conn: asyncpg.Connection | None = None,
    for_update: bool = False,
) -> dict | None:
    lock = "FOR UPDATE" if for_update else ""
    return await db.fetch_one(
        f"""
        SELECT {_COLUMNS}
        FROM carts
        WHERE lower(trim(user_email)) = $1
          AND enabled = true
        LIMIT 1
        {lock}
        """,
        email,
        conn=conn,
    )


async def list_active_carts() -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {_COLUMNS}
        FROM carts
        WHERE enabled = true
        ORDER BY id DESC
        """
    )


async def upsert_enabled_cart(email: str) -> dict:
    """
    Insert the user's cart, or re-enable and zero the existing row.

    A concurrent insert for the same email can still surface as
    `asyncpg.UniqueViolationError`; callers handle that race.
    """
    row = await db.fetch_one(
        f"""
        INSERT INTO carts (user_email, total_price, enabled)
        VALUES ($1, 0, true)
        ON CONFLICT (user_email) DO UPDATE
        SET enabled = EXCLUDED.enabled,
            total_price = 0
        RETURNING {_COLUMNS}
        """,
        email,
    )
    if row is None:
        raise RuntimeError("Failed to create cart.")
    return row


async def count_details(cart_id: int, *, conn: asyncpg.Connection | None = None) -> int:
    value = await db.fetch_val(
        "SELECT count(*) FROM cart_details WHERE cart_id = $1",
        cart_id,
        conn=conn,
    )
    return int(value or 0)


async def set_total_price(cart_id: int, total: Decimal, *, conn: asyncpg.Connection | None = None) -> None:
    await db.execute(
        "UPDATE carts SET total_price = $2 WHERE id = $1",
        cart_id,
        total,
        conn=conn,
    )


async def add_to_total_price(
    cart_id: int,
    delta: Decimal,
    *,
    conn: asyncpg.Connection | None = None,
) -> Decimal | None:
    """
    Atomically shift the cart total by `delta`, clamped at zero.

    Returns the new total, or None if the cart does not exist.
    """
    value = await db.fetch_val(
        """
        UPDATE carts
        SET total_price = GREATEST(round(total_price + $2::numeric, 2), 0)
        WHERE id = $1
        RETURNING total_price
        """,
        cart_id,
        delta,
        conn=conn,
    )
    return value


async def set_enabled(cart_id: int, enabled: bool, *, conn: asyncpg.Connection | None = None) -> None:
    await db.execute(
        "UPDATE carts SET enabled = $2 WHERE id = $1",
        cart_id,
        enabled,
        conn=conn,
    )


async def enable_disabled_cart(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        UPDATE carts
        SET enabled = true
        WHERE lower(trim(user_email)) = $1
          AND enabled = false
        RETURNING {_COLUMNS}
        """,
        email,
    )


async def release_cart_stock(cart_id: int, *, conn: asyncpg.Connection) -> int:
    """
    Give every reserved amount in the cart back to record stock and empty the cart.

    Returns the number of cart lines released.
    """
    await db.execute(
        """
        UPDATE records r
        SET stock = r.stock + d.amount
        FROM cart_details d
        WHERE d.cart_id = $1
          AND d.record_id = r.id
        """,
        cart_id,
        conn=conn,
    )
    status = await db.execute(
        "DELETE FROM cart_details WHERE cart_id = $1",
        cart_id,
        conn=conn,
    )
    await set_total_price(cart_id, Decimal("0"), conn=conn)
    return db.affected_rows(status)


async def delete_cart(cart_id: int, *, conn: asyncpg.Connection) -> None:
    await db.execute("DELETE FROM carts WHERE id = $1", cart_id, conn=conn)
