"""
User persistence helpers.
"""

from __future__ import annotations

import asyncpg

from ecommerce_api.core import db

_PUBLIC_COLUMNS = "email, role, cart_id, created_at"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(
    *,
    email: str,
    password_hash: str,
    role: str,
    conn: asyncpg.Connection | None = None,
) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (email, password_hash, role)
        VALUES ($1, $2, $3)
        RETURNING {_PUBLIC_COLUMNS}
        """,
        normalize_email(email),
        password_hash,
        role,
        conn=conn,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str, *, conn: asyncpg.Connection | None = None) -> dict | None:
    """
    Includes `password_hash`; strip it before returning to clients.
    """
    return await db.fetch_one(
        f"""
        SELECT {_PUBLIC_COLUMNS}, password_hash
        FROM users
        WHERE email = $1
        """,
        normalize_email(email),
        conn=conn,
    )


async def user_exists(email: str, *, conn: asyncpg.Connection | None = None) -> bool:
    row = await db.fetch_one(
        "SELECT 1 AS ok FROM users WHERE email = $1",
        normalize_email(email),
        conn=conn,
    )
    return row is not None


async def list_users() -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {_PUBLIC_COLUMNS}
        FROM users
        ORDER BY email ASC
        """
    )


async def set_cart_id(email: str, cart_id: int) -> None:
    await db.execute(
        "UPDATE users SET cart_id = $2 WHERE email = $1 AND cart_id IS DISTINCT FROM $2",
        normalize_email(email),
        cart_id,
    )


async def update_password_hash(email: str, password_hash: str) -> bool:
    status = await db.execute(
        "UPDATE users SET password_hash = $2 WHERE email = $1",
        normalize_email(email),
        password_hash,
    )
    return db.affected_rows(status) > 0


async def delete_orders_for_user(email: str, *, conn: asyncpg.Connection) -> int:
    # order_details rows go with ON DELETE CASCADE.
    status = await db.execute(
        "DELETE FROM orders WHERE user_email = $1",
        normalize_email(email),
        conn=conn,
    )
    return db.affected_rows(status)


async def delete_user(email: str, *, conn: asyncpg.Connection) -> bool:
    status = await db.execute(
        "DELETE FROM users WHERE email = $1",
        normalize_email(email),
        conn=conn,
    )
    return db.affected_rows(status) > 0
