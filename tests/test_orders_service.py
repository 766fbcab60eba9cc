"""Tests for order placement and history."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException

from ecommerce_api.cart_details import repository as cart_details_repository
from ecommerce_api.carts import repository as carts_repository
from ecommerce_api.orders import repository as orders_repository
from ecommerce_api.orders import service as orders_service

CART = {"id": 3, "user_email": "ana@shop.test", "total_price": Decimal("37.50"), "enabled": True}
NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
LINES = [
    {"id": 1, "cart_id": 3, "record_id": 5, "amount": 2, "price": Decimal("12.50"), "total": Decimal("25.00")},
    {"id": 2, "cart_id": 3, "record_id": 6, "amount": 1, "price": Decimal("12.50"), "total": Decimal("12.50")},
]


def _order(**overrides):
    row = {
        "id": 40,
        "order_date": NOW,
        "payment_method": "card",
        "total": Decimal("37.50"),
        "user_email": "ana@shop.test",
        "cart_id": 3,
    }
    row.update(overrides)
    return row


class TestPlaceOrder:
    """Tests for place_order."""

    @pytest.mark.asyncio
    async def test_copies_cart_into_order_and_empties_cart(self, monkeypatch, fake_conn):
        monkeypatch.setattr(carts_repository, "get_active_cart_by_email", AsyncMock(return_value=CART))
        monkeypatch.setattr(cart_details_repository, "list_by_cart_id", AsyncMock(return_value=LINES))
        insert_order = AsyncMock(return_value=_order())
        insert_details = AsyncMock()
        delete_lines = AsyncMock(return_value=2)
        set_total = AsyncMock()
        monkeypatch.setattr(orders_repository, "insert_order", insert_order)
        monkeypatch.setattr(orders_repository, "insert_order_details", insert_details)
        monkeypatch.setattr(cart_details_repository, "delete_by_cart_id", delete_lines)
        monkeypatch.setattr(carts_repository, "set_total_price", set_total)
        monkeypatch.setattr(
            orders_repository,
            "list_details_for_orders",
            AsyncMock(
                return_value=[
                    {"id": 1, "order_id": 40, "record_id": 5, "amount": 2, "price": Decimal("12.50"),
                     "total": Decimal("25.00"), "title_record": "Nevermind"},
                    {"id": 2, "order_id": 40, "record_id": 6, "amount": 1, "price": Decimal("12.50"),
                     "total": Decimal("12.50"), "title_record": "In Utero"},
                ]
            ),
        )

        order = await orders_service.place_order("Ana@Shop.Test", " card ")

        assert order["id"] == 40
        assert order["total"] == 37.5
        assert [d["title_record"] for d in order["details"]] == ["Nevermind", "In Utero"]

        kwargs = insert_order.await_args.kwargs
        assert kwargs["user_email"] == "ana@shop.test"
        assert kwargs["payment_method"] == "card"
        assert kwargs["total"] == Decimal("37.50")

        insert_details.assert_awaited_once_with(
            40,
            [(5, 2, Decimal("12.50"), Decimal("25.00")), (6, 1, Decimal("12.50"), Decimal("12.50"))],
            conn=fake_conn,
        )
        delete_lines.assert_awaited_once_with(3, conn=fake_conn)
        set_total.assert_awaited_once_with(3, Decimal("0"), conn=fake_conn)

    @pytest.mark.asyncio
    async def test_empty_cart_is_400(self, monkeypatch, fake_conn):
        monkeypatch.setattr(carts_repository, "get_active_cart_by_email", AsyncMock(return_value=CART))
        monkeypatch.setattr(cart_details_repository, "list_by_cart_id", AsyncMock(return_value=[]))
        insert_order = AsyncMock()
        monkeypatch.setattr(orders_repository, "insert_order", insert_order)

        with pytest.raises(HTTPException) as exc_info:
            await orders_service.place_order("ana@shop.test", "card")

        assert exc_info.value.status_code == 400
        insert_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_active_cart_is_404(self, monkeypatch, fake_conn):
        monkeypatch.setattr(carts_repository, "get_active_cart_by_email", AsyncMock(return_value=None))

        with pytest.raises(HTTPException) as exc_info:
            await orders_service.place_order("ana@shop.test", "card")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_blank_payment_method_is_400(self, fake_conn):
        with pytest.raises(HTTPException) as exc_info:
            await orders_service.place_order("ana@shop.test", "   ")

        assert exc_info.value.status_code == 400


class TestOrderHistory:
    """Tests for listing and fetching orders."""

    @pytest.mark.asyncio
    async def test_groups_details_under_their_orders(self, monkeypatch):
        list_orders = AsyncMock(return_value=[_order(id=41), _order(id=40)])
        monkeypatch.setattr(orders_repository, "list_orders", list_orders)
        monkeypatch.setattr(
            orders_repository,
            "list_details_for_orders",
            AsyncMock(
                return_value=[
                    {"id": 1, "order_id": 40, "record_id": 5, "amount": 1, "price": Decimal("9.99"),
                     "total": Decimal("9.99"), "title_record": "Ten"},
                ]
            ),
        )

        orders = await orders_service.list_orders_for_user("ANA@shop.test")

        list_orders.assert_awaited_once_with(user_email="ana@shop.test")
        assert [o["id"] for o in orders] == [41, 40]
        assert orders[0]["details"] == []
        assert orders[1]["details"][0]["price"] == 9.99

    @pytest.mark.asyncio
    async def test_missing_order_is_404(self, monkeypatch):
        monkeypatch.setattr(orders_repository, "get_order", AsyncMock(return_value=None))

        with pytest.raises(HTTPException) as exc_info:
            await orders_service.get_order(404)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_foreign_order_reads_as_missing(self, monkeypatch):
        monkeypatch.setattr(orders_repository, "get_order", AsyncMock(return_value=_order(user_email="bob@shop.test")))
        list_details = AsyncMock()
        monkeypatch.setattr(orders_repository, "list_details_for_orders", list_details)

        with pytest.raises(HTTPException) as exc_info:
            await orders_service.get_order(40, owner_email="ana@shop.test")

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Order not found."
        list_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owner_reads_own_order(self, monkeypatch):
        monkeypatch.setattr(orders_repository, "get_order", AsyncMock(return_value=_order()))
        monkeypatch.setattr(orders_repository, "list_details_for_orders", AsyncMock(return_value=[]))

        order = await orders_service.get_order(40, owner_email=" Ana@Shop.Test ")

        assert order["id"] == 40
