"""Tests for records, groups and music genres."""

from decimal import Decimal
from unittest.mock import AsyncMock

import asyncpg
import pytest
from fastapi import HTTPException

from ecommerce_api.core import storage
from ecommerce_api.groups import repository as groups_repository
from ecommerce_api.groups import service as groups_service
from ecommerce_api.music_genres import repository as genres_repository
from ecommerce_api.music_genres import service as genres_service
from ecommerce_api.records import repository as records_repository
from ecommerce_api.records import service as records_service

RECORD = {
    "id": 5,
    "title": "Nevermind",
    "year_of_publication": 1991,
    "image": "/img/old.png",
    "price": Decimal("12.50"),
    "stock": 4,
    "discontinued": False,
    "group_id": 1,
    "name_group": "Nirvana",
}


class TestUpdateStock:
    """Tests for records_service.update_stock."""

    @pytest.mark.asyncio
    async def test_adds_amount(self, monkeypatch):
        monkeypatch.setattr(records_repository, "adjust_stock", AsyncMock(return_value=9))

        assert await records_service.update_stock(5, 5) == {"id": 5, "amount": 5, "new_stock": 9}

    @pytest.mark.asyncio
    async def test_decrease_below_zero_is_400(self, monkeypatch):
        monkeypatch.setattr(records_repository, "adjust_stock", AsyncMock(return_value=None))
        monkeypatch.setattr(records_repository, "get_record", AsyncMock(return_value=RECORD))

        with pytest.raises(HTTPException) as exc_info:
            await records_service.update_stock(5, -10)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_record_is_404(self, monkeypatch):
        monkeypatch.setattr(records_repository, "adjust_stock", AsyncMock(return_value=None))
        monkeypatch.setattr(records_repository, "get_record", AsyncMock(return_value=None))

        with pytest.raises(HTTPException) as exc_info:
            await records_service.update_stock(99, 1)

        assert exc_info.value.status_code == 404


class TestRecords:
    """Tests for record create/update/delete rules."""

    @pytest.mark.asyncio
    async def test_create_with_unknown_group_is_400(self, monkeypatch):
        monkeypatch.setattr(groups_repository, "group_exists", AsyncMock(return_value=False))
        create = AsyncMock()
        monkeypatch.setattr(records_repository, "create_record", create)

        with pytest.raises(HTTPException) as exc_info:
            await records_service.create_record(
                title="Bleach",
                year_of_publication=1989,
                price="9.99",
                stock=3,
                discontinued=False,
                group_id=77,
            )

        assert exc_info.value.status_code == 400
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_rounds_price(self, monkeypatch):
        monkeypatch.setattr(groups_repository, "group_exists", AsyncMock(return_value=True))
        create = AsyncMock(return_value={**RECORD, "id": 8, "image": None, "price": Decimal("9.99")})
        monkeypatch.setattr(records_repository, "create_record", create)

        record = await records_service.create_record(
            title="  Bleach ",
            year_of_publication=1989,
            price="9.989",
            stock=3,
            discontinued=False,
            group_id=1,
        )

        assert record["id"] == 8
        assert create.await_args.kwargs["title"] == "Bleach"
        assert create.await_args.kwargs["price"] == Decimal("9.99")
        assert create.await_args.kwargs["image"] is None

    @pytest.mark.asyncio
    async def test_create_with_bad_price_is_400(self, monkeypatch):
        with pytest.raises(HTTPException) as exc_info:
            await records_service.create_record(
                title="Bleach",
                year_of_publication=1989,
                price="cheap",
                stock=3,
                discontinued=False,
                group_id=1,
            )

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", ["NaN", "sNaN", "Infinity", "1e9", "100000000", "1e40"])
    async def test_non_finite_or_oversized_price_is_400(self, monkeypatch, price):
        monkeypatch.setattr(groups_repository, "group_exists", AsyncMock(return_value=True))
        create = AsyncMock()
        monkeypatch.setattr(records_repository, "create_record", create)

        with pytest.raises(HTTPException) as exc_info:
            await records_service.create_record(
                title="Bleach",
                year_of_publication=1989,
                price=price,
                stock=3,
                discontinued=False,
                group_id=1,
            )

        assert exc_info.value.status_code == 400
        create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_largest_price_fits(self, monkeypatch):
        monkeypatch.setattr(groups_repository, "group_exists", AsyncMock(return_value=True))
        create = AsyncMock(return_value={**RECORD, "price": Decimal("99999999.99")})
        monkeypatch.setattr(records_repository, "create_record", create)

        await records_service.create_record(
            title="Box Set",
            year_of_publication=2001,
            price="99999999.99",
            stock=1,
            discontinued=False,
            group_id=1,
        )

        assert create.await_args.kwargs["price"] == Decimal("99999999.99")

    @pytest.mark.asyncio
    async def test_failed_insert_removes_saved_photo(self, monkeypatch):
        monkeypatch.setattr(groups_repository, "group_exists", AsyncMock(return_value=True))
        monkeypatch.setattr(storage, "save_image", AsyncMock(return_value="/img/new.png"))
        monkeypatch.setattr(
            records_repository,
            "create_record",
            AsyncMock(side_effect=asyncpg.CheckViolationError("records_stock_check")),
        )
        deleted = []
        monkeypatch.setattr(storage, "delete_image", deleted.append)

        with pytest.raises(asyncpg.CheckViolationError):
            await records_service.create_record(
                title="Bleach",
                year_of_publication=1989,
                price="9.99",
                stock=3,
                discontinued=False,
                group_id=1,
                photo=object(),
            )

        assert deleted == ["/img/new.png"]

    @pytest.mark.asyncio
    async def test_update_of_vanished_record_removes_saved_photo(self, monkeypatch):
        monkeypatch.setattr(records_repository, "get_record", AsyncMock(return_value=RECORD))
        monkeypatch.setattr(storage, "save_image", AsyncMock(return_value="/img/new.png"))
        monkeypatch.setattr(records_repository, "update_record", AsyncMock(return_value=None))
        deleted = []
        monkeypatch.setattr(storage, "delete_image", deleted.append)

        with pytest.raises(HTTPException) as exc_info:
            await records_service.update_record(5, {}, photo=object())

        assert exc_info.value.status_code == 404
        assert deleted == ["/img/new.png"]

    @pytest.mark.asyncio
    async def test_update_writes_only_sent_fields(self, monkeypatch):
        monkeypatch.setattr(records_repository, "get_record", AsyncMock(return_value=RECORD))
        update = AsyncMock(return_value={**RECORD, "stock": 10})
        monkeypatch.setattr(records_repository, "update_record", update)

        record = await records_service.update_record(5, {"title": None, "stock": 10, "price": None})

        update.assert_awaited_once_with(5, {"stock": 10})
        assert record["stock"] == 10

    @pytest.mark.asyncio
    async def test_delete_record_in_cart_is_400(self, monkeypatch, fake_conn):
        get_record = AsyncMock(return_value=RECORD)
        monkeypatch.setattr(records_repository, "get_record", get_record)
        monkeypatch.setattr(records_repository, "is_in_use", AsyncMock(return_value=True))
        delete = AsyncMock()
        monkeypatch.setattr(records_repository, "delete_record", delete)

        with pytest.raises(HTTPException) as exc_info:
            await records_service.delete_record(5)

        assert exc_info.value.status_code == 400
        delete.assert_not_awaited()
        get_record.assert_awaited_once_with(5, conn=fake_conn, for_update=True)

    @pytest.mark.asyncio
    async def test_delete_removes_image(self, monkeypatch, fake_conn):
        monkeypatch.setattr(records_repository, "get_record", AsyncMock(return_value=RECORD))
        monkeypatch.setattr(records_repository, "is_in_use", AsyncMock(return_value=False))
        delete = AsyncMock(return_value=True)
        monkeypatch.setattr(records_repository, "delete_record", delete)
        deleted = []
        monkeypatch.setattr(storage, "delete_image", deleted.append)

        await records_service.delete_record(5)

        assert deleted == ["/img/old.png"]
        delete.assert_awaited_once_with(5, conn=fake_conn)


class TestGroups:
    """Tests for group rules."""

    @pytest.mark.asyncio
    async def test_create_with_unknown_genre_is_400(self, monkeypatch):
        monkeypatch.setattr(genres_repository, "get_genre", AsyncMock(return_value=None))

        with pytest.raises(HTTPException) as exc_info:
            await groups_service.create_group(name="Nirvana", music_genre_id=9)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_group_with_records_is_400(self, monkeypatch):
        monkeypatch.setattr(
            groups_repository,
            "get_group",
            AsyncMock(return_value={"id": 1, "name": "Nirvana", "image": None, "music_genre_id": 2}),
        )
        monkeypatch.setattr(groups_repository, "has_records", AsyncMock(return_value=True))

        with pytest.raises(HTTPException) as exc_info:
            await groups_service.delete_group(1)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_get_group_with_records(self, monkeypatch):
        monkeypatch.setattr(
            groups_repository,
            "get_group",
            AsyncMock(
                return_value={
                    "id": 1,
                    "name": "Nirvana",
                    "image": None,
                    "music_genre_id": 2,
                    "name_music_genre": "Grunge",
                }
            ),
        )
        records = [{k: v for k, v in RECORD.items() if k not in ("group_id", "name_group")}]
        monkeypatch.setattr(records_repository, "list_records_by_group", AsyncMock(return_value=records))

        group = await groups_service.get_group_with_records(1)

        assert group["name_music_genre"] == "Grunge"
        assert group["total_records"] == 1
        assert group["records"][0]["name_group"] == "Nirvana"
        assert group["records"][0]["price"] == 12.5


class TestMusicGenres:
    """Tests for music genre rules."""

    @pytest.mark.asyncio
    async def test_duplicate_name_is_409(self, monkeypatch):
        monkeypatch.setattr(genres_repository, "name_taken", AsyncMock(return_value=True))

        with pytest.raises(HTTPException) as exc_info:
            await genres_service.create_genre("Rock")

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_unique_violation_race_is_409(self, monkeypatch):
        monkeypatch.setattr(genres_repository, "name_taken", AsyncMock(return_value=False))
        monkeypatch.setattr(
            genres_repository,
            "create_genre",
            AsyncMock(side_effect=asyncpg.UniqueViolationError("duplicate key value")),
        )

        with pytest.raises(HTTPException) as exc_info:
            await genres_service.create_genre("Rock")

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_genre_in_use_is_400(self, monkeypatch):
        monkeypatch.setattr(genres_repository, "get_genre", AsyncMock(return_value={"id": 2, "name": "Grunge"}))
        monkeypatch.setattr(genres_repository, "has_groups", AsyncMock(return_value=True))

        with pytest.raises(HTTPException) as exc_info:
            await genres_service.delete_genre(2)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_update_checks_name_against_other_genres(self, monkeypatch):
        monkeypatch.setattr(genres_repository, "get_genre", AsyncMock(return_value={"id": 2, "name": "Grunge"}))
        name_taken = AsyncMock(return_value=False)
        monkeypatch.setattr(genres_repository, "name_taken", name_taken)
        monkeypatch.setattr(genres_repository, "update_genre", AsyncMock(return_value={"id": 2, "name": "Punk"}))

        genre = await genres_service.update_genre(2, " Punk ")

        assert genre == {"id": 2, "name": "Punk"}
        name_taken.assert_awaited_once_with("Punk", exclude_id=2)
