"""
Record (product) endpoints.

Create and update take multipart form data so a cover image can be sent in
the `photo` field.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status

from ecommerce_api.auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/api/records")


@router.get("")
async def list_records() -> dict:
    records = await service.list_records()
    return {"records": records, "count": len(records)}


@router.get("/{record_id}")
async def get_record(record_id: int) -> dict:
    return await service.get_record(record_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_record(
    response: Response,
    title: str = Form(..., min_length=1, max_length=100),
    year_of_publication: int = Form(..., ge=1800, le=2100),
    price: str = Form(...),
    stock: int = Form(..., ge=0),
    discontinued: bool = Form(False),
    group_id: int = Form(..., ge=1),
    photo: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    record = await service.create_record(
        title=title,
        year_of_publication=year_of_publication,
        price=price,
        stock=stock,
        discontinued=discontinued,
        group_id=group_id,
        photo=photo,
    )
    response.headers["Location"] = f"/api/records/{record['id']}"
    return record


@router.put("/{record_id}")
async def update_record(
    record_id: int,
    title: str | None = Form(default=None, max_length=100),
    year_of_publication: int | None = Form(default=None, ge=1800, le=2100),
    price: str | None = Form(default=None),
    stock: int | None = Form(default=None, ge=0),
    discontinued: bool | None = Form(default=None),
    group_id: int | None = Form(default=None, ge=1),
    photo: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    return await service.update_record(
        record_id,
        {
            "title": title,
            "year_of_publication": year_of_publication,
            "price": price,
            "stock": stock,
            "discontinued": discontinued,
            "group_id": group_id,
        },
        photo=photo,
    )


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> Response:
    await service.delete_record(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{record_id}/stock/{amount}")
async def update_stock(
    record_id: int,
    amount: int,
    _: dict = Depends(auth_dependencies.require_admin),
) -> dict:
    """
    Add `amount` units to stock; pass a negative amount to remove units.
    """
    return await service.update_stock(record_id, amount)
