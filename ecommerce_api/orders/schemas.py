"""
Pydantic schemas for order endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PlaceOrderRequest(BaseModel):
    payment_method: str = Field(..., min_length=1, max_length=50)
