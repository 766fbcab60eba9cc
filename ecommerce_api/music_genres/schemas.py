"""
Pydantic schemas for music genre endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MusicGenreRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
