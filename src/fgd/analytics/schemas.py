"""Pydantic models for the analytics endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AnalyticsResponse(BaseModel):
    type: str
    period: int
    generated_at: datetime
    rows: list[dict[str, Any]]
