"""Response schemas for the HTTP API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class WindowBounds(BaseModel):
    minSince: str
    maxTill: str


class HorizonHours(BaseModel):
    realtime: int
    perWindow: int


class WindowSpan(BaseModel):
    sinceISO: str
    tillISO: str


class HorizonInfoResponse(BaseModel):
    """Canonical horizon; clients must request these windows verbatim."""

    nowISO: str
    bounds: WindowBounds
    hours: HorizonHours
    windows: list[WindowSpan]


class TimePingResponse(BaseModel):
    nowISO: str
    roundedHourISO: str


class TradeRowModel(BaseModel):
    time: str
    wallet: str
    signature: str
    solAmount: float
    price: float | None
    dataset: Literal["realtime"]


class TradesResponse(BaseModel):
    rows: list[TradeRowModel]
    dataset: Literal["realtime"]
    maxLookbackHours: int


class ErrorResponse(BaseModel):
    error: str
    details: str
    bounds: WindowBounds | None = None


class HealthResponse(BaseModel):
    status: Literal["ok"]
