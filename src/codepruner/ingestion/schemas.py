"""Pydantic schemas for the tracking endpoint."""

from pydantic import BaseModel


class TrackResponse(BaseModel):
    success: bool = True
    message: str
    count: int
