"""Response envelopes shared by several routers."""

from __future__ import annotations

from pydantic import BaseModel


class ActionResult(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    status: str
    db: bool
