"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field

Connectivity = Literal["connected", "disconnected"]


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Connectivity | None = Field(
        default=None,
        description="Account store connectivity",
    )
    cache: Connectivity | None = Field(
        default=None,
        description="Redis connectivity (profile cache and session snapshots)",
    )
