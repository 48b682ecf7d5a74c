"""
Pydantic schemas for the admin interface endpoints.
"""

from typing import Any

from pydantic import BaseModel, Field


class InterfaceListResponse(BaseModel):
    """Response model for a list of interface rows."""

    success: bool = Field(default=True)
    items: list[dict[str, Any]] = Field(..., description="Interface rows")
    total: int = Field(..., description="Number of rows returned")


class InterfaceDeleteResponse(BaseModel):
    success: bool = Field(default=True)
    message: str
