# app/schemas/device.py
"""
Device control-plane schemas.
"""
from pydantic import BaseModel, Field


class DashboardConfig(BaseModel):
    """Dashboard host/port pushed to the device so it knows where to report."""
    host: str = Field(..., min_length=1, max_length=63)
    port: int = Field(..., ge=1, le=65535)
