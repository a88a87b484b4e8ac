# app/schemas/firmware.py
"""
Firmware-related Pydantic schemas.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class FirmwareSummary(BaseModel):
    """Firmware metadata without the payload, used for catalog and info views."""
    version: str
    description: Optional[str] = None
    file_name: Optional[str] = Field(None, serialization_alias="fileName")
    file_size: int = Field(0, serialization_alias="fileSize")
    checksum: Optional[str] = None
    upload_date: Optional[datetime] = Field(None, serialization_alias="uploadDate")

    class Config:
        from_attributes = True

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
