# app/schemas/reading.py
"""
Reading-related Pydantic schemas.
"""
from typing import Optional
from pydantic import BaseModel


class Reading(BaseModel):
    """A single sensor sample as cached and broadcast to dashboards."""
    time: str = ""
    temperature: float = 0.0
    humidity: float = 0.0
    pressure: float = 0.0
    gas1: float = 0.0
    gas2: float = 0.0
    gas3: float = 0.0
    gas4: float = 0.0

    class Config:
        from_attributes = True


class AddressRegister(BaseModel):
    """Body of the one-shot register-address call."""
    ip: Optional[str] = None
    address: Optional[str] = None

    def resolved(self) -> Optional[str]:
        value = self.ip or self.address
        return value.strip() if value and value.strip() else None
