"""
Pydantic schemas for request/response validation.
"""
from .reading import Reading, AddressRegister
from .device import DashboardConfig
from .firmware import FirmwareSummary

__all__ = [
    # Reading schemas
    "Reading",
    "AddressRegister",
    # Device schemas
    "DashboardConfig",
    # Firmware schemas
    "FirmwareSummary",
]
