"""
SQLAlchemy models for the environment monitor relay.
"""
from .base import Base
from .firmware import Firmware
from .logs import SensorLog

__all__ = [
    "Base",
    "Firmware",
    "SensorLog",
]
