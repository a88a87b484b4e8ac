# app/models/logs.py
"""
Historical sensor readings persisted from the live feed.
"""
from sqlalchemy import Column, Integer, String, DateTime, Float
from datetime import datetime, timezone
from .base import Base


class SensorLog(Base):
    """
    One row per reading received from the device.

    Rows are append-only; hourly/daily charts are computed by the dashboard.
    """
    __tablename__ = "sensor_logs"
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Reading time as reported by the device (ISO-8601) or server fallback
    time = Column(String(64), nullable=False, index=True)

    temperature = Column(Float, nullable=True)
    humidity = Column(Float, nullable=True)
    pressure = Column(Float, nullable=True)

    # Gas sensor channels
    gas1 = Column(Float, nullable=True)
    gas2 = Column(Float, nullable=True)
    gas3 = Column(Float, nullable=True)
    gas4 = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
