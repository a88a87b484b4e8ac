# app/models/firmware.py
"""
Firmware storage model for OTA updates.
"""
from sqlalchemy import Column, String, DateTime, Text, BigInteger
from datetime import datetime, timezone
from .base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Firmware(Base):
    """
    Stores one firmware image per version.

    The binary is kept hex encoded in `data_hex` so the whole record lives in
    the database, no firmware files on disk.
    """
    __tablename__ = "firmware"

    # Version label chosen at upload time (e.g. "1.0.3"), unique
    version = Column(String(64), primary_key=True)

    # Hex encoded binary payload
    data_hex = Column(Text, nullable=False)

    # Original upload file name
    file_name = Column(String(255), nullable=True)

    # Raw binary size in bytes
    file_size = Column(BigInteger, nullable=False, default=0)

    # MD5 of the raw binary, sent to the device as X-Firmware-Checksum
    checksum = Column(String(32), nullable=True)

    description = Column(Text, nullable=True)

    upload_date = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
