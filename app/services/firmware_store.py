# app/services/firmware_store.py
"""
Firmware blob store backed by the `firmware` table.
"""
import hashlib
import logging
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.exceptions import FirmwareConflictError, StoreError
from app.models import Firmware
from app.schemas import FirmwareSummary

logger = logging.getLogger(__name__)


def calculate_checksum(content: bytes) -> str:
    """Calculate MD5 checksum of a firmware binary"""
    return hashlib.md5(content).hexdigest()


class FirmwareStore:
    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def put(
        self,
        version: str,
        content: bytes,
        file_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> FirmwareSummary:
        """
        Store a new firmware version.

        Versions are unique; uploading an existing version raises
        FirmwareConflictError instead of overwriting it.
        """
        firmware = Firmware(
            version=version,
            data_hex=content.hex(),
            file_name=file_name,
            file_size=len(content),
            checksum=calculate_checksum(content),
            description=description or "",
        )
        try:
            async with self._session_maker() as session:
                existing = await session.execute(select(Firmware.version).where(Firmware.version == version))
                if existing.scalar() is not None:
                    raise FirmwareConflictError(f"Firmware version {version} already exists")
                session.add(firmware)
                await session.commit()
                await session.refresh(firmware)
        except IntegrityError as e:
            raise FirmwareConflictError(f"Firmware version {version} already exists") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save firmware {version}: {e}") from e

        logger.info("[FIRMWARE] Stored %s (size: %d bytes, md5: %s)", version, firmware.file_size, firmware.checksum)
        return FirmwareSummary.model_validate(firmware)

    async def get(self, version: str) -> Optional[Firmware]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(select(Firmware).where(Firmware.version == version))
                return result.scalars().first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load firmware {version}: {e}") from e

    async def delete(self, version: str) -> int:
        try:
            async with self._session_maker() as session:
                result = await session.execute(delete(Firmware).where(Firmware.version == version))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete firmware {version}: {e}") from e
        if result.rowcount:
            logger.info("[FIRMWARE] Deleted %s", version)
        return result.rowcount or 0

    async def list_all(self) -> List[FirmwareSummary]:
        """All firmware versions, newest upload first, without payloads."""
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(
                        Firmware.version,
                        Firmware.description,
                        Firmware.file_name,
                        Firmware.file_size,
                        Firmware.checksum,
                        Firmware.upload_date,
                    ).order_by(Firmware.upload_date.desc())
                )
                rows = result.all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list firmware: {e}") from e
        return [FirmwareSummary.model_validate(row) for row in rows]
