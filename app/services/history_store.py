# app/services/history_store.py
"""
Append-only store of historical readings.
"""
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.exceptions import StoreError
from app.models import SensorLog
from app.schemas import Reading


class HistoryStore:
    def __init__(self, session_maker: async_sessionmaker):
        self._session_maker = session_maker

    async def append(self, reading: Reading) -> None:
        try:
            async with self._session_maker() as session:
                session.add(SensorLog(**reading.model_dump()))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save reading: {e}") from e

    async def read_all(self) -> List[Reading]:
        """All persisted readings in arrival order."""
        try:
            async with self._session_maker() as session:
                result = await session.execute(select(SensorLog).order_by(SensorLog.id))
                logs = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read history: {e}") from e
        return [Reading.model_validate(log) for log in logs]
