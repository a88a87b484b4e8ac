# app/services/hub.py
"""
The relay's owned state: registry, cache, stores and the services wired on top.
"""
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core import config
from .device_client import DeviceClient
from .firmware_store import FirmwareStore
from .history_store import HistoryStore
from .ingest import IngestAdapter
from .message_router import MessageRouter
from .ota import OtaStreamer
from .registry import ConnectionRegistry
from .state import StateCache


class RelayHub:
    def __init__(
        self,
        session_maker: async_sessionmaker,
        *,
        chunk_delay: float = config.OTA_CHUNK_DELAY_MS / 1000,
        device_timeout: float = config.DEVICE_HTTP_TIMEOUT,
        device_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.registry = ConnectionRegistry()
        self.cache = StateCache()
        self.firmware_store = FirmwareStore(session_maker)
        self.history_store = HistoryStore(session_maker)
        self.ingest = IngestAdapter(self.registry, self.cache, self.history_store)
        self.streamer = OtaStreamer(self.registry, self.firmware_store, chunk_delay=chunk_delay)
        self.device_client = DeviceClient(
            self.registry, timeout_seconds=device_timeout, transport=device_transport
        )
        self.router = MessageRouter(
            self.registry,
            self.cache,
            self.ingest,
            self.streamer,
            self.firmware_store,
            self.history_store,
        )

    async def close(self) -> None:
        self.streamer.cancel()
        await self.ingest.wait_for_writes()
        await self.device_client.aclose()
