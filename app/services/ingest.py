# app/services/ingest.py
"""
Ingest path shared by the WebSocket feed and the one-shot HTTP call.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Set

from app.schemas import Reading
from .history_store import HistoryStore
from .registry import ConnectionRegistry, Role
from .state import ADDRESS_ALIASES, StateCache, resolve_text

logger = logging.getLogger(__name__)


class IngestAdapter:
    def __init__(self, registry: ConnectionRegistry, cache: StateCache, history: HistoryStore):
        self._registry = registry
        self._cache = cache
        self._history = history
        self._pending_writes: Set[asyncio.Task] = set()

    async def submit(self, payload: Dict[str, Any], address: Optional[str] = None) -> Reading:
        """
        Normalize a reading, update the cache, fan the snapshot out to
        dashboards, then persist it in the background.

        `address` is the device IP as seen by a one-shot call; an explicit
        address field in the payload takes precedence.
        """
        reported = resolve_text(payload, ADDRESS_ALIASES) or address
        if reported:
            self._registry.record_reported_address(reported)

        reading = self._cache.apply(payload)
        logger.debug("[INGEST] Updated status: %s", reading.model_dump())

        delivered = await self._registry.broadcast(Role.DASHBOARD, {"kind": "snapshot", "data": reading.model_dump()})
        logger.debug("[INGEST] Snapshot delivered to %d dashboard(s)", delivered)

        self._persist(reading)
        return reading

    def _persist(self, reading: Reading) -> None:
        task = asyncio.create_task(self._history.append(reading))
        self._pending_writes.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._pending_writes.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("[INGEST] Failed to persist reading: %s", error)

    async def wait_for_writes(self) -> None:
        """Wait until background persistence has settled."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)
