# app/services/ota.py
"""
OTA firmware streaming over the shared WebSocket.

A firmware image is sent to the device line by line, paced so the device can
flash each record before the next arrives. Dashboards receive the same chunk
messages to draw progress. Streaming runs as a background task so the router
keeps serving other messages meanwhile.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from app.core.exceptions import StoreError
from .firmware_store import FirmwareStore
from .registry import ConnectionRegistry, Role

logger = logging.getLogger(__name__)


class OtaState(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = {OtaState.COMPLETED, OtaState.ABANDONED, OtaState.FAILED, OtaState.CANCELLED}


def chunk_percent(index: int, total: int) -> float:
    return round((index + 1) / total * 100, 2)


def split_lines(data_hex: str) -> List[str]:
    """Decode a stored payload into its trimmed, non-blank text lines."""
    text = bytes.fromhex(data_hex).decode("utf-8", errors="replace")
    return [line.strip() for line in text.splitlines() if line.strip()]


@dataclass(eq=False)
class OtaSession:
    version: str
    device_id: str
    total_lines: int = 0
    current_index: int = -1
    state: OtaState = OtaState.PENDING
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def percent_complete(self) -> float:
        if self.total_lines == 0 or self.current_index < 0:
            return 0.0
        return chunk_percent(self.current_index, self.total_lines)

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()


class OtaStreamer:
    def __init__(self, registry: ConnectionRegistry, store: FirmwareStore, chunk_delay: float = 0.04):
        self._registry = registry
        self._store = store
        self._chunk_delay = chunk_delay
        self._active: Optional[OtaSession] = None

    @property
    def active_session(self) -> Optional[OtaSession]:
        if self._active is not None and not self._active.done:
            return self._active
        return None

    async def announce(self, version: str) -> bool:
        """Tell the device and dashboards that an update to `version` is coming."""
        try:
            firmware = await self._store.get(version)
        except StoreError as e:
            logger.error("[OTA] Cannot announce %s: %s", version, e)
            return False
        if firmware is None:
            logger.warning("[OTA] Firmware %s not found, OTA start ignored", version)
            return False

        notice = {"kind": "ota-start", "version": version}
        sent = await self._registry.broadcast(Role.DEVICE, notice)
        await self._registry.broadcast(Role.DASHBOARD, notice)
        logger.info("[OTA] Sent OTA start for %s to %d device(s)", version, sent)
        return True

    def start(self, version: str) -> Optional[OtaSession]:
        """
        Launch a streaming session in the background and return immediately.

        Returns None when no device is connected or another session is still
        running.
        """
        running = self.active_session
        if running is not None:
            logger.warning(
                "[OTA] Session for %s still running (%.2f%%), ignoring request for %s",
                running.version, running.percent_complete, version,
            )
            return None

        device = self._registry.newest_device()
        if device is None:
            logger.warning("[OTA] No device connected, cannot stream %s", version)
            return None

        session = OtaSession(version=version, device_id=device.id)
        session.task = asyncio.create_task(self._run(session))
        self._active = session
        return session

    def cancel(self) -> None:
        if self._active is not None:
            self._active.cancel()

    async def _run(self, session: OtaSession) -> None:
        try:
            try:
                firmware = await self._store.get(session.version)
            except StoreError as e:
                logger.error("[OTA] Failed to load firmware %s: %s", session.version, e)
                session.state = OtaState.FAILED
                return
            if firmware is None:
                logger.warning("[OTA] Firmware %s not found, nothing streamed", session.version)
                session.state = OtaState.FAILED
                return

            try:
                lines = split_lines(firmware.data_hex)
            except ValueError as e:
                logger.error("[OTA] Firmware %s payload is not valid hex: %s", session.version, e)
                session.state = OtaState.FAILED
                return

            session.total_lines = len(lines)
            session.state = OtaState.STREAMING
            logger.info("[OTA] Streaming %s to device %s: %d lines", session.version, session.device_id, len(lines))

            for index, line in enumerate(lines):
                owner = self._registry.get(session.device_id)
                if owner is None or not owner.is_open:
                    logger.warning(
                        "[OTA] Device %s went away at line %d/%d, session abandoned",
                        session.device_id, index, session.total_lines,
                    )
                    session.state = OtaState.ABANDONED
                    return

                session.current_index = index
                message = {
                    "kind": "ota-chunk",
                    "index": index,
                    "percent": chunk_percent(index, session.total_lines),
                    "payload": line,
                }
                await self._registry.broadcast(Role.DEVICE, message)
                await self._registry.broadcast(Role.DASHBOARD, message)
                await asyncio.sleep(self._chunk_delay)

            await self._registry.broadcast(Role.DEVICE, {"kind": "ota-done"})
            session.state = OtaState.COMPLETED
            logger.info("[OTA] Finished streaming %s (%d lines)", session.version, session.total_lines)
        except asyncio.CancelledError:
            session.state = OtaState.CANCELLED
            logger.info("[OTA] Session for %s cancelled at line %d", session.version, session.current_index)
            raise
        except Exception:
            session.state = OtaState.FAILED
            logger.exception("[OTA] Session for %s failed", session.version)
