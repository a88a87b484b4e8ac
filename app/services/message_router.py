# app/services/message_router.py
"""
Dispatch of inbound WebSocket messages by (role, kind).
"""
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from app.core.exceptions import StoreError
from .firmware_store import FirmwareStore
from .history_store import HistoryStore
from .ingest import IngestAdapter
from .ota import OtaStreamer
from .registry import Connection, ConnectionRegistry, Role, parse_role
from .state import StateCache

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Dict[str, Any]], Awaitable[None]]

HISTORY_GRANULARITIES = ("hourly", "daily")

# Message types from the first dashboard/firmware builds -> (kind, implied fields)
LEGACY_KINDS: Dict[str, Tuple[str, Dict[str, Any]]] = {
    "DataFromESP32": ("reading", {}),
    "firmware-versions": ("catalog-request", {}),
    "ota": ("ota-start", {}),
    "ota-upload": ("ota-stream", {}),
    "sync-request": ("snapshot-request", {}),
    "get-real-time-data-hourly": ("history-request", {"granularity": "hourly"}),
    "get-real-time-data-daily": ("history-request", {"granularity": "daily"}),
}


def parse_envelope(raw: Any) -> Optional[Dict[str, Any]]:
    """Decode a raw frame into a message dict, None when malformed."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, dict):
        return None

    message = dict(raw)
    kind = message.get("kind", message.get("type"))
    if kind is not None and not isinstance(kind, str):
        return None
    if kind in LEGACY_KINDS:
        kind, implied = LEGACY_KINDS[kind]
        for key, value in implied.items():
            message.setdefault(key, value)
    message["kind"] = kind
    return message


def role_hint(message: Dict[str, Any]) -> Any:
    return message.get("role", message.get("clientType"))


class MessageRouter:
    def __init__(
        self,
        registry: ConnectionRegistry,
        cache: StateCache,
        ingest: IngestAdapter,
        streamer: OtaStreamer,
        firmware_store: FirmwareStore,
        history_store: HistoryStore,
    ):
        self._registry = registry
        self._cache = cache
        self._ingest = ingest
        self._streamer = streamer
        self._firmware_store = firmware_store
        self._history_store = history_store

        self._handlers: Dict[Role, Dict[str, Handler]] = {
            Role.DASHBOARD: {
                "catalog-request": self._send_catalog,
                "ota-start": self._start_ota,
                "ota-stream": self._stream_ota,
                "snapshot-request": self._send_snapshot,
                "history-request": self._send_history,
            },
            Role.DEVICE: {
                "reading": self._submit_reading,
            },
        }

    async def handle(self, connection: Connection, raw: Any) -> None:
        """Process one inbound frame. Never raises."""
        message = parse_envelope(raw)
        if message is None:
            logger.warning("[WS] Dropping malformed message from %s: %.200r", connection.id, raw)
            return

        kind = message.get("kind")
        if kind == "register":
            role = parse_role(role_hint(message))
            if role is None:
                logger.warning("[WS] Register from %s with unknown role %r", connection.id, role_hint(message))
                return
            self._registry.register(connection.id, role, explicit=True)
            return

        if connection.role == Role.UNSET:
            role = parse_role(role_hint(message))
            if role is not None:
                self._registry.register(connection.id, role, explicit=False)
            else:
                logger.warning("[WS] Ignoring %r from unregistered connection %s", kind, connection.id)
            return

        handler = self._handlers[connection.role].get(kind)
        if handler is None:
            logger.warning("[WS] Unknown %s message type: %r", connection.role.value, kind)
            return

        try:
            await handler(connection, message)
        except Exception:
            logger.exception("[WS] Handler for %r from %s failed", kind, connection.id)

    async def _reply(self, connection: Connection, message: Dict[str, Any]) -> None:
        try:
            await connection.send_json(message)
        except Exception as e:
            logger.warning("[WS] Reply %s to %s failed: %s", message.get("kind"), connection.id, e)

    # Dashboard handlers

    async def _send_catalog(self, connection: Connection, message: Dict[str, Any]) -> None:
        try:
            versions = await self._firmware_store.list_all()
        except StoreError as e:
            logger.error("[FIRMWARE] Error fetching firmware versions: %s", e)
            await self._reply(connection, {
                "kind": "catalog",
                "success": False,
                "message": "Error fetching firmware versions",
            })
            return
        await self._reply(connection, {
            "kind": "catalog",
            "success": True,
            "versions": [item.to_wire() for item in versions],
        })

    async def _start_ota(self, connection: Connection, message: Dict[str, Any]) -> None:
        version = message.get("version")
        if not isinstance(version, str) or not version:
            logger.warning("[OTA] ota-start without version from %s", connection.id)
            return
        logger.info("[OTA] OTA start requested for %s", version)
        await self._streamer.announce(version)

    async def _stream_ota(self, connection: Connection, message: Dict[str, Any]) -> None:
        version = message.get("version")
        if not isinstance(version, str) or not version:
            logger.warning("[OTA] ota-stream without version from %s", connection.id)
            return
        logger.info("[OTA] OTA stream requested for %s", version)
        self._streamer.start(version)

    async def _send_snapshot(self, connection: Connection, message: Dict[str, Any]) -> None:
        await self._reply(connection, {"kind": "snapshot", "data": self._cache.snapshot()})

    async def _send_history(self, connection: Connection, message: Dict[str, Any]) -> None:
        granularity = message.get("granularity") or "hourly"
        if granularity not in HISTORY_GRANULARITIES:
            logger.warning("[WS] Unknown history granularity %r", granularity)
            return
        try:
            readings = await self._history_store.read_all()
        except StoreError as e:
            logger.error("[WS] Error reading history: %s", e)
            await self._reply(connection, {
                "kind": "history",
                "granularity": granularity,
                "success": False,
                "message": "Error reading history",
            })
            return
        await self._reply(connection, {
            "kind": "history",
            "granularity": granularity,
            "success": True,
            "rows": [reading.model_dump() for reading in readings],
        })

    # Device handlers

    async def _submit_reading(self, connection: Connection, message: Dict[str, Any]) -> None:
        await self._ingest.submit(message)
