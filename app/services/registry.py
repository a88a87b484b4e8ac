# app/services/registry.py
"""
In-memory registry of live WebSocket connections and their roles.

Connections are keyed by a generated id, never by the socket object, so the
registry can be exercised without a network stack.
"""
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from starlette.websockets import WebSocketState

from app.core.exceptions import DeviceUnavailableError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    UNSET = "unset"
    DEVICE = "device"
    DASHBOARD = "dashboard"


# Role names used by older firmware and dashboard builds
ROLE_ALIASES = {
    "device": Role.DEVICE,
    "esp32": Role.DEVICE,
    "dashboard": Role.DASHBOARD,
    "frontend": Role.DASHBOARD,
}


def parse_role(value: Any) -> Optional[Role]:
    if not isinstance(value, str):
        return None
    return ROLE_ALIASES.get(value.strip().lower())


@dataclass(eq=False)
class Connection:
    """A live bidirectional channel plus what we know about its peer."""
    channel: Any
    address: Optional[str] = None
    role: Role = Role.UNSET
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def is_open(self) -> bool:
        client_state = getattr(self.channel, "client_state", WebSocketState.CONNECTED)
        application_state = getattr(self.channel, "application_state", WebSocketState.CONNECTED)
        return client_state == WebSocketState.CONNECTED and application_state == WebSocketState.CONNECTED

    async def send_json(self, message: Dict[str, Any]) -> None:
        await self.channel.send_json(message)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}
        # Address from a one-shot call or an explicit payload field
        self._reported_address: Optional[str] = None
        # Device connection ids in registration order, newest last
        self._device_order: List[str] = []

    def add(self, channel: Any, address: Optional[str] = None) -> Connection:
        connection = Connection(channel=channel, address=address)
        self._connections[connection.id] = connection
        logger.info("[WS] Connection %s opened from %s (total: %d)", connection.id, address, len(self._connections))
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def register(self, connection_id: str, role: Role, explicit: bool = True) -> bool:
        """
        Assign a role to a connection.

        Implicit registration (from a role hint) only applies while the role is
        still unset. Explicit registration always applies, last call wins.
        Returns True when the stored role changed.
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.warning("[WS] Cannot register unknown connection %s", connection_id)
            return False
        if role == Role.UNSET:
            return False
        if not explicit and connection.role != Role.UNSET:
            return False
        if connection.role == role:
            return False

        connection.role = role
        if connection_id in self._device_order:
            self._device_order.remove(connection_id)
        if role == Role.DEVICE:
            self._device_order.append(connection_id)
        logger.info(
            "[WS] Connection %s registered as %s (%s)",
            connection_id, role.value, "explicit" if explicit else "auto",
        )
        return True

    def unregister(self, connection_id: str) -> None:
        connection = self._connections.pop(connection_id, None)
        if connection_id in self._device_order:
            self._device_order.remove(connection_id)
        if connection is not None:
            logger.info(
                "[WS] Connection %s (%s) removed (remaining: %d)",
                connection_id, connection.role.value, len(self._connections),
            )

    def find_all_by_role(self, role: Role) -> List[Connection]:
        return [c for c in list(self._connections.values()) if c.role == role and c.is_open]

    async def broadcast(self, role: Role, message: Dict[str, Any]) -> int:
        """
        Send a message to every open connection with the given role.

        Best-effort: a failing connection is logged and skipped. Returns the
        number of successful deliveries.
        """
        delivered = 0
        for connection in self.find_all_by_role(role):
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "[WS] Send of %s to %s %s failed: %s",
                    message.get("kind"), role.value, connection.id, e,
                )
        return delivered

    def record_reported_address(self, address: str) -> None:
        if address != self._reported_address:
            logger.info("[WS] Device address reported: %s", address)
        self._reported_address = address

    def newest_device(self) -> Optional[Connection]:
        """Most recently registered device connection that is still open."""
        for connection_id in reversed(self._device_order):
            connection = self._connections.get(connection_id)
            if connection and connection.is_open:
                return connection
        return None

    def find_device_address(self) -> str:
        if self._reported_address:
            return self._reported_address
        for connection_id in reversed(self._device_order):
            connection = self._connections.get(connection_id)
            if connection and connection.is_open and connection.address:
                return connection.address
        raise DeviceUnavailableError("ESP32 not connected. No device address is known yet.")

    def counts(self) -> Dict[str, int]:
        result = {role.value: 0 for role in Role}
        for connection in self._connections.values():
            result[connection.role.value] += 1
        return result

    def __len__(self) -> int:
        return len(self._connections)
