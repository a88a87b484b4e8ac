# app/services/__init__.py
"""
Business logic services.
"""
from .registry import Connection, ConnectionRegistry, Role
from .state import StateCache
from .ingest import IngestAdapter
from .ota import OtaSession, OtaState, OtaStreamer
from .message_router import MessageRouter
from .hub import RelayHub

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "Role",
    "StateCache",
    "IngestAdapter",
    "OtaSession",
    "OtaState",
    "OtaStreamer",
    "MessageRouter",
    "RelayHub",
]
