from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from app.core.database import build_engine, build_session_maker, create_db_and_tables
from app.main import create_app
from app.services.hub import RelayHub


class FakeSocket:
    """Stand-in for a WebSocket: records sent messages, can fail or close."""

    def __init__(self, fail: bool = False, close_after: Optional[int] = None) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail
        self.close_after = close_after
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_json(self, message: Dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket is closing")
        self.sent.append(message)
        if self.close_after is not None and len(self.sent) >= self.close_after:
            self.close()

    def close(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED

    def kinds(self) -> List[str]:
        return [message.get("kind") for message in self.sent]


@pytest.fixture
def session_maker(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}")
    asyncio.run(create_db_and_tables(engine))
    yield build_session_maker(engine)
    asyncio.run(engine.dispose())


@pytest.fixture
def hub(session_maker) -> RelayHub:
    return RelayHub(session_maker, chunk_delay=0)


@pytest.fixture
def make_client(session_maker):
    """Build a TestClient around a fresh hub, optionally with a fake device HTTP server."""
    contexts = []

    def _make(transport: Optional[httpx.AsyncBaseTransport] = None) -> TestClient:
        hub = RelayHub(session_maker, chunk_delay=0, device_transport=transport)
        context = TestClient(create_app(hub))
        contexts.append(context)
        return context.__enter__()

    yield _make
    for context in contexts:
        context.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
