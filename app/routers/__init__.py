# app/routers/__init__.py
"""
API route handlers organized by domain.
"""
from .websocket import router as websocket_router
from .firmware import router as firmware_router
from .device import router as device_router

__all__ = [
    "websocket_router",
    "firmware_router",
    "device_router",
]
