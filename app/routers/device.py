# app/routers/device.py
"""
One-shot HTTP endpoints for the sensor device and device control calls.

Used by firmware builds that cannot hold a WebSocket open, and by the
dashboard to reach the device's own HTTP server through the relay.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from app.core.exceptions import RelayError
from app.dependencies import get_hub, http_error
from app.schemas import AddressRegister, DashboardConfig
from app.services.hub import RelayHub

router = APIRouter(prefix="/api/esp32", tags=["device"])

logger = logging.getLogger(__name__)


@router.post("/data")
async def submit_reading(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    hub: RelayHub = Depends(get_hub),
):
    """
    Submit one reading.

    Same fields as the WebSocket `reading` message. An `ip` field in the body
    wins over the caller's transport address.
    """
    address = request.client.host if request.client else None
    reading = await hub.ingest.submit(payload, address=address)
    return {"success": True, "message": "Data received", "data": reading.model_dump()}


@router.post("/register")
async def register_address(body: AddressRegister, hub: RelayHub = Depends(get_hub)):
    """Store the device's IP so control calls know where to go"""
    address = body.resolved()
    if not address:
        raise HTTPException(400, "ip is required")
    hub.registry.record_reported_address(address)
    return {"success": True, "message": "ESP32 address registered", "esp32IP": address}


@router.get("/config")
async def get_device_config(hub: RelayHub = Depends(get_hub)):
    """Return the device address the dashboard can open directly"""
    try:
        address = hub.registry.find_device_address()
    except RelayError as e:
        raise http_error(e)
    return {"success": True, "esp32IP": address}


@router.post("/config")
async def update_device_config(body: DashboardConfig, hub: RelayHub = Depends(get_hub)):
    """Tell the device which dashboard host/port to report to"""
    try:
        result = await hub.device_client.configure_dashboard(body.host, body.port)
    except RelayError as e:
        raise http_error(e)
    return {"success": True, "message": result.get("message") or "Configuration updated", "device": result}


@router.post("/start-sampling")
async def start_sampling(hub: RelayHub = Depends(get_hub)):
    try:
        result = await hub.device_client.start_sampling()
    except RelayError as e:
        raise http_error(e)
    return {"success": True, "message": result.get("message") or "Sampling started", "device": result}


@router.post("/stop-sampling")
async def stop_sampling(hub: RelayHub = Depends(get_hub)):
    try:
        result = await hub.device_client.stop_sampling()
    except RelayError as e:
        raise http_error(e)
    return {"success": True, "message": result.get("message") or "Stop requested", "device": result}


@router.get("/status")
async def device_status(hub: RelayHub = Depends(get_hub)):
    try:
        result = await hub.device_client.status()
    except RelayError as e:
        raise http_error(e)
    return {"success": True, "device": result}


@router.get("/snapshot")
async def current_snapshot(hub: RelayHub = Depends(get_hub)):
    """Latest cached reading"""
    return {"success": True, "data": hub.cache.snapshot()}
