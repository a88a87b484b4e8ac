# app/routers/firmware.py
"""
Firmware management endpoints for OTA updates.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fastapi.responses import Response

from app.core import config
from app.core.exceptions import FirmwareNotFoundError, RelayError
from app.dependencies import get_hub, http_error
from app.schemas import FirmwareSummary
from app.services.hub import RelayHub

router = APIRouter(tags=["firmware"])

logger = logging.getLogger(__name__)


def _is_firmware_file(file: UploadFile) -> bool:
    filename = file.filename or ""
    return filename.endswith(".bin") or file.content_type == "application/octet-stream"


@router.post("/api/firmware/upload")
async def upload_firmware(
    firmwareFile: Optional[UploadFile] = File(None),
    versionName: Optional[str] = Form(None),
    description: str = Form(""),
    hub: RelayHub = Depends(get_hub),
):
    """
    Upload a new firmware binary.

    Args:
        firmwareFile: The firmware binary (.bin)
        versionName: Version label, must not exist yet
        description: Free-form notes shown in the dashboard
    """
    if firmwareFile is None:
        raise HTTPException(400, "No firmware file uploaded")
    if not versionName or not versionName.strip():
        raise HTTPException(400, "Version name is required")
    if not _is_firmware_file(firmwareFile):
        raise HTTPException(400, "Firmware file must be a .bin file")

    content = await firmwareFile.read()
    if len(content) > config.FIRMWARE_MAX_BYTES:
        raise HTTPException(413, f"Firmware file exceeds {config.FIRMWARE_MAX_BYTES} bytes")

    version = versionName.strip()
    try:
        firmware = await hub.firmware_store.put(
            version,
            content,
            file_name=firmwareFile.filename,
            description=description,
        )
    except RelayError as e:
        raise http_error(e)

    logger.info("[FIRMWARE] Firmware %s uploaded successfully", version)
    return {
        "success": True,
        "message": "Firmware uploaded successfully",
        "version": firmware.version,
        "fileSize": firmware.file_size,
        "checksum": firmware.checksum,
    }


@router.get("/api/firmware/versions")
async def list_firmware(hub: RelayHub = Depends(get_hub)):
    """List all firmware versions, newest first"""
    try:
        versions = await hub.firmware_store.list_all()
    except RelayError as e:
        raise http_error(e)
    return {"success": True, "versions": [item.to_wire() for item in versions]}


@router.get("/api/firmware/download/{version}")
async def download_firmware(version: str, hub: RelayHub = Depends(get_hub)):
    """
    Download a firmware binary.

    Called by the device during OTA updates over HTTP.
    """
    try:
        firmware = await hub.firmware_store.get(version)
    except RelayError as e:
        raise http_error(e)
    if firmware is None:
        raise http_error(FirmwareNotFoundError(f"Firmware version not found: {version}"))

    content = bytes.fromhex(firmware.data_hex)
    logger.info("[FIRMWARE] Firmware %s downloaded by device", version)
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f'attachment; filename="{firmware.file_name or version + ".bin"}"',
            "X-Firmware-Version": firmware.version,
            "X-Firmware-Checksum": firmware.checksum or "",
            "X-Firmware-Size": str(firmware.file_size or 0),
        },
    )


@router.get("/api/firmware/info/{version}")
async def firmware_info(version: str, hub: RelayHub = Depends(get_hub)):
    """Get firmware metadata without the payload"""
    try:
        firmware = await hub.firmware_store.get(version)
    except RelayError as e:
        raise http_error(e)
    if firmware is None:
        raise http_error(FirmwareNotFoundError(f"Firmware version not found: {version}"))

    return {"success": True, "firmware": FirmwareSummary.model_validate(firmware).to_wire()}


@router.delete("/api/firmware/{version}")
async def delete_firmware(version: str, hub: RelayHub = Depends(get_hub)):
    """Delete a firmware version"""
    try:
        deleted = await hub.firmware_store.delete(version)
    except RelayError as e:
        raise http_error(e)
    if deleted == 0:
        raise http_error(FirmwareNotFoundError(f"Firmware version not found: {version}"))

    return {"success": True, "message": "Firmware deleted", "version": version}
