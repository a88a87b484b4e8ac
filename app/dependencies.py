# app/dependencies.py
"""
Common dependency functions for FastAPI routes.
"""
from fastapi import HTTPException, Request

from app.core.exceptions import (
    DeviceTimeoutError,
    DeviceUnavailableError,
    DeviceUnreachableError,
    FirmwareConflictError,
    FirmwareNotFoundError,
    RelayError,
    StoreError,
)
from app.services.hub import RelayHub

# Relay error -> HTTP status for request/response endpoints
ERROR_STATUS = {
    DeviceUnavailableError: 404,
    FirmwareNotFoundError: 404,
    FirmwareConflictError: 409,
    DeviceUnreachableError: 503,
    DeviceTimeoutError: 504,
    StoreError: 500,
}


def get_hub(request: Request) -> RelayHub:
    """Return the hub created at startup."""
    return request.app.state.hub


def http_error(error: RelayError) -> HTTPException:
    """Translate a relay error into an HTTPException with a matching status."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
