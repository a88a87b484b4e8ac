"""Domain/service exceptions."""


class RelayError(Exception):
    """Base class for errors raised by the relay services."""


class DeviceUnavailableError(RelayError):
    """Raised when no device connection or address is known."""


class DeviceTimeoutError(RelayError):
    """Raised when the device did not answer a control call in time."""


class DeviceUnreachableError(RelayError):
    """Raised when the device refused or dropped a control call."""


class FirmwareNotFoundError(RelayError):
    """Raised when a firmware version does not exist in the store."""


class FirmwareConflictError(RelayError):
    """Raised when uploading a firmware version that already exists."""


class StoreError(RelayError):
    """Raised when the firmware or history store fails."""
