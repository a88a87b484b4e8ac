# app/services/state.py
"""
Live state cache for the most recent sensor reading.

Inbound payloads come from several firmware generations that name the same
quantity differently. Each canonical field has an ordered list of accessor
keys; the first key that yields a usable value wins, otherwise the previous
cached value is kept.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from dateutil import parser as date_parser

from app.schemas import Reading

logger = logging.getLogger(__name__)

# A plain key, or (key, index) into a list-valued field
Accessor = Union[str, Tuple[str, int]]


def _gas_aliases(channel: int) -> Tuple[Accessor, ...]:
    return (
        f"gas{channel}",
        f"Gas{channel}",
        f"EtOH{channel}",
        f"ADC{channel}",
        ("ADC_Value", channel - 1),
        ("gas", channel - 1),
    )


TIME_ALIASES: Tuple[Accessor, ...] = ("time", "Time", "timestamp")

NUMERIC_ALIASES: Dict[str, Tuple[Accessor, ...]] = {
    "temperature": ("temperature", "Temperature"),
    "humidity": ("humidity", "Humidity"),
    "pressure": ("pressure", "Pressure"),
    "gas1": _gas_aliases(1),
    "gas2": _gas_aliases(2),
    "gas3": _gas_aliases(3),
    "gas4": _gas_aliases(4),
}

# Payload fields that carry the device's own IP address
ADDRESS_ALIASES: Tuple[Accessor, ...] = ("ip", "address", "esp32IP")


def _lookup(payload: Dict[str, Any], accessor: Accessor) -> Any:
    if isinstance(accessor, tuple):
        key, index = accessor
        values = payload.get(key)
        if isinstance(values, (list, tuple)) and 0 <= index < len(values):
            return values[index]
        return None
    return payload.get(accessor)


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def resolve_number(payload: Dict[str, Any], accessors: Sequence[Accessor]) -> Optional[float]:
    """Return the first accessor value that parses as a number."""
    for accessor in accessors:
        raw = _lookup(payload, accessor)
        if raw is None:
            continue
        number = _to_float(raw)
        if number is None:
            logger.warning("[INGEST] Ignoring non-numeric value %r for %r", raw, accessor)
            continue
        return number
    return None


def resolve_text(payload: Dict[str, Any], accessors: Sequence[Accessor]) -> Optional[str]:
    for accessor in accessors:
        raw = _lookup(payload, accessor)
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
    return None


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def resolve_time(payload: Dict[str, Any]) -> str:
    raw = resolve_text(payload, TIME_ALIASES)
    if raw is None:
        return utc_timestamp()
    try:
        date_parser.isoparse(raw)
    except (ValueError, OverflowError):
        logger.warning("[INGEST] Unparseable reading time %r, using server time", raw)
        return utc_timestamp()
    return raw


class StateCache:
    """Holds exactly one current Reading; updates merge into it."""

    def __init__(self, initial: Optional[Reading] = None) -> None:
        self._current = initial or Reading()

    @property
    def current(self) -> Reading:
        return self._current

    def apply(self, payload: Dict[str, Any]) -> Reading:
        """Merge an inbound payload into the cache and return the new reading."""
        updates: Dict[str, Any] = {"time": resolve_time(payload)}
        for field_name, accessors in NUMERIC_ALIASES.items():
            number = resolve_number(payload, accessors)
            if number is not None:
                updates[field_name] = number
        self._current = self._current.model_copy(update=updates)
        return self._current

    def snapshot(self) -> Dict[str, Any]:
        return self._current.model_dump()
