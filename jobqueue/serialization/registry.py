from collections.abc import Callable
from datetime import date, datetime, time, timezone
from decimal import Decimal
from pathlib import PurePath
from typing import Any
from uuid import UUID


def datetime_to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


# Consulted in order with isinstance: datetime must precede date.
_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    datetime: datetime_to_iso,
    date: lambda value: value.isoformat(),
    time: lambda value: value.isoformat(),
    UUID: str,
    Decimal: str,
    PurePath: str,
    bytes: lambda value: value.hex(),
    bytearray: lambda value: value.hex(),
}


def get_converter(value: Any) -> Callable[[Any], Any] | None:
    for kind, converter in _CONVERTERS.items():
        if isinstance(value, kind):
            return converter
    return None
