from __future__ import annotations
import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InputError
from .models import TimeParts


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InputError(f"unknown time zone: {tz_name!r}") from e


def format_timestamp(epoch_ms: int, tz_name: str) -> TimeParts:
    """Render an epoch-milliseconds event timestamp in a fixed zone.

    The host's local zone never leaks into the result.
    """
    if isinstance(epoch_ms, bool) or not isinstance(epoch_ms, int) or epoch_ms < 0:
        raise InputError(f"invalid epoch timestamp: {epoch_ms!r}")
    try:
        ts = datetime.datetime.fromtimestamp(epoch_ms / 1000, tz=_zone(tz_name))
    except (OverflowError, OSError, ValueError) as e:
        raise InputError(f"invalid epoch timestamp: {epoch_ms!r}") from e
    return TimeParts(
        year=ts.strftime("%Y"),
        date=ts.strftime("%Y-%m-%d"),
        time=ts.strftime("%H:%M"),
    )
