from __future__ import annotations
import re
from typing import List, Optional

from .models import LogEntry

"""Entry formatting.

A message such as ``"13:13 notebook - 13:46 test"`` carries several
retroactive timeline entries; each becomes its own line with its own time.
Anything else is a single entry stamped with the invocation time.
"""

_TIME = r"(?:[01]?\d|2[0-3]):[0-5]\d"
# " - " only counts as a separator when the next segment opens with a time
_SEPARATOR = re.compile(rf"\s+-\s+(?={_TIME}\s)")
_SEGMENT = re.compile(rf"^({_TIME})\s+(\S.*)$", re.DOTALL)


def _normalize_time(value: str) -> str:
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def split_segments(text: str) -> Optional[List[LogEntry]]:
    """Return one entry per embedded ``HH:MM content`` segment, or None.

    None means the text is not a multi-segment batch: fewer than two segments,
    or some part (including a leading prefix) does not open with a time.
    """
    parts = _SEPARATOR.split(text)
    if len(parts) < 2:
        return None
    entries = []
    for part in parts:
        m = _SEGMENT.match(part.strip())
        if not m:
            return None
        entries.append(LogEntry(_normalize_time(m.group(1)), m.group(2).strip()))
    return entries


def render_entries(text: str, clock_time: str, split: bool = True) -> List[LogEntry]:
    text = text.strip()
    if split:
        segments = split_segments(text)
        if segments:
            return segments
    return [LogEntry(clock_time, text)]
