from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .errors import MergeError
from .models import (
    DedupPolicy,
    FileState,
    LogEntry,
    MergeResult,
    TargetKind,
    TimeParts,
)

logger = logging.getLogger(__name__)

_MARKER_RE = re.compile(r"\s*<!-- line:[^>]*-->")
_DATE_LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def marker(message_id: str) -> str:
    """Hidden markdown comment binding a written line to a LINE message id."""
    return f"<!-- line:{message_id} -->"


def target_path(
    root: Path,
    kind: TargetKind,
    parts: TimeParts,
    diary_dir: str = "01_diary",
    topic_file: str = "02_log/running-log.md",
) -> Path:
    if kind == TargetKind.TIMELINE:
        return Path(root) / diary_dir / parts.year / f"{parts.date}.md"
    return Path(root) / topic_file


def render_lines(entries: Iterable[LogEntry], message_id: Optional[str] = None) -> List[str]:
    lines = []
    for entry in entries:
        line = entry.render()
        if message_id:
            line = f"{line[:-1]} {marker(message_id)}\n"
        lines.append(line)
    return lines


def _date_block(content: str, date: str) -> List[str]:
    """Lines under the ``date`` header of a topic file, up to the next date header.

    Blank lines do not end the block; a multi-line entry may contain them.
    """
    block: List[str] = []
    inside = False
    for line in content.splitlines():
        if inside:
            if _DATE_LINE_RE.match(line.strip()):
                break
            block.append(line)
        elif line.strip() == date:
            inside = True
    return block


def _as_block(entry: LogEntry) -> str:
    lines = entry.render().rstrip("\n").split("\n")
    return "\n" + "\n".join(line.strip() for line in lines) + "\n"


def is_duplicate(
    content: str,
    entries: List[LogEntry],
    policy: DedupPolicy = DedupPolicy.STRICT,
    message_id: Optional[str] = None,
    scope: Optional[List[str]] = None,
) -> bool:
    """Whether any entry of the batch is already recorded.

    Content matching compares whole lines with any id marker stripped, so
    ``- 10:00 Hello`` does not shadow ``- 10:00 Hello World``. A multi-line
    entry must appear as the same run of consecutive lines. Marker matching
    needs a message id; the marker policy falls back to content matching when
    the event carried none.
    """
    lines = scope if scope is not None else content.splitlines()
    existing = "\n" + "\n".join(_MARKER_RE.sub("", line).strip() for line in lines) + "\n"
    content_hit = any(_as_block(e) in existing for e in entries)
    marker_hit = bool(message_id) and marker(message_id) in content

    if policy == DedupPolicy.CONTENT:
        return content_hit
    if policy == DedupPolicy.MARKER:
        return marker_hit if message_id else content_hit
    return content_hit or marker_hit


def probe(
    path: Path,
    entries: List[LogEntry],
    *,
    kind: TargetKind = TargetKind.TIMELINE,
    date: Optional[str] = None,
    policy: DedupPolicy = DedupPolicy.STRICT,
    message_id: Optional[str] = None,
) -> Tuple[FileState, Optional[str]]:
    """Classify the target file and return its current content (None if absent)."""
    path = Path(path)
    if not path.exists():
        return FileState.ABSENT, None
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MergeError(f"cannot read {path}: {e}") from e
    scope = _date_block(content, date) if kind == TargetKind.TOPIC and date else None
    if is_duplicate(content, entries, policy, message_id, scope=scope):
        return FileState.DUPLICATE, content
    return FileState.MERGEABLE, content


def insert_timeline(content: str, lines: List[str], header: str = "") -> str:
    if not content.strip():
        return header + "".join(lines)
    if not content.endswith("\n"):
        content += "\n"
    return content + "".join(lines)


def insert_topic(content: str, lines: List[str], date: str, header: str = "") -> str:
    """Insert under an existing ``date`` line, else prepend a new date block.

    Newest block goes first; a leading section header stays on top.
    """
    existing = content.splitlines(keepends=True)
    for i, line in enumerate(existing):
        if line.strip() == date:
            head = existing[: i + 1]
            if not head[-1].endswith("\n"):
                head[-1] += "\n"
            return "".join(head + lines + existing[i + 1 :])
    block = f"{date}\n" + "".join(lines) + "\n"
    if header and content.startswith(header):
        return header + block + content[len(header) :]
    return block + content


def new_file_content(
    kind: TargetKind, lines: List[str], date: str, header: str
) -> str:
    if kind == TargetKind.TOPIC:
        return header + f"{date}\n" + "".join(lines) + "\n"
    return header + "".join(lines)


def merge(
    path: Path,
    entries: List[LogEntry],
    *,
    kind: TargetKind = TargetKind.TIMELINE,
    date: str,
    header: str = "## Timeline\n",
    policy: DedupPolicy = DedupPolicy.STRICT,
    message_id: Optional[str] = None,
) -> MergeResult:
    """Merge one invocation's batch of entries into ``path``.

    The batch is atomic: a duplicate hit on any entry skips the whole write,
    since all entries of a batch come from one source message.
    """
    path = Path(path)
    if not entries:
        raise MergeError("no entries to merge")
    state, content = probe(
        path, entries, kind=kind, date=date, policy=policy, message_id=message_id
    )
    if state == FileState.DUPLICATE:
        logger.info("duplicate entry detected in %s; skipping write", path.name)
        return MergeResult(applied=False, state=state, path=path)

    lines = render_lines(entries, message_id)
    if state == FileState.ABSENT:
        updated = new_file_content(kind, lines, date, header)
    elif kind == TargetKind.TOPIC:
        updated = insert_topic(content or "", lines, date, header)
    else:
        updated = insert_timeline(content or "", lines, header)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(updated, encoding="utf-8")
    except OSError as e:
        raise MergeError(f"cannot write {path}: {e}") from e
    logger.info("merged %d entr%s into %s", len(lines), "y" if len(lines) == 1 else "ies", path.name)
    return MergeResult(applied=True, state=state, path=path)
