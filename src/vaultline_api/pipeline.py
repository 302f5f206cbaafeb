from __future__ import annotations
import asyncio
import logging
from typing import Optional

from .entries import render_entries
from .merge import merge, target_path
from .models import (
    CommitIdentity,
    DedupPolicy,
    InboundMessage,
    Outcome,
    TargetKind,
)
from .settings import Settings
from .sync import SyncCoordinator, SyncPolicy, commit_message
from .timefmt import format_timestamp
from .vault import VaultMaterializer
from .vcs import GitPythonVCS, VersionControl

"""Append-and-sync pipeline: one inbound message, one merge, one push.

Guardrails:
- No git interaction before the jitter sleep.
- The working copy never outlives the invocation.
- Duplicates are a successful no-op, not an error.
"""

logger = logging.getLogger(__name__)


class AppendPipeline:
    def __init__(
        self,
        materializer: VaultMaterializer,
        coordinator: SyncCoordinator,
        *,
        timezone: str = "Asia/Tokyo",
        kind: TargetKind = TargetKind.TIMELINE,
        dedup: DedupPolicy = DedupPolicy.STRICT,
        diary_dir: str = "01_diary",
        topic_file: str = "02_log/running-log.md",
        header: str = "## Timeline\n",
        split_segments: bool = True,
    ):
        self.materializer = materializer
        self.coordinator = coordinator
        self.timezone = timezone
        self.kind = kind
        self.dedup = dedup
        self.diary_dir = diary_dir
        self.topic_file = topic_file
        self.header = header
        self.split_segments = split_segments

    async def run(self, message: InboundMessage, stagger: bool = True) -> Outcome:
        parts = format_timestamp(message.timestamp_ms, self.timezone)
        entries = render_entries(message.text, parts.time, split=self.split_segments)

        if stagger:
            await self.coordinator.stagger()

        working_copy = await asyncio.to_thread(self.materializer.materialize)
        try:
            path = target_path(
                working_copy.root, self.kind, parts, self.diary_dir, self.topic_file
            )
            result = await asyncio.to_thread(
                merge,
                path,
                entries,
                kind=self.kind,
                date=parts.date,
                header=self.header,
                policy=self.dedup,
                message_id=message.message_id,
            )
            if not result.applied:
                return Outcome.DUPLICATE
            await self.coordinator.sync(working_copy, path, commit_message(parts))
            return Outcome.PROCESSED
        finally:
            self.materializer.discard(working_copy)


def build_pipeline(
    settings: Settings, vcs: Optional[VersionControl] = None
) -> AppendPipeline:
    """Wire the production pipeline from settings."""
    vcs = vcs or GitPythonVCS()
    identity = CommitIdentity(settings.bot_name, settings.bot_email)
    kind = TargetKind(settings.target_kind)
    materializer = VaultMaterializer(
        vcs,
        settings.git_repo,
        settings.git_token,
        identity,
        base_dir=settings.workdir_base,
    )
    coordinator = SyncCoordinator(
        vcs,
        identity,
        SyncPolicy(
            max_attempts=settings.max_push_attempts,
            retry_delay=settings.retry_delay_seconds,
            jitter=(settings.jitter_min_seconds, settings.jitter_max_seconds),
        ),
    )
    return AppendPipeline(
        materializer,
        coordinator,
        timezone=settings.timezone,
        kind=kind,
        dedup=DedupPolicy(settings.dedup_policy),
        diary_dir=settings.diary_dir,
        topic_file=settings.topic_file,
        header=settings.timeline_header if kind == TargetKind.TIMELINE else settings.topic_header,
        split_segments=settings.split_segments,
    )
