from __future__ import annotations
import asyncio
import enum
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Tuple

from .errors import SyncError
from .logutil import redact
from .models import CommitIdentity, TimeParts, WorkingCopy
from .vcs import VersionControl

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SyncState(str, enum.Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncPolicy:
    max_attempts: int = 3
    retry_delay: float = 1.0
    jitter: Tuple[float, float] = (1.0, 6.0)


@dataclass
class SyncReport:
    state: SyncState = SyncState.ATTEMPTING
    attempts: int = 0
    pulls: int = 0
    last_error: Optional[BaseException] = None


def commit_message(parts: TimeParts) -> str:
    return f"LINE {parts.date} {parts.time}"


class SyncCoordinator:
    """Commits one changed file and pushes it against a linear-history remote.

    Push state machine::

        Attempting(n) --push ok--> Succeeded
        Attempting(n) --push fails, n == max--> Failed (raise SyncError)
        Attempting(n) --push fails, n < max--> sleep(retry_delay * n),
                                              best-effort pull,
                                              Attempting(n + 1)
    """

    def __init__(
        self,
        vcs: VersionControl,
        identity: CommitIdentity,
        policy: SyncPolicy = SyncPolicy(),
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        if policy.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.vcs = vcs
        self.identity = identity
        self.policy = policy
        self._sleep = sleep
        self._rng = rng or random.Random()

    def jitter_delay(self) -> float:
        lo, hi = self.policy.jitter
        return self._rng.uniform(lo, hi)

    async def stagger(self) -> float:
        """Sleep a random slice of the jitter window before touching git.

        Concurrent deliveries then reach the remote at different moments.
        """
        delay = self.jitter_delay()
        logger.debug("staggering git work by %.2fs", delay)
        await self._sleep(delay)
        return delay

    async def sync(self, working_copy: WorkingCopy, path: Path, message: str) -> SyncReport:
        handle = working_copy.handle
        await asyncio.to_thread(self.vcs.add, handle, Path(path))
        await asyncio.to_thread(self.vcs.commit, handle, message, self.identity)
        return await self.push_with_retry(working_copy)

    async def push_with_retry(self, working_copy: WorkingCopy) -> SyncReport:
        handle = working_copy.handle
        report = SyncReport()
        for attempt in range(1, self.policy.max_attempts + 1):
            report.attempts = attempt
            try:
                await asyncio.to_thread(self.vcs.push, handle)
            except Exception as e:
                report.last_error = e
                logger.warning(
                    "push attempt %d/%d failed: %s",
                    attempt,
                    self.policy.max_attempts,
                    redact(str(e)),
                )
                if attempt == self.policy.max_attempts:
                    report.state = SyncState.FAILED
                    raise SyncError(
                        f"push failed after {attempt} attempts", attempts=attempt, last_error=e
                    ) from e
                await self._sleep(self.policy.retry_delay * attempt)
                report.pulls += 1
                try:
                    await asyncio.to_thread(self.vcs.pull, handle)
                except Exception as pull_error:
                    logger.info("pull before retry failed, retrying push anyway: %s", redact(str(pull_error)))
                continue
            report.state = SyncState.SUCCEEDED
            logger.info("pushed on attempt %d", attempt)
            return report
        raise AssertionError("unreachable")  # pragma: no cover
