import asyncio
import random

import pytest

from vaultline_api.errors import SyncError
from vaultline_api.models import CommitIdentity, TimeParts, WorkingCopy
from vaultline_api.sync import (
    SyncCoordinator,
    SyncPolicy,
    SyncState,
    commit_message,
)
from tests._fakes import FakeHandle, FakeVCS, SleepRecorder

IDENTITY = CommitIdentity("LINE Bot", "bot@example.com")


def _coordinator(vcs, sleep=None, **policy):
    return SyncCoordinator(vcs, IDENTITY, SyncPolicy(**policy), sleep=sleep or SleepRecorder())


def _wc(tmp_path):
    return WorkingCopy(root=tmp_path, handle=FakeHandle(tmp_path))


def test_commit_message():
    assert commit_message(TimeParts("2025", "2025-06-25", "14:30")) == "LINE 2025-06-25 14:30"


def test_first_push_succeeds(tmp_path):
    vcs = FakeVCS()
    report = asyncio.run(_coordinator(vcs).sync(_wc(tmp_path), tmp_path / "a.md", "LINE x"))
    assert report.state == SyncState.SUCCEEDED
    assert report.attempts == 1 and report.pulls == 0
    assert [c[0] for c in vcs.calls] == ["add", "commit", "push"]
    assert ("commit", "LINE x", "LINE Bot") in vcs.calls


def test_recovers_on_third_attempt_with_two_pulls(tmp_path):
    vcs = FakeVCS(push_results=[RuntimeError("rejected"), RuntimeError("rejected"), None])
    sleep = SleepRecorder()
    report = asyncio.run(
        _coordinator(vcs, sleep, retry_delay=1.0).sync(_wc(tmp_path), tmp_path / "a.md", "m")
    )
    assert report.state == SyncState.SUCCEEDED
    assert report.attempts == 3
    assert vcs.count("pull") == 2 and report.pulls == 2
    assert [c[0] for c in vcs.calls] == ["add", "commit", "push", "pull", "push", "pull", "push"]
    # backoff grows with the attempt number
    assert sleep.delays == [1.0, 2.0]


def test_exhausted_attempts_propagate_last_error(tmp_path):
    errors = [RuntimeError("first"), RuntimeError("second"), RuntimeError("third")]
    vcs = FakeVCS(push_results=list(errors))
    with pytest.raises(SyncError) as exc:
        asyncio.run(_coordinator(vcs).sync(_wc(tmp_path), tmp_path / "a.md", "m"))
    assert exc.value.attempts == 3
    assert exc.value.last_error is errors[-1]
    assert exc.value.__cause__ is errors[-1]
    assert vcs.count("push") == 3
    # no pull after the final failure
    assert vcs.count("pull") == 2


def test_pull_failure_is_ignored(tmp_path):
    vcs = FakeVCS(push_results=[RuntimeError("rejected")], pull_error=RuntimeError("pull broke"))
    report = asyncio.run(_coordinator(vcs).sync(_wc(tmp_path), tmp_path / "a.md", "m"))
    assert report.state == SyncState.SUCCEEDED
    assert report.attempts == 2


def test_single_attempt_policy_fails_fast(tmp_path):
    vcs = FakeVCS(push_results=[RuntimeError("rejected")])
    with pytest.raises(SyncError):
        asyncio.run(_coordinator(vcs, max_attempts=1).push_with_retry(_wc(tmp_path)))
    assert vcs.count("pull") == 0


def test_invalid_policy_rejected():
    with pytest.raises(ValueError):
        _coordinator(FakeVCS(), max_attempts=0)


def test_stagger_draws_from_jitter_window():
    sleep = SleepRecorder()
    coordinator = SyncCoordinator(
        FakeVCS(), IDENTITY, SyncPolicy(jitter=(1.0, 6.0)), sleep=sleep, rng=random.Random(7)
    )
    for _ in range(50):
        asyncio.run(coordinator.stagger())
    assert len(sleep.delays) == 50
    assert all(1.0 <= d <= 6.0 for d in sleep.delays)
    assert len(set(sleep.delays)) > 1
