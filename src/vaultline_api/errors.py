from __future__ import annotations
from typing import Optional


class VaultlineError(Exception):
    """Base class for pipeline failures surfaced to the dispatcher."""


class InputError(VaultlineError):
    """Event data that cannot be turned into an entry (bad epoch, unknown zone)."""


class MaterializationError(VaultlineError):
    """The working copy could not be cloned or configured. Never retried."""


class MergeError(VaultlineError):
    """Reading or writing the target markdown file failed."""


class SyncError(VaultlineError):
    """Every push attempt was rejected; ``__cause__`` holds the last error."""

    def __init__(self, message: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error
