from __future__ import annotations
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit, urlunsplit, quote

from .errors import MaterializationError
from .logutil import redact
from .models import CommitIdentity, WorkingCopy
from .vcs import VersionControl

logger = logging.getLogger(__name__)


def authenticated_url(remote_url: str, credential: str) -> str:
    """Inject ``credential`` into the authority of an http(s) remote URL.

    ``https://github.com/o/r.git`` + ``tok`` -> ``https://tok@github.com/o/r.git``.
    Other schemes (file paths, ssh) and empty credentials pass through.
    """
    if not credential:
        return remote_url
    parts = urlsplit(remote_url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return remote_url
    host = parts.netloc.rsplit("@", 1)[-1]
    netloc = f"{quote(credential, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


class VaultMaterializer:
    """Produces a fresh shallow clone of the vault per invocation.

    Every call gets its own directory; git index and branch state are never
    shared between concurrent invocations.
    """

    def __init__(
        self,
        vcs: VersionControl,
        remote_url: str,
        credential: str,
        identity: CommitIdentity,
        base_dir: Optional[str] = None,
    ):
        self.vcs = vcs
        self.remote_url = remote_url
        self.credential = credential
        self.identity = identity
        self.base_dir = base_dir

    def materialize(self) -> WorkingCopy:
        if not self.remote_url:
            raise MaterializationError("no vault remote configured")
        try:
            if self.base_dir:
                Path(self.base_dir).mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix="vault-", dir=self.base_dir))
        except OSError as e:
            raise MaterializationError(f"cannot create working directory: {e}") from e
        url = authenticated_url(self.remote_url, self.credential)
        try:
            handle = self.vcs.clone(url, root, depth=1)
            self.vcs.configure_identity(handle, self.identity)
        except Exception as e:
            shutil.rmtree(root, ignore_errors=True)
            raise MaterializationError(f"clone failed: {redact(str(e))}") from e
        logger.info("materialized vault at %s", root)
        return WorkingCopy(root=root, handle=handle)

    def discard(self, working_copy: WorkingCopy) -> None:
        close = getattr(working_copy.handle, "close", None)
        if callable(close):
            close()
        shutil.rmtree(working_copy.root, ignore_errors=True)
