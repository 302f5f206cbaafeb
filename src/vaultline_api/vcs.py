from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Protocol

import git

from .models import CommitIdentity

logger = logging.getLogger(__name__)


class VersionControl(Protocol):
    """Version-control capability consumed by the vault materializer and the
    sync coordinator.

    Handles returned by ``clone`` are opaque to callers and passed back into
    the other operations unchanged.
    """

    def clone(self, url: str, dest: Path, depth: int = 1) -> Any: ...

    def configure_identity(self, handle: Any, identity: CommitIdentity) -> None: ...

    def add(self, handle: Any, path: Path) -> None: ...

    def commit(self, handle: Any, message: str, identity: CommitIdentity) -> None: ...

    def push(self, handle: Any) -> None: ...

    def pull(self, handle: Any) -> None: ...


class GitPythonVCS:
    """VersionControl binding backed by GitPython (and thus the git binary).

    push/pull go through ``repo.git`` so a rejected push surfaces as a
    ``git.GitCommandError`` instead of a flag buried in PushInfo.
    """

    def clone(self, url: str, dest: Path, depth: int = 1) -> git.Repo:
        return git.Repo.clone_from(url, str(dest), depth=depth)

    def configure_identity(self, handle: git.Repo, identity: CommitIdentity) -> None:
        with handle.config_writer(config_level="repository") as cw:
            cw.set_value("user", "name", identity.name)
            cw.set_value("user", "email", identity.email)

    def add(self, handle: git.Repo, path: Path) -> None:
        root = Path(handle.working_tree_dir).resolve()
        handle.index.add([str(Path(path).resolve().relative_to(root))])

    def commit(self, handle: git.Repo, message: str, identity: CommitIdentity) -> None:
        actor = git.Actor(identity.name, identity.email)
        handle.index.commit(message, author=actor, committer=actor)

    def push(self, handle: git.Repo) -> None:
        handle.git.push("origin", "HEAD")

    def pull(self, handle: git.Repo) -> None:
        try:
            handle.git.pull("--rebase", "origin", handle.active_branch.name)
        except git.GitCommandError:
            # leave the clone pushable rather than stuck mid-rebase
            try:
                handle.git.rebase("--abort")
            except git.GitCommandError:
                logger.debug("no rebase in progress to abort")
            raise
