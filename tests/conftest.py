import os
import sys
import shutil
from pathlib import Path

import pytest

# Ensure the 'src' directory is on sys.path for imports in tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Settings are loaded at import; pin what the app needs before any test imports it
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")
os.environ.setdefault("VAULTLINE_CHANNEL_SECRET", "test-channel-secret")
os.environ.setdefault("VAULTLINE_TZ", "Asia/Tokyo")
os.environ.setdefault("VAULTLINE_JITTER_MIN_SECONDS", "0")
os.environ.setdefault("VAULTLINE_JITTER_MAX_SECONDS", "0")

# 2025-06-25 14:30 JST
HELLO_TS_MS = 1750829400000


@pytest.fixture
def bare_remote(tmp_path):
    """A file:// bare repository holding one seed commit, like a fresh vault."""
    if shutil.which("git") is None:
        pytest.skip("git binary not available")
    import git

    bare = tmp_path / "remote.git"
    git.Repo.init(bare, bare=True)
    seed_dir = tmp_path / "seed"
    seed = git.Repo.clone_from(bare.as_uri(), seed_dir)
    (seed_dir / "README.md").write_text("# vault\n", encoding="utf-8")
    seed.index.add(["README.md"])
    actor = git.Actor("seed", "seed@example.com")
    seed.index.commit("seed", author=actor, committer=actor)
    seed.git.push("origin", "HEAD")
    seed.close()
    return bare.as_uri()


def read_remote_file(remote_uri: str, rel: str, dest: Path):
    """Clone the remote fresh; return (file text or None, head message, commit count)."""
    import git

    repo = git.Repo.clone_from(remote_uri, dest)
    try:
        path = dest / rel
        text = path.read_text(encoding="utf-8") if path.exists() else None
        return text, repo.head.commit.message.strip(), len(list(repo.iter_commits()))
    finally:
        repo.close()
