"""Find the commit (and branch, when there is one) to report against.

HEAD is read straight from the .git directory instead of shelling out, so this
works in CI images that ship the checkout but not the git binary.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from reg_notify_core.models import HeadReference

logger = logging.getLogger(__name__)

_HASH_RE = re.compile(r"^[0-9a-f]{40}([0-9a-f]{24})?$")
_BRANCH_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class Head:
    """Raw reading of HEAD.

    kind is "branch" when HEAD is a symbolic ref, "commit" when detached.
    commit_hash is None for a branch with no commits yet.
    """

    kind: str
    commit_hash: str | None = None
    branch_name: str | None = None


def find_git_dir(start: str | Path | None = None) -> Path:
    """Walk up from ``start`` (default: cwd) to the first directory holding ``.git``."""
    current = Path(start or os.getcwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / ".git"
        if candidate.exists():
            return _follow_gitfile(candidate)
    raise FileNotFoundError(f"No .git directory found above {current}")


def _follow_gitfile(path: Path) -> Path:
    # Worktrees and submodules use a ".git" file: "gitdir: <path>"
    if path.is_file():
        content = path.read_text().strip()
        if content.startswith("gitdir:"):
            target = Path(content[len("gitdir:") :].strip())
            if not target.is_absolute():
                target = path.parent / target
            return target.resolve()
    return path


class Repository:
    def __init__(self, git_dir: str | Path):
        self.git_dir = _follow_gitfile(Path(git_dir))
        commondir = self.git_dir / "commondir"
        if commondir.is_file():
            self.common_dir = (self.git_dir / commondir.read_text().strip()).resolve()
        else:
            self.common_dir = self.git_dir

    def read_head(self) -> Head:
        content = (self.git_dir / "HEAD").read_text().strip()
        if content.startswith("ref:"):
            ref = content[len("ref:") :].strip()
            name = ref[len(_BRANCH_PREFIX) :] if ref.startswith(_BRANCH_PREFIX) else ref
            return Head(kind="branch", commit_hash=self.resolve_ref(ref), branch_name=name)
        if _HASH_RE.match(content):
            return Head(kind="commit", commit_hash=content)
        logger.debug("Unrecognised HEAD content: %r", content)
        return Head(kind="commit")

    def resolve_ref(self, ref: str) -> str | None:
        """Return the hash a ref points to, checking loose refs before packed-refs."""
        for base in (self.git_dir, self.common_dir):
            loose = base / ref
            if loose.is_file():
                value = loose.read_text().strip()
                if value.startswith("ref:"):
                    return self.resolve_ref(value[len("ref:") :].strip())
                return value or None
        return self._packed_refs().get(ref)

    def _packed_refs(self) -> dict[str, str]:
        packed = self.common_dir / "packed-refs"
        if not packed.is_file():
            return {}
        refs: dict[str, str] = {}
        for line in packed.read_text().splitlines():
            # Skip the header and peeled-tag lines ("^<hash>").
            if not line or line.startswith(("#", "^")):
                continue
            sha, _, name = line.partition(" ")
            refs[name.strip()] = sha
        return refs


def resolve_head(head: Head, env: Mapping[str, str] | None = None) -> HeadReference | None:
    """Pick sha1/branch from HEAD, falling back to GitHub Actions variables.

    Order: a named branch with a tip commit, then GITHUB_REF (with GITHUB_SHA
    or HEAD's hash), then a detached commit. Returns None when nothing yields a hash.
    """
    env = os.environ if env is None else env

    if head.kind == "branch" and head.branch_name and head.commit_hash:
        return HeadReference(sha1=head.commit_hash, branch_name=head.branch_name)

    github_ref = env.get("GITHUB_REF")
    if github_ref:
        # Actions checks out PRs as a detached merge commit; the ref still names the PR.
        sha1 = env.get("GITHUB_SHA") or head.commit_hash
        return HeadReference(sha1=sha1, branch_name=github_ref) if sha1 else None

    if head.commit_hash:
        return HeadReference(sha1=head.commit_hash)

    return None
