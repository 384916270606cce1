"""Tests for reading HEAD and choosing the commit/branch to report."""

import pytest

from reg_notify_core.git.head import Head, Repository, find_git_dir, resolve_head
from reg_notify_core.models import HeadReference

SHA = "a" * 40
SHA2 = "b" * 40


def make_git_dir(root, head="ref: refs/heads/main\n", refs=None, packed=None):
    git_dir = root / ".git"
    git_dir.mkdir(parents=True)
    (git_dir / "HEAD").write_text(head)
    for name, sha in (refs or {}).items():
        ref_path = git_dir / name
        ref_path.parent.mkdir(parents=True, exist_ok=True)
        ref_path.write_text(sha + "\n")
    if packed:
        lines = ["# pack-refs with: peeled fully-peeled sorted"]
        for name, sha in packed.items():
            lines.append(f"{sha} {name}")
        (git_dir / "packed-refs").write_text("\n".join(lines) + "\n")
    return git_dir


# ---------------------------------------------------------------------------
# Repository.read_head
# ---------------------------------------------------------------------------


class TestReadHead:
    def test_branch_with_loose_ref(self, tmp_path):
        git_dir = make_git_dir(tmp_path, refs={"refs/heads/main": SHA})
        assert Repository(git_dir).read_head() == Head(kind="branch", commit_hash=SHA, branch_name="main")

    def test_branch_name_keeps_slashes(self, tmp_path):
        git_dir = make_git_dir(tmp_path, head="ref: refs/heads/feature/login\n", refs={"refs/heads/feature/login": SHA})
        head = Repository(git_dir).read_head()
        assert head.branch_name == "feature/login"
        assert head.commit_hash == SHA

    def test_branch_with_packed_ref(self, tmp_path):
        git_dir = make_git_dir(tmp_path, packed={"refs/heads/main": SHA, "refs/tags/v1": SHA2})
        assert Repository(git_dir).read_head().commit_hash == SHA

    def test_loose_ref_wins_over_packed(self, tmp_path):
        git_dir = make_git_dir(tmp_path, refs={"refs/heads/main": SHA2}, packed={"refs/heads/main": SHA})
        assert Repository(git_dir).read_head().commit_hash == SHA2

    def test_peeled_lines_skipped(self, tmp_path):
        git_dir = make_git_dir(tmp_path, packed={"refs/heads/main": SHA})
        with open(git_dir / "packed-refs", "a") as f:
            f.write(f"^{SHA2}\n")
        assert Repository(git_dir).read_head().commit_hash == SHA

    def test_unborn_branch_has_no_commit(self, tmp_path):
        git_dir = make_git_dir(tmp_path)
        head = Repository(git_dir).read_head()
        assert head.kind == "branch"
        assert head.branch_name == "main"
        assert head.commit_hash is None

    def test_detached_head(self, tmp_path):
        git_dir = make_git_dir(tmp_path, head=SHA + "\n")
        assert Repository(git_dir).read_head() == Head(kind="commit", commit_hash=SHA)

    def test_gitfile_is_followed(self, tmp_path):
        real = make_git_dir(tmp_path / "real", refs={"refs/heads/main": SHA})
        checkout = tmp_path / "checkout"
        checkout.mkdir()
        (checkout / ".git").write_text(f"gitdir: {real}\n")
        assert Repository(checkout / ".git").read_head().commit_hash == SHA

    def test_worktree_reads_refs_from_common_dir(self, tmp_path):
        main_git = make_git_dir(tmp_path / "main", refs={"refs/heads/topic": SHA})
        worktree_git = main_git / "worktrees" / "topic"
        worktree_git.mkdir(parents=True)
        (worktree_git / "HEAD").write_text("ref: refs/heads/topic\n")
        (worktree_git / "commondir").write_text("../..\n")
        head = Repository(worktree_git).read_head()
        assert head.branch_name == "topic"
        assert head.commit_hash == SHA


class TestFindGitDir:
    def test_walks_up_to_project_root(self, tmp_path):
        git_dir = make_git_dir(tmp_path)
        nested = tmp_path / "src" / "deep"
        nested.mkdir(parents=True)
        assert find_git_dir(nested) == git_dir.resolve()

    def test_raises_outside_a_repository(self, tmp_path):
        if any((p / ".git").exists() for p in tmp_path.resolve().parents):
            pytest.skip("temporary directory lives inside a git checkout")
        with pytest.raises(FileNotFoundError):
            find_git_dir(tmp_path)


# ---------------------------------------------------------------------------
# resolve_head
# ---------------------------------------------------------------------------


class TestResolveHead:
    def test_branch_wins_over_env(self):
        head = Head(kind="branch", commit_hash=SHA, branch_name="main")
        env = {"GITHUB_REF": "refs/pull/1/merge", "GITHUB_SHA": SHA2}
        assert resolve_head(head, env) == HeadReference(sha1=SHA, branch_name="main")

    def test_github_ref_used_for_detached_head(self):
        head = Head(kind="commit", commit_hash=SHA)
        env = {"GITHUB_REF": "refs/pull/1/merge", "GITHUB_SHA": SHA2}
        assert resolve_head(head, env) == HeadReference(sha1=SHA2, branch_name="refs/pull/1/merge")

    def test_github_ref_without_sha_falls_back_to_head(self):
        head = Head(kind="commit", commit_hash=SHA)
        assert resolve_head(head, {"GITHUB_REF": "feature"}) == HeadReference(sha1=SHA, branch_name="feature")

    def test_empty_github_sha_treated_as_missing(self):
        head = Head(kind="commit", commit_hash=SHA)
        ref = resolve_head(head, {"GITHUB_REF": "feature", "GITHUB_SHA": ""})
        assert ref.sha1 == SHA

    def test_detached_head_without_env(self):
        head = Head(kind="commit", commit_hash=SHA)
        assert resolve_head(head, {}) == HeadReference(sha1=SHA, branch_name=None)

    def test_empty_github_ref_ignored(self):
        head = Head(kind="commit", commit_hash=SHA)
        assert resolve_head(head, {"GITHUB_REF": ""}).branch_name is None

    def test_unborn_branch_uses_env(self):
        head = Head(kind="branch", branch_name="main")
        ref = resolve_head(head, {"GITHUB_REF": "main", "GITHUB_SHA": SHA2})
        assert ref == HeadReference(sha1=SHA2, branch_name="main")

    def test_nothing_resolvable_returns_none(self):
        assert resolve_head(Head(kind="branch", branch_name="main"), {}) is None
        assert resolve_head(Head(kind="commit"), {}) is None
        assert resolve_head(Head(kind="commit"), {"GITHUB_REF": "main"}) is None

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv("GITHUB_REF", "from-process")
        monkeypatch.delenv("GITHUB_SHA", raising=False)
        ref = resolve_head(Head(kind="commit", commit_hash=SHA))
        assert ref.branch_name == "from-process"
