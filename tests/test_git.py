"""Tests for repository discovery."""

import shutil
import subprocess

import pytest

from git_hook_installer.errors import MalformedError, NotFoundError, RepositoryNotFoundError
from git_hook_installer.git import (
    find_git_repo,
    find_git_repos_under_dir,
    git_dir_from_repo_root,
    is_repository_root,
    parse_gitdir_file,
    require_git_repo,
)


@pytest.fixture
def fake_repo(tmp_path):
    """Create a fake git repo with .git/hooks dir."""
    repo = tmp_path / "repo"
    (repo / ".git" / "hooks").mkdir(parents=True)
    return repo


def _make_repo(path):
    (path / ".git").mkdir(parents=True)
    return path


def test_find_git_repo_from_subdirectory(fake_repo):
    sub = fake_repo / "src" / "pkg"
    sub.mkdir(parents=True)
    location = find_git_repo(sub)
    assert location.root == fake_repo
    assert location.git_dir == fake_repo / ".git"
    assert location.hooks_dir == fake_repo / ".git" / "hooks"


def test_find_git_repo_outside_any_repo(tmp_path):
    # tmp_path normally lives outside any checkout
    if find_git_repo(tmp_path.parent) is not None:
        pytest.skip("temporary directory is inside a git repository")
    assert find_git_repo(tmp_path) is None
    with pytest.raises(RepositoryNotFoundError):
        require_git_repo(tmp_path)


def test_gitdir_file_relative_to_its_directory(tmp_path, monkeypatch):
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".git").write_text("gitdir: .git/worktrees/w1\n")
    monkeypatch.chdir(tmp_path)

    assert parse_gitdir_file(repo / ".git") == repo / ".git" / "worktrees" / "w1"


def test_gitdir_file_absolute_target(tmp_path):
    real_git_dir = tmp_path / "main" / ".git" / "worktrees" / "w1"
    real_git_dir.mkdir(parents=True)
    worktree = tmp_path / "w1"
    worktree.mkdir()
    (worktree / ".git").write_text(f"gitdir: {real_git_dir}\n")

    location = is_repository_root(worktree)
    assert location.root == worktree
    assert location.git_dir == real_git_dir


def test_gitdir_file_without_prefix(tmp_path):
    (tmp_path / ".git").write_text("not a gitdir line\n")
    with pytest.raises(MalformedError):
        git_dir_from_repo_root(tmp_path)


def test_gitdir_file_empty_target(tmp_path):
    (tmp_path / ".git").write_text("gitdir:   \n")
    with pytest.raises(MalformedError):
        git_dir_from_repo_root(tmp_path)


def test_gitdir_file_dangling_target(tmp_path):
    (tmp_path / ".git").write_text("gitdir: ../nowhere\n")
    with pytest.raises(MalformedError):
        git_dir_from_repo_root(tmp_path)


def test_malformed_git_file_is_an_error_not_no_repo(tmp_path):
    repo = tmp_path / "repo"
    (repo / "sub").mkdir(parents=True)
    (repo / ".git").write_text("garbage\n")
    with pytest.raises(MalformedError):
        find_git_repo(repo / "sub")


def test_scan_respects_depth(tmp_path):
    _make_repo(tmp_path / "group" / "proj")

    assert find_git_repos_under_dir(tmp_path, max_depth=1) == []

    repos = find_git_repos_under_dir(tmp_path, max_depth=2)
    assert [r.root for r in repos] == [tmp_path / "group" / "proj"]


def test_scan_does_not_report_nested_repos(tmp_path):
    outer = _make_repo(tmp_path / "outer")
    _make_repo(outer / "vendor" / "inner")

    repos = find_git_repos_under_dir(tmp_path, max_depth=5)
    assert [r.root for r in repos] == [outer]


def test_scan_results_sorted(tmp_path):
    for name in ("zeta", "alpha", "mid"):
        _make_repo(tmp_path / name)
    repos = find_git_repos_under_dir(tmp_path, max_depth=1)
    assert [r.root.name for r in repos] == ["alpha", "mid", "zeta"]


def test_scan_root_that_is_a_repo(tmp_path):
    _make_repo(tmp_path)
    repos = find_git_repos_under_dir(tmp_path, max_depth=3)
    assert [r.root for r in repos] == [tmp_path]


def test_scan_missing_root(tmp_path):
    with pytest.raises(NotFoundError):
        find_git_repos_under_dir(tmp_path / "missing", max_depth=1)


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_real_worktree_resolves_git_dir(tmp_path):
    main = tmp_path / "main"
    main.mkdir()

    def git(*args, cwd=main):
        subprocess.run(["git", *args], cwd=str(cwd), capture_output=True, check=True)

    git("init")
    git("config", "user.email", "test@test.com")
    git("config", "user.name", "Test User")
    (main / "README").write_text("hi\n")
    git("add", ".")
    git("commit", "-m", "init")
    git("worktree", "add", str(tmp_path / "wt"))

    location = find_git_repo(tmp_path / "wt")
    assert location.root == tmp_path / "wt"
    assert location.git_dir.resolve() == (main / ".git" / "worktrees" / "wt").resolve()
