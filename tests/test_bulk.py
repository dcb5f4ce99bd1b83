"""Tests for running an operation across repositories."""

import pytest

from git_hook_installer.bulk import run_across_repos
from git_hook_installer.errors import ConsentRequiredError, MalformedError
from git_hook_installer.git import RepositoryLocation
from git_hook_installer.hookfile import (
    HookAction,
    InstallOptions,
    uninstall_managed_hook,
    upsert_managed_hook,
)
from git_hook_installer.managed_block import MANAGED_BLOCK_BEGIN, MANAGED_BLOCK_END


def _loc(tmp_path, name):
    root = tmp_path / name
    return RepositoryLocation(root=root, git_dir=root / ".git")


def test_failures_do_not_stop_the_run(tmp_path):
    repos = [_loc(tmp_path, n) for n in ("a", "b", "c")]

    def operation(repo):
        if repo.root.name == "b":
            raise ConsentRequiredError("hook exists")
        return repo.root.name.upper()

    report = run_across_repos(repos, operation)
    assert [(r.root.name, v) for r, v in report.results] == [("a", "A"), ("c", "C")]
    assert len(report.failures) == 1
    failed_repo, error = report.failures[0]
    assert failed_repo.root.name == "b"
    assert isinstance(error, ConsentRequiredError)
    assert not report.ok


def test_os_errors_are_recorded(tmp_path):
    repos = [_loc(tmp_path, "a")]

    def operation(repo):
        raise PermissionError("read-only")

    report = run_across_repos(repos, operation)
    assert isinstance(report.failures[0][1], PermissionError)


def test_unexpected_errors_propagate(tmp_path):
    def operation(repo):
        raise KeyError("bug")

    with pytest.raises(KeyError):
        run_across_repos([_loc(tmp_path, "a")], operation)


def test_reports_are_independent(tmp_path):
    def failing(repo):
        raise ConsentRequiredError("no")

    first = run_across_repos([_loc(tmp_path, "a")], failing)
    second = run_across_repos([_loc(tmp_path, "b")], lambda repo: 1)
    assert len(first.failures) == 1
    assert second.ok
    assert second.failures == []


def test_on_result_callback(tmp_path):
    seen = []
    repos = [_loc(tmp_path, "a"), _loc(tmp_path, "b")]

    def operation(repo):
        if repo.root.name == "a":
            raise ConsentRequiredError("no")
        return "ok"

    run_across_repos(repos, operation, on_result=lambda r, v, e: seen.append((r.root.name, v, type(e))))
    assert seen == [("a", None, ConsentRequiredError), ("b", "ok", type(None))]


def test_undecodable_hook_is_recorded_and_run_continues(tmp_path):
    latin1 = _loc(tmp_path, "a_latin1")
    good = _loc(tmp_path, "b_good")
    for repo in (latin1, good):
        (repo.git_dir / "hooks").mkdir(parents=True)
    (latin1.hooks_dir / "pre-commit").write_bytes(b"#!/bin/sh\necho caf\xe9\n")
    block = f"{MANAGED_BLOCK_BEGIN}\nGHI_ENABLED=1\n{MANAGED_BLOCK_END}\n"
    upsert_managed_hook(good.git_dir, block, InstallOptions(non_interactive=True))

    report = run_across_repos([latin1, good], lambda repo: uninstall_managed_hook(repo.git_dir))

    failed_repo, error = report.failures[0]
    assert failed_repo == latin1
    assert isinstance(error, MalformedError)
    assert [(r, v.action) for r, v in report.results] == [(good, HookAction.REMOVED)]
    assert not (good.hooks_dir / "pre-commit").exists()
