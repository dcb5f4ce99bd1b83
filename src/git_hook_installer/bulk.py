"""Apply one operation to many repositories.

Repositories are processed in order; a failure in one is recorded and the
run moves on. Failures are returned to the caller, never kept in module
state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from .errors import HookInstallerError
from .git import RepositoryLocation

logger = logging.getLogger("git_hook_installer.bulk")

T = TypeVar("T")


@dataclass
class BulkReport(Generic[T]):
    results: list[tuple[RepositoryLocation, T]] = field(default_factory=list)
    failures: list[tuple[RepositoryLocation, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def run_across_repos(
    repos: list[RepositoryLocation],
    operation: Callable[[RepositoryLocation], T],
    on_result: Callable[[RepositoryLocation, T | None, Exception | None], None] | None = None,
) -> BulkReport[T]:
    """Run ``operation`` on each repo, collecting results and failures.

    Only expected failures (HookInstallerError, OSError) are recorded;
    anything else is a bug and propagates.
    """
    report: BulkReport[T] = BulkReport()
    for repo in repos:
        try:
            result = operation(repo)
        except (HookInstallerError, OSError) as e:
            logger.debug("Operation failed in %s: %s", repo.root, e)
            report.failures.append((repo, e))
            if on_result:
                on_result(repo, None, e)
            continue
        report.results.append((repo, result))
        if on_result:
            on_result(repo, result, None)
    return report
