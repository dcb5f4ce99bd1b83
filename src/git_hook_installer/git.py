"""Git repository detection.

Locates repository roots by walking up from a directory, and finds every
repository under a parent folder for bulk operations. Handles both ordinary
checkouts and linked worktrees, where ``.git`` is a file containing
``gitdir: <path>``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import MalformedError, NotFoundError, RepositoryNotFoundError
from .scan import scan_tree

logger = logging.getLogger("git_hook_installer.git")

GITDIR_PREFIX = "gitdir:"

# Bulk scans go wide; keep runtime bounded on huge home directories
MAX_SCAN_ENTRIES = 200_000


@dataclass(frozen=True)
class RepositoryLocation:
    """A repository root and its real git metadata directory."""
    root: Path
    git_dir: Path

    @property
    def hooks_dir(self) -> Path:
        return self.git_dir / "hooks"


def parse_gitdir_file(dot_git_file: Path) -> Path:
    """Resolve the target of a worktree ``.git`` file.

    A relative target is resolved against the directory holding the
    ``.git`` file, not the process working directory.
    """
    try:
        contents = dot_git_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedError(f"Failed to read .git file at {dot_git_file} (worktree?): {e}") from e

    trimmed = contents.strip()
    if not trimmed.startswith(GITDIR_PREFIX):
        raise MalformedError(f"Unsupported .git file format at {dot_git_file}")

    raw = trimmed[len(GITDIR_PREFIX):].strip()
    if not raw:
        raise MalformedError(f"Invalid gitdir in .git file at {dot_git_file}")

    target = Path(raw)
    if not target.is_absolute():
        target = dot_git_file.parent / target
    return target


def git_dir_from_repo_root(directory: Path) -> Path | None:
    """Return the git metadata dir if ``directory`` is a repository root.

    Raises MalformedError for an unparseable ``.git`` file or one pointing at
    a directory that does not exist.
    """
    dot_git = directory / ".git"
    if dot_git.is_dir():
        return dot_git
    if dot_git.is_file():
        git_dir = parse_gitdir_file(dot_git)
        if not git_dir.is_dir():
            raise MalformedError(
                f".git file at {dot_git} points to missing directory {git_dir}"
            )
        return git_dir
    return None


def is_repository_root(directory: Path) -> RepositoryLocation | None:
    git_dir = git_dir_from_repo_root(directory)
    if git_dir is None:
        return None
    return RepositoryLocation(root=directory, git_dir=git_dir)


def find_git_repo(start: Path) -> RepositoryLocation | None:
    """Walk up from ``start`` to the nearest repository.

    Returns None when the filesystem root is reached without finding one.
    """
    current = start.absolute()
    while True:
        location = is_repository_root(current)
        if location is not None:
            return location
        if current.parent == current:
            return None
        current = current.parent


def require_git_repo(start: Path) -> RepositoryLocation:
    location = find_git_repo(start)
    if location is None:
        raise RepositoryNotFoundError(
            f"Not inside a git repository (no .git directory found above {start})"
        )
    return location


def find_git_repos_under_dir(
    scan_root: Path,
    max_depth: int,
    max_entries: int = MAX_SCAN_ENTRIES,
) -> list[RepositoryLocation]:
    """Find repository roots under ``scan_root``, sorted by root path.

    A found repository is a terminal unit: its contents, including nested
    repositories, are not scanned.
    """
    if not scan_root.is_dir():
        raise NotFoundError(f"Scan root {scan_root} is not a directory")

    located: dict[Path, RepositoryLocation] = {}

    def _match(directory: Path) -> bool:
        location = is_repository_root(directory)
        if location is None:
            return False
        located.setdefault(directory, location)
        return True

    result = scan_tree(
        scan_root.absolute(),
        _match,
        max_depth=max_depth,
        max_entries=max_entries,
    )
    if result.truncated:
        logger.warning(
            "Stopped scanning %s after %d entries; results may be incomplete",
            scan_root, result.visited,
        )

    repos: list[RepositoryLocation] = []
    seen: set[Path] = set()
    for root in result.found:
        key = _root_key(root)
        if key in seen:
            continue
        seen.add(key)
        repos.append(located[root])
    logger.debug("Found %d repositories under %s", len(repos), scan_root)
    return repos


def _root_key(root: Path) -> Path:
    try:
        return root.resolve()
    except OSError:
        return root
