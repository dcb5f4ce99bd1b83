"""Cargo manifest directory resolution.

Picks the directory the hook should run ``cargo fmt`` from: an explicit
choice, else the nearest manifests above the working directory, else a
bounded scan of the whole repository. Several candidates are disambiguated
by prompting, or rejected when prompting is not allowed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import click

from .errors import (
    AmbiguousManifestError,
    HookInstallerError,
    ManifestNotFoundError,
    OutsideRepositoryError,
)
from .scan import scan_tree

logger = logging.getLogger("git_hook_installer.manifest")

MANIFEST_FILE_NAME = "Cargo.toml"

MANIFEST_SCAN_MAX_DEPTH = 6
MANIFEST_SCAN_MAX_ENTRIES = 8_000


@dataclass(frozen=True)
class ResolveOptions:
    assume_yes: bool = False
    non_interactive: bool = False


def is_manifest_root(directory: Path) -> bool:
    return (directory / MANIFEST_FILE_NAME).is_file()


def relative_display(base: Path, path: Path) -> str:
    """Render ``path`` relative to ``base`` when possible ("." for base itself)."""
    try:
        rel = path.relative_to(base)
    except ValueError:
        return str(path)
    text = str(rel)
    return "." if text in ("", ".") else text


def resolve_manifest_dir(
    explicit_dir: Path | None,
    cwd: Path,
    repo_root: Path,
    options: ResolveOptions,
    *,
    max_depth: int = MANIFEST_SCAN_MAX_DEPTH,
    max_entries: int = MANIFEST_SCAN_MAX_ENTRIES,
) -> Path:
    """Resolve the single manifest directory to use."""
    if explicit_dir is not None:
        return _resolve_explicit_dir(repo_root, explicit_dir)

    candidates = find_manifests_upwards(cwd, repo_root)
    if not candidates:
        result = scan_tree(
            repo_root,
            is_manifest_root,
            max_depth=max_depth,
            max_entries=max_entries,
            descend_into_matches=True,
        )
        if result.truncated:
            logger.debug("Manifest scan of %s stopped after %d entries", repo_root, result.visited)
        candidates = result.found

    candidates = sorted(set(candidates))

    if not candidates:
        raise ManifestNotFoundError(f"No {MANIFEST_FILE_NAME} found in git repository at {repo_root}")

    if len(candidates) == 1:
        return candidates[0]

    if options.non_interactive or options.assume_yes:
        raise AmbiguousManifestError(
            f"Multiple {MANIFEST_FILE_NAME} files found; "
            "re-run with --manifest-dir to choose one"
        )

    labels = [relative_display(repo_root, d) for d in candidates]
    return candidates[_select_candidate(labels)]


def resolve_manifest_dir_best_effort(
    explicit_dir: Path | None,
    cwd: Path,
    repo_root: Path,
    *,
    max_depth: int = MANIFEST_SCAN_MAX_DEPTH,
    max_entries: int = MANIFEST_SCAN_MAX_ENTRIES,
) -> Path | None:
    """Like resolve_manifest_dir, but never prompts and returns None on failure."""
    try:
        return resolve_manifest_dir(
            explicit_dir, cwd, repo_root,
            ResolveOptions(assume_yes=True, non_interactive=True),
            max_depth=max_depth,
            max_entries=max_entries,
        )
    except HookInstallerError as e:
        logger.debug("No manifest directory resolved: %s", e)
        return None


def find_manifests_upwards(cwd: Path, repo_root: Path) -> list[Path]:
    """Collect manifest dirs from ``cwd`` up to ``repo_root`` inclusive, nearest first."""
    dirs: list[Path] = []
    current = cwd
    while True:
        if is_manifest_root(current):
            dirs.append(current)
        if current == repo_root or current.parent == current:
            break
        current = current.parent
    return dirs


def ensure_within_repo(repo_root: Path, candidate: Path) -> None:
    """Component-wise prefix check; no symlink canonicalization."""
    root_parts = repo_root.parts
    if candidate.parts[:len(root_parts)] != root_parts:
        raise OutsideRepositoryError(f"Path {candidate} is outside the repository")


def _resolve_explicit_dir(repo_root: Path, manifest_dir: Path) -> Path:
    resolved = manifest_dir if manifest_dir.is_absolute() else repo_root / manifest_dir
    ensure_within_repo(repo_root, resolved)
    if is_manifest_root(resolved):
        return resolved
    raise ManifestNotFoundError(f"--manifest-dir {resolved} does not contain a {MANIFEST_FILE_NAME}")


def _select_candidate(labels: list[str]) -> int:
    """Prompt for one of ``labels``; returns a 0-based index."""
    click.echo(f"Multiple {MANIFEST_FILE_NAME} files found:")
    for i, label in enumerate(labels, 1):
        click.echo(f"  {i}) {label}")
    choice = click.prompt(
        "Which one should the hook use?",
        type=click.IntRange(1, len(labels)),
        default=1,
    )
    return choice - 1
