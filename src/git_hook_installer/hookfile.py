"""Apply managed-block changes to a concrete hook file.

Every mutation follows the same order: read the current file, compute the new
text, stop if nothing changed, otherwise snapshot the old file and write the
new one. A hook written by someone else is only taken over with consent, and
is backed up first.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import click

from . import managed_block
from .errors import (
    AbortedError,
    BlockNotFoundError,
    ConsentRequiredError,
    HookNotFoundError,
    MalformedError,
)
from .snapshots import DEFAULT_MAX_SNAPSHOTS, backup_existing_hook, snapshot_and_prune

logger = logging.getLogger("git_hook_installer.hookfile")

PRE_COMMIT_HOOK_NAME = "pre-commit"


@dataclass(frozen=True)
class InstallOptions:
    assume_yes: bool = False
    non_interactive: bool = False
    force: bool = False


class HookAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DISABLED = "disabled"
    UNINSTALLED = "uninstalled"
    REMOVED = "removed"
    SKIPPED = "skipped"


@dataclass
class HookResult:
    """What happened to one hook file."""
    path: Path
    action: HookAction
    snapshot: Path | None = None
    backup: Path | None = None
    detail: str = ""

    @property
    def changed(self) -> bool:
        return self.action not in (HookAction.UNCHANGED, HookAction.SKIPPED)


def upsert_managed_hook(
    git_dir: Path,
    block: str,
    options: InstallOptions,
    *,
    hook_name: str = PRE_COMMIT_HOOK_NAME,
    max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
) -> HookResult:
    """Install or update the managed block in ``git_dir/hooks/<hook_name>``."""
    hooks_dir = git_dir / "hooks"
    hooks_dir.mkdir(parents=True, exist_ok=True)
    hook_path = hooks_dir / hook_name

    existing = _read_if_exists(hook_path)
    backup = None
    if existing is not None and not _has_block(existing):
        backup = confirm_takeover(hook_path, options)

    updated = managed_block.upsert_managed_block(existing, block)

    if existing == updated:
        set_executable(hook_path)
        return HookResult(hook_path, HookAction.UNCHANGED)

    snapshot = None
    if existing is not None:
        snapshot = snapshot_and_prune(hook_path, max_snapshots)
    _write(hook_path, updated)
    set_executable(hook_path)

    action = HookAction.CREATED if existing is None else HookAction.UPDATED
    logger.info("Installed %s hook at %s", hook_name, hook_path)
    return HookResult(hook_path, action, snapshot=snapshot, backup=backup)


def disable_managed_hook(
    git_dir: Path,
    *,
    hook_name: str = PRE_COMMIT_HOOK_NAME,
    best_effort: bool = False,
    max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
) -> HookResult:
    """Flip the managed block's enabled flag off.

    With ``best_effort`` a missing hook or missing block is reported as
    ``skipped`` instead of raising; this is the bulk-mode behavior.
    """
    hook_path = git_dir / "hooks" / hook_name
    contents = _read_managed(hook_path, best_effort)
    if isinstance(contents, HookResult):
        return contents

    updated = managed_block.disable_managed_block(contents)
    if updated == contents:
        return HookResult(hook_path, HookAction.UNCHANGED, detail="already disabled")

    snapshot = snapshot_and_prune(hook_path, max_snapshots)
    _write(hook_path, updated)
    logger.info("Disabled managed block in %s", hook_path)
    return HookResult(hook_path, HookAction.DISABLED, snapshot=snapshot)


def uninstall_managed_hook(
    git_dir: Path,
    *,
    hook_name: str = PRE_COMMIT_HOOK_NAME,
    best_effort: bool = False,
    max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
) -> HookResult:
    """Remove the managed block; delete the file if nothing else is left."""
    hook_path = git_dir / "hooks" / hook_name
    contents = _read_managed(hook_path, best_effort)
    if isinstance(contents, HookResult):
        return contents

    updated = managed_block.uninstall_managed_block(contents)
    snapshot = snapshot_and_prune(hook_path, max_snapshots)

    if managed_block.is_effectively_empty(updated):
        hook_path.unlink()
        logger.info("Removed %s", hook_path)
        return HookResult(hook_path, HookAction.REMOVED, snapshot=snapshot)

    _write(hook_path, updated)
    logger.info("Uninstalled managed block in %s", hook_path)
    return HookResult(hook_path, HookAction.UNINSTALLED, snapshot=snapshot)


def confirm_takeover(hook_path: Path, options: InstallOptions) -> Path:
    """Get consent to modify a hook the tool did not create, then back it up."""
    if options.force or options.assume_yes:
        return backup_existing_hook(hook_path)

    if options.non_interactive:
        raise ConsentRequiredError(
            f"Hook already exists at {hook_path} (use --force to overwrite)"
        )

    click.echo(f"Hook already exists at {hook_path}.")
    if not click.confirm("Back up existing hook and overwrite?", default=False):
        raise AbortedError("Aborted (existing hook was not modified).")
    return backup_existing_hook(hook_path)


def set_executable(path: Path) -> None:
    if os.name != "posix" or not path.exists():
        return
    path.chmod(0o755)


def is_executable(path: Path) -> bool | None:
    """None on platforms without an executable bit or when ``path`` is unreadable."""
    if os.name != "posix":
        return None
    try:
        mode = path.stat().st_mode
    except OSError:
        return None
    return bool(mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


def _has_block(text: str) -> bool:
    # Malformed markers propagate from here rather than counting as "unmanaged"
    return managed_block.find_block(managed_block.split_lines(text)) is not None


def _read_raw(path: Path) -> str:
    # newline="" so CRLF files compare unequal to their normalized form
    try:
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise MalformedError(f"Hook at {path} is not valid UTF-8") from e


def _read_if_exists(path: Path) -> str | None:
    if not path.exists():
        return None
    return _read_raw(path)


def _read_managed(hook_path: Path, best_effort: bool) -> str | HookResult:
    if not hook_path.exists():
        if best_effort:
            return HookResult(hook_path, HookAction.SKIPPED, detail=f"no {hook_path.name} hook")
        raise HookNotFoundError(f"No {hook_path.name} hook exists at {hook_path}")

    contents = _read_raw(hook_path)
    if not _has_block(contents):
        if best_effort:
            return HookResult(hook_path, HookAction.SKIPPED, detail="no managed block")
        raise BlockNotFoundError(f"No managed git-hook-installer block found in {hook_path}")
    return contents


def _write(path: Path, text: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
