"""Timestamped hook snapshots and unmanaged-hook backups.

Before the managed block in a hook is changed, the previous file is copied
to ``<hook>.snapshot-YYYY-MM-DD-HH-MM-SS`` next to it and the oldest
snapshots beyond the retention limit are pruned. Backups (``<hook>.bak``,
``<hook>.bak.1``, ...) are a separate scheme, taken once when the tool
first takes over a hook it did not create.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path

from .errors import ResourceExhaustedError

logger = logging.getLogger("git_hook_installer.snapshots")

DEFAULT_MAX_SNAPSHOTS = 10
MAX_NAME_ATTEMPTS = 10_000

SNAPSHOT_MARKER = ".snapshot-"
BACKUP_SUFFIX = ".bak"
TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"

_COLLISION_SUFFIX = re.compile(r"(?P<stamp>.*?)(?:\.(?P<n>\d+))?", re.DOTALL)


def snapshot_prefix(hook_path: Path) -> str:
    return f"{hook_path.name}{SNAPSHOT_MARKER}"


def format_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def snapshot_and_prune(
    hook_path: Path,
    max_snapshots: int = DEFAULT_MAX_SNAPSHOTS,
    now: datetime | None = None,
) -> Path | None:
    """Copy ``hook_path`` to a new snapshot, then prune old ones.

    Returns the snapshot path, or None if there was no regular file to copy.
    Copy failures propagate; pruning failures do not.
    """
    if not hook_path.is_file():
        return None

    stamp = format_timestamp(now or datetime.now(timezone.utc))
    snapshot_path = _next_snapshot_path(hook_path, stamp)

    shutil.copy2(hook_path, snapshot_path)
    logger.info("Created snapshot of existing hook at %s", snapshot_path)

    prune_snapshots(hook_path.parent, snapshot_prefix(hook_path), max_snapshots)
    return snapshot_path


def _next_snapshot_path(hook_path: Path, stamp: str) -> Path:
    # Suffixes continue after the highest one used this second, even once lower ones are pruned
    prefix = snapshot_prefix(hook_path)
    base = hook_path.parent / f"{prefix}{stamp}"
    keys = (_snapshot_sort_key(name, prefix) for name in _sibling_names(hook_path, prefix))
    used = [n for s, n in keys if s == stamp]
    if not used:
        return _first_free_name(base, hook_path, "snapshot")
    counter = max(used) + 1
    if counter > MAX_NAME_ATTEMPTS:
        raise ResourceExhaustedError(f"Too many snapshot files exist for {hook_path}")
    return base.with_name(f"{base.name}.{counter}")


def _snapshot_sort_key(name: str, prefix: str) -> tuple[str, int]:
    # Fixed-width timestamps sort lexicographically; collision suffixes numerically
    m = _COLLISION_SUFFIX.fullmatch(name[len(prefix):])
    return m.group("stamp"), int(m.group("n") or 0)


def prune_snapshots(directory: Path, prefix: str, max_snapshots: int) -> list[Path]:
    """Delete the oldest ``prefix*`` files so at most ``max_snapshots`` remain.

    ``max_snapshots == 0`` keeps everything. Returns the paths removed.
    """
    if max_snapshots == 0:
        return []

    try:
        names = [p.name for p in directory.iterdir() if p.name.startswith(prefix)]
    except OSError as e:
        logger.warning("Could not list %s for snapshot pruning: %s", directory, e)
        return []

    names.sort(key=lambda n: _snapshot_sort_key(n, prefix))
    excess = len(names) - max_snapshots
    removed = []
    for name in names[:max(excess, 0)]:
        path = directory / name
        try:
            path.unlink()
            removed.append(path)
        except OSError as e:
            logger.warning("Could not remove old snapshot %s: %s", path, e)
    if removed:
        logger.debug("Pruned %d old snapshot(s) in %s", len(removed), directory)
    return removed


def backup_existing_hook(hook_path: Path) -> Path:
    """Copy an unmanaged hook to the first free ``.bak[.N]`` name."""
    base = hook_path.with_name(f"{hook_path.name}{BACKUP_SUFFIX}")
    backup_path = _first_free_name(base, hook_path, "backup")
    shutil.copy2(hook_path, backup_path)
    logger.info("Backed up existing hook to %s", backup_path)
    return backup_path


def _first_free_name(base: Path, hook_path: Path, what: str) -> Path:
    candidate = base
    counter = 0
    while candidate.exists():
        counter += 1
        if counter > MAX_NAME_ATTEMPTS:
            raise ResourceExhaustedError(f"Too many {what} files exist for {hook_path}")
        candidate = base.with_name(f"{base.name}.{counter}")
    return candidate


def list_snapshots(hook_path: Path) -> list[str]:
    prefix = snapshot_prefix(hook_path)
    return sorted(_sibling_names(hook_path, prefix), key=lambda n: _snapshot_sort_key(n, prefix))


def list_backups(hook_path: Path) -> list[str]:
    return sorted(_sibling_names(hook_path, f"{hook_path.name}{BACKUP_SUFFIX}"))


def _sibling_names(hook_path: Path, prefix: str) -> list[str]:
    try:
        return [p.name for p in hook_path.parent.iterdir() if p.name.startswith(prefix)]
    except OSError:
        return []
