"""Bounded breadth-first directory walker.

Shared by manifest discovery and multi-repo scanning. The walk is best
effort: unreadable directories are skipped, and the entry budget may cut it
short. ScanResult.truncated tells the caller when that happened.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

logger = logging.getLogger("git_hook_installer.scan")

# Never descended into, whatever the depth budget
SKIP_DIRS = frozenset({
    ".git",
    "node_modules",
    "target",
    "dist",
    "build",
    ".venv",
    "__pycache__",
    ".tox",
    ".idea",
    ".vscode",
})


@dataclass
class ScanResult:
    """Directories matched by a scan, sorted and deduplicated."""
    found: list[Path] = field(default_factory=list)
    visited: int = 0
    truncated: bool = False


def scan_tree(
    root: Path,
    match: Callable[[Path], bool],
    *,
    max_depth: int,
    max_entries: int,
    descend_into_matches: bool = False,
    skip_dirs: frozenset[str] = SKIP_DIRS,
) -> ScanResult:
    """Walk ``root`` breadth-first and collect directories satisfying ``match``.

    Args:
        root: Directory to start from (depth 0).
        match: Predicate tested on every dequeued directory. Exceptions it
            raises propagate; only directory listing errors are swallowed.
        max_depth: Children of directories at this depth are not visited.
        max_entries: Budget shared by dequeued directories and every listed
            child entry (files included).
        descend_into_matches: When False a matched directory is terminal: it
            is recorded and its subtree is never listed.
        skip_dirs: Directory names that are never descended into.
    """
    result = ScanResult()
    seen: set[Path] = set()
    queue: deque[tuple[Path, int]] = deque([(root, 0)])

    while queue:
        if result.visited >= max_entries:
            result.truncated = True
            break
        directory, depth = queue.popleft()
        result.visited += 1

        if match(directory):
            if directory not in seen:
                seen.add(directory)
                result.found.append(directory)
            if not descend_into_matches:
                continue

        if depth >= max_depth:
            continue

        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if result.visited >= max_entries:
                        result.truncated = True
                        break
                    result.visited += 1
                    try:
                        if not entry.is_dir(follow_symlinks=False):
                            continue
                    except OSError:
                        continue
                    if entry.name in skip_dirs:
                        continue
                    queue.append((Path(entry.path), depth + 1))
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            continue

    result.found.sort()
    return result
