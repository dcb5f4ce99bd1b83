"""Read-only inspection of a repository's managed hook."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .errors import MalformedError
from .git import RepositoryLocation
from .hookfile import PRE_COMMIT_HOOK_NAME, is_executable
from .managed_block import has_managed_block, read_enabled_flag, split_lines
from .snapshots import list_backups, list_snapshots


@dataclass
class HookStatus:
    hook_path: Path
    hooks_dir_exists: bool = False
    installed: bool = False
    executable: bool | None = None
    readable: bool = False
    managed: bool = False
    malformed: str | None = None
    enabled: str | None = None  # raw GHI_ENABLED value
    line_count: int = 0
    has_shebang: bool = False
    cd_dir: str | None = None
    snapshots: list[str] = field(default_factory=list)
    backups: list[str] = field(default_factory=list)


def parse_cd_dir(contents: str) -> str | None:
    """First ``cd <dir>`` target in a hook, unquoted (legacy standalone hooks)."""
    for line in split_lines(contents):
        line = line.strip()
        if not line.startswith("cd "):
            continue
        raw = line[3:].strip()
        if len(raw) >= 2 and raw[0] == raw[-1] == '"':
            raw = raw[1:-1]
        return raw
    return None


def inspect_hook(location: RepositoryLocation, hook_name: str = PRE_COMMIT_HOOK_NAME) -> HookStatus:
    hooks_dir = location.hooks_dir
    hook_path = hooks_dir / hook_name
    status = HookStatus(hook_path=hook_path, hooks_dir_exists=hooks_dir.is_dir())
    if not status.hooks_dir_exists:
        return status

    status.snapshots = list_snapshots(hook_path)
    status.backups = list_backups(hook_path)

    if not hook_path.exists():
        return status
    status.installed = True
    status.executable = is_executable(hook_path)

    try:
        contents = hook_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return status
    status.readable = True

    lines = split_lines(contents)
    status.line_count = len(lines)
    status.has_shebang = bool(lines) and lines[0].startswith("#!")
    status.cd_dir = parse_cd_dir(contents)
    status.managed = has_managed_block(contents)
    try:
        status.enabled = read_enabled_flag(contents)
    except MalformedError as e:
        status.malformed = str(e)
    return status
