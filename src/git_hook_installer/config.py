"""User-level configuration.

Config lives at ~/.git-hook-installer/config.json (or under
$GIT_HOOK_INSTALLER_HOME). Hook settings themselves are never stored here;
they live inside each hook's managed block.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from .git import MAX_SCAN_ENTRIES
from .hookfile import PRE_COMMIT_HOOK_NAME
from .manifest import MANIFEST_SCAN_MAX_DEPTH, MANIFEST_SCAN_MAX_ENTRIES
from .snapshots import DEFAULT_MAX_SNAPSHOTS

logger = logging.getLogger("git_hook_installer.config")

HOME_ENV_VAR = "GIT_HOOK_INSTALLER_HOME"


def config_dir() -> Path:
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override)
    return Path.home() / ".git-hook-installer"


def config_path() -> Path:
    return config_dir() / "config.json"


@dataclass
class ToolConfig:
    max_snapshots: int = DEFAULT_MAX_SNAPSHOTS  # 0 keeps every snapshot
    scan_max_depth: int = 3
    scan_max_entries: int = MAX_SCAN_ENTRIES
    manifest_max_depth: int = MANIFEST_SCAN_MAX_DEPTH
    manifest_max_entries: int = MANIFEST_SCAN_MAX_ENTRIES
    hook_name: str = PRE_COMMIT_HOOK_NAME

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "hook_name":
                if not isinstance(value, str) or not value or "/" in value or "\\" in value:
                    raise ValueError(f"Invalid hook_name {value!r}: must be a plain file name")
            elif isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid {f.name} {value!r}: must be a non-negative integer")

    def save(self) -> Path:
        self.validate()
        path = config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2) + "\n")
        return path

    @classmethod
    def load(cls) -> ToolConfig:
        path = config_path()
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))
        config = cls(**{k: v for k, v in data.items() if k in known})
        config.validate()
        return config

    def set_value(self, key: str, raw: str) -> None:
        """Set ``key`` from its command-line string form and save."""
        known = {f.name: f for f in fields(self)}
        if key not in known:
            raise ValueError(f"Unknown config key '{key}' (expected one of: {', '.join(known)})")
        if key == "hook_name":
            value: object = raw
        else:
            try:
                value = int(raw)
            except ValueError:
                raise ValueError(f"Config key '{key}' needs an integer, got '{raw}'") from None
        setattr(self, key, value)
        self.save()
