"""Per-repository settings baked into the managed pre-commit block."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class JsTsTool(str, Enum):
    BIOME = "biome"
    PRETTIER_ESLINT = "prettier+eslint"


class PythonTool(str, Enum):
    RUFF = "ruff"
    BLACK = "black"


class JavaKotlinTool(str, Enum):
    SPOTLESS = "spotless"
    KTLINT = "ktlint"


@dataclass
class HookSettings:
    """Which formatters the hook runs.

    A None tool disables that language entirely.
    """
    enabled: bool = True
    js_ts_tool: JsTsTool | None = None
    python_tool: PythonTool | None = None
    java_kotlin_tool: JavaKotlinTool | None = None
    go_enabled: bool = False
    shell_enabled: bool = False
    terraform_enabled: bool = False
    c_cpp_enabled: bool = False
    ruby_enabled: bool = False
    cargo_manifest_dir: Path | None = None  # cargo fmt runs here when set
