"""Heuristic formatter detection from repository config files.

Each detector is a pure function of the repository root returning a
ToolChoice: the tool (or True/False for on/off languages), whether it was
detected or defaulted, and the evidence. Rendering lives in script.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .settings import HookSettings, JavaKotlinTool, JsTsTool, PythonTool

logger = logging.getLogger("git_hook_installer.detect")

PRETTIER_CONFIGS = (
    ".prettierrc",
    ".prettierrc.json",
    ".prettierrc.yaml",
    ".prettierrc.yml",
    ".prettierrc.js",
    ".prettierrc.cjs",
    "prettier.config.js",
    "prettier.config.cjs",
    "prettier.config.mjs",
)

ESLINT_CONFIGS = (
    ".eslintrc",
    ".eslintrc.json",
    ".eslintrc.yaml",
    ".eslintrc.yml",
    ".eslintrc.js",
    ".eslintrc.cjs",
    "eslint.config.js",
    "eslint.config.cjs",
    "eslint.config.mjs",
)


@dataclass(frozen=True)
class ToolChoice:
    language: str
    tool: Any
    detected: bool
    reason: str | None = None

    @property
    def kind(self) -> str:
        return "detected" if self.detected else "default"


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return ""


def _any_file(root: Path, names: tuple[str, ...]) -> bool:
    return any((root / name).is_file() for name in names)


def _has_glob(directory: Path, pattern: str) -> bool:
    try:
        return any(p.is_file() for p in directory.glob(pattern))
    except OSError:
        return False


def choose_js_ts_tool(repo_root: Path) -> ToolChoice:
    if _any_file(repo_root, ("biome.json", "biome.jsonc")):
        return ToolChoice("js_ts", JsTsTool.BIOME, True, "found biome.json/biome.jsonc")

    if _any_file(repo_root, PRETTIER_CONFIGS) or _any_file(repo_root, ESLINT_CONFIGS):
        return ToolChoice("js_ts", JsTsTool.PRETTIER_ESLINT, True, "found Prettier/ESLint config")

    # Not parsing JSON here, just looking for strong signals
    package_json = _read(repo_root / "package.json")
    if any(s in package_json for s in ('"eslintConfig"', '"prettier"', '"eslint"')):
        return ToolChoice("js_ts", JsTsTool.PRETTIER_ESLINT, True, "found Prettier/ESLint in package.json")

    return ToolChoice("js_ts", JsTsTool.PRETTIER_ESLINT, False)


def choose_python_tool(repo_root: Path) -> ToolChoice:
    pyproject = _read(repo_root / "pyproject.toml")
    if _any_file(repo_root, ("ruff.toml", ".ruff.toml")) or "[tool.ruff" in pyproject:
        return ToolChoice(
            "python", PythonTool.RUFF, True,
            "found ruff.toml/.ruff.toml or [tool.ruff] in pyproject.toml",
        )
    if (repo_root / "black.toml").is_file() or "[tool.black]" in pyproject:
        return ToolChoice(
            "python", PythonTool.BLACK, True,
            "found black.toml or [tool.black] in pyproject.toml",
        )
    return ToolChoice("python", PythonTool.RUFF, False)


def choose_java_kotlin_tool(repo_root: Path) -> ToolChoice:
    if _any_file(repo_root, ("gradlew", "build.gradle", "build.gradle.kts")):
        return ToolChoice(
            "java_kotlin", JavaKotlinTool.SPOTLESS, True,
            "found gradlew/build.gradle/build.gradle.kts",
        )
    return ToolChoice("java_kotlin", JavaKotlinTool.KTLINT, False)


def detect_go(repo_root: Path) -> ToolChoice:
    if (repo_root / "go.mod").is_file():
        return ToolChoice("go", True, True, "found go.mod")
    return ToolChoice("go", False, False)


def detect_shell(repo_root: Path) -> ToolChoice:
    for directory in (repo_root, repo_root / "scripts"):
        if _has_glob(directory, "*.sh"):
            return ToolChoice("shell", True, True, f"found *.sh in {directory.name or directory}")
    return ToolChoice("shell", False, False)


def detect_terraform(repo_root: Path) -> ToolChoice:
    if _has_glob(repo_root, "*.tf"):
        return ToolChoice("terraform", True, True, "found *.tf")
    return ToolChoice("terraform", False, False)


def detect_c_cpp(repo_root: Path) -> ToolChoice:
    for name in (".clang-format", "CMakeLists.txt"):
        if (repo_root / name).is_file():
            return ToolChoice("c_cpp", True, True, f"found {name}")
    return ToolChoice("c_cpp", False, False)


def detect_ruby(repo_root: Path) -> ToolChoice:
    for name in ("Gemfile", ".rubocop.yml"):
        if (repo_root / name).is_file():
            return ToolChoice("ruby", True, True, f"found {name}")
    return ToolChoice("ruby", False, False)


def detect_settings(
    repo_root: Path,
    cargo_manifest_dir: Path | None = None,
) -> tuple[HookSettings, list[ToolChoice]]:
    """Build HookSettings for ``repo_root`` and return the evidence used.

    JS/TS, Python and Java/Kotlin always get a tool (the hook skips tools
    missing from PATH); the remaining languages are only enabled on evidence.
    """
    js_ts = choose_js_ts_tool(repo_root)
    python = choose_python_tool(repo_root)
    java_kotlin = choose_java_kotlin_tool(repo_root)
    go = detect_go(repo_root)
    shell = detect_shell(repo_root)
    terraform = detect_terraform(repo_root)
    c_cpp = detect_c_cpp(repo_root)
    ruby = detect_ruby(repo_root)

    settings = HookSettings(
        enabled=True,
        js_ts_tool=js_ts.tool,
        python_tool=python.tool,
        java_kotlin_tool=java_kotlin.tool,
        go_enabled=go.tool,
        shell_enabled=shell.tool,
        terraform_enabled=terraform.tool,
        c_cpp_enabled=c_cpp.tool,
        ruby_enabled=ruby.tool,
        cargo_manifest_dir=cargo_manifest_dir,
    )
    choices = [js_ts, python, java_kotlin, go, shell, terraform, c_cpp, ruby]
    for choice in choices:
        if choice.detected:
            logger.debug("%s: %s (%s)", choice.language, choice.tool, choice.reason)
    return settings, choices
