"""Tests for the rendered pre-commit block."""

import shutil
import subprocess
from pathlib import Path

import pytest

from git_hook_installer.managed_block import (
    MANAGED_BLOCK_BEGIN,
    MANAGED_BLOCK_END,
    disable_managed_block,
    find_block,
    read_enabled_flag,
    split_lines,
    upsert_managed_block,
)
from git_hook_installer.script import managed_pre_commit_block, shell_escape_path
from git_hook_installer.settings import HookSettings, JsTsTool, PythonTool


def _render(tmp_path, **kwargs):
    return managed_pre_commit_block(HookSettings(**kwargs), tmp_path)


def test_block_is_delimited_by_markers(tmp_path):
    lines = split_lines(_render(tmp_path))
    assert lines[0] == MANAGED_BLOCK_BEGIN
    assert lines[-1] == MANAGED_BLOCK_END
    assert find_block(lines) == (0, len(lines) - 1)


def test_block_has_single_enabled_line(tmp_path):
    block = _render(tmp_path)
    flag_lines = [line for line in split_lines(block) if line.startswith("GHI_ENABLED=")]
    assert flag_lines == ["GHI_ENABLED=1"]
    assert read_enabled_flag(block) == "1"


def test_disabled_settings_render_zero(tmp_path):
    assert read_enabled_flag(_render(tmp_path, enabled=False)) == "0"


def test_rendered_block_can_be_disabled(tmp_path):
    hook = upsert_managed_block(None, _render(tmp_path))
    disabled = disable_managed_block(hook)
    assert read_enabled_flag(disabled) == "0"
    changed = [
        (a, b) for a, b in zip(split_lines(hook), split_lines(disabled)) if a != b
    ]
    assert changed == [("GHI_ENABLED=1", "GHI_ENABLED=0")]


def test_only_enabled_tools_are_rendered(tmp_path):
    block = _render(tmp_path, python_tool=PythonTool.BLACK, go_enabled=True)
    assert "ghi_run_python_black" in block
    assert "ghi_run_go" in block
    assert "ghi_run_rubocop" not in block
    assert "ghi_run_terraform" not in block
    assert 'GHI_JS_TS_TOOL=""' in block


def test_settings_header(tmp_path):
    crate = tmp_path / "rust" / "core"
    block = _render(tmp_path, js_ts_tool=JsTsTool.BIOME, cargo_manifest_dir=crate)
    assert "#   js_ts_tool=biome" in block
    assert "#   python_tool=(disabled)" in block
    assert "#   cargo_manifest_dir=rust/core" in block
    assert f'GHI_CARGO_MANIFEST_DIR="{crate}"' in block


def test_no_manifest_dir(tmp_path):
    block = _render(tmp_path)
    assert "#   cargo_manifest_dir=(none)" in block
    assert 'GHI_CARGO_MANIFEST_DIR="(none)"' in block


def test_rendering_is_deterministic(tmp_path):
    assert _render(tmp_path, go_enabled=True) == _render(tmp_path, go_enabled=True)


def test_shell_escape_path():
    assert shell_escape_path(Path('/a b/$x/"q"/`c`\\d')) == '/a b/\\$x/\\"q\\"/\\`c\\`\\\\d'


@pytest.mark.skipif(shutil.which("sh") is None, reason="sh not available")
def test_block_is_valid_shell(tmp_path):
    hook = tmp_path / "pre-commit"
    hook.write_text(upsert_managed_block(None, _render(
        tmp_path, js_ts_tool=JsTsTool.PRETTIER_ESLINT, python_tool=PythonTool.RUFF,
        go_enabled=True, shell_enabled=True, terraform_enabled=True,
        c_cpp_enabled=True, ruby_enabled=True, cargo_manifest_dir=tmp_path,
    )))
    result = subprocess.run(["sh", "-n", str(hook)], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
