"""Render the managed pre-commit block.

The block is POSIX sh. It formats staged files with whichever tools the
settings enable, re-stages them, and rolls the index and worktree back if a
tool fails. Tools missing from PATH are skipped at hook run time.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .managed_block import ENABLED_VAR, MANAGED_BLOCK_BEGIN, MANAGED_BLOCK_END
from .manifest import relative_display
from .settings import HookSettings, JavaKotlinTool, JsTsTool, PythonTool

_HELPERS = r'''ghi_echo() {
  printf '%s\n' "git-hook-installer: $*"
}

ghi_has_cmd() {
  command -v "$1" >/dev/null 2>&1
}

ghi_staged_files() {
  git diff --cached --name-only --diff-filter=ACMR
}

ghi_filter_by_ext() {
  # usage: ghi_filter_by_ext "<files>" "<pattern1>" "<pattern2>" ...
  files="$1"
  shift
  if [ -z "$files" ]; then
    return 0
  fi

  for file in $files; do
    for pattern in "$@"; do
      case "$file" in
        $pattern)
          printf '%s\n' "$file"
          break
          ;;
      esac
    done
  done
}

ghi_git_add_list() {
  files="$1"
  if [ -z "$files" ]; then
    return 0
  fi

  for file in $files; do
    git add -- "$file"
  done
}

ghi_make_tmpdir() {
  tmp="$(mktemp -d 2>/dev/null || mktemp -d -t ghi)"
  printf '%s' "$tmp"
}

ghi_has_unstaged_or_untracked() {
  if ! git diff --quiet; then
    return 0
  fi
  if [ -n "$(git ls-files --others --exclude-standard)" ]; then
    return 0
  fi
  return 1
}

GHI_TMPDIR=""
GHI_DID_STASH=0
GHI_SUCCESS=0

ghi_rollback() {
  ghi_echo "Rolling back index/worktree to pre-hook state..."
  git reset --hard >/dev/null 2>&1 || true

  if [ -s "$GHI_TMPDIR/index.patch" ]; then
    git apply --index "$GHI_TMPDIR/index.patch" >/dev/null 2>&1 || true
  fi

  if [ "$GHI_DID_STASH" = "1" ]; then
    git stash pop --index >/dev/null 2>&1 || {
      ghi_echo "WARNING: stash pop had conflicts; your stash was preserved. Run: git stash list"
      return 0
    }
  elif [ -s "$GHI_TMPDIR/worktree.patch" ]; then
    git apply "$GHI_TMPDIR/worktree.patch" >/dev/null 2>&1 || true
  fi
}

ghi_cleanup() {
  status="$1"

  if [ "$status" -ne 0 ] && [ "$GHI_SUCCESS" -ne 1 ]; then
    ghi_rollback
  fi

  if [ "$status" -eq 0 ] && [ "$GHI_DID_STASH" = "1" ]; then
    git stash pop --index >/dev/null 2>&1 || {
      ghi_echo "WARNING: stash pop had conflicts; your stash was preserved. Run: git stash list"
      return 0
    }
  fi

  if [ -n "$GHI_TMPDIR" ] && [ -d "$GHI_TMPDIR" ]; then
    rm -rf "$GHI_TMPDIR" >/dev/null 2>&1 || true
  fi
}
'''

_CARGO_FMT = r'''ghi_run_cargo_fmt() {
  if [ "$GHI_CARGO_MANIFEST_DIR" = "(none)" ]; then
    return 0
  fi

  if ! ghi_has_cmd cargo; then
    ghi_echo "cargo not found; skipping cargo fmt"
    return 0
  fi

  ghi_echo "Running cargo fmt..."
  (cd "$GHI_CARGO_MANIFEST_DIR" && cargo fmt)
}
'''


def _simple_runner(name: str, cmd: str, fix_args: str, label: str) -> str:
    invocation = f"{cmd} {fix_args}".rstrip()
    return f'''ghi_run_{name}() {{
  files="$1"
  if [ -z "$files" ]; then
    return 0
  fi

  if ! ghi_has_cmd {cmd}; then
    ghi_echo "{cmd} not found; skipping {label}"
    return 0
  fi

  ghi_echo "Running {cmd} (fix)..."
  {invocation} $files
}}
'''


def _npx_fallback(cmd: str, args: str, files_var: str, what: str) -> str:
    return f'''    if ghi_has_cmd {cmd}; then
      ghi_echo "Running {cmd}{what}..."
      {cmd} {args} ${files_var}
    elif ghi_has_cmd npx; then
      ghi_echo "Running {cmd} via npx{what}..."
      npx --no-install {cmd} {args} ${files_var}
    else
      ghi_echo "{cmd} not found; skipping {cmd}"
    fi
'''


@dataclass
class _Section:
    """Functions, file filters and run steps contributed by one language."""
    functions: str = ""
    filters: str = ""
    run: str = ""


def _filter(var: str, *patterns: str) -> str:
    pats = " ".join(f'"{p}"' for p in patterns)
    return f'  {var}="$(ghi_filter_by_ext "$staged" {pats})"\n'


def _run_and_add(comment: str, call: str, var: str) -> str:
    return f'  # {comment}\n  {call} "${var}"\n  ghi_git_add_list "${var}"\n'


def _js_ts_section(tool: JsTsTool | None) -> _Section:
    if tool is None:
        return _Section()
    functions = (
        '''ghi_run_js_ts_biome() {
  files="$1"
  if [ -z "$files" ]; then
    return 0
  fi

  if ghi_has_cmd biome; then
    ghi_echo "Running biome (fix + lint)..."
    biome check --write $files
  elif ghi_has_cmd npx; then
    ghi_echo "Running biome via npx (fix + lint)..."
    npx --no-install biome check --write $files
  else
    ghi_echo "biome not found; skipping JS/TS"
  fi
}

ghi_run_js_ts_prettier_eslint() {
  files_js_ts_json="$1"
  files_js_ts="$2"

  if [ -n "$files_js_ts_json" ]; then
'''
        + _npx_fallback("prettier", "--write", "files_js_ts_json", " (fix)")
        + '''  fi

  if [ -n "$files_js_ts" ]; then
'''
        + _npx_fallback("eslint", "--fix", "files_js_ts", " (fix)")
        + '''  fi
}
'''
    )
    filters = (
        _filter("files_js_ts", "*.js", "*.jsx", "*.ts", "*.tsx")
        + _filter("files_js_ts_json", "*.js", "*.jsx", "*.ts", "*.tsx", "*.json")
    )
    run = '''  # JS/TS + JSON
  if [ "$GHI_JS_TS_TOOL" = "biome" ]; then
    ghi_run_js_ts_biome "$files_js_ts_json"
  else
    ghi_run_js_ts_prettier_eslint "$files_js_ts_json" "$files_js_ts"
  fi
  ghi_git_add_list "$files_js_ts_json"

  # Markdown/YAML always uses prettier if available
  if [ -n "$files_md_yaml" ]; then
''' + _npx_fallback("prettier", "--write", "files_md_yaml", " on Markdown/YAML") + '''    ghi_git_add_list "$files_md_yaml"
  fi
'''
    return _Section(functions, _filter("files_md_yaml", "*.md", "*.markdown", "*.yml", "*.yaml") + filters, run)


def _python_section(tool: PythonTool | None) -> _Section:
    if tool is None:
        return _Section()
    functions = '''ghi_run_python_ruff() {
  files="$1"
  if [ -z "$files" ]; then
    return 0
  fi

  if ! ghi_has_cmd ruff; then
    ghi_echo "ruff not found; skipping Python"
    return 0
  fi

  ghi_echo "Running ruff format (fix)..."
  ruff format $files
  ghi_echo "Running ruff check --fix..."
  ruff check --fix $files
}

''' + _simple_runner("python_black", "black", "", "Python")
    run = '''  # Python
  if [ "$GHI_PYTHON_TOOL" = "ruff" ]; then
    ghi_run_python_ruff "$files_py"
  else
    ghi_run_python_black "$files_py"
  fi
  ghi_git_add_list "$files_py"
'''
    return _Section(functions, _filter("files_py", "*.py"), run)


def _java_kotlin_section(tool: JavaKotlinTool | None) -> _Section:
    if tool is None:
        return _Section()
    functions = '''ghi_run_java_kotlin_spotless() {
  all_staged_files="$1"
  if [ -z "$all_staged_files" ]; then
    return 0
  fi

  if [ -x "./gradlew" ]; then
    ghi_echo "Running ./gradlew spotlessApply (fix)..."
    ./gradlew -q spotlessApply
  elif ghi_has_cmd gradle; then
    ghi_echo "Running gradle spotlessApply (fix)..."
    gradle -q spotlessApply
  else
    ghi_echo "spotless requested but gradle/gradlew not found; skipping"
    return 0
  fi
  ghi_git_add_list "$all_staged_files"
}

''' + _simple_runner("java_kotlin_ktlint", "ktlint", "-F", "Kotlin")
    run = '''  # Java/Kotlin
  if [ "$GHI_JAVA_KOTLIN_TOOL" = "spotless" ]; then
    ghi_run_java_kotlin_spotless "$staged"
  else
    ghi_run_java_kotlin_ktlint "$files_kt"
    ghi_git_add_list "$files_kt"
  fi
'''
    return _Section(functions, _filter("files_kt", "*.kt", "*.kts"), run)


def _shell_section() -> _Section:
    functions = '''ghi_run_shell() {
  files="$1"
  if [ -z "$files" ]; then
    return 0
  fi

  if ghi_has_cmd shfmt; then
    ghi_echo "Running shfmt (fix)..."
    shfmt -w $files
  else
    ghi_echo "shfmt not found; skipping shell formatting"
  fi

  if ghi_has_cmd shellcheck; then
    ghi_echo "Running shellcheck (lint)..."
    shellcheck $files
  else
    ghi_echo "shellcheck not found; skipping shellcheck"
  fi
}
'''
    return _Section(
        functions,
        _filter("files_sh", "*.sh", "*.bash", "*.zsh"),
        _run_and_add("Shell", "ghi_run_shell", "files_sh"),
    )


def _terraform_section() -> _Section:
    functions = '''ghi_run_terraform() {
  files="$1"
  if [ -z "$files" ]; then
    return 0
  fi

  if ! ghi_has_cmd terraform; then
    ghi_echo "terraform not found; skipping Terraform"
    return 0
  fi

  dirs="$(printf '%s\\n' $files | while read -r f; do dirname "$f"; done | sort -u)"
  for d in $dirs; do
    ghi_echo "Running terraform fmt in $d..."
    (cd "$d" && terraform fmt)
  done
}
'''
    return _Section(
        functions,
        _filter("files_tf", "*.tf", "*.tfvars"),
        _run_and_add("Terraform", "ghi_run_terraform", "files_tf"),
    )


def _sections(settings: HookSettings) -> list[_Section]:
    sections = [
        _js_ts_section(settings.js_ts_tool),
        _python_section(settings.python_tool),
    ]
    if settings.go_enabled:
        sections.append(_Section(
            _simple_runner("go", "gofmt", "-w", "Go"),
            _filter("files_go", "*.go"),
            _run_and_add("Go", "ghi_run_go", "files_go"),
        ))
    if settings.shell_enabled:
        sections.append(_shell_section())
    if settings.terraform_enabled:
        sections.append(_terraform_section())
    if settings.c_cpp_enabled:
        sections.append(_Section(
            _simple_runner("clang_format", "clang-format", "-i", "C/C++"),
            _filter("files_c_cpp", "*.c", "*.cc", "*.cpp", "*.cxx", "*.h", "*.hh", "*.hpp", "*.hxx"),
            _run_and_add("C/C++", "ghi_run_clang_format", "files_c_cpp"),
        ))
    sections.append(_java_kotlin_section(settings.java_kotlin_tool))
    if settings.ruby_enabled:
        sections.append(_Section(
            _simple_runner("rubocop", "rubocop", "-A", "Ruby"),
            _filter("files_rb", "*.rb"),
            _run_and_add("Ruby", "ghi_run_rubocop", "files_rb"),
        ))
    return sections


def shell_escape_path(path: Path) -> str:
    """Escape a path for use inside double quotes in POSIX sh."""
    out = []
    for ch in str(path):
        if ch in '\\"$`':
            out.append("\\")
        out.append(ch)
    return "".join(out)


def _flag(value: bool) -> str:
    return "1" if value else "0"


def _tool_value(tool) -> str:
    return tool.value if tool is not None else ""


def _tool_note(tool) -> str:
    return tool.value if tool is not None else "(disabled)"


def managed_pre_commit_block(settings: HookSettings, repo_root: Path) -> str:
    """Render the complete managed block, markers included."""
    if settings.cargo_manifest_dir is not None:
        manifest_note = relative_display(repo_root, settings.cargo_manifest_dir)
        manifest_shell = shell_escape_path(settings.cargo_manifest_dir)
    else:
        manifest_note = manifest_shell = "(none)"

    sections = _sections(settings)
    functions = "\n".join(s.functions for s in sections if s.functions)
    filters = "".join(s.filters for s in sections)
    runs = "\n".join(s.run for s in sections if s.run)

    header = f'''{MANAGED_BLOCK_BEGIN}
# git-hook-installer settings (stored locally in this hook file):
#   enabled={_flag(settings.enabled)}
#   js_ts_tool={_tool_note(settings.js_ts_tool)}
#   python_tool={_tool_note(settings.python_tool)}
#   java_kotlin_tool={_tool_note(settings.java_kotlin_tool)}
#   go_enabled={_flag(settings.go_enabled)}
#   shell_enabled={_flag(settings.shell_enabled)}
#   terraform_enabled={_flag(settings.terraform_enabled)}
#   c_cpp_enabled={_flag(settings.c_cpp_enabled)}
#   ruby_enabled={_flag(settings.ruby_enabled)}
#   cargo_manifest_dir={manifest_note}
#   default_mode=fix
#   unstaged_changes=stash(--keep-index --include-untracked) + restore
#   rollback_on_error=git reset --hard + re-apply saved index diff (+ stash pop if used)

{ENABLED_VAR}={_flag(settings.enabled)}
GHI_JS_TS_TOOL="{_tool_value(settings.js_ts_tool)}"
GHI_PYTHON_TOOL="{_tool_value(settings.python_tool)}"
GHI_JAVA_KOTLIN_TOOL="{_tool_value(settings.java_kotlin_tool)}"
GHI_CARGO_MANIFEST_DIR="{manifest_shell}"
'''

    main = f'''ghi_main() {{
  if [ "${ENABLED_VAR}" != "1" ]; then
    return 0
  fi

  set -eu

  if ! ghi_has_cmd git; then
    ghi_echo "git not found; skipping"
    return 0
  fi

  GHI_TMPDIR="$(ghi_make_tmpdir)"
  git diff --cached --binary > "$GHI_TMPDIR/index.patch" 2>/dev/null || true
  git diff --binary > "$GHI_TMPDIR/worktree.patch" 2>/dev/null || true

  if ghi_has_unstaged_or_untracked; then
    ghi_echo "Stashing unstaged/untracked changes (keeping index) before auto-fix..."
    git stash push --keep-index --include-untracked -m "git-hook-installer pre-commit auto-stash" >/dev/null 2>&1
    GHI_DID_STASH=1
  fi

  staged="$(ghi_staged_files)"
  if [ -z "$staged" ]; then
    GHI_SUCCESS=1
    return 0
  fi

{filters}
{runs}
  # Rust: cargo fmt formats the whole workspace, not just staged files
  ghi_run_cargo_fmt

  GHI_SUCCESS=1
  return 0
}}

trap 'ghi_cleanup $?' EXIT HUP INT TERM
ghi_main
{MANAGED_BLOCK_END}
'''

    return "\n".join([header, _HELPERS, functions, _CARGO_FMT, main])
