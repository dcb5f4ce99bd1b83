"""Pure text transforms for the managed block inside a hook script.

A hook file is treated as a sequence of lines. The tool owns exactly the
lines from the begin marker to the end marker (inclusive); everything else
belongs to the user and is passed through untouched. Output always uses
``\\n`` line endings and ends with a single trailing newline.
"""

from __future__ import annotations

from .errors import BlockNotFoundError, MalformedError

MANAGED_BLOCK_BEGIN = "# >>> git-hook-installer managed block >>>"
MANAGED_BLOCK_END = "# <<< git-hook-installer managed block <<<"

ENABLED_VAR = "GHI_ENABLED"
DEFAULT_SHEBANG = "#!/bin/sh"


def split_lines(text: str) -> list[str]:
    """Split on ``\\n``, dropping a trailing ``\\r`` from each line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def join_lines(lines: list[str]) -> str:
    out = "\n".join(lines)
    if not out.endswith("\n"):
        out += "\n"
    return out


def find_block(lines: list[str]) -> tuple[int, int] | None:
    """Locate the managed block as an inclusive ``(start, end)`` line range.

    Returns None when neither marker is present. A begin marker without a
    following end marker, or an end marker before the first begin marker,
    raises MalformedError.
    """
    start = None
    for idx, line in enumerate(lines):
        if start is None:
            if line == MANAGED_BLOCK_BEGIN:
                start = idx
            elif line == MANAGED_BLOCK_END:
                raise MalformedError("Managed block end marker appears before its begin marker")
        elif line == MANAGED_BLOCK_END:
            return start, idx
    if start is not None:
        raise MalformedError("Managed block begin marker has no matching end marker")
    return None


def has_managed_block(text: str) -> bool:
    """True if a block (even a malformed one) is present."""
    try:
        return find_block(split_lines(text)) is not None
    except MalformedError:
        return True


def ensure_shebang(text: str) -> str:
    if text.startswith("#!"):
        return text
    return f"{DEFAULT_SHEBANG}\n{text}"


def upsert_managed_block(existing: str | None, block: str) -> str:
    """Insert ``block`` or replace the managed block already in ``existing``."""
    block_lines = split_lines(block)

    if existing is None:
        return ensure_shebang(join_lines(block_lines))

    lines = split_lines(existing)
    span = find_block(lines)
    if span is not None:
        start, end = span
        lines[start:end + 1] = block_lines
        return ensure_shebang(join_lines(lines))

    # No block yet: place it after the shebang, or at the very top
    insert_at = 1 if lines and lines[0].startswith("#!") else 0
    out = lines[:insert_at]
    if insert_at:
        out.append("")
    out.extend(block_lines)
    out.append("")
    out.extend(lines[insert_at:])
    return ensure_shebang(join_lines(out))


def _require_block(lines: list[str]) -> tuple[int, int]:
    span = find_block(lines)
    if span is None:
        raise BlockNotFoundError("No managed git-hook-installer block found in hook")
    return span


def disable_managed_block(existing: str) -> str:
    """Set the block's ``GHI_ENABLED=`` line to 0, leaving every other line alone."""
    lines = split_lines(existing)
    start, end = _require_block(lines)

    for idx in range(start, end + 1):
        line = lines[idx]
        stripped = line.lstrip()
        if stripped.startswith(f"{ENABLED_VAR}="):
            indent = line[:len(line) - len(stripped)]
            lines[idx] = f"{indent}{ENABLED_VAR}=0"
            return join_lines(lines)

    raise MalformedError(f"Managed block found, but no {ENABLED_VAR} setting line was found")


def read_enabled_flag(text: str) -> str | None:
    """Value assigned to ``GHI_ENABLED`` inside the block, if any."""
    lines = split_lines(text)
    span = find_block(lines)
    if span is None:
        return None
    start, end = span
    for line in lines[start:end + 1]:
        stripped = line.strip()
        if stripped.startswith(f"{ENABLED_VAR}="):
            return stripped.split("=", 1)[1]
    return None


def uninstall_managed_block(existing: str) -> str:
    """Remove exactly the managed block's lines."""
    lines = split_lines(existing)
    start, end = _require_block(lines)
    del lines[start:end + 1]
    return join_lines(lines)


def is_effectively_empty(text: str) -> bool:
    """True when nothing but a shebang line and blank lines remain."""
    lines = [line for line in split_lines(text) if line.strip()]
    if lines and lines[0].startswith("#!"):
        lines = lines[1:]
    return not lines
