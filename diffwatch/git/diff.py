"""Raw unified diffs, file contents, and terminal colorizing.

Diff and file text is sanitized of terminal control bytes before display,
then optionally colorized with Pygments. Files without a diff (untracked or
unchanged) are shown as their working-tree content instead.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import DiffLexer, TextLexer, get_lexer_for_filename
from pygments.styles import get_all_styles
from pygments.util import ClassNotFound

from .runner import GitCommandError, run_git

logger = logging.getLogger(__name__)

DIFF_CONTEXT_LINES = 3
DEFAULT_STYLE = "monokai"
BINARY_PROBE_BYTES = 4_096
BINARY_FILE_MESSAGE = "<binary file>"

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def sanitize_terminal_text(text: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(text) is None:
        return text

    out: list[str] = []
    for ch in text:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


async def _diff_or_empty(repo_root: Path, args: list[str]) -> str:
    try:
        result = await run_git(repo_root, args)
    except GitCommandError:
        return ""
    return result.stdout


async def get_raw_diff(repo_root: Path, path: str, context_lines: int = DIFF_CONTEXT_LINES) -> str:
    """Return ``git diff HEAD`` for ``path``; empty when git has nothing to show."""
    unified = f"-U{context_lines}"
    diff_text = await _diff_or_empty(repo_root, ["diff", "--no-color", unified, "HEAD", "--", path])
    if not diff_text:
        # Unborn HEAD: fall back to index and work-tree diffs.
        diff_text = await _diff_or_empty(repo_root, ["diff", "--cached", "--no-color", unified, "--", path])
    if not diff_text:
        diff_text = await _diff_or_empty(repo_root, ["diff", "--no-color", unified, "--", path])
    return sanitize_terminal_text(diff_text)


@lru_cache(maxsize=8)
def _formatter_for_style(style: str) -> TerminalFormatter:
    return TerminalFormatter(style=style)


def _normalize_style(style: str) -> str:
    return style if style in set(get_all_styles()) else DEFAULT_STYLE


def colorize_diff(diff_text: str, style: str = DEFAULT_STYLE, no_color: bool = False) -> str:
    if no_color or not diff_text:
        return diff_text
    try:
        formatter = _formatter_for_style(_normalize_style(style))
    except ClassNotFound:
        return diff_text
    return highlight(diff_text, DiffLexer(), formatter)


def colorize_source(source: str, path: str, style: str = DEFAULT_STYLE, no_color: bool = False) -> str:
    """Highlight file content by its name; plain text lexer when unknown."""
    if no_color or not source:
        return source
    try:
        lexer = get_lexer_for_filename(Path(path).name, source)
    except ClassNotFound:
        lexer = TextLexer()
    try:
        formatter = _formatter_for_style(_normalize_style(style))
    except ClassNotFound:
        return source
    return highlight(source, lexer, formatter)


@dataclass(frozen=True)
class FileContent:
    """Working-tree content of a file; ``text`` is empty for binaries."""

    text: str
    binary: bool = False


def _read_file_content(target: Path) -> FileContent:
    with target.open("rb") as handle:
        data = handle.read()
    if b"\x00" in data[:BINARY_PROBE_BYTES]:
        return FileContent(text="", binary=True)
    return FileContent(text=sanitize_terminal_text(data.decode("utf-8", errors="replace")))


async def read_file_content(repo_root: Path, path: str) -> FileContent:
    """Read a working-tree file for display; unreadable files give empty text."""
    target = Path(path)
    if not target.is_absolute():
        target = repo_root / target
    try:
        return await asyncio.to_thread(_read_file_content, target)
    except OSError as exc:
        logger.warning("failed to read %s: %s", target, exc)
        return FileContent(text="")


async def render_file_view(
    repo_root: Path,
    path: str,
    *,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> str:
    """Diff of ``path`` against HEAD, or its content when git has no diff.

    Untracked files have no diff, so they are shown as content. Binary
    content is replaced by ``BINARY_FILE_MESSAGE``.
    """
    diff_text = await get_raw_diff(repo_root, path)
    if diff_text:
        return colorize_diff(diff_text, style, no_color=no_color)
    content = await read_file_content(repo_root, path)
    if content.binary:
        return BINARY_FILE_MESSAGE + "\n"
    return colorize_source(content.text, path, style, no_color=no_color)


__all__ = [
    "BINARY_FILE_MESSAGE",
    "BINARY_PROBE_BYTES",
    "DEFAULT_STYLE",
    "DIFF_CONTEXT_LINES",
    "FileContent",
    "colorize_diff",
    "colorize_source",
    "get_raw_diff",
    "read_file_content",
    "render_file_view",
    "sanitize_terminal_text",
]
