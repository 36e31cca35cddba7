"""Header block parsing and composition."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable

from .logger import BoundLogger
from .types import HeaderEntry

if TYPE_CHECKING:
    from .transport.base import RequestHandle

# A line break followed by a non-blank character starts a new header;
# anything else is a folded continuation of the previous line.
_LINE_SPLIT = re.compile(r"\r?\n(?=[^ \t])")
_FOLD = re.compile(r"\r?\n[ \t]+")


def normalize_header_block(block: str | None) -> str | None:
    """Turn the first literal ``\\n`` of a configured block into a newline.

    Attribute and environment values often carry the two-character escape
    instead of a real line break.
    """
    if not block:
        return block
    return str(block).replace("\\n", "\n", 1)


def parse_headers(block: str | None) -> list[HeaderEntry]:
    if not block:
        return []
    entries: list[HeaderEntry] = []
    for raw_line in _LINE_SPLIT.split(str(block).strip()):
        line = _FOLD.sub(" ", raw_line).strip()
        if not line:
            continue
        name, sep, value = line.partition(":")
        if not sep:
            entries.append(HeaderEntry(line, ""))
            continue
        entries.append(HeaderEntry(name.strip(), value.strip()))
    return entries


def merge_headers(fixed_block: str | None, caller_block: str | None) -> list[HeaderEntry]:
    """Fixed headers first, then caller headers not shadowed by a fixed name."""
    fixed = parse_headers(fixed_block)
    fixed_names = {entry.name for entry in fixed}
    merged = list(fixed)
    for entry in parse_headers(caller_block):
        if entry.name in fixed_names:
            continue
        merged.append(entry)
    return merged


def apply_headers(handle: RequestHandle, entries: Iterable[HeaderEntry], logger: BoundLogger) -> int:
    """Set each header on the handle; a rejected header is logged and skipped.

    Returns the number of headers that were accepted.
    """
    applied = 0
    for entry in entries:
        try:
            handle.set_request_header(entry.name, entry.value)
        except Exception as exc:
            logger.warn("Header %s cannot be set with value %s: %s", entry.name, entry.value, exc)
            continue
        applied += 1
    return applied


def serialize_headers(pairs: Iterable[tuple[str, str]]) -> str:
    return "".join(f"{name}: {value}\r\n" for name, value in pairs)


__all__ = [
    "apply_headers",
    "merge_headers",
    "normalize_header_block",
    "parse_headers",
    "serialize_headers",
]
