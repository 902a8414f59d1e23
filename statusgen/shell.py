"""Helpers for embedding values into generated bash source."""

from __future__ import annotations

import re
from typing import Mapping

_PLACEHOLDER_PATTERN = re.compile(r"@@([A-Z][A-Z0-9_]*)@@")


def printf_literal(text: str) -> str:
    """Escape ``text`` for use inside a single-quoted printf format string."""
    escaped = text.replace("\\", "\\\\").replace("%", "%%")
    return escaped.replace("'", "'\\''")


def render_fragment(template: str, values: Mapping[str, object] | None = None) -> str:
    """Substitute ``@@NAME@@`` placeholders and refuse to leave any unresolved."""
    values = values or {}
    missing = sorted(
        {match.group(1) for match in _PLACEHOLDER_PATTERN.finditer(template)} - set(values)
    )
    if missing:
        raise KeyError(f"Unresolved fragment placeholders: {', '.join(missing)}")
    return _PLACEHOLDER_PATTERN.sub(lambda match: str(values[match.group(1)]), template)


def critical_threshold(threshold: int) -> int:
    """Return ``round(threshold * 1.1)`` with halves rounded up, in integer math."""
    return (threshold * 110 + 50) // 100


def centi(value: float) -> int:
    """Scale a decimal value by 100 for integer-only shell comparisons."""
    return int(round(value * 100))


__all__ = [
    "centi",
    "critical_threshold",
    "printf_literal",
    "render_fragment",
]
