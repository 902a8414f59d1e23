"""Shared data structures for statusline generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

# Render priority; also the canonical order used when listing features.
DISPLAY_ORDER: Tuple[str, ...] = (
    "directory",
    "git",
    "model",
    "cpu",
    "memory",
    "load",
    "usage",
    "session",
    "tokens",
    "burnrate",
)
KNOWN_FEATURES = frozenset(DISPLAY_ORDER)
USAGE_FEATURES: Tuple[str, ...] = ("usage", "session", "tokens", "burnrate")
SYSTEM_FEATURES: Tuple[str, ...] = ("cpu", "memory", "load")
BASIC_FEATURES: Tuple[str, ...] = ("directory", "model")

THEMES: Tuple[str, ...] = ("minimal", "detailed", "compact")
DEFAULT_THEME = "detailed"


@dataclass(frozen=True)
class StyleFlags:
    """Presentation switches shared by every fragment generator."""

    colors: bool = True
    theme: str = DEFAULT_THEME
    emojis: bool = True

    @property
    def compact(self) -> bool:
        return self.theme == "compact"

    @property
    def minimal(self) -> bool:
        return self.theme == "minimal"

    def cache_token(self) -> str:
        return f"colors={int(self.colors)};theme={self.theme};emojis={int(self.emojis)}"


@dataclass(frozen=True)
class FeatureFragments:
    """Independently insertable shell text produced by one feature family.

    ``displays`` holds ``(anchor_tag, text)`` pairs; the assembler emits each
    text when it reaches ``anchor_tag`` in :data:`DISPLAY_ORDER`.
    """

    utilities: str = ""
    data: str = ""
    displays: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    variables: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "FeatureFragments":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.utilities or self.data or self.displays)


__all__ = [
    "BASIC_FEATURES",
    "DEFAULT_THEME",
    "DISPLAY_ORDER",
    "FeatureFragments",
    "KNOWN_FEATURES",
    "StyleFlags",
    "SYSTEM_FEATURES",
    "THEMES",
    "USAGE_FEATURES",
]
