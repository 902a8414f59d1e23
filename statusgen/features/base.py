"""Base classes and shared helpers for feature fragment generators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Mapping, Sequence, Tuple

from ..models import FeatureFragments, StyleFlags
from ..shell import printf_literal

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import StatuslineConfig

SEPARATOR_VAR = "seg_sep"


class FeatureGenerator(ABC):
    """Contract for generators that turn feature selections into shell fragments.

    ``generate`` must be a pure function of the configuration slice returned by
    ``context`` and the style flags; the generator caches on exactly that pair.
    """

    family: str = ""
    tags: Tuple[str, ...] = ()

    def enabled(self, config: "StatuslineConfig") -> bool:
        return config.has_any(self.tags)

    def selected(self, config: "StatuslineConfig") -> List[str]:
        return [tag for tag in self.tags if config.has(tag)]

    @abstractmethod
    def context(self, config: "StatuslineConfig") -> str:
        """Return a stable description of every input this family reads."""

    @abstractmethod
    def generate(self, config: "StatuslineConfig", style: StyleFlags) -> FeatureFragments:
        """Produce utilities, data and display fragments for the family."""


def label(style: StyleFlags, emoji: str, text: str) -> str:
    """Emoji prefix when emojis are on, otherwise a plain text label."""
    return f"{emoji} " if style.emojis else text


def color_functions(style: StyleFlags, codes: Mapping[str, str]) -> str:
    """Define one printf color helper per name; no-op stubs when colors are off."""
    lines: List[str] = []
    for name, code in codes.items():
        if style.colors:
            lines.append(f"{name}() {{ (( use_color )) && printf '\\033[{code}m'; }}")
        else:
            lines.append(f"{name}() {{ :; }}")
    return "\n".join(lines)


def colored(style: StyleFlags, color_call: str, value: str) -> Tuple[str, List[str]]:
    """Return a printf format piece and its arguments for ``value``.

    ``color_call`` is the shell command producing the escape, e.g. ``dir_clr``.
    """
    if style.colors:
        return "%s%s%s", [f'"$({color_call})"', f'"{value}"', '"$(rst)"']
    return "%s", [f'"{value}"']


def segment(prefix: str, pieces: Sequence[Tuple[str, List[str]]]) -> str:
    """One printf call emitting a statusline segment after the running separator."""
    fmt = "%s" + printf_literal(prefix)
    args = [f'"${SEPARATOR_VAR}"']
    for piece_format, piece_args in pieces:
        fmt += piece_format
        args.extend(piece_args)
    return f"printf '{fmt}' {' '.join(args)}\n{SEPARATOR_VAR}='  '"


def display_block(tag: str, condition: str, body: str) -> str:
    """Wrap a display body in its ``# display: <tag>`` marker and guard."""
    indented = "\n".join(f"  {line}" if line else line for line in body.splitlines())
    return f"# display: {tag}\nif {condition}; then\n{indented}\nfi"


def literal(text: str) -> Tuple[str, List[str]]:
    """A fixed text piece for :func:`segment`."""
    return printf_literal(text), []


__all__ = [
    "FeatureGenerator",
    "SEPARATOR_VAR",
    "color_functions",
    "colored",
    "display_block",
    "label",
    "literal",
    "segment",
]
