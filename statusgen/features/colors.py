"""Terminal color setup and theme palettes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from ..models import FeatureFragments, StyleFlags
from .base import FeatureGenerator

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import StatuslineConfig

COLOR_CODES: Dict[str, str] = {
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "bright_red": "1;31",
    "bright_green": "1;32",
    "bright_yellow": "1;33",
    "bright_blue": "1;34",
    "bright_magenta": "1;35",
    "bright_cyan": "1;36",
}

THEME_PALETTES: Dict[str, Dict[str, str]] = {
    "minimal": {
        "directory": COLOR_CODES["cyan"],
        "git": COLOR_CODES["green"],
        "model": COLOR_CODES["magenta"],
        "version": COLOR_CODES["yellow"],
        "usage": COLOR_CODES["yellow"],
    },
    "detailed": {
        "directory": COLOR_CODES["bright_cyan"],
        "git": COLOR_CODES["bright_green"],
        "model": COLOR_CODES["bright_magenta"],
        "version": COLOR_CODES["bright_yellow"],
        "usage": COLOR_CODES["bright_yellow"],
    },
    "compact": {
        "directory": COLOR_CODES["cyan"],
        "git": COLOR_CODES["green"],
        "model": COLOR_CODES["blue"],
        "version": COLOR_CODES["yellow"],
        "usage": COLOR_CODES["yellow"],
    },
}

_COLORS_DISABLED = """
# ---- color helpers (disabled) ----
use_color=0
C() { :; }
RST() { :; }
rst() { :; }
"""

_COLORS_ENABLED = r"""
# ---- color helpers (terminal aware, honors NO_COLOR) ----
use_color=1
case "$TERM" in
  (dumb|unknown) use_color=0 ;;
esac
if [ -n "$NO_COLOR" ]; then
  use_color=0
elif [ -n "$FORCE_COLOR" ]; then
  use_color=1
fi

C() { (( use_color )) && printf '\033[%sm' "$1"; }
RST() { (( use_color )) && printf '\033[0m'; }
rst() { (( use_color )) && printf '\033[0m'; }
"""


def theme_colors(theme: str) -> Dict[str, str]:
    return THEME_PALETTES.get(theme, THEME_PALETTES["detailed"])


def generate_color_setup(style: StyleFlags) -> str:
    text = _COLORS_ENABLED if style.colors else _COLORS_DISABLED
    return text.strip("\n")


class ColorsGenerator(FeatureGenerator):
    """Always-on family that owns ``use_color`` and the reset helpers."""

    family = "colors"

    def enabled(self, config: "StatuslineConfig") -> bool:
        return True

    def context(self, config: "StatuslineConfig") -> str:
        return "colors"

    def generate(self, config: "StatuslineConfig", style: StyleFlags) -> FeatureFragments:
        return FeatureFragments(utilities=generate_color_setup(style))


__all__ = [
    "COLOR_CODES",
    "ColorsGenerator",
    "THEME_PALETTES",
    "generate_color_setup",
    "theme_colors",
]
