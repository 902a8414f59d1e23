"""Directory and model segments extracted from the host's JSON payload."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..models import BASIC_FEATURES, FeatureFragments, StyleFlags
from .base import FeatureGenerator, color_functions, colored, display_block, label, literal, segment
from .colors import theme_colors

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import StatuslineConfig

BASICS_DATA = r"""
# ---- basics ----
current_dir="unknown"
model_name="Claude"
model_version=""
if [ "$(command -v jq)" ]; then
  eval "$(printf '%s' "$input" | jq -r '{current_dir: (.workspace.current_dir // .cwd // "unknown"), model_name: (.model.display_name // "Claude"), model_version: (.model.version // "")} | to_entries | .[] | "\(.key)=\(.value | @sh)"' 2>/dev/null)"
fi
if [ -n "$HOME" ]; then
  case "$current_dir" in
    ("$HOME"*) current_dir="~${current_dir#"$HOME"}" ;;
  esac
fi
"""


class BasicsGenerator(FeatureGenerator):
    """Working directory and model name, parsed with a single jq call."""

    family = "basics"
    tags = BASIC_FEATURES

    def context(self, config: "StatuslineConfig") -> str:
        return f"basics:{','.join(self.selected(config))}"

    def generate(self, config: "StatuslineConfig", style: StyleFlags) -> FeatureFragments:
        if not self.enabled(config):
            return FeatureFragments.empty()

        palette = theme_colors(style.theme)
        utilities = ""
        if style.colors:
            utilities = "# ---- basic colors ----\n" + color_functions(
                style,
                {
                    "dir_clr": palette["directory"],
                    "model_clr": palette["model"],
                    "ver_clr": palette["version"],
                },
            )

        displays = []
        if config.has("directory"):
            displays.append(("directory", self._directory_display(style)))
        if config.has("model"):
            displays.append(("model", self._model_display(style)))

        return FeatureFragments(
            utilities=utilities,
            data=BASICS_DATA.strip("\n"),
            displays=tuple(displays),
            variables=("current_dir", "model_name", "model_version"),
        )

    @staticmethod
    def _directory_display(style: StyleFlags) -> str:
        body = segment(label(style, "📁", "dir: "), [colored(style, "dir_clr", "$current_dir")])
        return display_block("directory", '[ -n "$current_dir" ]', body)

    @staticmethod
    def _model_display(style: StyleFlags) -> str:
        lines: List[str] = [
            segment(label(style, "🤖", "model: "), [colored(style, "model_clr", "$model_name")])
        ]
        if style.theme == "detailed":
            version_format, version_args = colored(style, "ver_clr", "$model_version")
            fmt = literal(" ")[0] + version_format
            lines.append(
                f"if [ -n \"$model_version\" ]; then printf '{fmt}' {' '.join(version_args)}; fi"
            )
        return display_block("model", '[ -n "$model_name" ]', "\n".join(lines))


__all__ = ["BASICS_DATA", "BasicsGenerator"]
