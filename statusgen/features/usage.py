"""Cost, session, token and burn-rate segments backed by the ccusage CLI."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING, List

from ..models import USAGE_FEATURES, FeatureFragments, StyleFlags
from ..shell import render_fragment
from ..stores.runtime_cache import generate_runtime_cache_snippet
from .base import FeatureGenerator, color_functions, colored, display_block, label, literal, segment
from .colors import theme_colors

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import StatuslineConfig

PROGRESS_BAR_WIDTH = 10
USAGE_COMMAND_TIMEOUT = 3

USAGE_HELPERS = r"""
fetch_usage_blocks() {
  if command -v ccusage >/dev/null 2>&1; then
    run_with_timeout @@TIMEOUT@@ ccusage blocks --json 2>/dev/null && return 0
  fi
  if command -v npx >/dev/null 2>&1; then
    run_with_timeout @@TIMEOUT@@ npx ccusage@latest blocks --json 2>/dev/null
  fi
}

to_epoch() {
  local ts="$1"
  [ -n "$ts" ] || return 1
  if command -v gdate >/dev/null 2>&1; then
    gdate -d "$ts" +%s 2>/dev/null && return 0
  fi
  date -d "$ts" +%s 2>/dev/null && return 0
  date -u -j -f "%Y-%m-%dT%H:%M:%S" "${ts%%[.Z]*}" +%s 2>/dev/null && return 0
  python3 -c "import sys, datetime; print(int(datetime.datetime.fromisoformat(sys.argv[1].replace('Z', '+00:00')).timestamp()))" "$ts" 2>/dev/null
}

fmt_time_hm() {
  date -d "@$1" +%H:%M 2>/dev/null || date -r "$1" +%H:%M 2>/dev/null
}
"""

SESSION_HELPERS = r"""
progress_bar() {
  local pct="${1:-0}" width="${2:-@@WIDTH@@}" filled empty
  [[ $pct =~ ^[0-9]+$ ]] || pct=0
  (( pct > 100 )) && pct=100
  filled=$(( pct * width / 100 ))
  empty=$(( width - filled ))
  printf '%*s' "$filled" '' | tr ' ' '='
  printf '%*s' "$empty" '' | tr ' ' '-'
}

"""

SESSION_COLOR = r"""
session_clr() {
  (( use_color )) || return 0
  local remaining=$(( 100 - session_percent ))
  if (( remaining <= 10 )); then
    printf '\033[38;5;203m'
  elif (( remaining <= 25 )); then
    printf '\033[38;5;228m'
  else
    printf '\033[38;5;194m'
  fi
}
"""

USAGE_EXTRACT = r"""
if [ -n "$usage_payload" ]; then
  eval "$(printf '%s' "$usage_payload" | jq -r '(.blocks // []) | map(select(.isActive == true)) | (.[0] // {}) | {cost_usd: (.costUSD // ""), cost_per_hour: (.burnRate.costPerHour // ""), total_tokens: (.totalTokens // ""), tokens_per_minute: (.burnRate.tokensPerMinute // ""), reset_time_str: (.usageLimitResetTime // .endTime // ""), start_time_str: (.startTime // "")} | to_entries | .[] | "\(.key)=\(.value | @sh)"' 2>/dev/null)"
fi
"""

SESSION_CALC = r"""
if [ -n "$reset_time_str" ] && [ -n "$start_time_str" ]; then
  session_start=$(to_epoch "$start_time_str")
  session_end=$(to_epoch "$reset_time_str")
  session_now=$(date +%s)
  if [[ $session_start =~ ^[0-9]+$ ]] && [[ $session_end =~ ^[0-9]+$ ]] && (( session_end > session_start )); then
    session_elapsed=$(( session_now - session_start ))
    (( session_elapsed < 0 )) && session_elapsed=0
    session_percent=$(( session_elapsed * 100 / (session_end - session_start) ))
    (( session_percent > 100 )) && session_percent=100
    session_remaining=$(( session_end - session_now ))
    (( session_remaining < 0 )) && session_remaining=0
    session_txt=$(printf '%dh %dm until reset at %s (%d%%)' $(( session_remaining / 3600 )) $(( session_remaining % 3600 / 60 )) "$(fmt_time_hm "$session_end")" "$session_percent")
@@BAR@@  fi
fi
"""


def _is_number(variable: str) -> str:
    return f"[[ {variable} =~ ^[0-9]+([.][0-9]+)?$ ]]"


class UsageGenerator(FeatureGenerator):
    """One data block and one combined render block for all usage tags."""

    family = "usage"
    tags = USAGE_FEATURES

    def context(self, config: "StatuslineConfig") -> str:
        selected = ",".join(self.selected(config))
        return f"usage:{selected};integration={int(config.usage_integration)}"

    def show_progress_bar(self, config: "StatuslineConfig", style: StyleFlags) -> bool:
        return config.has("session") and not style.minimal

    def generate(self, config: "StatuslineConfig", style: StyleFlags) -> FeatureFragments:
        if not self.enabled(config):
            return FeatureFragments.empty()

        return FeatureFragments(
            utilities=self._utilities(config, style),
            data=self._data(config, style),
            displays=((self.selected(config)[0], self._display(config, style)),),
            variables=(
                "cost_usd",
                "cost_per_hour",
                "total_tokens",
                "tokens_per_minute",
                "session_percent",
            ),
        )

    def _utilities(self, config: "StatuslineConfig", style: StyleFlags) -> str:
        palette = theme_colors(style.theme)
        parts = [
            "# ---- usage utilities ----",
            color_functions(
                style,
                {
                    "cost_clr": palette["usage"],
                    "token_clr": "1;37",
                    "burn_clr": "38;5;208",
                },
            ),
            render_fragment(USAGE_HELPERS, {"TIMEOUT": USAGE_COMMAND_TIMEOUT}).strip("\n"),
        ]
        if config.has("session"):
            parts.append(render_fragment(SESSION_HELPERS, {"WIDTH": PROGRESS_BAR_WIDTH}).strip("\n"))
            if style.colors:
                parts.append(SESSION_COLOR.strip("\n"))
            else:
                parts.append("session_clr() { :; }")
        return "\n".join(parts)

    def _data(self, config: "StatuslineConfig", style: StyleFlags) -> str:
        lines = [
            "# ---- usage ----",
            'cost_usd=""',
            'cost_per_hour=""',
            'total_tokens=""',
            'tokens_per_minute=""',
            'reset_time_str=""',
            'start_time_str=""',
            'session_txt=""',
            "session_percent=0",
            'session_bar=""',
        ]
        if not config.usage_integration:
            lines.append("# usage integration disabled; usage segments stay empty")
            return "\n".join(lines)

        fetch = generate_runtime_cache_snippet("usage", "fetch_usage_blocks", target="usage_payload")
        lines.append('if [ "$(command -v jq)" ]; then')
        lines.append(textwrap.indent(fetch, "  "))
        lines.append(textwrap.indent(USAGE_EXTRACT.strip("\n"), "  "))
        if config.has("session"):
            bar = ""
            if self.show_progress_bar(config, style):
                bar = f'    session_bar=$(progress_bar "$session_percent" {PROGRESS_BAR_WIDTH})\n'
            session = render_fragment(SESSION_CALC, {"BAR": bar}).strip("\n")
            lines.append(textwrap.indent(session, "  "))
        lines.append("fi")
        return "\n".join(lines)

    def _display(self, config: "StatuslineConfig", style: StyleFlags) -> str:
        blocks: List[str] = ["# ---- usage render ----"]
        if config.has("usage"):
            cost_args = colored(style, "cost_clr", "$cost_usd")[1]
            amount = ("%s$%.2f%s" if style.colors else "$%.2f", cost_args)
            prefix = label(style, "💵", "")
            with_rate = segment(prefix, [amount, (" ($%.2f/h)", ['"$cost_per_hour"'])])
            without_rate = segment(prefix, [amount])
            body = "\n".join(
                [
                    f"if {_is_number('$cost_per_hour')}; then",
                    textwrap.indent(with_rate, "  "),
                    "else",
                    textwrap.indent(without_rate, "  "),
                    "fi",
                ]
            )
            blocks.append(display_block("usage", _is_number("$cost_usd"), body))
        if config.has("session"):
            lines = [
                segment(label(style, "⌛", "session: "), [colored(style, "session_clr", "$session_txt")])
            ]
            if self.show_progress_bar(config, style):
                bar_format, bar_args = colored(style, "session_clr", "$session_bar")
                fmt = literal(" [")[0] + bar_format + literal("]")[0]
                lines.append(
                    f"if [ -n \"$session_bar\" ]; then printf '{fmt}' {' '.join(bar_args)}; fi"
                )
            blocks.append(display_block("session", '[ -n "$session_txt" ]', "\n".join(lines)))
        if config.has("tokens"):
            body = segment(
                label(style, "📊", "tok: "),
                [colored(style, "token_clr", "$total_tokens"), literal(" tok")],
            )
            blocks.append(display_block("tokens", _is_number("$total_tokens"), body))
        if config.has("burnrate"):
            rate_format = "%s%.0f%s" if style.colors else "%.0f"
            rate_args = colored(style, "burn_clr", "$tokens_per_minute")[1]
            body = segment(
                label(style, "🔥", "burn: "),
                [(rate_format, rate_args), literal(" tpm")],
            )
            blocks.append(display_block("burnrate", _is_number("$tokens_per_minute"), body))
        return "\n".join(blocks)


__all__ = ["PROGRESS_BAR_WIDTH", "UsageGenerator"]
