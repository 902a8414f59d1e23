"""Git branch segment with cached repository detection."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

from ..models import FeatureFragments, StyleFlags
from ..stores.runtime_cache import generate_runtime_cache_snippet
from .base import FeatureGenerator, color_functions, colored, display_block, label, segment
from .colors import theme_colors

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import StatuslineConfig

GIT_UTILITIES = r"""
detect_git_repo() {
  if [ "$(git rev-parse --git-dir 2>/dev/null)" ]; then
    echo "is_git_repository=1"
  else
    echo "is_git_repository=0"
  fi
}

read_git_branch() {
  local branch
  branch=$(git symbolic-ref --short HEAD 2>/dev/null || git rev-parse --short HEAD 2>/dev/null)
  if [ -n "$branch" ]; then
    echo "git_branch=$branch"
  fi
}
"""


class GitGenerator(FeatureGenerator):
    family = "git"
    tags = ("git",)

    def context(self, config: "StatuslineConfig") -> str:
        return f"git:{int(self.enabled(config))}"

    def generate(self, config: "StatuslineConfig", style: StyleFlags) -> FeatureFragments:
        if not self.enabled(config):
            return FeatureFragments.empty()

        colors = color_functions(style, {"git_clr": theme_colors(style.theme)["git"]})
        utilities = "# ---- git utilities ----\n" + colors + "\n" + GIT_UTILITIES.strip("\n")

        repo_cache = generate_runtime_cache_snippet("repo", "detect_git_repo", target="repo_payload")
        branch_cache = generate_runtime_cache_snippet("git", "read_git_branch", target="git_payload")
        data = "\n".join(
            [
                "# ---- git ----",
                'git_branch=""',
                "is_git_repository=0",
                "if command -v git >/dev/null 2>&1; then",
                textwrap.indent(repo_cache, "  "),
                '  load_kv_lines "$repo_payload" is_git_repository',
                '  if [ "$is_git_repository" = "1" ]; then',
                textwrap.indent(branch_cache, "    "),
                '    load_kv_lines "$git_payload" git_branch',
                "  fi",
                "fi",
            ]
        )

        body = segment(label(style, "🌿", "git: "), [colored(style, "git_clr", "$git_branch")])
        display = display_block("git", '[ -n "$git_branch" ]', body)

        return FeatureFragments(
            utilities=utilities,
            data=data,
            displays=(("git", display),),
            variables=("git_branch",),
        )


__all__ = ["GIT_UTILITIES", "GitGenerator"]
