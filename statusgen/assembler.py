"""Concatenates feature fragments into a complete statusline script."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set

from jinja2 import Environment, FileSystemLoader

from . import __version__
from .config import StatuslineConfig
from .features.base import SEPARATOR_VAR
from .models import DISPLAY_ORDER, FeatureFragments
from .postproc.lint import ScriptLinter
from .stores.runtime_cache import generate_cache_helpers

LOG_FILE = "${HOME}/.claude/statusline.log"
STDIN_READ = "input=$(cat)"

# Families whose utilities are emitted, in order, after the basic colors.
UTILITY_FAMILIES = ("usage", "git", "system")
DATA_FAMILIES = ("basics", "git", "usage", "system")
DISK_CACHED_FAMILIES = ("git", "usage", "system")


class ScriptAssembler:
    """Runs the fixed stage order and joins every non-empty contribution.

    Stage order: header, debug logging, stdin read, color setup, basic colors,
    shared runtime helpers, utilities (usage, git, system), data (basics, git,
    usage, system), debug logging output, then displays in render priority.
    """

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        linter: ScriptLinter | None = None,
    ) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.linter = linter or ScriptLinter()
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def assemble(
        self,
        config: StatuslineConfig,
        fragments: Mapping[str, FeatureFragments],
        *,
        prelude: Optional[str] = None,
    ) -> str:
        stages: List[str] = [self.render_header(config)]
        if config.logging:
            stages.append(self._env.get_template("logging.sh.j2").render(log_file=LOG_FILE))
        stages.append(STDIN_READ)
        stages.append(prelude if prelude is not None else self.compose_prelude(fragments))
        for family in DATA_FAMILIES:
            stages.append(self._fragment(fragments, family).data)
        if config.logging:
            stages.append(self.render_logging_output(fragments))
        stages.append(self.render_displays(fragments))
        return self.linter.lint("\n".join(stage for stage in stages if stage))

    def compose_prelude(self, fragments: Mapping[str, FeatureFragments]) -> str:
        """Color setup, basic colors and each utility block exactly once."""
        blocks: List[str] = []
        seen: Set[str] = set()

        def _add_once(block: str) -> None:
            if block and block not in seen:
                seen.add(block)
                blocks.append(block)

        _add_once(self._fragment(fragments, "colors").utilities)
        _add_once(self._fragment(fragments, "basics").utilities)
        if any(not self._fragment(fragments, family).is_empty for family in DISK_CACHED_FAMILIES):
            _add_once(generate_cache_helpers())
        for family in UTILITY_FAMILIES:
            _add_once(self._fragment(fragments, family).utilities)
        return "\n".join(blocks)

    def render_header(self, config: StatuslineConfig) -> str:
        return self._env.get_template("header.sh.j2").render(
            version=__version__,
            theme=config.style().theme,
            colors="enabled" if config.colors else "disabled",
            features=config.ordered_features(),
            logging=config.logging,
        )

    def render_logging_output(self, fragments: Mapping[str, FeatureFragments]) -> str:
        variables: List[str] = []
        for family in DATA_FAMILIES:
            for name in self._fragment(fragments, family).variables:
                if name not in variables:
                    variables.append(name)
        return self._env.get_template("logging_output.sh.j2").render(variables=variables)

    def render_displays(self, fragments: Mapping[str, FeatureFragments]) -> str:
        anchored: Dict[str, str] = {}
        for fragment in fragments.values():
            for anchor, text in fragment.displays:
                anchored[anchor] = text
        blocks = [anchored[tag] for tag in DISPLAY_ORDER if tag in anchored]
        if not blocks:
            return ""
        return "\n".join([f"# ---- render ----\n{SEPARATOR_VAR}=''", *blocks])

    @staticmethod
    def _fragment(fragments: Mapping[str, FeatureFragments], family: str) -> FeatureFragments:
        return fragments.get(family) or FeatureFragments.empty()


__all__ = ["ScriptAssembler", "LOG_FILE", "STDIN_READ"]
