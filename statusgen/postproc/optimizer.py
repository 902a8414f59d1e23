"""Best-effort rewriting of assembled scripts with validation and rollback."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..logging import get_logger
from ..validators.base import (
    ValidationContext,
    ValidationIssue,
    Validator,
    has_high_severity,
    run_validators,
)
from ..validators.optimization import default_validators

# Verbose names emitted by the fragment generators and their short forms.
# Targets must never be names the generators already use.
COMPACT_VARIABLES: Dict[str, str] = {
    "current_dir": "cur_dir",
    "model_version": "model_ver",
    "cost_per_hour": "cost_ph",
    "total_tokens": "tot_tok",
    "tokens_per_minute": "tok_pm",
    "session_percent": "sess_pct",
    "session_remaining": "sess_left",
    "session_elapsed": "sess_used",
    "reset_time_str": "reset_str",
    "start_time_str": "start_str",
    "is_git_repository": "in_git",
    "memory_used_gb": "mem_used",
    "memory_total_gb": "mem_total",
    "memory_percent": "mem_pct",
}

BUILTIN_REPLACEMENTS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(?<!:-)\$\(date \+%s\)"), "${EPOCHSECONDS:-$(date +%s)}"),
    (re.compile(r'\[ "\$\(command -v ([\w.-]+)\)" \]'), r"command -v \1 >/dev/null 2>&1"),
    (re.compile(r'\[ "\$\(which ([\w.-]+)\)" \]'), r"command -v \1 >/dev/null 2>&1"),
    (re.compile(r'\$\(basename "\$(\w+)"\)'), r"${\1##*/}"),
    (re.compile(r'\$\(dirname "\$(\w+)"\)'), r"${\1%/*}"),
)

_SUBSHELL_TEST = re.compile(r'if \[ "\$\(([^()]+?)(?: 2>/dev/null)?\)" \]; then')

PIPE_MERGES: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"echo \"\$(\w+)\" \| jq (?:-r )?('[^']*')"), r'jq -r \2 <<< "$\1"'),
    (re.compile(r"sed ('[^']*') \| sed ('[^']*')"), r"sed -e \1 -e \2"),
    (
        re.compile(r"\| grep ('[^']*'|\"[^\"]*\"|[^\s|'\"]+) \| head -(?:n )?1\b"),
        r"| grep -m1 \1",
    ),
)


def _token_pattern(name: str) -> Pattern[str]:
    # Dotted names are jq paths (.workspace.current_dir) and must stay untouched.
    return re.compile(rf"(?<![\w.]){re.escape(name)}(?!\w)")


@dataclass
class OptimizationOptions:
    """Toggles for each rewrite pass and for the post-rewrite checks."""

    compact_variables: bool = True
    builtin_replacements: bool = True
    reduce_subshells: bool = True
    combine_pipes: bool = True
    validate: bool = True
    rollback_on_issues: bool = False


@dataclass
class OptimizationResult:
    text: str
    original: str
    applied: List[str] = field(default_factory=list)
    renames: Dict[str, str] = field(default_factory=dict)
    issues: List[ValidationIssue] = field(default_factory=list)
    rolled_back: bool = False
    error: Optional[str] = None


class ScriptOptimizer:
    """Applies the rewrite passes in a fixed order, then validates the outcome.

    Validation issues are logged and the optimized text is still returned,
    unless ``rollback_on_issues`` is set and a high-severity issue was found.
    Any exception raised while rewriting or validating discards the work and
    returns the input unchanged.
    """

    def __init__(
        self,
        options: OptimizationOptions | None = None,
        *,
        validators: Sequence[Validator] | None = None,
    ) -> None:
        self.options = options or OptimizationOptions()
        self.validators = list(validators) if validators is not None else default_validators()
        self.logger = get_logger("optimizer")

    def optimize(self, script: str) -> OptimizationResult:
        applied: List[str] = []
        try:
            renames = self.renames_for(script) if self.options.compact_variables else {}
            current = script
            for name, rewrite in self._pipeline():
                updated = rewrite(current)
                if updated != current:
                    applied.append(name)
                current = updated
            issues: List[ValidationIssue] = []
            if self.options.validate:
                context = ValidationContext(original=script, optimized=current, renames=renames)
                issues = run_validators(self.validators, context)
        except Exception as exc:
            self.logger.warning("Optimization failed; keeping the unoptimized script: %s", exc)
            return OptimizationResult(text=script, original=script, rolled_back=True, error=str(exc))

        for issue in issues:
            self.logger.warning("Optimizer check %s (%s): %s", issue.check, issue.severity, issue.detail)
        if issues and self.options.rollback_on_issues and has_high_severity(issues):
            self.logger.warning("Rolling back optimization after %d validation issue(s)", len(issues))
            return OptimizationResult(
                text=script, original=script, issues=issues, rolled_back=True
            )

        stats = optimization_stats(script, current)
        self.logger.debug(
            "Optimized script %d -> %d bytes (%s%%) via %s",
            stats["original_size"],
            stats["optimized_size"],
            stats["reduction_percent"],
            ", ".join(applied) or "no changes",
        )
        return OptimizationResult(
            text=current, original=script, applied=applied, renames=renames, issues=issues
        )

    # ------------------------------------------------------------------
    # Rewrite passes

    def compact_variables(self, script: str) -> str:
        for verbose, short in COMPACT_VARIABLES.items():
            script = _token_pattern(verbose).sub(short, script)
        return script

    def replace_builtins(self, script: str) -> str:
        for pattern, replacement in BUILTIN_REPLACEMENTS:
            script = pattern.sub(replacement, script)
        return script

    def reduce_subshells(self, script: str) -> str:
        return _SUBSHELL_TEST.sub(r"if \1 >/dev/null 2>&1; then", script)

    def combine_pipes(self, script: str) -> str:
        for pattern, replacement in PIPE_MERGES:
            script = pattern.sub(replacement, script)
        return script

    @staticmethod
    def renames_for(script: str) -> Dict[str, str]:
        return {
            verbose: short
            for verbose, short in COMPACT_VARIABLES.items()
            if _token_pattern(verbose).search(script)
        }

    def _pipeline(self) -> Iterable[Tuple[str, Callable[[str], str]]]:
        passes = (
            ("compact_variables", self.options.compact_variables, self.compact_variables),
            ("builtin_replacements", self.options.builtin_replacements, self.replace_builtins),
            ("reduce_subshells", self.options.reduce_subshells, self.reduce_subshells),
            ("combine_pipes", self.options.combine_pipes, self.combine_pipes),
        )
        return [(name, rewrite) for name, enabled, rewrite in passes if enabled]


def optimization_stats(original: str, optimized: str) -> Dict[str, int]:
    original_size = len(original.encode("utf-8"))
    optimized_size = len(optimized.encode("utf-8"))
    reduction = original_size - optimized_size
    percent = round(reduction * 100 / original_size) if original_size else 0
    return {
        "original_size": original_size,
        "optimized_size": optimized_size,
        "reduction": reduction,
        "reduction_percent": percent,
        "original_lines": original.count("\n"),
        "optimized_lines": optimized.count("\n"),
    }


__all__ = [
    "BUILTIN_REPLACEMENTS",
    "COMPACT_VARIABLES",
    "OptimizationOptions",
    "OptimizationResult",
    "PIPE_MERGES",
    "ScriptOptimizer",
    "optimization_stats",
]
