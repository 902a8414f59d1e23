"""Core validation data structures for optimized script text."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Iterable, List, Mapping, Protocol

_SINGLE_QUOTED = re.compile(r"'[^'\n]*'")

SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"
SEVERITY_LOW = "low"


@dataclass
class ValidationIssue:
    """Represents a single problem found after rewriting a script."""

    check: str
    severity: str
    detail: str


@dataclass
class ValidationContext:
    """The script before and after optimization, plus the renames applied."""

    original: str
    optimized: str
    renames: Mapping[str, str] = field(default_factory=dict)


class Validator(Protocol):
    """Protocol implemented by optimization validators."""

    name: str

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        """Run validation and return any issues."""


def code_view(script: str) -> str:
    """Script text without full-line comments and single-quoted literals.

    Bracket and quote counts are only meaningful outside awk/jq programs and
    printf formats, which all live in single quotes.
    """
    lines = []
    for line in script.splitlines():
        stripped = line.lstrip()
        if stripped.startswith("#"):
            continue
        lines.append(_SINGLE_QUOTED.sub("''", line))
    return "\n".join(lines)


def run_validators(
    validators: Iterable[Validator], context: ValidationContext
) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for validator in validators:
        issues.extend(validator.validate(context))
    return issues


def has_high_severity(issues: Iterable[ValidationIssue]) -> bool:
    return any(issue.severity == SEVERITY_HIGH for issue in issues)


__all__ = [
    "SEVERITY_HIGH",
    "SEVERITY_LOW",
    "SEVERITY_MEDIUM",
    "ValidationContext",
    "ValidationIssue",
    "Validator",
    "code_view",
    "has_high_severity",
    "run_validators",
]
