"""Validators that guard the text optimizer against damaging a script."""

from __future__ import annotations

import re
from typing import List, Set

from .base import (
    SEVERITY_HIGH,
    SEVERITY_MEDIUM,
    ValidationContext,
    ValidationIssue,
    Validator,
    code_view,
)

CRITICAL_NAMES = (
    "validate_numeric",
    "apply_cpu_bounds",
    "apply_memory_bounds",
    "apply_load_bounds",
    "validate_cache_file",
    "write_cache_atomic",
    "use_color",
    "input",
)

_TIMEOUT_GUARD = re.compile(r"\b(?:g?timeout|run_with_timeout)\b")
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')
_ASSIGNMENT = re.compile(r"^\s*(?:local\s+)?([A-Za-z_][A-Za-z0-9_]*)=", re.MULTILINE)


def _has_token(text: str, name: str) -> bool:
    return re.search(rf"(?<![A-Za-z0-9_]){re.escape(name)}(?![A-Za-z0-9_])", text) is not None


def assigned_names(text: str) -> Set[str]:
    return set(_ASSIGNMENT.findall(text))


class CriticalNamesValidator:
    """Safety-critical helpers and variables must survive every rewrite."""

    name = "critical-names"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for critical in CRITICAL_NAMES:
            if _has_token(context.original, critical) and not _has_token(context.optimized, critical):
                issues.append(
                    ValidationIssue(
                        check=self.name,
                        severity=SEVERITY_HIGH,
                        detail=f"'{critical}' disappeared during optimization",
                    )
                )
        return issues


class BalanceValidator:
    """Double quotes must pair up and brackets must balance outside literals."""

    name = "balance"

    def __init__(self, tolerance: int = 0) -> None:
        self.tolerance = tolerance

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        code = code_view(context.optimized)
        issues: List[ValidationIssue] = []
        quotes = len(_UNESCAPED_QUOTE.findall(code))
        if quotes % 2:
            issues.append(
                ValidationIssue(self.name, SEVERITY_HIGH, f"odd number of double quotes ({quotes})")
            )
        for opening, closing in (("{", "}"), ("(", ")")):
            delta = code.count(opening) - code.count(closing)
            if abs(delta) > self.tolerance:
                issues.append(
                    ValidationIssue(
                        self.name,
                        SEVERITY_HIGH,
                        f"unbalanced '{opening}{closing}' (difference {delta})",
                    )
                )
        return issues


class TimeoutGuardValidator:
    """No ``timeout`` wrapper present before optimization may be lost."""

    name = "timeout-guards"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        before = len(_TIMEOUT_GUARD.findall(context.original))
        after = len(_TIMEOUT_GUARD.findall(context.optimized))
        if after < before:
            return [
                ValidationIssue(
                    self.name,
                    SEVERITY_HIGH,
                    f"timeout guards dropped from {before} to {after}",
                )
            ]
        return []


class DeclarationValidator:
    """Every assignment must still exist, under its compacted name if renamed."""

    name = "declarations"

    def validate(self, context: ValidationContext) -> List[ValidationIssue]:
        remaining = assigned_names(context.optimized)
        issues: List[ValidationIssue] = []
        for name in sorted(assigned_names(context.original)):
            expected = context.renames.get(name, name)
            if expected not in remaining:
                issues.append(
                    ValidationIssue(
                        self.name,
                        SEVERITY_MEDIUM,
                        f"variable '{expected}' is no longer assigned",
                    )
                )
        return issues


def default_validators() -> List[Validator]:
    return [
        CriticalNamesValidator(),
        BalanceValidator(),
        TimeoutGuardValidator(),
        DeclarationValidator(),
    ]


__all__ = [
    "BalanceValidator",
    "CRITICAL_NAMES",
    "CriticalNamesValidator",
    "DeclarationValidator",
    "TimeoutGuardValidator",
    "assigned_names",
    "default_validators",
]
