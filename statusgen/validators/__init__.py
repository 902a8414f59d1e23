"""Validators run after the text optimizer rewrites a script."""

from .base import (
    ValidationContext,
    ValidationIssue,
    Validator,
    code_view,
    has_high_severity,
    run_validators,
)
from .optimization import (
    BalanceValidator,
    CriticalNamesValidator,
    DeclarationValidator,
    TimeoutGuardValidator,
    default_validators,
)

__all__ = [
    "BalanceValidator",
    "CriticalNamesValidator",
    "DeclarationValidator",
    "TimeoutGuardValidator",
    "ValidationContext",
    "ValidationIssue",
    "Validator",
    "code_view",
    "default_validators",
    "has_high_severity",
    "run_validators",
]
