"""Unit tests for the optimization validators."""

from __future__ import annotations

from statusgen.validators import (
    BalanceValidator,
    CriticalNamesValidator,
    DeclarationValidator,
    TimeoutGuardValidator,
    ValidationContext,
    code_view,
    default_validators,
    has_high_severity,
    run_validators,
)


def _context(original: str, optimized: str, renames=None) -> ValidationContext:
    return ValidationContext(original=original, optimized=optimized, renames=renames or {})


def test_code_view_drops_comments_and_single_quoted_text() -> None:
    script = "# comment (\nawk '{ print $1 }' file\necho \"a\""

    view = code_view(script)

    assert view == "awk '' file\necho \"a\""


def test_critical_names_must_survive() -> None:
    original = 'x=$(validate_numeric "$v" 0 100 0)\nwrite_cache_atomic "$f" "$x"'
    optimized = 'x=$(validate_num "$v" 0 100 0)\nwrite_cache_atomic "$f" "$x"'

    issues = CriticalNamesValidator().validate(_context(original, optimized))

    assert [issue.detail for issue in issues] == ["'validate_numeric' disappeared during optimization"]
    assert has_high_severity(issues)


def test_critical_names_absent_from_original_are_ignored() -> None:
    assert CriticalNamesValidator().validate(_context("echo hi", "echo hi")) == []


def test_balance_validator_flags_odd_quotes_and_brackets() -> None:
    broken = 'echo "unterminated\nfoo() {\n  bar $(baz\n'

    issues = BalanceValidator().validate(_context(broken, broken))

    details = " ".join(issue.detail for issue in issues)
    assert "double quotes" in details
    assert "'{}'" in details
    assert "'()'" in details


def test_balance_validator_ignores_literals_and_honours_tolerance() -> None:
    script = "printf '%s (' \"$x\"\n# unmatched ) in a comment\nf() { :; }"
    skewed = "f() { :; \n"

    assert BalanceValidator().validate(_context(script, script)) == []
    assert BalanceValidator(tolerance=1).validate(_context(skewed, skewed)) == []
    assert BalanceValidator().validate(_context(skewed, skewed)) != []


def test_timeout_guard_counts_must_not_drop() -> None:
    original = "run_with_timeout 3 ccusage\ntimeout 2 top -bn1"
    optimized = "run_with_timeout 3 ccusage\ntop -bn1"

    issues = TimeoutGuardValidator().validate(_context(original, optimized))

    assert len(issues) == 1
    assert "2 to 1" in issues[0].detail


def test_declaration_validator_follows_renames() -> None:
    original = 'current_dir="x"\nlocal depth=1\nkeep=1'
    optimized = 'cur_dir="x"\nlocal depth=1'

    issues = DeclarationValidator().validate(
        _context(original, optimized, {"current_dir": "cur_dir"})
    )

    assert [issue.detail for issue in issues] == ["variable 'keep' is no longer assigned"]
    assert not has_high_severity(issues)


def test_default_validators_pass_unchanged_script() -> None:
    script = 'input=$(cat)\nuse_color=1\nif [ -n "$input" ]; then\n  echo "$input"\nfi\n'

    assert run_validators(default_validators(), _context(script, script)) == []
