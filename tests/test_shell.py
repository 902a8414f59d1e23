"""Tests for statusgen.shell."""

from __future__ import annotations

import pytest

from statusgen.shell import centi, critical_threshold, printf_literal, render_fragment


def test_printf_literal_escapes_percent_and_backslash() -> None:
    assert printf_literal("100%") == "100%%"
    assert printf_literal("a\\b") == "a\\\\b"
    assert printf_literal("don't") == "don'\\''t"


def test_render_fragment_substitutes_placeholders() -> None:
    rendered = render_fragment("sleep @@SECS@@; echo @@NAME@@", {"SECS": 3, "NAME": "done"})

    assert rendered == "sleep 3; echo done"


def test_render_fragment_rejects_unresolved_placeholders() -> None:
    with pytest.raises(KeyError) as excinfo:
        render_fragment("@@ONE@@ @@TWO@@", {"ONE": 1})

    assert "TWO" in str(excinfo.value)


def test_render_fragment_leaves_shell_syntax_alone() -> None:
    text = 'echo "${HOME}" $(( 1 + 2 )) @@'

    assert render_fragment(text) == text


@pytest.mark.parametrize("threshold, expected", [(75, 83), (80, 88), (10, 11), (50, 55), (95, 105)])
def test_critical_threshold_is_ten_percent_above(threshold: int, expected: int) -> None:
    assert critical_threshold(threshold) == expected


def test_centi_scales_decimals() -> None:
    assert centi(2.0) == 200
    assert centi(1.25) == 125
    assert centi(0.1) == 10
