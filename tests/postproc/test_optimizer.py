"""Tests for the script optimizer."""

from __future__ import annotations

import pytest

from statusgen.postproc import OptimizationOptions, ScriptOptimizer, optimization_stats
from statusgen.validators.base import SEVERITY_HIGH, ValidationIssue


class _AlwaysFails:
    name = "always"

    def validate(self, context):
        return [ValidationIssue(self.name, SEVERITY_HIGH, "forced")]


def test_compact_variables_renames_tokens_but_not_jq_paths() -> None:
    script = (
        "current_dir=$(jq -r '.workspace.current_dir' <<< \"$input\")\n"
        'echo "${current_dir}" "$current_directory"\n'
    )

    result = ScriptOptimizer().optimize(script)

    assert "cur_dir=$(jq -r '.workspace.current_dir'" in result.text
    assert '"${cur_dir}"' in result.text
    assert "$current_directory" in result.text
    assert result.renames == {"current_dir": "cur_dir"}
    assert "compact_variables" in result.applied


def test_builtin_replacements() -> None:
    script = (
        'now=$(date +%s)\n'
        'if [ "$(command -v jq)" ]; then echo ok; fi\n'
        'base=$(basename "$path")\n'
        'parent=$(dirname "$path")\n'
    )

    text = ScriptOptimizer().replace_builtins(script)

    assert "now=${EPOCHSECONDS:-$(date +%s)}" in text
    assert "if command -v jq >/dev/null 2>&1; then" in text
    assert "base=${path##*/}" in text
    assert "parent=${path%/*}" in text
    assert ScriptOptimizer().replace_builtins(text) == text


def test_reduce_subshells_rewrites_existence_tests() -> None:
    script = 'if [ "$(git rev-parse --git-dir 2>/dev/null)" ]; then\n  echo repo\nfi\n'

    text = ScriptOptimizer().reduce_subshells(script)

    assert text.startswith("if git rev-parse --git-dir >/dev/null 2>&1; then")


def test_combine_pipes() -> None:
    script = (
        "name=$(echo \"$input\" | jq -r '.model.display_name')\n"
        "clean=$(sed 's/a/b/' | sed 's/c/d/')\n"
        "cpu=$(top -bn1 | grep '%Cpu' | head -1)\n"
    )

    text = ScriptOptimizer().combine_pipes(script)

    assert "jq -r '.model.display_name' <<< \"$input\"" in text
    assert "sed -e 's/a/b/' -e 's/c/d/'" in text
    assert "top -bn1 | grep -m1 '%Cpu')" in text


def test_disabled_passes_leave_text_alone() -> None:
    options = OptimizationOptions(
        compact_variables=False,
        builtin_replacements=False,
        reduce_subshells=False,
        combine_pipes=False,
    )
    script = "current_dir=$(date +%s)\n"

    result = ScriptOptimizer(options).optimize(script)

    assert result.text == script
    assert result.applied == []


def test_exception_in_pass_rolls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    optimizer = ScriptOptimizer()
    script = "current_dir=1\n"

    def explode(text: str) -> str:
        raise ValueError("broken regex")

    monkeypatch.setattr(optimizer, "reduce_subshells", explode)

    result = optimizer.optimize(script)

    assert result.text == script
    assert result.rolled_back is True
    assert result.error == "broken regex"


def test_issues_are_reported_but_kept_by_default() -> None:
    optimizer = ScriptOptimizer(validators=[_AlwaysFails()])

    result = optimizer.optimize("current_dir=1\n")

    assert result.text == "cur_dir=1\n"
    assert result.rolled_back is False
    assert [issue.detail for issue in result.issues] == ["forced"]


def test_strict_mode_rolls_back_on_high_severity() -> None:
    options = OptimizationOptions(rollback_on_issues=True)
    optimizer = ScriptOptimizer(options, validators=[_AlwaysFails()])

    result = optimizer.optimize("current_dir=1\n")

    assert result.text == "current_dir=1\n"
    assert result.rolled_back is True


def test_optimization_stats() -> None:
    stats = optimization_stats("abcd\nefgh\n", "ab\n")

    assert stats["original_size"] == 10
    assert stats["optimized_size"] == 3
    assert stats["reduction"] == 7
    assert stats["reduction_percent"] == 70
    assert stats["original_lines"] == 2
    assert stats["optimized_lines"] == 1
    assert optimization_stats("", "")["reduction_percent"] == 0
