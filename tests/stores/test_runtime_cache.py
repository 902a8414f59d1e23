"""Tests for the emitted runtime cache snippets."""

from __future__ import annotations

import pytest

from statusgen.stores.runtime_cache import (
    RUNTIME_CACHE_DOMAINS,
    generate_cache_helpers,
    generate_runtime_cache_snippet,
    resolve_domain,
)


def test_domains_match_documented_ttls() -> None:
    ttls = {name: domain.ttl for name, domain in RUNTIME_CACHE_DOMAINS.items()}

    assert ttls == {"usage": 30, "repo": 300, "git": 10, "system": 3}
    assert RUNTIME_CACHE_DOMAINS["usage"].path == "${HOME}/.claude/ccusage_cache.json"
    assert RUNTIME_CACHE_DOMAINS["usage"].kind == "json"
    for name in ("repo", "git", "system"):
        domain = RUNTIME_CACHE_DOMAINS[name]
        assert domain.kind == "kv"
        assert domain.path.endswith(f"{name}_cache_${{PWD//\\//_}}.tmp")


def test_snippet_reuses_only_fresh_valid_files() -> None:
    snippet = generate_runtime_cache_snippet("git", "read_git_branch")

    lines = snippet.splitlines()
    assert lines[0] == "# ---- git branch cache (10s TTL) ----"
    assert 'git_payload=""' in lines
    assert (
        'if cache_is_fresh "$git_cache_file" 10 && validate_cache_file "$git_cache_file" kv; then'
        in lines
    )
    assert '  rm -f "$git_cache_file" 2>/dev/null' in lines
    assert "  git_payload=$(read_git_branch)" in lines
    assert '    write_cache_atomic "$git_cache_file" "$git_payload"' in lines
    assert "@@" not in snippet


def test_snippet_honours_target_and_ttl_override() -> None:
    snippet = generate_runtime_cache_snippet(
        "system", "collect_system_metrics", target="metrics", ttl=7
    )

    assert "(7s TTL)" in snippet
    assert 'cache_is_fresh "$system_cache_file" 7' in snippet
    assert "metrics=$(collect_system_metrics)" in snippet


def test_resolve_domain_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        resolve_domain("weather")
    with pytest.raises(ValueError):
        resolve_domain("system", ttl=0)
    assert resolve_domain("system", ttl=9).ttl == 9
    assert RUNTIME_CACHE_DOMAINS["system"].ttl == 3


def test_helpers_validate_content_and_write_atomically() -> None:
    helpers = generate_cache_helpers()

    assert "validate_cache_file() {" in helpers
    assert "-e '`' -e '$(' -e '&&' -e '||'" in helpers
    assert "jq -e 'type == \"object\"'" in helpers
    assert 'tmp="${1}.$$.tmp"' in helpers
    assert 'mv -f "$tmp" "$file"' in helpers
    assert "printf -v \"$key\" '%s' \"$value\"" in helpers
    assert "eval" not in helpers


def test_helpers_clean_stale_files() -> None:
    helpers = generate_cache_helpers()

    assert "-name '*_cache_*.tmp' -mmin +120 -delete" in helpers
    assert "-name 'ccusage_cache.json' -mmin +180 -delete" in helpers
    assert "% 100 == 0" in helpers


def test_timeout_wrapper_prefers_timeout_then_gtimeout() -> None:
    helpers = generate_cache_helpers()
    body = helpers[helpers.index("run_with_timeout() {"):]

    assert body.index('timeout "$secs" "$@"') < body.index('gtimeout "$secs" "$@"')


def test_timeout_wrapper_still_runs_command_without_timeout_binaries() -> None:
    helpers = generate_cache_helpers()
    body = helpers[helpers.index("run_with_timeout() {"):helpers.index("load_kv_lines() {")]

    assert "return 124" not in body
    assert '"$@" &' in body
    assert '( sleep "$secs"; kill "$pid" 2>/dev/null ) >/dev/null 2>&1 &' in body
    assert 'wait "$pid"' in body
