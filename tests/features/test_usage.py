"""Tests for the usage feature family."""

from __future__ import annotations

from statusgen.config import StatuslineConfig
from statusgen.features.usage import UsageGenerator


def _fragments(features, **overrides):
    config = StatuslineConfig(features=features, **overrides)
    return UsageGenerator().generate(config, config.style())


def test_usage_fetch_is_cached_and_time_bounded() -> None:
    fragments = _fragments(["usage"])

    assert "usage_payload=$(fetch_usage_blocks)" in fragments.data
    assert "(30s TTL)" in fragments.data
    assert "validate_cache_file \"$usage_cache_file\" json" in fragments.data
    assert "run_with_timeout 3 ccusage blocks --json" in fragments.utilities
    assert "run_with_timeout 3 npx ccusage@latest blocks --json" in fragments.utilities


def test_usage_extracts_active_block_fields() -> None:
    data = _fragments(["usage", "tokens", "burnrate"]).data

    assert "map(select(.isActive == true))" in data
    for name in ("cost_usd", "cost_per_hour", "total_tokens", "tokens_per_minute"):
        assert f"{name}=\"\"" in data
        assert f"{name}: (" in data


def test_all_usage_tags_share_one_render_block() -> None:
    fragments = _fragments(["session", "usage", "tokens", "burnrate"])

    assert len(fragments.displays) == 1
    anchor, text = fragments.displays[0]
    assert anchor == "usage"
    for tag in ("usage", "session", "tokens", "burnrate"):
        assert text.count(f"# display: {tag}\n") == 1


def test_render_block_anchors_at_first_selected_tag() -> None:
    fragments = _fragments(["tokens", "burnrate"])

    assert fragments.displays[0][0] == "tokens"


def test_session_progress_bar_depends_on_theme() -> None:
    detailed = _fragments(["session"])
    minimal = _fragments(["session"], theme="minimal")

    assert "progress_bar() {" in detailed.utilities
    assert 'session_bar=$(progress_bar "$session_percent" 10)' in detailed.data
    assert "session_bar=$(progress_bar" not in minimal.data
    assert "$session_bar" not in minimal.displays[0][1]


def test_session_countdown_uses_integer_math() -> None:
    data = _fragments(["session"]).data

    assert "session_percent=$(( session_elapsed * 100 / (session_end - session_start) ))" in data
    assert "(( session_percent > 100 )) && session_percent=100" in data
    assert "until reset at %s (%d%%)" in data


def test_session_color_tiers() -> None:
    colored = _fragments(["session"]).utilities
    plain = _fragments(["session"], colors=False).utilities

    assert "(( remaining <= 10 ))" in colored
    assert "(( remaining <= 25 ))" in colored
    assert "session_clr() { :; }" in plain


def test_without_integration_only_defaults_are_emitted() -> None:
    fragments = _fragments(["usage", "session"], usage_integration=False)

    assert "fetch_usage_blocks)" not in fragments.data
    assert 'cost_usd=""' in fragments.data
    assert "usage integration disabled" in fragments.data
    assert "# display: usage" in fragments.displays[0][1]


def test_cost_display_prefers_hourly_rate() -> None:
    text = _fragments(["usage"], colors=False).displays[0][1]

    assert (
        "printf '%s$%.2f ($%.2f/h)' \"$seg_sep\" \"$cost_usd\" \"$cost_per_hour\"" in text
    )
    assert "printf '%s$%.2f' \"$seg_sep\" \"$cost_usd\"" in text
    assert "💵" not in text


def test_usage_context_tracks_tags_and_integration() -> None:
    generator = UsageGenerator()

    first = generator.context(StatuslineConfig(features=["usage"]))
    second = generator.context(StatuslineConfig(features=["usage", "session"]))
    third = generator.context(StatuslineConfig(features=["usage"], usage_integration=False))

    assert len({first, second, third}) == 3
