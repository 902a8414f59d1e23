"""Tests for the system monitoring feature family."""

from __future__ import annotations

from statusgen.config import StatuslineConfig, SystemMonitoringConfig
from statusgen.features.system import MAX_SYSTEM_CACHE_TTL, SystemGenerator, tier_color_function
from statusgen.stores.runtime_cache import RUNTIME_CACHE_DOMAINS


def _fragments(features, monitoring=None, **overrides):
    config = StatuslineConfig(
        features=features,
        system_monitoring=monitoring or SystemMonitoringConfig(),
        **overrides,
    )
    return SystemGenerator().generate(config, config.style())


def test_only_selected_metrics_are_collected() -> None:
    fragments = _fragments(["cpu"])

    assert "read_cpu_percent() {" in fragments.utilities
    assert "read_memory_mb" not in fragments.utilities
    assert "read_load_average" not in fragments.utilities
    assert 'load_kv_lines "$system_payload" sys_platform cpu_percent' in fragments.data
    assert fragments.variables == ("cpu_percent",)


def test_refresh_rate_sets_cache_ttl() -> None:
    fragments = _fragments(["memory"], SystemMonitoringConfig(refresh_rate=7))

    assert "(7s TTL)" in fragments.data
    assert 'cache_is_fresh "$system_cache_file" 7' in fragments.data


def test_slow_refresh_rate_stays_below_usage_ttl() -> None:
    fragments = _fragments(["cpu"], SystemMonitoringConfig(refresh_rate=60))

    assert MAX_SYSTEM_CACHE_TTL < RUNTIME_CACHE_DOMAINS["usage"].ttl
    assert "(29s TTL)" in fragments.data
    assert 'cache_is_fresh "$system_cache_file" 29 ' in fragments.data


def test_platform_fallback_chains() -> None:
    utilities = _fragments(["cpu", "memory", "load"]).utilities

    assert "(Linux|WSL)" in utilities
    assert "(Darwin)" in utilities
    assert "grep -qi microsoft /proc/version" in utilities
    assert "/proc/stat" in utilities
    assert "run_with_timeout 3 vmstat 1 2" in utilities
    assert "run_with_timeout 3 top -l 1 -n 0" in utilities
    assert "/proc/meminfo" in utilities
    assert "vm_stat" in utilities
    assert "/proc/loadavg" in utilities
    assert "sysctl -n vm.loadavg" in utilities
    assert 'SYS_PLATFORM:-$(detect_platform)' in utilities


def test_values_pass_through_bounds_checks() -> None:
    utilities = _fragments(["cpu", "memory", "load"]).utilities

    assert 'apply_cpu_bounds "$(read_cpu_percent "$platform")"' in utilities
    assert 'apply_memory_bounds "$used_mb" "$total_mb"' in utilities
    assert 'apply_load_bounds "$one"' in utilities
    assert "validate_numeric() {" in utilities


def test_thresholds_use_integer_tiers() -> None:
    monitoring = SystemMonitoringConfig(cpu_threshold=60, memory_threshold=90, load_threshold=1.5)

    utilities = _fragments(["cpu", "memory", "load"], monitoring).utilities

    assert "(( value > 66 ))" in utilities
    assert "(( value > 60 ))" in utilities
    assert "(( value > 99 ))" in utilities
    assert "(( value > 90 ))" in utilities
    assert "(( value > 165 ))" in utilities
    assert "(( value > 150 ))" in utilities
    assert 'value=$(to_centi "${1:-0}")' in utilities


def test_tier_color_function_orders_branches() -> None:
    function = tier_color_function("cpu_clr", '"${1:-0}"', 75, 83)

    assert function.startswith("cpu_clr() {")
    assert function.index("(( value > 83 ))") < function.index("(( value > 75 ))")
    assert function.endswith("}")


def test_detailed_and_minimal_formats() -> None:
    detailed = _fragments(["memory", "load"]).displays[0][1]
    minimal = _fragments(["memory", "load"], theme="minimal").displays[0][1]

    assert "%sGB/%sGB (%s%%)" in detailed
    assert "%s (%s/%s)" in detailed
    assert "%sGB/%sGB (%s%%)" not in minimal
    assert "%sGB/%sGB" in minimal
    assert "$load_5min" not in minimal


def test_compact_groups_metrics_into_one_segment() -> None:
    text = _fragments(["cpu", "memory"], theme="compact").displays[0][1]

    assert 'sys_seg=""' in text
    assert "${memory_used_gb}G/${memory_total_gb}G" in text
    assert text.count("printf") == 1
    assert text.count("# display: cpu\n") == 1
    assert text.count("# display: memory\n") == 1


def test_colors_off_stub_tier_functions() -> None:
    utilities = _fragments(["cpu"], colors=False).utilities

    assert "cpu_clr() { :; }" in utilities
    assert "\\033[1;31m" not in utilities


def test_default_monitoring_applies_when_missing() -> None:
    config = StatuslineConfig(features=["cpu"])

    fragments = SystemGenerator().generate(config, config.style())

    assert "(( value > 83 ))" in fragments.utilities
    assert "(3s TTL)" in fragments.data
