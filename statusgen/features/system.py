"""CPU, memory and load segments with per-platform collection fallbacks."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING, List

from ..models import SYSTEM_FEATURES, FeatureFragments, StyleFlags
from ..shell import centi, critical_threshold, render_fragment
from ..stores.runtime_cache import RUNTIME_CACHE_DOMAINS, generate_runtime_cache_snippet
from .base import FeatureGenerator, SEPARATOR_VAR, display_block, label, segment

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..config import StatuslineConfig, SystemMonitoringConfig

SYSTEM_COMMAND_TIMEOUT = 3
# System metrics always expire before usage data does.
MAX_SYSTEM_CACHE_TTL = RUNTIME_CACHE_DOMAINS["usage"].ttl - 1

VALIDATION_HELPERS = r"""
to_centi() {
  local value="$1" int frac
  int="${value%%.*}"
  if [ "$int" = "$value" ]; then
    frac=0
  else
    frac="${value#*.}"
  fi
  frac="${frac}00"
  frac="${frac:0:2}"
  [[ $int =~ ^[0-9]+$ ]] || int=0
  [[ $frac =~ ^[0-9]+$ ]] || frac=0
  echo $(( 10#$int * 100 + 10#$frac ))
}

validate_numeric() {
  local value="$1" min="$2" max="$3" fallback="$4" scaled
  if [[ $value =~ ^[0-9]+([.][0-9]+)?$ ]]; then
    scaled=$(to_centi "$value")
    if (( scaled >= $(to_centi "$min") && scaled <= $(to_centi "$max") )); then
      echo "$value"
      return 0
    fi
  fi
  echo "$fallback"
}

detect_platform() {
  local kernel
  kernel=$(uname -s 2>/dev/null)
  case "$kernel" in
    (Linux)
      if grep -qi microsoft /proc/version 2>/dev/null; then
        echo "WSL"
      else
        echo "Linux"
      fi ;;
    (Darwin)
      echo "Darwin" ;;
    (*)
      echo "${kernel:-unknown}" ;;
  esac
}
"""

CPU_HELPERS = r"""
read_cpu_percent() {
  local platform="$1" cpu="" idle
  case "$platform" in
    (Linux|WSL)
      if [ -r /proc/stat ]; then
        cpu=$(awk '/^cpu / { idle=$5; total=0; for (i=2; i<=NF; i++) total+=$i; if (total > 0) printf "%d", (total-idle)*100/total; exit }' /proc/stat 2>/dev/null)
      fi
      if [ -z "$cpu" ] && command -v vmstat >/dev/null 2>&1; then
        idle=$(run_with_timeout @@TIMEOUT@@ vmstat 1 2 2>/dev/null | tail -1 | awk '{ print $15 }')
        if [[ $idle =~ ^[0-9]+$ ]]; then
          cpu=$(( 100 - idle ))
        fi
      fi
      if [ -z "$cpu" ]; then
        cpu=$(run_with_timeout @@TIMEOUT@@ top -bn1 2>/dev/null | grep '%Cpu' | head -1 | awk -F',' '{ for (i=1; i<=NF; i++) if ($i ~ /id/) { gsub(/[^0-9.]/, "", $i); printf "%d", 100-$i } }')
      fi ;;
    (Darwin)
      cpu=$(run_with_timeout @@TIMEOUT@@ top -l 1 -n 0 2>/dev/null | grep 'CPU usage' | head -1 | awk '{ for (i=2; i<=NF; i++) if ($i ~ /idle/) { gsub(/%/, "", $(i-1)); printf "%d", 100-$(i-1) } }')
      if [ -z "$cpu" ]; then
        cpu=$(run_with_timeout @@TIMEOUT@@ ps -A -o %cpu 2>/dev/null | awk 'NR>1 { s+=$1 } END { if (s > 100) s=100; printf "%d", s }')
      fi ;;
    (*)
      cpu=$(run_with_timeout @@TIMEOUT@@ ps -A -o %cpu 2>/dev/null | awk 'NR>1 { s+=$1 } END { if (s > 100) s=100; printf "%d", s }') ;;
  esac
  echo "${cpu:-0}"
}

apply_cpu_bounds() {
  local value
  value=$(validate_numeric "$1" 0 100 0)
  echo "${value%%.*}"
}
"""

MEMORY_HELPERS = r"""
read_memory_mb() {
  local platform="$1" mem="" total_bytes page_size
  case "$platform" in
    (Linux|WSL)
      if [ -r /proc/meminfo ]; then
        mem=$(awk '/^MemTotal:/ { total=$2 } /^MemAvailable:/ { avail=$2 } END { if (total > 0) printf "%d %d", (total-avail)/1024, total/1024 }' /proc/meminfo 2>/dev/null)
      fi
      if [ -z "$mem" ] && command -v free >/dev/null 2>&1; then
        mem=$(free -m 2>/dev/null | awk 'NR==2 { printf "%d %d", $2-$NF, $2 }')
      fi ;;
    (Darwin)
      total_bytes=$(sysctl -n hw.memsize 2>/dev/null)
      page_size=$(sysctl -n hw.pagesize 2>/dev/null)
      if [[ $total_bytes =~ ^[0-9]+$ ]] && [[ $page_size =~ ^[0-9]+$ ]]; then
        mem=$(vm_stat 2>/dev/null | awk -v total="$total_bytes" -v page="$page_size" '/Pages free/ { free+=$3 } /Pages inactive/ { free+=$3 } /Pages speculative/ { free+=$3 } END { if (total > 0) printf "%d %d", (total-free*page)/1048576, total/1048576 }')
      fi ;;
    (*)
      if command -v free >/dev/null 2>&1; then
        mem=$(free -m 2>/dev/null | awk 'NR==2 { printf "%d %d", $2-$NF, $2 }')
      fi ;;
  esac
  echo "${mem:-0 0}"
}

apply_memory_bounds() {
  local used total percent=0
  used=$(validate_numeric "$1" 0 16777216 0)
  total=$(validate_numeric "$2" 0 16777216 0)
  used="${used%%.*}"
  total="${total%%.*}"
  if (( used > total )); then
    used=$total
  fi
  if (( total > 0 )); then
    percent=$(( used * 100 / total ))
  fi
  echo "$(( (used + 512) / 1024 )) $(( (total + 512) / 1024 )) $percent"
}
"""

LOAD_HELPERS = r"""
read_load_average() {
  local platform="$1" load="" info re
  case "$platform" in
    (Linux|WSL)
      if [ -r /proc/loadavg ]; then
        load=$(awk '{ print $1, $2, $3 }' /proc/loadavg 2>/dev/null)
      fi ;;
    (Darwin)
      load=$(sysctl -n vm.loadavg 2>/dev/null | awk '{ print $2, $3, $4 }') ;;
  esac
  if [ -z "$load" ]; then
    info=$(uptime 2>/dev/null)
    re='load averages?: ([0-9.]+),? ([0-9.]+),? ([0-9.]+)'
    if [[ $info =~ $re ]]; then
      load="${BASH_REMATCH[1]} ${BASH_REMATCH[2]} ${BASH_REMATCH[3]}"
    fi
  fi
  echo "${load:-0 0 0}"
}

apply_load_bounds() {
  validate_numeric "$1" 0 1000 0
}
"""

TIER_COLOR = r"""
@@NAME@@() {
  (( use_color )) || return 0
  local value
  value=@@VALUE@@
  if (( value > @@CRITICAL@@ )); then
    printf '\033[1;31m'
  elif (( value > @@WARNING@@ )); then
    printf '\033[1;33m'
  else
    printf '\033[1;32m'
  fi
}
"""

_CPU_COLLECT = (
    "  local cpu",
    '  cpu=$(apply_cpu_bounds "$(read_cpu_percent "$platform")")',
    '  echo "cpu_percent=$cpu"',
)

_MEMORY_COLLECT = (
    "  local used_mb total_mb used_gb total_gb percent",
    '  read -r used_mb total_mb <<< "$(read_memory_mb "$platform")"',
    '  read -r used_gb total_gb percent <<< "$(apply_memory_bounds "$used_mb" "$total_mb")"',
    '  echo "memory_used_gb=$used_gb"',
    '  echo "memory_total_gb=$total_gb"',
    '  echo "memory_percent=$percent"',
)

_LOAD_COLLECT = (
    "  local one five fifteen",
    '  read -r one five fifteen <<< "$(read_load_average "$platform")"',
    '  echo "load_1min=$(apply_load_bounds "$one")"',
    '  echo "load_5min=$(apply_load_bounds "$five")"',
    '  echo "load_15min=$(apply_load_bounds "$fifteen")"',
)

_METRIC_VARIABLES = {
    "cpu": ("cpu_percent",),
    "memory": ("memory_used_gb", "memory_total_gb", "memory_percent"),
    "load": ("load_1min", "load_5min", "load_15min"),
}

_CPU_SHOWN = "[[ $cpu_percent =~ ^[0-9]+$ ]] && (( cpu_percent > 0 ))"
_MEMORY_SHOWN = "[[ $memory_total_gb =~ ^[0-9]+$ ]] && (( memory_total_gb > 0 ))"
_LOAD_SHOWN = '[ -n "$load_1min" ] && [ "$load_1min" != "0" ]'


def tier_color_function(name: str, value_expr: str, warning: int, critical: int) -> str:
    """Color helper that turns yellow above ``warning`` and red above ``critical``."""
    values = {"NAME": name, "VALUE": value_expr, "WARNING": warning, "CRITICAL": critical}
    return render_fragment(TIER_COLOR, values).strip("\n")


class SystemGenerator(FeatureGenerator):
    """Platform-aware metric collection cached per working directory."""

    family = "system"
    tags = SYSTEM_FEATURES

    def context(self, config: "StatuslineConfig") -> str:
        monitoring = config.monitoring
        return (
            f"system:{','.join(self.selected(config))};refresh={monitoring.refresh_rate};"
            f"cpu={monitoring.cpu_threshold};mem={monitoring.memory_threshold};"
            f"load={monitoring.load_threshold}"
        )

    def generate(self, config: "StatuslineConfig", style: StyleFlags) -> FeatureFragments:
        if not self.enabled(config):
            return FeatureFragments.empty()

        selected = self.selected(config)
        variables: List[str] = ["sys_platform"]
        for metric in selected:
            variables.extend(_METRIC_VARIABLES[metric])

        return FeatureFragments(
            utilities=self._utilities(selected, config.monitoring, style),
            data=self._data(selected, config.monitoring, variables),
            displays=((selected[0], self._display(selected, style)),),
            variables=tuple(variables[1:]),
        )

    def _utilities(
        self, selected: List[str], monitoring: "SystemMonitoringConfig", style: StyleFlags
    ) -> str:
        values = {"TIMEOUT": SYSTEM_COMMAND_TIMEOUT}
        parts = ["# ---- system utilities ----", VALIDATION_HELPERS.strip("\n")]
        collect = [
            "collect_system_metrics() {",
            '  local platform="${SYS_PLATFORM:-$(detect_platform)}"',
            '  echo "sys_platform=$platform"',
        ]
        if "cpu" in selected:
            parts.append(render_fragment(CPU_HELPERS, values).strip("\n"))
            parts.append(self._color("cpu_clr", '"${1:-0}"', monitoring.cpu_threshold, style))
            collect.extend(_CPU_COLLECT)
        if "memory" in selected:
            parts.append(MEMORY_HELPERS.strip("\n"))
            parts.append(self._color("mem_clr", '"${1:-0}"', monitoring.memory_threshold, style))
            collect.extend(_MEMORY_COLLECT)
        if "load" in selected:
            parts.append(LOAD_HELPERS.strip("\n"))
            parts.append(
                self._color(
                    "load_clr", '$(to_centi "${1:-0}")', centi(monitoring.load_threshold), style
                )
            )
            collect.extend(_LOAD_COLLECT)
        collect.append("}")
        parts.append("\n".join(collect))
        return "\n\n".join(parts)

    @staticmethod
    def _color(name: str, value_expr: str, threshold: int, style: StyleFlags) -> str:
        if not style.colors:
            return f"{name}() {{ :; }}"
        return tier_color_function(name, value_expr, threshold, critical_threshold(threshold))

    @staticmethod
    def _data(selected: List[str], monitoring: "SystemMonitoringConfig", variables: List[str]) -> str:
        lines = ["# ---- system ----", 'sys_platform=""']
        lines.extend(f"{name}=0" for name in variables[1:])
        lines.append(
            generate_runtime_cache_snippet(
                "system",
                "collect_system_metrics",
                target="system_payload",
                ttl=min(monitoring.refresh_rate, MAX_SYSTEM_CACHE_TTL),
            )
        )
        lines.append(f'load_kv_lines "$system_payload" {" ".join(variables)}')
        return "\n".join(lines)

    def _display(self, selected: List[str], style: StyleFlags) -> str:
        if style.compact:
            return self._compact_display(selected, style)

        blocks: List[str] = ["# ---- system render ----"]
        if "cpu" in selected:
            body = segment(
                label(style, "💻", "cpu: "),
                [self._painted(style, "cpu_clr", "$cpu_percent", "%s%%", ['"$cpu_percent"'])],
            )
            blocks.append(display_block("cpu", _CPU_SHOWN, body))
        if "memory" in selected:
            if style.minimal:
                memory = ("%sGB/%sGB", ['"$memory_used_gb"', '"$memory_total_gb"'])
            else:
                memory = (
                    "%sGB/%sGB (%s%%)",
                    ['"$memory_used_gb"', '"$memory_total_gb"', '"$memory_percent"'],
                )
            body = segment(
                label(style, "🧠", "mem: "),
                [self._painted(style, "mem_clr", "$memory_percent", *memory)],
            )
            blocks.append(display_block("memory", _MEMORY_SHOWN, body))
        if "load" in selected:
            if style.minimal:
                load = ("%s", ['"$load_1min"'])
            else:
                load = ("%s (%s/%s)", ['"$load_1min"', '"$load_5min"', '"$load_15min"'])
            body = segment(
                label(style, "⚡", "load: "),
                [self._painted(style, "load_clr", "$load_1min", *load)],
            )
            blocks.append(display_block("load", _LOAD_SHOWN, body))
        return "\n".join(blocks)

    @staticmethod
    def _painted(style: StyleFlags, color_fn: str, color_arg: str, fmt: str, args: List[str]):
        if not style.colors:
            return fmt, list(args)
        return "%s" + fmt + "%s", [f'"$({color_fn} "{color_arg}")"', *args, '"$(rst)"']

    @staticmethod
    def _compact_display(selected: List[str], style: StyleFlags) -> str:
        def piece(color_fn: str, color_arg: str, text: str) -> str:
            if style.colors:
                return f'$({color_fn} "{color_arg}"){text}$(rst) '
            return f"{text} "

        blocks: List[str] = ["# ---- system render ----", 'sys_seg=""']
        if "cpu" in selected:
            text = piece("cpu_clr", "$cpu_percent", ("💻" if style.emojis else "cpu:") + "${cpu_percent}%")
            blocks.append(display_block("cpu", _CPU_SHOWN, f'sys_seg="${{sys_seg}}{text}"'))
        if "memory" in selected:
            text = piece(
                "mem_clr",
                "$memory_percent",
                ("🧠" if style.emojis else "mem:") + "${memory_used_gb}G/${memory_total_gb}G",
            )
            blocks.append(display_block("memory", _MEMORY_SHOWN, f'sys_seg="${{sys_seg}}{text}"'))
        if "load" in selected:
            text = piece("load_clr", "$load_1min", ("⚡" if style.emojis else "load:") + "${load_1min}")
            blocks.append(display_block("load", _LOAD_SHOWN, f'sys_seg="${{sys_seg}}{text}"'))
        blocks.append(
            textwrap.dedent(
                f"""\
                if [ -n "$sys_seg" ]; then
                  printf '%s%s' "${SEPARATOR_VAR}" "${{sys_seg% }}"
                  {SEPARATOR_VAR}='  '
                fi"""
            )
        )
        return "\n".join(blocks)


__all__ = ["MAX_SYSTEM_CACHE_TTL", "SystemGenerator", "tier_color_function"]
