"""Shell snippets that cache expensive command output on disk at script runtime."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional

from ..shell import render_fragment

KV_STALE_MINUTES = 120
JSON_STALE_MINUTES = 180


@dataclass(frozen=True)
class RuntimeCacheDomain:
    """Where and for how long the generated script keeps one kind of payload."""

    name: str
    path: str
    ttl: int
    kind: str  # "json" or "kv"
    label: str


RUNTIME_CACHE_DOMAINS: Dict[str, RuntimeCacheDomain] = {
    "usage": RuntimeCacheDomain(
        name="usage",
        path="${HOME}/.claude/ccusage_cache.json",
        ttl=30,
        kind="json",
        label="usage data",
    ),
    "repo": RuntimeCacheDomain(
        name="repo",
        path=r"${HOME}/.claude/repo_cache_${PWD//\//_}.tmp",
        ttl=300,
        kind="kv",
        label="repository detection",
    ),
    "git": RuntimeCacheDomain(
        name="git",
        path=r"${HOME}/.claude/git_cache_${PWD//\//_}.tmp",
        ttl=10,
        kind="kv",
        label="git branch",
    ),
    "system": RuntimeCacheDomain(
        name="system",
        path=r"${HOME}/.claude/system_cache_${PWD//\//_}.tmp",
        ttl=3,
        kind="kv",
        label="system metrics",
    ),
}

_CACHE_HELPERS = r"""
# ---- runtime cache helpers ----
cache_dir="${HOME}/.claude"
mkdir -p "$cache_dir" 2>/dev/null

cache_age() {
  local mtime
  mtime=$(stat -c %Y "$1" 2>/dev/null || stat -f %m "$1" 2>/dev/null || echo 0)
  echo $(( $(date +%s) - mtime ))
}

cache_is_fresh() {
  [ -f "$1" ] || return 1
  [ "$(cache_age "$1")" -lt "$2" ]
}

validate_cache_file() {
  local file="$1" kind="$2"
  [ -s "$file" ] || return 1
  if grep -qF -e '`' -e '$(' -e '&&' -e '||' "$file" 2>/dev/null; then
    return 1
  fi
  case "$kind" in
    (json)
      jq -e 'type == "object"' "$file" >/dev/null 2>&1 ;;
    (kv)
      if grep -qF ';' "$file" 2>/dev/null; then
        return 1
      fi
      ! grep -qv '^[A-Za-z_][A-Za-z0-9_]*=' "$file" 2>/dev/null ;;
    (*)
      return 1 ;;
  esac
}

write_cache_atomic() {
  local file="$1" tmp="${1}.$$.tmp"
  if printf '%s\n' "$2" > "$tmp" 2>/dev/null && mv -f "$tmp" "$file" 2>/dev/null; then
    return 0
  fi
  rm -f "$tmp" 2>/dev/null
  return 1
}

run_with_timeout() {
  local secs="$1" pid watcher rc
  shift
  if command -v timeout >/dev/null 2>&1; then
    timeout "$secs" "$@"
  elif command -v gtimeout >/dev/null 2>&1; then
    gtimeout "$secs" "$@"
  else
    # Watcher output goes to /dev/null so a leftover sleep never holds a $(...) pipe open.
    "$@" &
    pid=$!
    ( sleep "$secs"; kill "$pid" 2>/dev/null ) >/dev/null 2>&1 &
    watcher=$!
    wait "$pid"
    rc=$?
    kill "$watcher" 2>/dev/null
    return "$rc"
  fi
}

load_kv_lines() {
  local payload="$1" key value allowed
  shift
  while IFS='=' read -r key value; do
    for allowed in "$@"; do
      if [ "$key" = "$allowed" ]; then
        printf -v "$key" '%s' "$value"
      fi
    done
  done <<< "$payload"
}

if (( $(date +%s) % 100 == 0 )); then
  find "$cache_dir" -maxdepth 1 -name '*_cache_*.tmp' -mmin +@@KV_STALE@@ -delete 2>/dev/null
  find "$cache_dir" -maxdepth 1 -name 'ccusage_cache.json' -mmin +@@JSON_STALE@@ -delete 2>/dev/null
fi
"""

_SNIPPET = r"""
# ---- @@LABEL@@ cache (@@TTL@@s TTL) ----
@@TARGET@@=""
@@NAME@@_cache_file="@@PATH@@"
if cache_is_fresh "$@@NAME@@_cache_file" @@TTL@@ && validate_cache_file "$@@NAME@@_cache_file" @@KIND@@; then
  @@TARGET@@=$(cat "$@@NAME@@_cache_file" 2>/dev/null)
fi
if [ -z "$@@TARGET@@" ]; then
  rm -f "$@@NAME@@_cache_file" 2>/dev/null
  @@TARGET@@=$(@@COMMAND@@)
  if [ -n "$@@TARGET@@" ]; then
    write_cache_atomic "$@@NAME@@_cache_file" "$@@TARGET@@"
  fi
fi
"""


def resolve_domain(domain: str, *, ttl: Optional[int] = None) -> RuntimeCacheDomain:
    try:
        resolved = RUNTIME_CACHE_DOMAINS[domain]
    except KeyError as exc:
        raise ValueError(f"Unknown runtime cache domain '{domain}'") from exc
    if ttl is not None:
        if ttl < 1:
            raise ValueError("Runtime cache TTL must be at least one second")
        resolved = replace(resolved, ttl=ttl)
    return resolved


def generate_cache_helpers() -> str:
    """Shared shell functions every runtime cache snippet and external call relies on."""
    return render_fragment(
        _CACHE_HELPERS,
        {"KV_STALE": KV_STALE_MINUTES, "JSON_STALE": JSON_STALE_MINUTES},
    ).strip("\n")


def generate_runtime_cache_snippet(
    domain: str,
    command: str,
    *,
    target: Optional[str] = None,
    ttl: Optional[int] = None,
) -> str:
    """Emit shell code that leaves ``command``'s output in ``target``.

    A fresh cache file that passes ``validate_cache_file`` is reused. Anything
    else is removed, ``command`` runs, and non-empty output is written back
    through ``write_cache_atomic``.
    """
    resolved = resolve_domain(domain, ttl=ttl)
    values = {
        "LABEL": resolved.label,
        "TTL": resolved.ttl,
        "TARGET": target or f"{resolved.name}_payload",
        "NAME": resolved.name,
        "PATH": resolved.path,
        "KIND": resolved.kind,
        "COMMAND": command,
    }
    return render_fragment(_SNIPPET, values).strip("\n")


__all__ = [
    "JSON_STALE_MINUTES",
    "KV_STALE_MINUTES",
    "RUNTIME_CACHE_DOMAINS",
    "RuntimeCacheDomain",
    "generate_cache_helpers",
    "generate_runtime_cache_snippet",
    "resolve_domain",
]
