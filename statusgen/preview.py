"""Runs a generated script against mock Claude input."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
import subprocess
import tempfile
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from .logging import get_logger
from .models import SYSTEM_FEATURES, USAGE_FEATURES

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .config import StatuslineConfig

DEFAULT_TIMEOUT = 5.0
MAX_COMFORTABLE_FEATURES = 6


@dataclass
class PreviewResult:
    success: bool
    output: str = ""
    error: str = ""
    execution_time: float = 0.0


Runner = Callable[[str, str, float], "subprocess.CompletedProcess[str]"]


def mock_input() -> Dict[str, Any]:
    """Representative statusline payload as Claude Code sends it on stdin."""
    return {
        "hook_event_name": "Status",
        "session_id": "test-session-123",
        "transcript_path": "/tmp/transcript.json",
        "cwd": "/home/user/projects/my-project",
        "model": {"id": "claude-opus-4-1", "display_name": "Opus 4.1"},
        "workspace": {
            "current_dir": "/home/user/projects/my-project",
            "project_dir": "/home/user/projects/my-project",
        },
        "version": "1.0.80",
        "output_style": {"name": "default"},
        "cost": {
            "total_cost_usd": 0.01234,
            "total_duration_ms": 45000,
            "total_api_duration_ms": 2300,
            "total_lines_added": 156,
            "total_lines_removed": 23,
        },
    }


class PreviewRunner:
    """Executes a script with ``bash`` and reports what it printed.

    Failures (non-zero exit, timeouts, missing bash) are reported through
    :class:`PreviewResult` rather than raised.
    """

    def __init__(self, runner: Runner | None = None, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._runner = runner or self._bash_runner
        self.timeout = timeout
        self.logger = get_logger("preview")

    def run(self, script: str, payload: Optional[Dict[str, Any]] = None) -> PreviewResult:
        stdin = json.dumps(payload if payload is not None else mock_input())
        started = time.perf_counter()
        try:
            completed = self._runner(script, stdin, self.timeout)
        except subprocess.TimeoutExpired:
            return PreviewResult(
                success=False,
                error=f"Script timed out after {self.timeout:g}s",
                execution_time=time.perf_counter() - started,
            )
        except OSError as exc:
            return PreviewResult(
                success=False,
                error=f"Unable to execute script: {exc}",
                execution_time=time.perf_counter() - started,
            )
        elapsed = time.perf_counter() - started

        output = (completed.stdout or "").strip()
        error = (completed.stderr or "").strip()
        if completed.returncode != 0:
            self.logger.debug("Preview exited with %d", completed.returncode)
            return PreviewResult(
                success=False,
                output=output,
                error=error or f"Script exited with status {completed.returncode}",
                execution_time=elapsed,
            )
        return PreviewResult(success=True, output=output, error=error, execution_time=elapsed)

    def run_file(self, path: Path, payload: Optional[Dict[str, Any]] = None) -> PreviewResult:
        try:
            script = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            return PreviewResult(success=False, error=f"Unable to read {path}: {exc}")
        return self.run(script, payload)

    @staticmethod
    def _bash_runner(script: str, stdin: str, timeout: float) -> "subprocess.CompletedProcess[str]":
        handle, name = tempfile.mkstemp(prefix="statusgen-preview-", suffix=".sh")
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                stream.write(script)
            return subprocess.run(
                ["bash", name],
                input=stdin,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        finally:
            os.unlink(name)


def preview_script(script: str, payload: Optional[Dict[str, Any]] = None) -> PreviewResult:
    return PreviewRunner().run(script, payload)


@dataclass
class PreviewAnalysis:
    performance: str
    has_required_features: bool = True
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


# Feature -> (markers of which at least one must appear in the output, display name).
_FEATURE_MARKERS: Dict[str, tuple[tuple[str, ...], str]] = {
    "directory": (("projects",), "Directory"),
    "model": (("Opus",), "Model"),
    "cpu": (("💻", "cpu:"), "CPU monitoring"),
    "memory": (("🧠", "mem:"), "Memory monitoring"),
    "load": (("⚡", "load:"), "System load"),
}


def performance_tier(seconds: float) -> str:
    if seconds > 1.0:
        return "timeout"
    if seconds > 0.5:
        return "slow"
    if seconds > 0.1:
        return "good"
    return "excellent"


def analyze(result: PreviewResult, config: "StatuslineConfig") -> PreviewAnalysis:
    """Judge a preview run of ``config``'s script against :func:`mock_input`.

    Expected segments are checked by their label or by values from the mock
    payload, so the analysis is only meaningful for runs fed that payload.
    """
    elapsed = result.execution_time
    analysis = PreviewAnalysis(performance=performance_tier(elapsed))
    if analysis.performance == "timeout":
        analysis.issues.append("Script execution is very slow (>1s)")
    elif analysis.performance == "slow":
        analysis.issues.append("Script execution is slow (>500ms)")

    for feature, (markers, name) in _FEATURE_MARKERS.items():
        if config.has(feature) and not any(marker in result.output for marker in markers):
            analysis.has_required_features = False
            analysis.issues.append(f"{name} feature not working properly")

    if config.has("git") and not any(marker in result.output for marker in ("🌿", "git:")):
        analysis.suggestions.append(
            "Git integration needs the script to run inside a git repository"
        )

    if result.error:
        analysis.issues.append(f"Script errors: {result.error}")
    if not result.success:
        analysis.issues.append("Script failed to execute successfully")

    if len(config.features) > MAX_COMFORTABLE_FEATURES:
        analysis.suggestions.append(
            "Consider reducing the number of features for better performance"
        )
    if config.usage_integration and config.has_any(USAGE_FEATURES) and elapsed > 0.2:
        analysis.suggestions.append(
            "ccusage integration may slow down the statusline; its output is cached for 30s"
        )
    if config.system_monitoring is not None and elapsed > 0.3:
        analysis.suggestions.append(
            "System monitoring may impact performance; consider increasing refresh_rate"
        )
    if config.has_any(SYSTEM_FEATURES) and config.system_monitoring is None:
        analysis.suggestions.append("System monitoring features selected but configuration missing")

    return analysis


__all__ = [
    "PreviewAnalysis",
    "PreviewResult",
    "PreviewRunner",
    "analyze",
    "mock_input",
    "performance_tier",
    "preview_script",
]
