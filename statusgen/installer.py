"""Writes generated scripts and registers them in Claude settings."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .logging import get_logger

DEFAULT_SCRIPT_PATH = Path(".claude") / "statusline.sh"
SETTINGS_FILENAME = "settings.json"
SCRIPT_MODE = 0o755


class InstallError(RuntimeError):
    """Raised when the script or the settings file cannot be written."""


@dataclass
class InstallResult:
    script_path: Path
    settings_path: Optional[Path] = None
    settings_updated: bool = False


def install_script(
    script: str,
    output_path: Path | None = None,
    *,
    update_settings: bool = True,
) -> InstallResult:
    """Write ``script`` as an executable file and point settings.json at it.

    The settings file lives beside the script (``.claude/settings.json`` for
    the default location) and references the script relative to the project
    root, e.g. ``.claude/statusline.sh``.
    """
    logger = get_logger("installer")
    target = Path(output_path) if output_path is not None else DEFAULT_SCRIPT_PATH
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(script, encoding="utf-8")
        os.chmod(target, SCRIPT_MODE)
    except OSError as exc:
        raise InstallError(f"Unable to write statusline script to {target}: {exc}") from exc
    logger.info("Wrote statusline script to %s", target)

    result = InstallResult(script_path=target)
    if not update_settings:
        return result

    settings_path = target.parent / SETTINGS_FILENAME
    update_settings_json(settings_path, f"{target.parent.name}/{target.name}")
    result.settings_path = settings_path
    result.settings_updated = True
    return result


def update_settings_json(settings_path: Path, command: str) -> Dict[str, Any]:
    """Merge a ``statusLine`` entry into ``settings_path`` keeping other keys."""
    logger = get_logger("installer")
    settings = _read_settings(settings_path)
    settings["statusLine"] = {"type": "command", "command": command, "padding": 0}
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        settings_path.write_text(json.dumps(settings, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise InstallError(f"Unable to update {settings_path}: {exc}") from exc
    logger.info("Registered %s in %s", command, settings_path)
    return settings


def manual_instructions(script_path: Path) -> str:
    return (
        "Add the following to .claude/settings.json to enable the statusline:\n"
        + json.dumps(
            {"statusLine": {"type": "command", "command": str(script_path), "padding": 0}},
            indent=2,
        )
        + "\n"
    )


def _read_settings(settings_path: Path) -> Dict[str, Any]:
    if not settings_path.exists():
        return {}
    try:
        loaded = json.loads(settings_path.read_text(encoding="utf-8") or "{}")
    except json.JSONDecodeError:
        get_logger("installer").warning(
            "Ignoring unparseable %s; it will be rewritten", settings_path
        )
        return {}
    except OSError as exc:
        raise InstallError(f"Unable to read {settings_path}: {exc}") from exc
    return loaded if isinstance(loaded, dict) else {}


__all__ = [
    "DEFAULT_SCRIPT_PATH",
    "InstallError",
    "InstallResult",
    "install_script",
    "manual_instructions",
    "update_settings_json",
]
