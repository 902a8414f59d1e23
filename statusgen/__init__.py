"""Statusline script generator for the Claude Code terminal."""

__version__ = "0.3.0"

from .config import (  # noqa: E402
    ConfigError,
    StatuslineConfig,
    SystemMonitoringConfig,
    load_config,
    validate_config,
)
from .generator import ScriptGenerator, generate_statusline  # noqa: E402

__all__ = [
    "ConfigError",
    "ScriptGenerator",
    "StatuslineConfig",
    "SystemMonitoringConfig",
    "__version__",
    "generate_statusline",
    "load_config",
    "validate_config",
]
