"""Configuration loading and validation for statusgen (.statusline.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import (
    DEFAULT_THEME,
    DISPLAY_ORDER,
    KNOWN_FEATURES,
    SYSTEM_FEATURES,
    THEMES,
    USAGE_FEATURES,
    StyleFlags,
)

CONFIG_FILENAME = ".statusline.yml"
DEFAULT_FEATURES: List[str] = ["directory", "git", "model"]
MAX_RECOMMENDED_FEATURES = 5


class ConfigError(RuntimeError):
    """Raised when a statusline configuration cannot be parsed or used."""


@dataclass
class SystemMonitoringConfig:
    """Refresh and threshold settings for the cpu/memory/load features."""

    refresh_rate: int = 3
    cpu_threshold: int = 75
    memory_threshold: int = 80
    load_threshold: float = 2.0


@dataclass
class StatuslineConfig:
    """Everything the generator needs to emit one statusline script."""

    features: List[str] = field(default_factory=lambda: list(DEFAULT_FEATURES))
    colors: bool = True
    theme: str = DEFAULT_THEME
    usage_integration: bool = True
    logging: bool = False
    custom_emojis: bool = False
    system_monitoring: Optional[SystemMonitoringConfig] = None

    def has(self, feature: str) -> bool:
        return feature in self.features

    def has_any(self, features: Sequence[str]) -> bool:
        return any(feature in self.features for feature in features)

    @property
    def emojis(self) -> bool:
        return self.colors and not self.custom_emojis

    @property
    def monitoring(self) -> SystemMonitoringConfig:
        return self.system_monitoring or SystemMonitoringConfig()

    def ordered_features(self) -> List[str]:
        """Known features in render order; unknown tags are dropped."""
        return [feature for feature in DISPLAY_ORDER if feature in self.features]

    def style(self) -> StyleFlags:
        theme = self.theme if self.theme in THEMES else DEFAULT_THEME
        return StyleFlags(colors=self.colors, theme=theme, emojis=self.emojis)


@dataclass
class ValidationResult:
    """Errors block generation; warnings are reported to the user."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def load_config(config_path: Path) -> StatuslineConfig:
    """Load configuration from disk, falling back to defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return StatuslineConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return config_from_mapping(data)


def config_from_mapping(data: Dict[str, Any]) -> StatuslineConfig:
    """Build a config from loosely typed values (YAML documents, CLI overrides)."""
    features = _normalise_features(_as_str_list(data.get("features")))
    if "features" not in data:
        features = list(DEFAULT_FEATURES)

    monitoring_data = _as_dict(data.get("system_monitoring"))
    monitoring: Optional[SystemMonitoringConfig] = None
    if monitoring_data:
        defaults = SystemMonitoringConfig()
        monitoring = SystemMonitoringConfig(
            refresh_rate=_pick(_as_int(monitoring_data.get("refresh_rate")), defaults.refresh_rate),
            cpu_threshold=_pick(_as_int(monitoring_data.get("cpu_threshold")), defaults.cpu_threshold),
            memory_threshold=_pick(
                _as_int(monitoring_data.get("memory_threshold")), defaults.memory_threshold
            ),
            load_threshold=_pick(
                _as_float(monitoring_data.get("load_threshold")), defaults.load_threshold
            ),
        )
    elif any(feature in features for feature in SYSTEM_FEATURES):
        monitoring = SystemMonitoringConfig()

    theme = _as_str(data.get("theme"))
    return StatuslineConfig(
        features=features,
        colors=_pick(_as_bool(data.get("colors")), True),
        theme=theme.lower() if theme else DEFAULT_THEME,
        usage_integration=_pick(_as_bool(data.get("usage_integration")), True),
        logging=_pick(_as_bool(data.get("logging")), False),
        custom_emojis=_pick(_as_bool(data.get("custom_emojis")), False),
        system_monitoring=monitoring,
    )


def validate_config(config: StatuslineConfig) -> ValidationResult:
    """Check a configuration before generation; mirrors what the installer would reject."""
    result = ValidationResult()

    if not config.features:
        result.errors.append("At least one feature must be selected")
    unknown = [feature for feature in config.features if feature not in KNOWN_FEATURES]
    if unknown:
        result.warnings.append(f"Unknown features will be ignored: {', '.join(unknown)}")
    if config.features and not config.ordered_features():
        result.errors.append("At least one supported feature must be selected")

    if config.theme not in THEMES:
        result.errors.append(
            f"Invalid theme '{config.theme}'. Choose one of: {', '.join(THEMES)}"
        )

    if config.has_any(USAGE_FEATURES) and not config.usage_integration:
        result.warnings.append(
            "Usage features selected without usage integration; usage data will be empty"
        )

    if len(config.features) > MAX_RECOMMENDED_FEATURES:
        result.warnings.append(
            "Many features selected; the statusline may be too long for narrow terminals"
        )

    if config.custom_emojis and not config.colors:
        result.warnings.append("Custom emojis have no effect when colors are disabled")

    if config.system_monitoring is not None:
        monitoring = config.system_monitoring
        if not 1 <= monitoring.refresh_rate <= 60:
            result.errors.append("system_monitoring.refresh_rate must be between 1 and 60 seconds")
        if not 10 <= monitoring.cpu_threshold <= 95:
            result.errors.append("system_monitoring.cpu_threshold must be between 10 and 95")
        if not 10 <= monitoring.memory_threshold <= 95:
            result.errors.append("system_monitoring.memory_threshold must be between 10 and 95")
        if not 0.1 <= monitoring.load_threshold <= 10.0:
            result.errors.append("system_monitoring.load_threshold must be between 0.1 and 10.0")

    return result


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _normalise_features(values: Sequence[str]) -> List[str]:
    features: List[str] = []
    for value in values:
        for part in value.split(","):
            name = part.strip().lower()
            if name and name not in features:
                features.append(name)
    return features


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_FEATURES",
    "StatuslineConfig",
    "SystemMonitoringConfig",
    "ValidationResult",
    "config_from_mapping",
    "load_config",
    "validate_config",
]
