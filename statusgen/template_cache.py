"""Common configuration shapes and whole-script caching."""

from __future__ import annotations

from dataclasses import asdict
import hashlib
import json
from typing import Callable, FrozenSet, Optional, Tuple

from .config import StatuslineConfig
from .logging import get_logger
from .models import KNOWN_FEATURES
from .stores.memory_cache import FRAGMENT_TYPE, SCRIPT_TYPE, CacheManager

COMMON_SHAPES: Tuple[FrozenSet[str], ...] = (
    frozenset({"directory", "model"}),
    frozenset({"directory", "git", "model"}),
    frozenset({"directory", "git", "model", "usage"}),
    frozenset({"directory", "git", "model", "usage", "session"}),
)


class TemplateCache:
    """Caches whole scripts by configuration and preludes by common shape."""

    def __init__(self, cache: CacheManager) -> None:
        self.cache = cache
        self.logger = get_logger("template_cache")

    @staticmethod
    def template_key(config: StatuslineConfig) -> str:
        """Hash every input that changes the emitted script; feature order is ignored."""
        monitoring = asdict(config.system_monitoring) if config.system_monitoring else None
        payload = {
            "features": sorted(config.features),
            "colors": config.colors,
            "theme": config.theme,
            "usage_integration": config.usage_integration,
            "custom_emojis": config.custom_emojis,
            "logging": config.logging,
            "system_monitoring": monitoring,
        }
        encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
        return hashlib.md5(encoded).hexdigest()[:12]

    @staticmethod
    def match_common_shape(config: StatuslineConfig) -> Optional[FrozenSet[str]]:
        known = frozenset(feature for feature in config.features if feature in KNOWN_FEATURES)
        for shape in COMMON_SHAPES:
            if known == shape:
                return shape
        return None

    def get_script(self, config: StatuslineConfig) -> Optional[str]:
        key = self.cache.key(SCRIPT_TYPE, self.template_key(config))
        script = self.cache.get(key)
        self.logger.debug("Script cache %s for %s", "hit" if script is not None else "miss", key)
        return script

    def store_script(self, config: StatuslineConfig, script: str) -> None:
        context = self.template_key(config)
        self.cache.set(self.cache.key(SCRIPT_TYPE, context), script, SCRIPT_TYPE, context)

    def prelude(
        self,
        shape: FrozenSet[str],
        config: StatuslineConfig,
        build: Callable[[], str],
    ) -> str:
        """Return the precomposed setup and utility block for a common shape."""
        context = json.dumps(
            {
                "shape": sorted(shape),
                "style": config.style().cache_token(),
                "usage_integration": config.usage_integration,
            },
            sort_keys=True,
        )
        key = self.cache.key(FRAGMENT_TYPE, context)
        prelude = self.cache.get(key)
        if prelude is None:
            prelude = build()
            self.cache.set(key, prelude, FRAGMENT_TYPE, context)
        return prelude

    def invalidate(self) -> int:
        return self.cache.invalidate_templates()


__all__ = ["COMMON_SHAPES", "TemplateCache"]
