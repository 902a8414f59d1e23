"""Entry point that turns a statusline configuration into script text."""

from __future__ import annotations

import time
from typing import Dict, Iterable, List, Optional

from .assembler import ScriptAssembler
from .config import ConfigError, StatuslineConfig
from .features import FeatureGenerator, discover_generators
from .logging import get_logger
from .models import FeatureFragments
from .postproc.optimizer import ScriptOptimizer
from .stores.memory_cache import CacheManager
from .template_cache import TemplateCache


class ScriptGenerator:
    """Coordinates fragment generation, caching, assembly and optimization.

    Each instance owns its caches; nothing is shared between generators.
    """

    def __init__(
        self,
        cache: CacheManager | None = None,
        template_cache: TemplateCache | None = None,
        assembler: ScriptAssembler | None = None,
        optimizer: ScriptOptimizer | None = None,
        generators: Optional[Iterable[FeatureGenerator]] = None,
        *,
        fragment_cache: bool = True,
        common_shapes: bool = True,
    ) -> None:
        self.cache = cache or CacheManager()
        self.template_cache = template_cache or TemplateCache(self.cache)
        self.assembler = assembler or ScriptAssembler()
        self.optimizer = optimizer or ScriptOptimizer()
        self.generators: List[FeatureGenerator] = (
            list(generators) if generators is not None else discover_generators()
        )
        self.fragment_cache = fragment_cache
        self.common_shapes = common_shapes
        self.logger = get_logger("generator")

    def generate(self, config: StatuslineConfig) -> str:
        """Return the optimized script, reusing a cached copy when one is live."""
        self._require_features(config)
        cached = self.template_cache.get_script(config)
        if cached is not None:
            return cached

        started = time.perf_counter()
        assembled = self.assemble(config)
        result = self.optimizer.optimize(assembled)
        script = result.text
        self.template_cache.store_script(config, script)

        elapsed = time.perf_counter() - started
        self.cache.update_metrics(
            script_size=len(script),
            generation_time=elapsed,
            feature_complexity=len(config.ordered_features()),
        )
        self.logger.debug(
            "Generated %d byte script for %s in %.1f ms",
            len(script),
            ", ".join(config.ordered_features()),
            elapsed * 1000,
        )
        return script

    def assemble(self, config: StatuslineConfig) -> str:
        """Return the assembled script before optimization."""
        self._require_features(config)
        fragments = self.fragments(config)
        shape = self.template_cache.match_common_shape(config) if self.common_shapes else None
        prelude = None
        if shape is not None:
            prelude = self.template_cache.prelude(
                shape, config, lambda: self.assembler.compose_prelude(fragments)
            )
        return self.assembler.assemble(config, fragments, prelude=prelude)

    def fragments(self, config: StatuslineConfig) -> Dict[str, FeatureFragments]:
        style = config.style()
        fragments: Dict[str, FeatureFragments] = {}
        for generator in self.generators:
            if not generator.enabled(config):
                continue
            if not self.fragment_cache:
                fragments[generator.family] = generator.generate(config, style)
                continue
            context = f"{generator.context(config)}|{style.cache_token()}"
            key = self.cache.key(generator.family, context)
            fragment = self.cache.get(key)
            if fragment is None:
                fragment = generator.generate(config, style)
                self.cache.set(key, fragment, generator.family, context)
            fragments[generator.family] = fragment
        return fragments

    @staticmethod
    def _require_features(config: StatuslineConfig) -> None:
        if not config.features:
            raise ConfigError("Cannot generate a statusline without any features")
        if not config.ordered_features():
            raise ConfigError(
                f"None of the selected features are supported: {', '.join(config.features)}"
            )


def generate_statusline(config: StatuslineConfig) -> str:
    """Generate a script with a fresh, private generator."""
    return ScriptGenerator().generate(config)


__all__ = ["ScriptGenerator", "generate_statusline"]
