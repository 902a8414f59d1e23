"""Feature fragment generators and their registry."""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from .base import FeatureGenerator
from .basics import BasicsGenerator
from .colors import ColorsGenerator
from .git import GitGenerator
from .system import SystemGenerator
from .usage import UsageGenerator

_BUILTIN_FACTORIES: Dict[str, Callable[[], FeatureGenerator]] = {
    "colors": ColorsGenerator,
    "basics": BasicsGenerator,
    "git": GitGenerator,
    "usage": UsageGenerator,
    "system": SystemGenerator,
}

FAMILY_ORDER = tuple(_BUILTIN_FACTORIES)


def discover_generators(families: Sequence[str] | None = None) -> List[FeatureGenerator]:
    """Instantiate the built-in generators, optionally limited to ``families``."""
    wanted = set(families) if families is not None else None
    generators: List[FeatureGenerator] = []
    for family, factory in _BUILTIN_FACTORIES.items():
        if wanted is not None and family not in wanted:
            continue
        instance = factory()
        if not isinstance(instance, FeatureGenerator):
            raise TypeError(f"Generator factory for '{family}' did not return a FeatureGenerator")
        generators.append(instance)
    if wanted is not None:
        unknown = wanted - set(_BUILTIN_FACTORIES)
        if unknown:
            raise ValueError(f"Unknown feature families: {', '.join(sorted(unknown))}")
    return generators


__all__ = [
    "BasicsGenerator",
    "ColorsGenerator",
    "FAMILY_ORDER",
    "FeatureGenerator",
    "GitGenerator",
    "SystemGenerator",
    "UsageGenerator",
    "discover_generators",
]
