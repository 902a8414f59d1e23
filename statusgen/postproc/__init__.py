"""Post-processing passes applied to assembled scripts."""

from .lint import ScriptLinter
from .optimizer import OptimizationOptions, OptimizationResult, ScriptOptimizer, optimization_stats

__all__ = [
    "OptimizationOptions",
    "OptimizationResult",
    "ScriptLinter",
    "ScriptOptimizer",
    "optimization_stats",
]
