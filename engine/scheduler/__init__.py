"""
Scheduler Module

Pipeline evaluation and deferred recompute scheduling.
"""

from .executor import PipelineEvaluator, evaluate, gather_inputs
from .recompute import RecomputeScheduler

__all__ = [
    "PipelineEvaluator",
    "evaluate",
    "gather_inputs",
    "RecomputeScheduler",
]
