"""
Runtime Module

Pipeline coordinator and engine entry point.
"""

from .coordinator import PipelineCoordinator, SubmissionResult

__all__ = [
    "PipelineCoordinator",
    "SubmissionResult",
]
