"""
Service Adapters

Client for the pipeline validation service.
"""

from .validator_client import (
    ValidatorClient,
    ValidatorConfig,
    ValidatorError,
    ValidationReport,
    build_adjacency_list,
    format_report,
)

__all__ = [
    "ValidatorClient",
    "ValidatorConfig",
    "ValidatorError",
    "ValidationReport",
    "build_adjacency_list",
    "format_report",
]
