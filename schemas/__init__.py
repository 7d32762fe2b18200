"""
Pipeline Schemas

Wire models shared by the validation service and its client.
"""

from .pipeline import (
    NodePayload,
    EdgePayload,
    PipelinePayload,
    AdjacencyPayload,
    ParseResponse,
)

__all__ = [
    "NodePayload",
    "EdgePayload",
    "PipelinePayload",
    "AdjacencyPayload",
    "ParseResponse",
]
