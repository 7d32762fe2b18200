"""
DAG Module

Pipeline graph model, graph store, dependency ordering and node registry.
"""

from .node import (
    NodeType,
    PipelineNode,
    PipelineEdge,
    VariableBinding,
    NodeInputs,
    NodeCompute,
    local_name,
    output_handle,
    variable_handle,
)
from .store import GraphState, GraphStore
from .registry import NodeRegistry
from .builder import DAGBuilder

__all__ = [
    "NodeType",
    "PipelineNode",
    "PipelineEdge",
    "VariableBinding",
    "NodeInputs",
    "NodeCompute",
    "local_name",
    "output_handle",
    "variable_handle",
    "GraphState",
    "GraphStore",
    "NodeRegistry",
    "DAGBuilder",
]
