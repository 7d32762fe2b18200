"""
Built-in Nodes

One computation per node type, registered with register_builtin_nodes().
"""

from engine.dag.node import NodeType
from engine.dag.registry import NodeRegistry

from .base import BaseNode
from .text_nodes import InputNode, TextNode, LLMNode, OutputNode
from .data_nodes import TransformNode, FilterNode, CombineNode, ConditionalNode
from .api_node import APINode

BUILTIN_NODES = [
    InputNode,
    TextNode,
    LLMNode,
    TransformNode,
    FilterNode,
    CombineNode,
    APINode,
    ConditionalNode,
    OutputNode,
]


def register_builtin_nodes(registry: NodeRegistry) -> NodeRegistry:
    """
    Register every built-in node type.

    Raises:
        ValueError: If a node type is left without a computation
    """
    for node_class in BUILTIN_NODES:
        registry.register(node_class())

    for node_type in NodeType:
        registry.require(node_type.value)
    return registry


__all__ = [
    "BaseNode",
    "InputNode",
    "TextNode",
    "LLMNode",
    "OutputNode",
    "TransformNode",
    "FilterNode",
    "CombineNode",
    "ConditionalNode",
    "APINode",
    "BUILTIN_NODES",
    "register_builtin_nodes",
]
