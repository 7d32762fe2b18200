"""
Node Registry

Maps each node type to the computation that evaluates it.
One implementation per NodeType; require() fails for any gap.
"""

from typing import Dict, List, Optional
import logging

from .node import NodeCompute, NodeType

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Registry of node computations keyed by node type.

    Example usage:
        registry = NodeRegistry()
        registry.register(TransformNode())

        compute = registry.get("transform")
        values = compute.compute(inputs, node.data)
    """

    def __init__(self):
        """Initialize empty registry"""
        self._computes: Dict[NodeType, NodeCompute] = {}
        logger.debug("Initialized NodeRegistry")

    def register(self, compute: NodeCompute) -> None:
        """
        Register the computation for compute.node_type.

        Args:
            compute: Object implementing the NodeCompute protocol
        """
        node_type = compute.node_type
        if node_type in self._computes:
            logger.warning(f"Overwriting existing registration for node type: {node_type.value}")

        self._computes[node_type] = compute
        logger.debug(f"Registered node type: {node_type.value}")

    def get(self, node_type: str) -> Optional[NodeCompute]:
        """
        Look up the computation for a type tag.

        Returns:
            The registered computation, or None for unknown or
            unregistered types
        """
        parsed = NodeType.parse(node_type)
        if parsed is None:
            return None
        return self._computes.get(parsed)

    def require(self, node_type: str) -> NodeCompute:
        """
        Strict lookup.

        Raises:
            ValueError: If node_type is not registered
        """
        compute = self.get(node_type)
        if compute is None:
            available = ", ".join(self.list_types())
            raise ValueError(
                f"Unknown node type: {node_type}. "
                f"Available types: {available if available else 'none'}"
            )
        return compute

    def list_types(self) -> List[str]:
        """List registered node type tags"""
        return [node_type.value for node_type in self._computes]
