"""
Base Node Computation

Shared behaviour for the built-in node types: fixed output lists and
per-type default configuration.
"""

from typing import Any, Dict, List

from engine.dag.node import NodeInputs, NodeType


class BaseNode:
    """
    Base class for built-in node computations.

    Subclasses set node_type, output_names and default_data and implement
    compute(). All implementations are pure: configuration fields missing
    from data fall back to default_data and never raise.
    """

    node_type: NodeType
    output_names: List[str] = []
    default_data: Dict[str, Any] = {}

    def defaults(self, node_id: str) -> Dict[str, Any]:
        return dict(self.default_data)

    def outputs(self, data: Dict[str, Any]) -> List[str]:
        return list(self.output_names)

    def setting(self, data: Dict[str, Any], key: str) -> Any:
        """Configured value of key, or its default when unset or empty"""
        value = data.get(key)
        if value is None or value == "":
            return self.default_data.get(key)
        return value

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError
