"""
Variable Binding

Single integration point between token edits and graph edges: creating a
token creates its edge, deleting a token removes the edges bound to it.
"""

from typing import List, Optional
import logging

from engine.dag.node import PipelineEdge
from engine.dag.store import GraphStore

from .tokens import extract_variables

logger = logging.getLogger(__name__)


class VariableBinder:
    """
    Keeps variable edges in step with the tokens of text fields.

    Example usage:
        binder = VariableBinder(store)
        binder.bind("input-1", "text-1", "input_1.input_1")
        binder.unbind("text-1", "input_1.input_1")
    """

    def __init__(self, store: GraphStore):
        self.store = store

    def bind(
        self, source_node_id: str, target_node_id: str, variable_name: str
    ) -> Optional[PipelineEdge]:
        """
        Create exactly one edge for a newly inserted token.

        Returns:
            The created edge, or None if either node is unknown
        """
        return self.store.create_variable_connection(
            source_node_id, target_node_id, variable_name
        )

    def unbind(self, target_node_id: str, variable_name: str) -> List[PipelineEdge]:
        """Remove the edges bound to a deleted token"""
        return self.store.remove_variable_connection(target_node_id, variable_name)

    def bound_variables(self, target_node_id: str) -> List[str]:
        """Variable names with an edge into target_node_id, in edge order"""
        names = [
            edge.variable_name
            for edge in self.store.state.incoming(target_node_id)
            if edge.variable_name is not None
        ]
        return list(dict.fromkeys(names))

    def sync(self, target_node_id: str, text: str) -> None:
        """
        Reconcile variable edges with the tokens present in text.

        Edges whose variable no longer appears are removed. Tokens without an
        edge are bound when their qualified name's prefix matches another
        node's display name; unmatched tokens stay unbound.
        """
        present = extract_variables(text)
        bound = self.bound_variables(target_node_id)

        for name in bound:
            if name not in present:
                self.unbind(target_node_id, name)

        for name in present:
            if name in bound:
                continue
            source = self._resolve_source(target_node_id, name)
            if source is None:
                logger.debug(f"No source node for variable '{name}' in {target_node_id}")
                continue
            self.bind(source, target_node_id, name)

    def _resolve_source(self, target_node_id: str, variable_name: str) -> Optional[str]:
        if "." not in variable_name:
            return None
        node_name = variable_name.rsplit(".", 1)[0]
        for node in self.store.nodes:
            if node.id == target_node_id:
                continue
            if node.display_name == node_name or node.id == node_name:
                return node.id
        return None
