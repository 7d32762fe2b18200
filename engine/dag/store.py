"""
Graph Store

Sole owner of the pipeline's node and edge collections.
Every mutation builds a new GraphState snapshot and swaps it in atomically,
then notifies subscribers (the recompute scheduler).
"""

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Mapping, Optional, Tuple
import logging

from .node import (
    PipelineNode,
    PipelineEdge,
    VariableBinding,
    local_name,
    output_handle,
    variable_handle,
)

logger = logging.getLogger(__name__)


StateListener = Callable[["GraphState"], None]


@dataclass(frozen=True)
class GraphState:
    """
    Immutable snapshot of the pipeline graph.

    Attributes:
        nodes: Nodes in insertion order
        edges: Edges in insertion order
        node_ids: Per-type id counters (last issued number per type)
        edge_count: Number of edge ids issued so far
    """
    nodes: Tuple[PipelineNode, ...] = ()
    edges: Tuple[PipelineEdge, ...] = ()
    node_ids: Mapping[str, int] = field(default_factory=dict)
    edge_count: int = 0

    def get_node(self, node_id: str) -> Optional[PipelineNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    def node_map(self) -> Dict[str, PipelineNode]:
        return {node.id: node for node in self.nodes}

    def incoming(self, node_id: str) -> List[PipelineEdge]:
        """Edges targeting node_id, in store order"""
        return [edge for edge in self.edges if edge.target == node_id]

    def to_dict(self) -> dict:
        """Wire representation: {"nodes": [...], "edges": [...]}"""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


class GraphStore:
    """
    Holds the current GraphState and performs structural mutations.

    All other components read through the store and mutate only via its
    operations. Subscribers are called after each mutation with the new
    state; issuing ids and writing back evaluation results do not notify.

    Example usage:
        store = GraphStore()
        store.subscribe(lambda state: scheduler.schedule())

        node_id = store.issue_id("text")        # "text-1"
        store.add_node(PipelineNode(id=node_id, type="text"))
        store.update_node_data(node_id, {"text": "Hello {{input_1}}"})
    """

    def __init__(self, state: Optional[GraphState] = None):
        """
        Initialize store.

        Args:
            state: Initial snapshot (empty graph if omitted)
        """
        self._state = state or GraphState()
        self._listeners: List[StateListener] = []
        logger.debug("Initialized GraphStore")

    @property
    def state(self) -> GraphState:
        return self._state

    @property
    def nodes(self) -> Tuple[PipelineNode, ...]:
        return self._state.nodes

    @property
    def edges(self) -> Tuple[PipelineEdge, ...]:
        return self._state.edges

    def get_node(self, node_id: str) -> Optional[PipelineNode]:
        return self._state.get_node(node_id)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: GraphState, notify: bool = True) -> None:
        self._state = state
        if notify:
            for listener in list(self._listeners):
                listener(state)

    # Ids

    def issue_id(self, node_type: str) -> str:
        """
        Issue a new node id of the form "<type>-<n>".

        The per-type counter starts at 1 and is never decremented, so ids are
        not reused after deletion.
        """
        counters = dict(self._state.node_ids)
        counters[node_type] = counters.get(node_type, 0) + 1
        self._commit(replace(self._state, node_ids=counters), notify=False)
        return f"{node_type}-{counters[node_type]}"

    def reserve_id(self, node_id: str) -> None:
        """
        Advance the matching per-type counter past an externally chosen id.

        Ids that do not follow the "<type>-<n>" convention are left alone.
        """
        match = re.fullmatch(r"(.+)-(\d+)", node_id)
        if not match:
            return
        node_type, number = match.group(1), int(match.group(2))
        counters = dict(self._state.node_ids)
        if counters.get(node_type, 0) < number:
            counters[node_type] = number
            self._commit(replace(self._state, node_ids=counters), notify=False)

    # Nodes

    def add_node(self, node: PipelineNode) -> None:
        """Append a node; position and data shape are not validated"""
        self._commit(replace(self._state, nodes=self._state.nodes + (node,)))
        logger.debug(f"Added node '{node.id}' (type={node.type})")

    def update_node_data(self, node_id: str, partial: Dict) -> bool:
        """
        Shallow-merge partial into a node's data.

        Returns:
            True if the node exists, False (no-op) otherwise
        """
        return self._merge_node_data({node_id: partial}, notify=True) > 0

    def apply_evaluation(self, evaluated: GraphState) -> int:
        """
        Write evaluation results back without triggering a new pass.

        Merges each evaluated node's "outputs" and "outputValues" into the
        current node of the same id.

        Returns:
            Number of nodes updated
        """
        updates = {}
        for node in evaluated.nodes:
            partial = {
                key: node.data[key]
                for key in ("outputs", "outputValues")
                if key in node.data
            }
            if partial:
                updates[node.id] = partial
        return self._merge_node_data(updates, notify=False)

    def _merge_node_data(self, updates: Dict[str, Dict], notify: bool) -> int:
        updated = 0
        nodes = []
        for node in self._state.nodes:
            partial = updates.get(node.id)
            if partial is None:
                nodes.append(node)
                continue
            nodes.append(node.with_data(partial))
            updated += 1

        if updated:
            self._commit(replace(self._state, nodes=tuple(nodes)), notify=notify)
        else:
            logger.debug(f"No matching nodes for data update: {list(updates)}")
        return updated

    def delete_node(self, node_id: str) -> bool:
        """
        Remove a node and every edge whose source or target is that node.

        Returns:
            True if the node existed
        """
        if not self._state.has_node(node_id):
            return False

        nodes = tuple(n for n in self._state.nodes if n.id != node_id)
        edges = tuple(
            e for e in self._state.edges
            if e.source != node_id and e.target != node_id
        )
        removed = len(self._state.edges) - len(edges)
        self._commit(replace(self._state, nodes=nodes, edges=edges))
        logger.debug(f"Deleted node '{node_id}' and {removed} attached edges")
        return True

    # Edges

    def add_edge(self, edge: PipelineEdge) -> None:
        self._commit(replace(
            self._state,
            edges=self._state.edges + (edge,),
            edge_count=self._state.edge_count + 1,
        ))
        logger.debug(f"Added edge '{edge.id}': {edge.source} -> {edge.target}")

    def new_edge_id(self, prefix: str = "edge") -> str:
        """Id for the next edge; unique as long as it is used with add_edge"""
        return f"{prefix}-{self._state.edge_count + 1}"

    def remove_edges_matching(
        self, predicate: Callable[[PipelineEdge], bool]
    ) -> List[PipelineEdge]:
        """
        Remove every edge for which predicate returns True.

        Returns:
            The removed edges
        """
        removed = [e for e in self._state.edges if predicate(e)]
        if removed:
            edges = tuple(e for e in self._state.edges if not predicate(e))
            self._commit(replace(self._state, edges=edges))
        return removed

    def create_variable_connection(
        self, source_node_id: str, target_node_id: str, variable_name: str
    ) -> Optional[PipelineEdge]:
        """
        Create the edge backing a variable token.

        Args:
            source_node_id: Node whose output the variable refers to
            target_node_id: Node whose text contains the token
            variable_name: Qualified variable name (e.g. "Input.value")

        Returns:
            The created edge, or None if either node is missing
        """
        if not self._state.has_node(source_node_id) or not self._state.has_node(target_node_id):
            logger.warning(
                f"Cannot connect variable '{variable_name}': "
                f"unknown node(s) {source_node_id} -> {target_node_id}"
            )
            return None

        index = sum(
            1 for e in self._state.edges
            if e.binding is not None and e.binding.target_node_id == target_node_id
        )
        edge_id = self.new_edge_id(f"var-{source_node_id}-{target_node_id}")
        edge = PipelineEdge(
            id=edge_id,
            source=source_node_id,
            target=target_node_id,
            source_handle=output_handle(source_node_id),
            target_handle=variable_handle(target_node_id, variable_name, index),
            binding=VariableBinding(
                variable_name=variable_name,
                target_node_id=target_node_id,
            ),
        )
        self.add_edge(edge)
        logger.info(
            f"Created variable connection {source_node_id} -> {target_node_id} "
            f"for '{variable_name}'"
        )
        return edge

    def remove_variable_connection(
        self, target_node_id: str, variable_name: str
    ) -> List[PipelineEdge]:
        """
        Remove the edges backing a variable token on a target node.

        Edges carrying a VariableBinding match on the exact qualified name.
        Edges without one (e.g. received over the wire) match when the
        variable encoded in their target handle equals the qualified name or
        its local name.

        Returns:
            The removed edges
        """
        def matches(edge: PipelineEdge) -> bool:
            if edge.target != target_node_id:
                return False
            if edge.binding is not None:
                return edge.binding.variable_name == variable_name
            encoded = edge.variable_name
            if encoded is None:
                return False
            return encoded == variable_name or encoded == local_name(variable_name)

        removed = self.remove_edges_matching(matches)
        logger.info(
            f"Removed {len(removed)} variable connection(s) into {target_node_id} "
            f"for '{variable_name}'"
        )
        return removed
