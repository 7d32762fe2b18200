"""
Pipeline Evaluator

Computes every node's outputValues in dependency order.
evaluate() is a pure function from one graph snapshot to the next; the
PipelineEvaluator wrapper keeps the results of the last pass for inspection.
"""

from typing import Dict, Any, List, Optional, Set
import logging

from ..dag.builder import DAGBuilder
from ..dag.node import NodeInputs, PipelineNode
from ..dag.registry import NodeRegistry
from ..dag.store import GraphState

logger = logging.getLogger(__name__)


def gather_inputs(
    node_id: str,
    builder: DAGBuilder,
    nodes: Dict[str, PipelineNode],
    output_values: Dict[str, Dict[str, Any]],
) -> NodeInputs:
    """
    Gather all inputs for a node from its upstream nodes.

    Upstream outputValues are merged in edge order, so the last edge wins
    on a key collision. Dangling edges never reach the builder's lists.

    Args:
        node_id: Node to gather inputs for
        builder: Built DAG for the current snapshot
        nodes: Node lookup by id
        output_values: Current outputValues per node id

    Returns:
        NodeInputs with merged and qualified values
    """
    inputs = NodeInputs()

    for source_id in builder.get_dependencies(node_id):
        values = output_values.get(source_id)
        if not values:
            logger.debug(f"Node '{node_id}' depends on '{source_id}' but no output available")
            continue

        source_name = nodes[source_id].display_name
        for key, value in values.items():
            inputs.values[key] = value
            inputs.qualified[f"{source_name}.{key}"] = value
            inputs.qualified[f"{source_id}.{key}"] = value

    return inputs


def evaluate(state: GraphState, registry: NodeRegistry) -> GraphState:
    """
    Evaluate a graph snapshot.

    1. Build the DAG and compute the topological order
    2. For each node in order, gather inputs and apply its type's computation
    3. Return a new snapshot with "outputs" and "outputValues" updated

    Nodes excluded by a cycle, nodes of unknown type and nodes whose
    computation raises keep their previous outputValues.

    Args:
        state: Snapshot to evaluate
        registry: Node computations by type

    Returns:
        New snapshot; the input snapshot is not modified
    """
    return PipelineEvaluator(registry).run(state)


class PipelineEvaluator:
    """
    Runs evaluation passes over graph snapshots.

    Example usage:
        evaluator = PipelineEvaluator(registry)
        evaluated = evaluator.run(store.state)
        store.apply_evaluation(evaluated)

        print(evaluator.last_order)     # ["input-1", "transform-1"]
        print(evaluator.last_excluded)  # set() unless there is a cycle
    """

    def __init__(self, registry: NodeRegistry):
        """
        Initialize evaluator.

        Args:
            registry: Node computations by type
        """
        self.registry = registry
        self.last_order: List[str] = []
        self.last_excluded: Set[str] = set()

    def run(self, state: GraphState) -> GraphState:
        """
        Evaluate a snapshot and return the evaluated snapshot.

        Args:
            state: Snapshot to evaluate

        Returns:
            New snapshot with recomputed outputs
        """
        builder = DAGBuilder.from_state(state).build()
        nodes = state.node_map()

        output_values = {node.id: node.output_values for node in state.nodes}
        updates: Dict[str, Dict[str, Any]] = {}

        logger.debug(f"Evaluating {len(builder.topo_order)} nodes: {builder.topo_order}")

        for node_id in builder.topo_order:
            node = nodes[node_id]
            result = self._execute_node(node, builder, nodes, output_values)
            if result is None:
                continue
            outputs, values = result
            output_values[node_id] = values
            updates[node_id] = {"outputs": outputs, "outputValues": values}

        self.last_order = list(builder.topo_order)
        self.last_excluded = set(builder.excluded)

        evaluated = tuple(
            node.with_data(updates[node.id]) if node.id in updates else node
            for node in state.nodes
        )
        return GraphState(
            nodes=evaluated,
            edges=state.edges,
            node_ids=state.node_ids,
            edge_count=state.edge_count,
        )

    def _execute_node(
        self,
        node: PipelineNode,
        builder: DAGBuilder,
        nodes: Dict[str, PipelineNode],
        output_values: Dict[str, Dict[str, Any]],
    ) -> Optional[tuple]:
        """
        Execute a single node.

        Returns:
            (outputs, outputValues) or None when the node is left unchanged
        """
        compute = self.registry.get(node.type)
        if compute is None:
            logger.warning(f"No computation for node '{node.id}' of type '{node.type}'")
            return None

        inputs = gather_inputs(node.id, builder, nodes, output_values)

        logger.debug(
            f"Executing node '{node.id}' (type={node.type}) "
            f"with inputs: {list(inputs.values.keys())}"
        )

        try:
            outputs = compute.outputs(node.data)
            values = compute.compute(inputs, node.data)
        except Exception as e:
            logger.error(f"Failed to execute node '{node.id}': {e}", exc_info=True)
            return None

        logger.debug(f"Node '{node.id}' output: {list(values.keys())}")
        return outputs, values
