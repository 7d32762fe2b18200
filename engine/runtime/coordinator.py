"""
Pipeline Coordinator

Coordinates the graph store, deferred evaluation, variable editing and
submission to the validation service for one pipeline.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config.loader import PipelineConfig
from ..dag.node import NodeType, PipelineEdge, PipelineNode, output_handle
from ..dag.registry import NodeRegistry
from ..dag.store import GraphState, GraphStore
from ..scheduler.executor import PipelineEvaluator
from ..scheduler.recompute import RecomputeScheduler
from variables.binding import VariableBinder
from variables.editor import VariableTextEditor
from variables.selector import collect_output_options
from variables.tokens import extract_variables
from service.adapters.validator_client import (
    ValidationReport,
    ValidatorClient,
    ValidatorError,
    format_report,
)

logger = logging.getLogger(__name__)


# Text-bearing field per node type
TEXT_FIELDS = {
    NodeType.TEXT: "text",
    NodeType.LLM: "systemPrompt",
}


@dataclass
class SubmissionResult:
    """Outcome of a submission; message is what the user sees"""
    message: str
    report: Optional[ValidationReport] = None

    @property
    def ok(self) -> bool:
        return self.report is not None and self.report.is_valid_pipeline


class PipelineCoordinator:
    """
    Coordinates one pipeline.

    The coordinator:
    1. Owns the GraphStore and subscribes the recompute scheduler to it
    2. Places nodes with per-type defaults and declared outputs
    3. Runs evaluation passes and writes results back to the store
    4. Hands out variable editors wired to the binding protocol
    5. Submits the pipeline to the validation service

    Example usage:
        registry = register_builtin_nodes(NodeRegistry())
        coordinator = PipelineCoordinator(registry)

        source = coordinator.place_node("input", data={"inputName": "topic"})
        transform = coordinator.place_node("transform")
        coordinator.connect(source.id, transform.id)
        coordinator.flush()

        coordinator.output_values(transform.id)["result"]  # "TOPIC"
    """

    def __init__(
        self,
        registry: NodeRegistry,
        store: Optional[GraphStore] = None,
        validator: Optional[ValidatorClient] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Initialize coordinator.

        Args:
            registry: Node computations by type
            store: Graph store (new empty store if omitted)
            validator: Client for submissions (default config if omitted)
            loop: Event loop for deferred recompute (running loop if omitted)
        """
        self.registry = registry
        self.store = store or GraphStore()
        self.validator = validator or ValidatorClient()
        self.evaluator = PipelineEvaluator(registry)
        self.scheduler = RecomputeScheduler(self.recompute, loop)
        self.binder = VariableBinder(self.store)
        self.highlighted_node_id: Optional[str] = None

        self.store.subscribe(lambda state: self.scheduler.schedule())

        logger.info(f"Coordinator initialized with node types: {registry.list_types()}")

    # Graph mutations

    def place_node(
        self,
        node_type: str,
        position: Optional[Dict[str, float]] = None,
        data: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> PipelineNode:
        """
        Create a node with per-type defaults and add it to the store.

        Args:
            node_type: Type tag (e.g. "transform")
            position: Canvas placement
            data: Configuration overriding the defaults
            node_id: Explicit id (issued from the per-type counter if omitted)

        Returns:
            The added node
        """
        if node_id is None:
            node_id = self.store.issue_id(node_type)
        else:
            self.store.reserve_id(node_id)

        compute = self.registry.get(node_type)
        node_data: Dict[str, Any] = {"id": node_id, "nodeType": node_type}
        if compute is not None:
            node_data.update(compute.defaults(node_id))
        node_data.update(data or {})
        field_name = TEXT_FIELDS.get(NodeType.parse(node_type))
        if field_name is not None:
            node_data["variables"] = extract_variables(node_data.get(field_name) or "")
        if compute is not None:
            node_data["outputs"] = compute.outputs(node_data)
        else:
            logger.warning(f"Placing node '{node_id}' of unknown type '{node_type}'")

        node = PipelineNode(id=node_id, type=node_type, data=node_data, position=position)
        self.store.add_node(node)
        return node

    def update_node(self, node_id: str, partial: Dict[str, Any]) -> bool:
        """
        Merge configuration into a node, re-deriving its declared outputs.

        Returns:
            False if the node does not exist
        """
        node = self.store.get_node(node_id)
        if node is None:
            logger.debug(f"Ignoring update for unknown node '{node_id}'")
            return False

        partial = dict(partial)
        compute = self.registry.get(node.type)
        if compute is not None:
            partial["outputs"] = compute.outputs({**node.data, **partial})
        return self.store.update_node_data(node_id, partial)

    def set_text(self, node_id: str, text: str) -> bool:
        """
        Replace a node's text-bearing field and reconcile its variable edges.

        Returns:
            False if the node does not exist or has no text field
        """
        node = self.store.get_node(node_id)
        field_name = TEXT_FIELDS.get(node.node_type) if node else None
        if field_name is None:
            return False

        self.update_node(node_id, {field_name: text, "variables": extract_variables(text)})
        self.binder.sync(node_id, text)
        return True

    def delete_node(self, node_id: str) -> bool:
        if self.highlighted_node_id == node_id:
            self.highlighted_node_id = None
        return self.store.delete_node(node_id)

    def connect(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> Optional[PipelineEdge]:
        """
        Create a plain edge, as when the user drags a connection.

        Returns:
            The new edge, or None if an identical connection exists
        """
        source_handle = source_handle or output_handle(source)
        target_handle = target_handle or f"{target}-input"
        for edge in self.store.edges:
            if (edge.source, edge.target, edge.source_handle, edge.target_handle) == (
                source, target, source_handle, target_handle
            ):
                logger.debug(f"Connection {source} -> {target} already exists")
                return None

        edge = PipelineEdge(
            id=self.store.new_edge_id(f"edge-{source}-{target}"),
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self.store.add_edge(edge)
        return edge

    def disconnect(self, edge_id: str) -> bool:
        return bool(self.store.remove_edges_matching(lambda e: e.id == edge_id))

    def load(self, config: PipelineConfig) -> None:
        """Populate the store from a pipeline definition"""
        for node_config in config.nodes:
            self.place_node(
                node_config.type,
                position=node_config.position,
                data=node_config.data,
                node_id=node_config.id,
            )
        for edge_config in config.edges:
            self.connect(
                edge_config.source,
                edge_config.target,
                edge_config.sourceHandle,
                edge_config.targetHandle,
            )
        for variable in config.variables:
            self.binder.bind(variable.source, variable.target, variable.name)
        for node in self.store.nodes:
            field_name = TEXT_FIELDS.get(node.node_type)
            if field_name is not None:
                self.binder.sync(node.id, node.data.get(field_name) or "")

        logger.info(
            f"Loaded pipeline '{config.name}': "
            f"{len(self.store.nodes)} nodes, {len(self.store.edges)} edges"
        )

    # Evaluation

    def recompute(self) -> GraphState:
        """
        Run one evaluation pass over the current state and write it back.

        Write-back does not notify subscribers, so no new pass is scheduled.
        """
        evaluated = self.evaluator.run(self.store.state)
        self.store.apply_evaluation(evaluated)
        logger.debug(
            f"Recomputed {len(self.evaluator.last_order)} nodes, "
            f"{len(self.evaluator.last_excluded)} excluded"
        )
        return self.store.state

    def flush(self) -> bool:
        """Run a pending deferred pass now"""
        return self.scheduler.flush()

    def output_values(self, node_id: str) -> Dict[str, Any]:
        node = self.store.get_node(node_id)
        return node.output_values if node else {}

    # Variable editing

    def open_editor(self, node_id: str) -> VariableTextEditor:
        """
        Editor for a node's text-bearing field.

        Edits write the text and its variable list back to the node;
        inserted and removed tokens create and remove variable edges.

        Raises:
            ValueError: If the node is unknown or has no text field
        """
        node = self.store.get_node(node_id)
        if node is None:
            raise ValueError(f"Unknown node: {node_id}")
        field_name = TEXT_FIELDS.get(node.node_type)
        if field_name is None:
            raise ValueError(f"Node '{node_id}' of type '{node.type}' has no text field")

        def on_change(text: str, variables: list) -> None:
            self.update_node(node_id, {field_name: text, "variables": variables})

        return VariableTextEditor(
            node_id,
            text=node.data.get(field_name) or "",
            binder=self.binder,
            options_provider=lambda: collect_output_options(self.store.state, node_id),
            on_change=on_change,
            on_highlight=self.set_highlighted_node,
        )

    def set_highlighted_node(self, node_id: Optional[str]) -> None:
        self.highlighted_node_id = node_id

    # Submission

    def submit(self, adjacency: bool = False) -> SubmissionResult:
        """
        Submit the pipeline to the validation service.

        Pending evaluation is flushed first so submitted nodes carry current
        outputValues. Failures are reported in the result; the store is
        never modified.

        Args:
            adjacency: Submit the adjacency list instead of nodes and edges
        """
        self.flush()
        try:
            if adjacency:
                report = self.validator.parse_adjacency(self.store.state)
            else:
                report = self.validator.parse(self.store.state)
        except ValidatorError as e:
            logger.warning(f"Pipeline submission failed: {e}")
            return SubmissionResult(message=str(e))

        message = format_report(report, adjacency=adjacency)
        logger.info(f"Pipeline submission result: {message.splitlines()[0]}")
        return SubmissionResult(message=message, report=report)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get coordinator metrics.

        Returns:
            Dictionary with pipeline statistics
        """
        return {
            "nodes": len(self.store.nodes),
            "edges": len(self.store.edges),
            "topological_order": self.evaluator.last_order,
            "excluded": sorted(self.evaluator.last_excluded),
            "passes": self.scheduler.passes,
        }
