"""
Tests for pipeline evaluation: ordering, input gathering, cycle containment
and failure isolation.
"""

import random
from typing import Any, Dict, List

import pytest

from engine.dag.node import NodeInputs, NodeType, PipelineEdge, PipelineNode
from engine.dag.registry import NodeRegistry
from engine.dag.store import GraphState
from engine.scheduler.executor import PipelineEvaluator, evaluate
from nodes import InputNode


def node(node_id: str, node_type: str, **data) -> PipelineNode:
    return PipelineNode(id=node_id, type=node_type, data=data)


def edge(source: str, target: str) -> PipelineEdge:
    return PipelineEdge(id=f"e-{source}-{target}", source=source, target=target)


def values(state: GraphState, node_id: str) -> Dict[str, Any]:
    return state.get_node(node_id).output_values


class ExplodingTransform:
    node_type = NodeType.TRANSFORM

    def defaults(self, node_id: str) -> Dict[str, Any]:
        return {}

    def outputs(self, data: Dict[str, Any]) -> List[str]:
        return ["result"]

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        raise RuntimeError("boom")


class TestEvaluation:
    """Tests for evaluate()."""

    def test_transform_uppercase(self, registry):
        """An input feeding an uppercase transform."""
        state = GraphState(
            nodes=(node("input-1", "input", inputName="name"), node("transform-1", "transform")),
            edges=(edge("input-1", "transform-1"),),
        )
        result = evaluate(state, registry)
        assert values(result, "input-1") == {"name": "name"}
        assert values(result, "transform-1")["result"] == "NAME"
        assert values(result, "transform-1")["original"] == "name"

    def test_filter_equals(self, registry):
        """A matching value goes to match, no_match is null."""
        state = GraphState(
            nodes=(
                node("input-1", "input", inputName="5"),
                node("filter-1", "filter", condition="equals", value="5"),
            ),
            edges=(edge("input-1", "filter-1"),),
        )
        out = values(evaluate(state, registry), "filter-1")
        assert out["match"] == "5"
        assert out["no_match"] is None

    def test_combine_join(self, registry):
        """Two inputs joined with a comma."""
        state = GraphState(
            nodes=(
                node("input-1", "input", inputName="1"),
                node("input-2", "input", inputName="2"),
                node("combine-1", "combine", operation="join"),
            ),
            edges=(edge("input-1", "combine-1"), edge("input-2", "combine-1")),
        )
        out = values(evaluate(state, registry), "combine-1")
        assert out["combined"] == "1, 2"
        assert out["count"] == 2

    def test_outputs_are_declared(self, registry):
        """Evaluation stores each node's declared output names."""
        state = GraphState(nodes=(node("input-1", "input", inputName="topic"),))
        result = evaluate(state, registry)
        assert result.get_node("input-1").outputs == ["topic"]

    def test_downstream_sees_upstream_result(self, registry):
        """Chained nodes see values computed in the same pass."""
        state = GraphState(
            nodes=(
                node("transform-2", "transform", operation="reverse"),
                node("transform-1", "transform", operation="uppercase"),
                node("input-1", "input", inputName="abc"),
            ),
            edges=(edge("input-1", "transform-1"), edge("transform-1", "transform-2")),
        )
        out = values(evaluate(state, registry), "transform-2")
        # transform-1 feeds result, original and metadata; the first is used
        assert out["original"] == "ABC"
        assert out["result"] == "CBA"

    def test_variable_resolution_by_qualified_name(self, registry):
        """Text nodes resolve qualified references to upstream outputs."""
        state = GraphState(
            nodes=(
                node("input-1", "input", name="Topic", inputName="graphs"),
                node("text-1", "text", text="About {{Topic.graphs}} and {{missing}}"),
            ),
            edges=(edge("input-1", "text-1"),),
        )
        out = values(evaluate(state, registry), "text-1")
        assert out["output"] == "About graphs and {{missing}}"

    def test_input_state_untouched(self, registry):
        """evaluate() returns a new snapshot."""
        state = GraphState(nodes=(node("input-1", "input", inputName="x"),))
        evaluate(state, registry)
        assert state.get_node("input-1").data == {"inputName": "x"}

    def test_idempotent(self, registry):
        """Evaluating an evaluated snapshot changes nothing."""
        state = GraphState(
            nodes=(
                node("input-1", "input", inputName="x"),
                node("transform-1", "transform"),
                node("llm-1", "llm", systemPrompt="{{input-1.x}}"),
            ),
            edges=(edge("input-1", "transform-1"), edge("input-1", "llm-1")),
        )
        once = evaluate(state, registry)
        twice = evaluate(once, registry)
        assert once.to_dict() == twice.to_dict()

    def test_dangling_edge_ignored(self, registry):
        """Edges to deleted nodes do not affect evaluation."""
        state = GraphState(
            nodes=(node("transform-1", "transform"),),
            edges=(edge("input-9", "transform-1"),),
        )
        out = values(evaluate(state, registry), "transform-1")
        assert out["result"] == "SAMPLE_INPUT"


    @pytest.mark.parametrize("seed", range(10))
    def test_random_dag_evaluates_upstream_first(self, registry, seed):
        """Every node is evaluated after all of its upstream nodes."""
        rng = random.Random(seed)
        count = rng.randint(3, 12)
        nodes = [node("input-1", "input", inputName="seed")]
        nodes += [node(f"transform-{i}", "transform") for i in range(2, count + 1)]
        edges = [
            edge(nodes[i].id, nodes[j].id)
            for i in range(count)
            for j in range(i + 1, count)
            if j == i + 1 or rng.random() < 0.3
        ]
        rng.shuffle(nodes)
        evaluator = PipelineEvaluator(registry)
        result = evaluator.run(GraphState(nodes=tuple(nodes), edges=tuple(edges)))

        position = {node_id: i for i, node_id in enumerate(evaluator.last_order)}
        assert len(position) == count
        for e in edges:
            assert position[e.source] < position[e.target]
        for n in result.nodes:
            if n.type == "transform":
                assert n.output_values["result"] == "SEED"


class TestCycleContainment:
    """Tests for graphs with cycles."""

    def test_cycle_keeps_stale_values(self, registry):
        """Nodes on a cycle keep their previous outputValues."""
        stale = {"result": "old"}
        state = GraphState(
            nodes=(
                node("input-1", "input", inputName="x"),
                node("transform-1", "transform", outputValues=stale),
                node("transform-2", "transform"),
            ),
            edges=(
                edge("input-1", "transform-1"),
                edge("transform-1", "transform-2"),
                edge("transform-2", "transform-1"),
            ),
        )
        evaluator = PipelineEvaluator(registry)
        result = evaluator.run(state)

        assert values(result, "transform-1") == stale
        assert values(result, "transform-2") == {}
        assert values(result, "input-1") == {"x": "x"}
        assert evaluator.last_excluded == {"transform-1", "transform-2"}
        assert evaluator.last_order == ["input-1"]


    def test_downstream_of_cycle_keeps_stale_values(self, registry):
        """A node fed only through a cycle is not recomputed."""
        state = GraphState(
            nodes=(
                node("transform-1", "transform"),
                node("transform-2", "transform"),
                node("output-1", "output", outputValues={"result": "stale"}),
                node("input-1", "input", inputName="free"),
            ),
            edges=(
                edge("transform-1", "transform-2"),
                edge("transform-2", "transform-1"),
                edge("transform-2", "output-1"),
            ),
        )
        evaluator = PipelineEvaluator(registry)
        result = evaluator.run(state)

        assert values(result, "output-1") == {"result": "stale"}
        assert "output-1" in evaluator.last_excluded
        assert values(result, "input-1") == {"free": "free"}


class TestFailureIsolation:
    """Tests for nodes that cannot be evaluated."""

    def test_unknown_type_skipped(self, registry):
        """A node of unknown type keeps its values and does not stop the pass."""
        state = GraphState(
            nodes=(
                node("mystery-1", "mystery", outputValues={"x": 1}),
                node("input-1", "input", inputName="y"),
            ),
        )
        result = evaluate(state, registry)
        assert values(result, "mystery-1") == {"x": 1}
        assert values(result, "input-1") == {"y": "y"}

    def test_raising_compute_skipped(self):
        """A computation that raises leaves its node unchanged."""
        registry = NodeRegistry()
        registry.register(InputNode())
        registry.register(ExplodingTransform())

        state = GraphState(
            nodes=(
                node("input-1", "input", inputName="x"),
                node("transform-1", "transform", outputValues={"result": "old"}),
            ),
            edges=(edge("input-1", "transform-1"),),
        )
        result = evaluate(state, registry)
        assert values(result, "transform-1") == {"result": "old"}
        assert values(result, "input-1") == {"x": "x"}
