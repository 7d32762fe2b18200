"""
DAG Builder

Builds the dependency graph of a pipeline and computes its evaluation order.
Cycles are tolerated: nodes that sit on a cycle, or are only reachable
through one, are left out of the order instead of failing the build.
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from .store import GraphState

logger = logging.getLogger(__name__)


class DAGBuilder:
    """
    Builds adjacency lists and a topological order from nodes and edges.

    The builder:
    1. Constructs successor lists and in-degrees from edges, ignoring
       edges whose source or target is not a known node
    2. Computes the evaluation order with Kahn's algorithm
    3. Records nodes never reached (cycle members and their dependents)

    Example usage:
        builder = DAGBuilder(
            ["input-1", "transform-1"],
            [("input-1", "transform-1")],
        )
        builder.build()

        print(builder.topo_order)  # ["input-1", "transform-1"]
        print(builder.is_dag)      # True
    """

    def __init__(self, node_ids: Iterable[str], edges: Iterable[Tuple[str, str]]):
        """
        Initialize builder.

        Args:
            node_ids: Node identifiers, in store order
            edges: (source, target) pairs, in store order
        """
        self.node_ids: List[str] = list(dict.fromkeys(node_ids))
        self.edges: List[Tuple[str, str]] = list(edges)
        self.adjacency: Dict[str, List[str]] = {}
        self.reverse_deps: Dict[str, List[str]] = {}
        self.in_degree: Dict[str, int] = {}
        self.topo_order: List[str] = []
        self.excluded: Set[str] = set()

        logger.debug(
            f"Initialized DAGBuilder with {len(self.node_ids)} nodes, "
            f"{len(self.edges)} edges"
        )

    @classmethod
    def from_state(cls, state: GraphState) -> "DAGBuilder":
        """Builder over a graph snapshot"""
        return cls(
            [node.id for node in state.nodes],
            [(edge.source, edge.target) for edge in state.edges],
        )

    @classmethod
    def from_adjacency(cls, adjacency_list: Dict[str, List[str]]) -> "DAGBuilder":
        """
        Builder over an adjacency list {node_id: [successor ids]}.

        Successors that are not keys still count as nodes.
        """
        node_ids = list(adjacency_list)
        for targets in adjacency_list.values():
            node_ids.extend(targets)
        edges = [
            (source, target)
            for source, targets in adjacency_list.items()
            for target in targets
        ]
        return cls(node_ids, edges)

    def build(self) -> "DAGBuilder":
        """
        Build adjacency lists and compute the evaluation order.

        Returns:
            self, for chaining
        """
        self._build_adjacency()
        self._compute_topo_order()

        if self.excluded:
            logger.warning(
                f"Cycle detected: {len(self.excluded)} node(s) excluded from "
                f"evaluation: {sorted(self.excluded)}"
            )
        logger.debug(f"Computed topological order: {self.topo_order}")
        return self

    def _build_adjacency(self) -> None:
        """
        Build successor lists and in-degree counts from edges.

        Adjacency format: {node_id: [nodes it feeds]}
        Reverse deps format: {node_id: [nodes feeding it]}, one entry per edge
        """
        known = set(self.node_ids)
        self.adjacency = {n: [] for n in self.node_ids}
        self.reverse_deps = {n: [] for n in self.node_ids}
        self.in_degree = {n: 0 for n in self.node_ids}

        for source, target in self.edges:
            if source not in known or target not in known:
                logger.debug(f"Ignoring dangling edge {source} -> {target}")
                continue
            self.adjacency[source].append(target)
            self.reverse_deps[target].append(source)
            self.in_degree[target] += 1

    def _compute_topo_order(self) -> None:
        """
        Compute topological sort using Kahn's algorithm.

        Algorithm:
        1. Start with nodes that have no incoming edges (in-degree = 0)
        2. Process each node, reducing in-degree of its successors
        3. Add successors whose in-degree reaches 0 to the queue
        4. Nodes never enqueued are recorded in self.excluded
        """
        in_degree = dict(self.in_degree)

        queue = [n for n in self.node_ids if in_degree[n] == 0]
        self.topo_order = []

        while queue:
            node_id = queue.pop(0)
            self.topo_order.append(node_id)

            for successor in self.adjacency[node_id]:
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    queue.append(successor)

        self.excluded = set(self.node_ids) - set(self.topo_order)

    @property
    def is_dag(self) -> bool:
        """True when every node made it into the topological order"""
        return not self.excluded

    def find_cycle(self) -> Optional[List[str]]:
        """
        Find one cycle using depth-first search.

        Returns:
            Node path of a cycle, closed by repeating its first node,
            or None if the graph is acyclic
        """
        visited = set()
        rec_stack = set()

        def dfs(node_id: str, path: List[str]) -> Optional[List[str]]:
            visited.add(node_id)
            rec_stack.add(node_id)
            path.append(node_id)

            for successor in self.adjacency.get(node_id, []):
                if successor not in visited:
                    cycle = dfs(successor, path[:])
                    if cycle:
                        return cycle
                elif successor in rec_stack:
                    cycle_start = path.index(successor)
                    return path[cycle_start:] + [successor]

            rec_stack.remove(node_id)
            return None

        for node_id in self.node_ids:
            if node_id not in visited:
                cycle = dfs(node_id, [])
                if cycle:
                    return cycle
        return None

    def get_dependencies(self, node_id: str) -> List[str]:
        """
        Get direct upstream nodes, one entry per incoming edge.

        Args:
            node_id: Node identifier

        Returns:
            List of node IDs feeding this node, in edge order
        """
        return self.reverse_deps.get(node_id, [])
