"""
Pipeline Node Model

Defines the core data structures and protocols for pipeline graph entities.
Nodes are typed units with configuration data and computed output values;
edges bind one node's output to another node's input slot.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Dict, Any, Mapping, Optional, Protocol
from enum import Enum


class NodeType(Enum):
    """Closed set of node types a pipeline can contain"""
    INPUT = "input"
    TEXT = "text"
    LLM = "llm"
    TRANSFORM = "transform"
    FILTER = "filter"
    COMBINE = "combine"
    API = "api"
    CONDITIONAL = "conditional"
    OUTPUT = "output"

    @classmethod
    def parse(cls, value: str) -> Optional["NodeType"]:
        """Return the matching NodeType, or None for unknown type tags"""
        try:
            return cls(value)
        except ValueError:
            return None


def output_handle(node_id: str) -> str:
    """Source handle of a node's output port"""
    return f"{node_id}-output"


def variable_handle(node_id: str, variable_name: str, index: int) -> str:
    """Target handle of a variable input port"""
    return f"{node_id}-var-{variable_name}-{index}"


def local_name(variable_name: str) -> str:
    """Part of a qualified variable name after the last '.'"""
    return variable_name.rsplit(".", 1)[-1]


def parse_variable_handle(node_id: str, handle: Optional[str]) -> Optional[str]:
    """
    Extract the variable name from a variable target handle.

    Args:
        node_id: Target node the handle belongs to
        handle: Target handle string (e.g. "text-1-var-Input.value-0")

    Returns:
        Variable name encoded in the handle, or None if the handle is not
        a variable handle of that node
    """
    if not handle:
        return None
    match = re.fullmatch(rf"{re.escape(node_id)}-var-(.+)-(\d+)", handle)
    return match.group(1) if match else None


@dataclass(frozen=True)
class VariableBinding:
    """
    Structured marker stored on edges created from a variable token.

    Lets the binding protocol find an edge by exact (target, variable) match
    instead of searching inside handle strings.
    """
    variable_name: str
    target_node_id: str
    kind: str = "variable"

    @property
    def local_name(self) -> str:
        return local_name(self.variable_name)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "variableName": self.variable_name,
            "targetNodeId": self.target_node_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VariableBinding":
        return cls(
            variable_name=data["variableName"],
            target_node_id=data["targetNodeId"],
            kind=data.get("kind", "variable"),
        )


@dataclass(frozen=True)
class PipelineNode:
    """
    A typed node of the pipeline.

    Attributes:
        id: Unique identifier assigned at creation (e.g. "transform-2")
        type: Node type tag; kept as a plain string so that unknown tags
              survive a round trip and are simply not evaluated
        data: Type-specific configuration plus derived "outputs" and
              computed "outputValues"; read-only, changed through
              with_data()
        position: Canvas placement, owned by the UI
    """
    id: str
    type: str
    data: Mapping[str, Any] = field(default_factory=dict)
    position: Optional[Dict[str, float]] = None

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def node_type(self) -> Optional[NodeType]:
        return NodeType.parse(self.type)

    @property
    def display_name(self) -> str:
        """Name shown in the variable selector and used in qualified names"""
        return self.data.get("name") or self.id

    @property
    def outputs(self) -> List[str]:
        return list(self.data.get("outputs") or [])

    @property
    def output_values(self) -> Dict[str, Any]:
        return dict(self.data.get("outputValues") or {})

    def with_data(self, partial: Dict[str, Any]) -> "PipelineNode":
        """Return a copy with partial shallow-merged into data"""
        return PipelineNode(
            id=self.id,
            type=self.type,
            data={**self.data, **partial},
            position=self.position,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        result = {"id": self.id, "type": self.type, "data": dict(self.data)}
        if self.position is not None:
            result["position"] = dict(self.position)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "PipelineNode":
        return cls(
            id=data["id"],
            type=data["type"],
            data=dict(data.get("data") or {}),
            position=data.get("position"),
        )


@dataclass(frozen=True)
class PipelineEdge:
    """
    Directed binding from a source node's output to a target node's input.

    Source and target may reference nodes that no longer exist; such edges
    are ignored by evaluation until pruned.
    """
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    binding: Optional[VariableBinding] = None

    @property
    def variable_name(self) -> Optional[str]:
        """Variable this edge was created for, from the binding or the handle"""
        if self.binding is not None:
            return self.binding.variable_name
        return parse_variable_handle(self.target, self.target_handle)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        result = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
        }
        if self.binding is not None:
            result["binding"] = self.binding.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "PipelineEdge":
        binding = data.get("binding")
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            source_handle=data.get("sourceHandle"),
            target_handle=data.get("targetHandle"),
            binding=VariableBinding.from_dict(binding) if binding else None,
        )


@dataclass
class NodeInputs:
    """
    Inputs gathered for one node from its incoming edges.

    Attributes:
        values: Merged outputValues of all upstream nodes, in edge order
                (last writer wins on key collision)
        qualified: Same values keyed by "<NodeName>.<output>" and
                   "<nodeId>.<output>" for variable resolution
    """
    values: Dict[str, Any] = field(default_factory=dict)
    qualified: Dict[str, Any] = field(default_factory=dict)

    def positional(self) -> List[Any]:
        return list(self.values.values())

    def first(self, default: Any = None) -> Any:
        """First available input value, or default when there is none"""
        for value in self.values.values():
            if value is not None and value != "":
                return value
        return default

    def resolve(self, variable_name: str) -> Any:
        """
        Resolve a variable reference against the gathered inputs.

        Tries the qualified name first, then the bare local name.

        Returns:
            The resolved value, or None when the reference is unresolved
        """
        name = variable_name.strip()
        if name in self.qualified:
            return self.qualified[name]
        if name in self.values:
            return self.values[name]
        return self.values.get(local_name(name))


class NodeCompute(Protocol):
    """
    Protocol for per-type node computations.

    Every node type in NodeType has exactly one implementation registered in
    the NodeRegistry. Implementations are stateless and pure: the same inputs
    and data always produce the same outputValues.

    Example implementation:
        class UppercaseNode:
            node_type = NodeType.TRANSFORM

            def defaults(self, node_id: str) -> Dict[str, Any]:
                return {"operation": "uppercase"}

            def outputs(self, data: Dict[str, Any]) -> List[str]:
                return ["result"]

            def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
                return {"result": str(inputs.first("")).upper()}
    """
    node_type: NodeType

    def defaults(self, node_id: str) -> Dict[str, Any]:
        """
        Default configuration for a freshly placed node.

        Args:
            node_id: Identifier issued for the node

        Returns:
            Data fields to fill in when the node is created
        """
        ...

    def outputs(self, data: Dict[str, Any]) -> List[str]:
        """
        Declared output names for the given configuration.

        Returns:
            List of output names (empty for passthrough nodes)
        """
        ...

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compute the node's outputValues.

        Args:
            inputs: Values gathered from upstream nodes
            data: Node configuration

        Returns:
            Dictionary of output values keyed by declared output names
        """
        ...
