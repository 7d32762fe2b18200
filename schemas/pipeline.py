"""
Pipeline Wire Schemas

Request and response models for the DAG validation service.
Node and edge payloads accept any extra fields the editor sends along
(position, outputValues, styling) and ignore them.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodePayload(BaseModel):
    """Node as submitted by the editor"""
    model_config = ConfigDict(extra="allow")

    id: str
    type: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class EdgePayload(BaseModel):
    """Edge as submitted by the editor"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    source: str
    target: str
    sourceHandle: Optional[str] = None
    targetHandle: Optional[str] = None


class PipelinePayload(BaseModel):
    """Body of POST /pipelines/parse"""
    nodes: List[NodePayload] = Field(default_factory=list)
    edges: List[EdgePayload] = Field(default_factory=list)


class AdjacencyPayload(BaseModel):
    """Body of POST /pipelines/parse-adjacency"""
    adjacency_list: Dict[str, List[str]] = Field(default_factory=dict)


class ParseResponse(BaseModel):
    """Structural metrics of a submitted pipeline"""
    num_nodes: int
    num_edges: int
    is_dag: bool
