"""
Validator Client

HTTP client for the DAG validation service.
Submits a pipeline snapshot (or its adjacency list) and returns the
reported structural metrics.
"""

import os
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx

from engine.dag.store import GraphState
from schemas.pipeline import ParseResponse

logger = logging.getLogger(__name__)


CONNECTION_ERROR_MESSAGE = (
    "Error: Could not connect to backend. "
    "Make sure the backend server is running on port 8000."
)
INVALID_PIPELINE_MESSAGE = "Pipeline is invalid. Add Nodes and Edges to the canvas."


class ValidatorError(Exception):
    """Submission failed; str(error) is the message to show the user"""


@dataclass
class ValidatorConfig:
    """Validation service connection configuration"""
    base_url: str = "http://127.0.0.1:8000"
    timeout: float = 10.0

    @classmethod
    def from_env(cls, prefix: str = "PIPELINE_VALIDATOR") -> "ValidatorConfig":
        """Create config from environment variables"""
        return cls(
            base_url=os.getenv(f"{prefix}_URL", "http://127.0.0.1:8000"),
            timeout=float(os.getenv(f"{prefix}_TIMEOUT", "10.0")),
        )


@dataclass
class ValidationReport:
    """Metrics reported by the validation service"""
    num_nodes: int
    num_edges: int
    is_dag: bool

    @property
    def is_valid_pipeline(self) -> bool:
        """False when the service saw no nodes at all"""
        return self.num_nodes != 0

    @classmethod
    def from_dict(cls, data: dict) -> "ValidationReport":
        parsed = ParseResponse.model_validate(data)
        return cls(
            num_nodes=parsed.num_nodes,
            num_edges=parsed.num_edges,
            is_dag=parsed.is_dag,
        )


def build_adjacency_list(state: GraphState) -> Dict[str, List[str]]:
    """
    Map every node id to the ids its edges lead to.

    Edges whose source is not a present node are skipped.
    """
    adjacency: Dict[str, List[str]] = {node.id: [] for node in state.nodes}
    for edge in state.edges:
        if edge.source in adjacency:
            adjacency[edge.source].append(edge.target)
    return adjacency


def format_report(report: ValidationReport, adjacency: bool = False) -> str:
    """User-facing summary of a validation report"""
    if not report.is_valid_pipeline:
        return INVALID_PIPELINE_MESSAGE

    title = "Pipeline Analysis (Adjacency List)" if adjacency else "Pipeline Analysis"
    verdict = (
        "Your pipeline is valid!"
        if report.is_dag
        else "Warning: Your pipeline contains cycles!"
    )
    return (
        f"{title}:\n\n"
        f"Number of Nodes: {report.num_nodes}\n"
        f"Number of Edges: {report.num_edges}\n"
        f"Is DAG (Directed Acyclic Graph): {'Yes' if report.is_dag else 'No'}\n\n"
        f"{verdict}"
    )


class ValidatorClient:
    """
    Client for POST /pipelines/parse and POST /pipelines/parse-adjacency.

    Requests are not retried.

    Example usage:
        client = ValidatorClient(ValidatorConfig.from_env())
        report = client.parse(store.state)
        print(format_report(report))
    """

    def __init__(
        self,
        config: Optional[ValidatorConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            config: Service location and timeout
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.config = config or ValidatorConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self._transport = transport

    def parse(self, state: GraphState) -> ValidationReport:
        """Submit nodes and edges of a snapshot"""
        return self._post("/pipelines/parse", state.to_dict())

    def parse_adjacency(self, state: GraphState) -> ValidationReport:
        """Submit the adjacency list of a snapshot"""
        return self._post(
            "/pipelines/parse-adjacency",
            {"adjacency_list": build_adjacency_list(state)},
        )

    def _post(self, path: str, body: dict) -> ValidationReport:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self.config.timeout, transport=self._transport) as client:
                response = client.post(url, json=body)
                response.raise_for_status()
                report = ValidationReport.from_dict(response.json())
        except httpx.HTTPError as e:
            logger.error(f"Error submitting pipeline to {url}: {e}")
            raise ValidatorError(CONNECTION_ERROR_MESSAGE) from e
        except ValueError as e:
            logger.error(f"Malformed response from {url}: {e}")
            raise ValidatorError(CONNECTION_ERROR_MESSAGE) from e

        logger.info(
            f"Validator reported {report.num_nodes} nodes, "
            f"{report.num_edges} edges, is_dag={report.is_dag}"
        )
        return report
