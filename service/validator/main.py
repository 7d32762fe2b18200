"""
Pipeline Validator API

FastAPI service that reports structural metrics of a submitted pipeline.

HTTP Endpoints:
- GET  /                          - Health check
- GET  /health                    - Detailed health status
- POST /pipelines/parse           - Metrics from nodes and edges
- POST /pipelines/parse-adjacency - Metrics from an adjacency list
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from engine.config.loader import ConfigLoader, EngineSettings
from engine.dag.builder import DAGBuilder
from schemas.pipeline import AdjacencyPayload, ParseResponse, PipelinePayload

logger = logging.getLogger(__name__)


def analyze_pipeline(payload: PipelinePayload) -> ParseResponse:
    """
    Count nodes and edges and check for cycles.

    Edge endpoints that are not among the submitted nodes still take part
    in the cycle check.
    """
    node_ids = [node.id for node in payload.nodes]
    for edge in payload.edges:
        node_ids.extend([edge.source, edge.target])

    builder = DAGBuilder(node_ids, [(e.source, e.target) for e in payload.edges]).build()
    if not builder.is_dag:
        logger.info(f"Submitted pipeline contains a cycle: {builder.find_cycle()}")

    return ParseResponse(
        num_nodes=len(payload.nodes),
        num_edges=len(payload.edges),
        is_dag=builder.is_dag,
    )


def analyze_adjacency(payload: AdjacencyPayload) -> ParseResponse:
    """Count nodes and edges of an adjacency list and check for cycles"""
    builder = DAGBuilder.from_adjacency(payload.adjacency_list).build()
    if not builder.is_dag:
        logger.info(f"Submitted adjacency list contains a cycle: {builder.find_cycle()}")

    return ParseResponse(
        num_nodes=len(builder.node_ids),
        num_edges=len(builder.edges),
        is_dag=builder.is_dag,
    )


def create_app(settings: Optional[EngineSettings] = None) -> FastAPI:
    """
    Build the validator application.

    Args:
        settings: Engine settings (defaults when omitted)
    """
    settings = settings or EngineSettings()

    app = FastAPI(
        title="Pipeline Validator",
        description="Structural checks for pipeline graphs",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Health check endpoint"""
        return {
            "status": "running",
            "service": "pipeline-validator",
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/health")
    async def health():
        """Detailed health status"""
        return {
            "status": "healthy",
            "service": "pipeline-validator",
            "timestamp": datetime.now().isoformat(),
        }

    @app.post("/pipelines/parse")
    async def parse_pipeline(payload: PipelinePayload) -> ParseResponse:
        """
        Report node count, edge count and whether the graph is acyclic.

        Args:
            payload: {"nodes": [...], "edges": [...]}

        Returns:
            ParseResponse; an empty pipeline reports num_nodes=0
        """
        response = analyze_pipeline(payload)
        logger.info(
            f"Parsed pipeline: {response.num_nodes} nodes, "
            f"{response.num_edges} edges, is_dag={response.is_dag}"
        )
        return response

    @app.post("/pipelines/parse-adjacency")
    async def parse_adjacency(payload: AdjacencyPayload) -> ParseResponse:
        """
        Same metrics for {"adjacency_list": {node_id: [successor ids]}}.
        """
        response = analyze_adjacency(payload)
        logger.info(
            f"Parsed adjacency list: {response.num_nodes} nodes, "
            f"{response.num_edges} edges, is_dag={response.is_dag}"
        )
        return response

    return app


app = create_app()


def run() -> None:
    """Start the validator service with settings from config and environment"""
    settings = ConfigLoader().load_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logger.info(f"Starting Pipeline Validator on {settings.service_host}:{settings.service_port}")
    uvicorn.run(
        create_app(settings),
        host=settings.service_host,
        port=settings.service_port,
    )


if __name__ == "__main__":
    run()
