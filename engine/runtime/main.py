"""
Pipeline Engine - Main Entry Point

Loads a pipeline definition, evaluates it and prints every node's outputs.
Optionally submits the pipeline to the validation service.
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from engine.config.loader import ConfigLoader
from engine.dag.registry import NodeRegistry
from engine.runtime.coordinator import PipelineCoordinator
from nodes import register_builtin_nodes
from service.adapters.validator_client import ValidatorClient, ValidatorConfig

logger = logging.getLogger(__name__)


def setup_node_registry() -> NodeRegistry:
    """
    Set up node registry and register all node types.

    Returns:
        NodeRegistry with every node type registered
    """
    registry = register_builtin_nodes(NodeRegistry())
    logger.info(f"Registered {len(registry.list_types())} node types: {registry.list_types()}")
    return registry


async def main(pipeline: str) -> int:
    """
    Main entry point for the pipeline engine.

    Environment Variables:
        CONFIG_DIR: Config directory path (default: "config")
        SUBMIT: "parse" or "adjacency" to submit after evaluation
        PIPELINE_VALIDATOR_URL: Validation service URL
    """
    config_dir = Path(os.getenv("CONFIG_DIR", "config"))
    submit_mode = os.getenv("SUBMIT", "").lower()

    loader = ConfigLoader(config_dir)
    settings = loader.load_settings()
    logging.getLogger().setLevel(settings.log_level)

    logger.info(f"Pipeline: {pipeline}")
    logger.info(f"Config Directory: {config_dir}")

    registry = setup_node_registry()
    validator = ValidatorClient(ValidatorConfig(
        base_url=settings.validator_url,
        timeout=settings.validator_timeout,
    ))
    coordinator = PipelineCoordinator(registry, validator=validator)

    try:
        coordinator.load(loader.load_pipeline(pipeline))
    except ValueError as e:
        logger.error(f"Failed to load pipeline: {e}")
        return 1

    # Let the deferred recompute run
    await asyncio.sleep(0)

    metrics = coordinator.get_metrics()
    logger.info(
        f"Evaluated {metrics['nodes']} nodes in {metrics['passes']} pass(es), "
        f"order: {metrics['topological_order']}"
    )
    if metrics["excluded"]:
        logger.warning(f"Nodes on a cycle were not evaluated: {metrics['excluded']}")

    for node in coordinator.store.nodes:
        print(f"{node.id} ({node.type}):")
        print(json.dumps(node.output_values, indent=2, default=str))

    if submit_mode in ("parse", "adjacency"):
        result = await asyncio.to_thread(
            coordinator.submit, adjacency=submit_mode == "adjacency"
        )
        print(result.message)
        return 0 if result.ok else 1

    return 0


def run() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if len(sys.argv) < 2:
        print("usage: pipeline-engine <pipeline name or YAML path>", file=sys.stderr)
        sys.exit(2)

    sys.exit(asyncio.run(main(sys.argv[1])))


if __name__ == "__main__":
    run()
