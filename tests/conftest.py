"""Shared fixtures for pipeline engine tests."""

import httpx
import pytest
from fastapi.testclient import TestClient

from engine.dag.registry import NodeRegistry
from engine.dag.store import GraphStore
from engine.runtime.coordinator import PipelineCoordinator
from nodes import register_builtin_nodes
from service.adapters.validator_client import ValidatorClient, ValidatorConfig
from service.validator.main import create_app


@pytest.fixture
def registry() -> NodeRegistry:
    return register_builtin_nodes(NodeRegistry())


@pytest.fixture
def store() -> GraphStore:
    return GraphStore()


@pytest.fixture
def service_client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def validator(service_client) -> ValidatorClient:
    """ValidatorClient whose requests are answered by the in-process service."""

    def handler(request: httpx.Request) -> httpx.Response:
        response = service_client.post(
            request.url.path,
            content=request.content,
            headers={"content-type": "application/json"},
        )
        return httpx.Response(response.status_code, json=response.json())

    return ValidatorClient(
        ValidatorConfig(base_url="http://validator.test"),
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def coordinator(registry, validator) -> PipelineCoordinator:
    return PipelineCoordinator(registry, validator=validator)
