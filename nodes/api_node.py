"""
API Node

Simulated HTTP call. No request leaves the process; the node reports a
static successful response describing the configured request.
"""

from typing import Any, Dict

from engine.dag.node import NodeInputs, NodeType

from .base import BaseNode


class APINode(BaseNode):
    node_type = NodeType.API
    output_names = ["response", "status", "headers", "error"]
    default_data = {"method": "GET", "url": "https://api.example.com"}

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        method = self.setting(data, "method")
        url = self.setting(data, "url")
        return {
            "response": {"data": "API response data", "url": url, "method": method},
            "status": 200,
            "headers": {"content-type": "application/json"},
            "error": None,
        }
