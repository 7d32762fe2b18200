"""
Text Nodes

Input, text, LLM and output nodes: the nodes that name values or render
text with {{variable}} references.
"""

from typing import Any, Dict, List

from engine.dag.node import NodeInputs, NodeType
from variables.tokens import substitute_variables

from .base import BaseNode


def _suffix_name(node_id: str, prefix: str) -> str:
    # "input-3" -> "input_3"
    return node_id.replace(f"{prefix}-", f"{prefix}_", 1)


class InputNode(BaseNode):
    """
    Pipeline entry point.

    Outputs a single value named after the configured input name, whose
    value is the input name itself.
    """

    node_type = NodeType.INPUT
    default_data = {"inputType": "Text"}

    def defaults(self, node_id: str) -> Dict[str, Any]:
        return {"inputName": _suffix_name(node_id, "input"), "inputType": "Text"}

    def input_name(self, data: Dict[str, Any]) -> str:
        return data.get("inputName") or "input_value"

    def outputs(self, data: Dict[str, Any]) -> List[str]:
        return [self.input_name(data)]

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        name = self.input_name(data)
        return {name: name}


class TextNode(BaseNode):
    """Renders its text with every resolvable variable substituted"""

    node_type = NodeType.TEXT
    output_names = ["output"]
    default_data = {"text": "{{input}}"}

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        text = data.get("text")
        if text is None:
            text = self.default_data["text"]
        return {"output": substitute_variables(text, inputs.resolve)}


class LLMNode(BaseNode):
    """
    Placeholder language model call.

    No request is made: the response is a tagged placeholder and the prompt
    output carries the system prompt with variables substituted.
    """

    node_type = NodeType.LLM
    output_names = ["response", "usage", "model_name", "prompt"]
    default_data = {
        "model": "gpt-4",
        "systemPrompt": "",
        "temperature": 0.7,
        "maxTokens": 1000,
    }

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        model = self.setting(data, "model")
        prompt = substitute_variables(data.get("systemPrompt") or "", inputs.resolve)
        return {
            "response": f"[LLM Response from {model}]",
            "usage": "[Token Usage]",
            "model_name": model,
            "prompt": prompt,
        }


class OutputNode(BaseNode):
    """Pipeline exit point; passes every received input through"""

    node_type = NodeType.OUTPUT
    default_data = {"outputType": "Text"}

    def defaults(self, node_id: str) -> Dict[str, Any]:
        return {"outputName": _suffix_name(node_id, "output"), "outputType": "Text"}

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        return dict(inputs.values)
