"""
Data Nodes

Transform, filter, combine and conditional nodes. Each applies one
configured operation to the values gathered from upstream nodes.
"""

import re
from typing import Any, Dict, List, Optional
import logging

from engine.dag.node import NodeInputs, NodeType
from variables.tokens import render_value

from .base import BaseNode

logger = logging.getLogger(__name__)

SAMPLE_INPUT = "sample_input"

# Leading numeric prefix, parsed the way a lenient float parser would
_NUMBER_PREFIX = re.compile(r"\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")


def parse_number(value: Any) -> Optional[float]:
    """
    Numeric value of the leading part of str(value).

    Returns:
        The parsed float, or None when there is no leading number
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_PREFIX.match(str(value))
    return float(match.group(0)) if match else None


def _strict_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


class TransformNode(BaseNode):
    """Applies a string operation to the first available input"""

    node_type = NodeType.TRANSFORM
    output_names = ["result", "original", "metadata"]
    default_data = {"operation": "uppercase"}

    OPERATIONS = {
        "uppercase": lambda s: s.upper(),
        "lowercase": lambda s: s.lower(),
        "reverse": lambda s: s[::-1],
        "trim": lambda s: s.strip(),
        "split": lambda s: s.split(" "),
        "replace": lambda s: re.sub(r"[0-9]", "X", s),
    }

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        value = inputs.first(SAMPLE_INPUT)
        operation = self.setting(data, "operation")

        transform = self.OPERATIONS.get(operation)
        if transform is None:
            logger.debug(f"Unknown transform operation '{operation}', passing value through")
            result = value
        else:
            result = transform(render_value(value))

        return {
            "result": result,
            "original": value,
            "metadata": {"operation": operation},
        }


class FilterNode(BaseNode):
    """
    Tests the first available input against a comparison value.

    Exactly one of match / no_match carries the input; the other is None.
    """

    node_type = NodeType.FILTER
    output_names = ["match", "no_match", "metadata"]
    default_data = {"condition": "contains", "value": ""}

    def matches(self, value: Any, condition: str, filter_value: str) -> bool:
        text = render_value(value)
        if condition == "contains":
            return filter_value in text
        if condition == "equals":
            return text == filter_value
        if condition == "startsWith":
            return text.startswith(filter_value)
        if condition == "endsWith":
            return text.endswith(filter_value)
        if condition in ("greaterThan", "lessThan"):
            left, right = parse_number(text), parse_number(filter_value)
            if left is None or right is None:
                return False
            return left > right if condition == "greaterThan" else left < right
        return False

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        value = inputs.first(SAMPLE_INPUT)
        condition = self.setting(data, "condition")
        filter_value = data.get("value")
        filter_value = "" if filter_value is None else str(filter_value)

        matched = self.matches(value, condition, filter_value)
        return {
            "match": value if matched else None,
            "no_match": None if matched else value,
            "metadata": {
                "condition": condition,
                "filterValue": filter_value,
                "matches": matched,
            },
        }


class CombineNode(BaseNode):
    """Combines every received input into one value"""

    node_type = NodeType.COMBINE
    output_names = ["combined", "count", "metadata"]
    default_data = {"operation": "concat"}

    def combine(self, values: List[Any], operation: str) -> Any:
        rendered = ["" if v is None else render_value(v) for v in values]
        if operation == "concat":
            return "".join(rendered)
        if operation == "merge":
            merged = {}
            for value in values:
                if isinstance(value, dict):
                    merged.update(value)
            return merged
        if operation == "array":
            return list(values)
        if operation == "join":
            return ", ".join(rendered)
        return None

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        values = inputs.positional()
        operation = self.setting(data, "operation")
        return {
            "combined": self.combine(values, operation),
            "count": len(values),
            "metadata": {"operation": operation, "inputCount": len(values)},
        }


class ConditionalNode(BaseNode):
    """
    Compares the first two available inputs and routes to one branch.

    The taken branch carries the first input, or the boolean outcome when
    there is no first input, so exactly one branch is non-null.
    """

    node_type = NodeType.CONDITIONAL
    output_names = ["true_branch", "false_branch", "metadata"]
    default_data = {"operator": "=="}

    def compare(self, left: Any, right: Any, operator: str) -> bool:
        if left is None or right is None:
            if operator == "==":
                return left is right
            if operator == "!=":
                return left is not right
            return False

        left_num, right_num = _strict_number(left), _strict_number(right)
        if left_num is not None and right_num is not None:
            left, right = left_num, right_num
        else:
            left, right = render_value(left), render_value(right)

        if operator == "==":
            return left == right
        if operator == "!=":
            return left != right
        if operator == ">":
            return left > right
        if operator == "<":
            return left < right
        if operator == ">=":
            return left >= right
        if operator == "<=":
            return left <= right
        return False

    def compute(self, inputs: NodeInputs, data: Dict[str, Any]) -> Dict[str, Any]:
        values = [v for v in inputs.positional() if v is not None and v != ""]
        condition_value = values[0] if len(values) > 0 else None
        compare_value = values[1] if len(values) > 1 else None
        operator = self.setting(data, "operator")

        result = self.compare(condition_value, compare_value, operator)
        carried = condition_value if condition_value is not None else result
        return {
            "true_branch": carried if result else None,
            "false_branch": None if result else carried,
            "metadata": {
                "operator": operator,
                "result": result,
                "conditionValue": condition_value,
                "compareValue": compare_value,
            },
        }
