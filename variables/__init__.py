"""
Variables Module

Inline {{name}} references: token parsing, the selector state machine,
the text editing model and the edge binding protocol.
"""

from .tokens import (
    VariableToken,
    extract_variables,
    format_token,
    parse_tokens,
    substitute_variables,
)
from .selector import OutputOption, SelectorState, VariableSelector, collect_output_options
from .binding import VariableBinder
from .editor import VariableTextEditor

__all__ = [
    "VariableToken",
    "extract_variables",
    "format_token",
    "parse_tokens",
    "substitute_variables",
    "OutputOption",
    "SelectorState",
    "VariableSelector",
    "collect_output_options",
    "VariableBinder",
    "VariableTextEditor",
]
