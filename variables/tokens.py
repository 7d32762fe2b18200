"""
Variable Tokens

Parses and rewrites inline {{name}} references in text fields.
The text is the source of truth: the ordered token list is always derived
from it, never stored separately.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, List

# Two open braces, a name without braces, two close braces; extra leading
# braces stay outside the token
VARIABLE_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")

TRIGGER = "{{"


@dataclass(frozen=True)
class VariableToken:
    """
    One {{name}} occurrence in a text.

    Attributes:
        name: Referenced name, surrounding whitespace stripped
        start: Offset of the first opening brace
        end: Offset just past the last closing brace
    """
    name: str
    start: int
    end: int

    def contains(self, position: int) -> bool:
        """True if position falls strictly inside the token"""
        return self.start < position < self.end


def format_token(name: str) -> str:
    return f"{{{{{name}}}}}"


def parse_tokens(text: str) -> List[VariableToken]:
    """All tokens in text, left to right"""
    return [
        VariableToken(name=m.group(1).strip(), start=m.start(), end=m.end())
        for m in VARIABLE_PATTERN.finditer(text or "")
    ]


def extract_variables(text: str) -> List[str]:
    """
    Referenced names in first-occurrence order.

    Duplicate names collapse to one entry.
    """
    return list(dict.fromkeys(token.name for token in parse_tokens(text)))


def render_value(value: Any) -> str:
    if isinstance(value, (dict, list, bool)):
        return json.dumps(value)
    return str(value)


def substitute_variables(text: str, resolve: Callable[[str], Any]) -> str:
    """
    Replace every token with its resolved value.

    Args:
        text: Text containing {{name}} tokens
        resolve: Returns the value for a name, or None when unresolved

    Returns:
        Text with resolved tokens substituted; unresolved tokens are left
        as they were
    """
    def replace(match: re.Match) -> str:
        value = resolve(match.group(1).strip())
        if value is None:
            return match.group(0)
        return render_value(value)

    return VARIABLE_PATTERN.sub(replace, text or "")
