"""
Tests for {{name}} token parsing and substitution.
"""

from variables.tokens import (
    VariableToken,
    extract_variables,
    format_token,
    parse_tokens,
    substitute_variables,
)


class TestParsing:
    """Tests for token discovery."""

    def test_positions_and_names(self):
        """Tokens are reported left to right with trimmed names."""
        tokens = parse_tokens("a {{ x }} b {{y.z}}")
        assert tokens == [
            VariableToken(name="x", start=2, end=9),
            VariableToken(name="y.z", start=12, end=19),
        ]

    def test_extract_dedups_in_order(self):
        """Each name is listed once, at its first occurrence."""
        assert extract_variables("{{b}} {{a}} {{b}}") == ["b", "a"]

    def test_no_tokens(self):
        """Plain text and empty text yield nothing."""
        assert extract_variables("no tokens { here }") == []
        assert extract_variables("") == []

    def test_unclosed_trigger_is_not_a_token(self):
        """Open braces without a close are plain text."""
        assert parse_tokens("Hello {{") == []

    def test_contains_is_strict(self):
        """Token boundaries are not inside the token."""
        token = VariableToken(name="x", start=2, end=7)
        assert not token.contains(2)
        assert token.contains(3)
        assert not token.contains(7)

    def test_format_token(self):
        """A name is wrapped in double braces."""
        assert format_token("Input.value") == "{{Input.value}}"


class TestSubstitution:
    """Tests for substitute_variables()."""

    def test_resolved_and_unresolved(self):
        """Resolved tokens are replaced; the rest stay literal."""
        text = substitute_variables("{{a}} and {{b}}", {"a": 1}.get)
        assert text == "1 and {{b}}"

    def test_structured_values(self):
        """Lists are rendered as JSON."""
        assert substitute_variables("{{xs}}", {"xs": [1, 2]}.get) == "[1, 2]"

    def test_falsy_values_are_resolved(self):
        """Zero and empty string count as resolved."""
        values = {"zero": 0, "empty": ""}
        assert substitute_variables("[{{zero}}][{{empty}}]", values.get) == "[0][]"

    def test_booleans_rendered_lowercase(self):
        """Booleans are substituted the way JSON spells them."""
        values = {"yes": True, "no": False}
        assert substitute_variables("{{yes}}/{{no}}", values.get) == "true/false"

    def test_extra_leading_braces_stay_outside(self):
        """Only the innermost double brace opens a token."""
        assert parse_tokens("{{{x}}") == [VariableToken(name="x", start=1, end=6)]
        assert substitute_variables("{{{x}}", {"x": 1}.get) == "{1"
