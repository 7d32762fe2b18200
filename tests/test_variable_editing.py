"""
Tests for the variable binding protocol: token edits in a text field and
the edges that back them.
"""

import pytest

from engine.dag.node import PipelineNode
from variables.binding import VariableBinder
from variables.editor import VariableTextEditor


def edges_into(coordinator, node_id):
    return [e for e in coordinator.store.edges if e.target == node_id]


class TestVariableBinder:
    """Tests for VariableBinder."""

    def test_bind_and_unbind(self, store):
        """Binding creates one edge; unbinding removes it."""
        store.add_node(PipelineNode("input-1", "input"))
        store.add_node(PipelineNode("text-1", "text"))
        binder = VariableBinder(store)

        edge = binder.bind("input-1", "text-1", "input-1.value")
        assert binder.bound_variables("text-1") == ["input-1.value"]
        assert binder.unbind("text-1", "input-1.value") == [edge]
        assert store.edges == ()

    def test_sync_binds_by_display_name(self, store):
        """Tokens whose prefix names another node are bound to it."""
        store.add_node(PipelineNode("input-1", "input", {"name": "Topic"}))
        store.add_node(PipelineNode("text-1", "text"))
        binder = VariableBinder(store)

        binder.sync("text-1", "About {{Topic.topic}} and {{nobody.value}}")
        assert [(e.source, e.variable_name) for e in store.edges] == [
            ("input-1", "Topic.topic"),
        ]

    def test_sync_removes_stale_edges(self, store):
        """Edges for tokens no longer in the text are removed."""
        store.add_node(PipelineNode("input-1", "input"))
        store.add_node(PipelineNode("text-1", "text"))
        binder = VariableBinder(store)
        binder.bind("input-1", "text-1", "input-1.a")
        binder.bind("input-1", "text-1", "input-1.b")

        binder.sync("text-1", "only {{input-1.b}}")
        assert binder.bound_variables("text-1") == ["input-1.b"]

    def test_sync_is_stable(self, store):
        """Syncing the same text twice creates no extra edges."""
        store.add_node(PipelineNode("input-1", "input"))
        store.add_node(PipelineNode("text-1", "text"))
        binder = VariableBinder(store)

        binder.sync("text-1", "{{input-1.x}}")
        binder.sync("text-1", "{{input-1.x}}")
        assert len(store.edges) == 1


class TestVariableTextEditor:
    """Tests for editing a text field through the coordinator."""

    def test_trigger_opens_selector(self, coordinator):
        """Typing the trigger opens the selector with other nodes' outputs."""
        coordinator.place_node("input")
        coordinator.place_node("text", data={"text": ""})
        editor = coordinator.open_editor("text-1")

        editor.type_text("Hello {{")
        assert editor.selector.is_open
        assert [o.qualified_name for o in editor.selector.options] == ["input-1.input_1"]
        assert coordinator.highlighted_node_id == "input-1"

    def test_select_inserts_token_and_edge(self, coordinator):
        """Committing an option inserts one token and exactly one edge."""
        coordinator.place_node("input")
        coordinator.place_node("text", data={"text": ""})
        editor = coordinator.open_editor("text-1")

        editor.type_text("Hello {{")
        assert editor.handle_key("Enter")

        assert editor.text == "Hello {{input-1.input_1}} "
        assert editor.cursor == len(editor.text)
        assert not editor.selector.is_open
        assert coordinator.highlighted_node_id is None

        node = coordinator.store.get_node("text-1")
        assert node.data["text"] == editor.text
        assert node.data["variables"] == ["input-1.input_1"]

        edges = edges_into(coordinator, "text-1")
        assert len(edges) == 1
        assert edges[0].source == "input-1"
        assert edges[0].target_handle == "text-1-var-input-1.input_1-0"

        coordinator.flush()
        assert coordinator.output_values("text-1") == {"output": "Hello input_1 "}

    def test_remove_token_removes_edge(self, coordinator):
        """Removing a token removes its edge and leaves others alone."""
        coordinator.place_node("input", data={"name": "A", "inputName": "value"})
        coordinator.place_node("input", data={"name": "B", "inputName": "value"})
        coordinator.place_node("text", data={"text": ""})
        editor = coordinator.open_editor("text-1")

        editor.type_text("{{")
        editor.handle_key("Enter")
        editor.type_text("{{")
        editor.handle_key("ArrowDown")
        editor.handle_key("Enter")
        assert editor.variables == ["A.value", "B.value"]

        assert editor.remove_token("A.value") == 1
        assert editor.text == " {{B.value}} "
        remaining = edges_into(coordinator, "text-1")
        assert [e.variable_name for e in remaining] == ["B.value"]

    def test_escape_inserts_nothing(self, coordinator):
        """Dismissing the selector leaves the trigger text as typed."""
        coordinator.place_node("input")
        coordinator.place_node("text", data={"text": ""})
        editor = coordinator.open_editor("text-1")

        editor.type_text("{{")
        editor.handle_key("Escape")
        assert editor.text == "{{"
        assert edges_into(coordinator, "text-1") == []

    def test_selector_closes_when_trigger_deleted(self, coordinator):
        """Backspacing over the trigger closes the selector."""
        coordinator.place_node("input")
        coordinator.place_node("text", data={"text": ""})
        editor = coordinator.open_editor("text-1")

        editor.type_text("{{")
        editor.backspace()
        assert not editor.selector.is_open
        assert editor.trigger_position is None

    def test_typing_after_trigger_keeps_selector_open(self):
        """Characters typed after the trigger keep the selector open."""
        editor = VariableTextEditor("text-1")
        editor.type_text("{{ab")
        assert editor.selector.is_open


class TestTokenAtomicity:
    """Tests for cursor and deletion rules around tokens."""

    def test_cursor_snaps_out_of_token(self):
        """A cursor placed inside a token moves to its end."""
        editor = VariableTextEditor("text-1", text="a {{x}} b")
        editor.move_cursor(4)
        assert editor.cursor == 7

    def test_backspace_after_token_refused(self):
        """Backspace cannot delete a token's last brace."""
        editor = VariableTextEditor("text-1", text="a {{x}}")
        assert editor.backspace() is False
        assert editor.text == "a {{x}}"

    def test_delete_before_token_refused(self):
        """Forward delete cannot delete a token's first brace."""
        editor = VariableTextEditor("text-1", text="a {{x}}")
        editor.move_cursor(2)
        assert editor.delete_forward() is False
        assert editor.text == "a {{x}}"

    def test_plain_characters_deletable(self):
        """Characters outside tokens are edited normally."""
        editor = VariableTextEditor("text-1", text="{{x}} ab")
        assert editor.backspace() is True
        assert editor.text == "{{x}} a"

    def test_remove_token_adjusts_cursor(self):
        """The cursor keeps its place relative to the remaining text."""
        changes = []
        editor = VariableTextEditor(
            "text-1",
            text="{{x}} mid {{x}} end",
            on_change=lambda text, variables: changes.append((text, variables)),
        )
        assert editor.remove_token("x") == 2
        assert editor.text == " mid  end"
        assert editor.cursor == len(editor.text)
        assert changes == [(" mid  end", [])]


    @pytest.mark.parametrize("braces", ["{", "{{"])
    def test_braces_typed_before_token_stay_outside(self, braces):
        """Braces typed at a token's start do not change the token."""
        editor = VariableTextEditor("text-1", text="{{input_1.input_1}}")
        editor.move_cursor(0)
        editor.type_text(braces)

        assert editor.variables == ["input_1.input_1"]
        assert editor.tokens[0].start == len(braces)
        for _ in braces:
            assert editor.backspace() is True
        assert editor.text == "{{input_1.input_1}}"

    def test_token_removable_after_brace_typed(self, coordinator):
        """A token next to a typed brace can still be removed with its edge."""
        coordinator.place_node("input")
        coordinator.place_node("text", data={"text": ""})
        editor = coordinator.open_editor("text-1")
        editor.type_text("{{")
        editor.handle_key("Enter")

        editor.move_cursor(0)
        editor.type_text("{")
        assert editor.remove_token("input-1.input_1") == 1
        assert editor.text == "{ "
        assert edges_into(coordinator, "text-1") == []


class TestTextSync:
    """Tests for setting text directly."""

    def test_set_text_reconciles_edges(self, coordinator):
        """Edges follow tokens added or removed by a direct text change."""
        coordinator.place_node("input", data={"name": "Topic", "inputName": "t"})
        coordinator.place_node("text", data={"text": ""})

        coordinator.set_text("text-1", "{{Topic.t}}")
        assert [e.variable_name for e in edges_into(coordinator, "text-1")] == ["Topic.t"]

        coordinator.set_text("text-1", "nothing")
        assert edges_into(coordinator, "text-1") == []
        assert coordinator.store.get_node("text-1").data["variables"] == []
