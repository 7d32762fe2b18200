"""
Variable Text Editor

Editing model for a text field that holds {{name}} tokens: typing the
trigger opens the selector, selecting an option inserts an atomic token and
binds its edge, and tokens can only be removed whole.
"""

from typing import Callable, List, Optional
import logging

from .binding import VariableBinder
from .selector import OutputOption, VariableSelector
from .tokens import TRIGGER, VariableToken, extract_variables, format_token, parse_tokens

logger = logging.getLogger(__name__)


ChangeListener = Callable[[str, List[str]], None]


class VariableTextEditor:
    """
    Text plus cursor for one node's text-bearing field.

    The cursor is an offset into text. It never rests inside a token: moves
    that land inside one snap to the token's end, and character edits next
    to a token leave the token intact.

    Example usage:
        editor = VariableTextEditor(
            "text-1",
            binder=binder,
            options_provider=lambda: collect_output_options(store.state, "text-1"),
            on_change=lambda text, variables: store.update_node_data(
                "text-1", {"text": text, "variables": variables}
            ),
        )
        editor.type_text("Hello {{")
        editor.handle_key("Enter")   # inserts "{{input_1.input_1}} "
    """

    def __init__(
        self,
        node_id: str,
        text: str = "",
        binder: Optional[VariableBinder] = None,
        options_provider: Optional[Callable[[], List[OutputOption]]] = None,
        on_change: Optional[ChangeListener] = None,
        on_highlight: Optional[Callable[[Optional[str]], None]] = None,
    ):
        self.node_id = node_id
        self.text = text or ""
        self.cursor = len(self.text)
        self.binder = binder
        self.selector = VariableSelector(on_highlight)
        self.trigger_position: Optional[int] = None
        self._options_provider = options_provider or (lambda: [])
        self._on_change = on_change

    @property
    def tokens(self) -> List[VariableToken]:
        return parse_tokens(self.text)

    @property
    def variables(self) -> List[str]:
        return extract_variables(self.text)

    # Cursor

    def move_cursor(self, position: int) -> None:
        position = min(max(position, 0), len(self.text))
        for token in self.tokens:
            if token.contains(position):
                position = token.end
                break
        self.cursor = position
        self._check_trigger()

    # Character edits

    def type_text(self, chars: str) -> None:
        """Insert characters at the cursor one at a time"""
        if not chars:
            return
        for char in chars:
            self.text = self.text[:self.cursor] + char + self.text[self.cursor:]
            self.cursor += 1
            self._check_trigger()
        self._notify()

    def backspace(self) -> bool:
        """
        Delete the character before the cursor.

        Returns:
            False when there is nothing to delete or the character belongs
            to a token (tokens are removed with remove_token only)
        """
        if self.cursor == 0:
            return False
        if any(t.start < self.cursor <= t.end for t in self.tokens):
            return False

        self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
        self.cursor -= 1
        self._check_trigger()
        self._notify()
        return True

    def delete_forward(self) -> bool:
        """Delete the character after the cursor; same rules as backspace()"""
        if self.cursor >= len(self.text):
            return False
        if any(t.start <= self.cursor < t.end for t in self.tokens):
            return False

        self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]
        self._check_trigger()
        self._notify()
        return True

    # Selector

    def handle_key(self, key: str) -> bool:
        """
        Route a navigation key to the open selector.

        Returns:
            True if the key was consumed by the selector
        """
        if not self.selector.is_open:
            return False
        option = self.selector.handle_key(key)
        if option is not None:
            self.select(option)
        return True

    def select(self, option: OutputOption) -> None:
        """
        Commit an option at the pending trigger.

        Removes the two trigger characters, inserts the token followed by one
        space, places the cursor after the space and binds the edge.
        """
        self.selector.close()
        if self.trigger_position is None:
            logger.warning(f"Variable selected in {self.node_id} without a pending trigger")
            return

        start = self.trigger_position - len(TRIGGER)
        if self.text[start:self.trigger_position] != TRIGGER:
            logger.warning(f"Trigger text in {self.node_id} changed before selection")
            self.trigger_position = None
            return

        inserted = format_token(option.qualified_name) + " "
        self.text = self.text[:start] + inserted + self.text[self.trigger_position:]
        self.cursor = start + len(inserted)
        self.trigger_position = None
        self._notify()

        if self.binder is not None:
            self.binder.bind(option.node_id, self.node_id, option.qualified_name)

    # Token removal

    def remove_token(self, variable_name: str) -> int:
        """
        Remove every token of a variable as a single edit and unbind it.

        Returns:
            Number of tokens removed
        """
        spans = [t for t in self.tokens if t.name == variable_name]
        if not spans:
            return 0

        for token in reversed(spans):
            self.text = self.text[:token.start] + self.text[token.end:]
            if self.cursor >= token.end:
                self.cursor -= token.end - token.start
            elif self.cursor > token.start:
                self.cursor = token.start

        self.selector.close()
        self.trigger_position = None
        self._notify()

        if self.binder is not None:
            self.binder.unbind(self.node_id, variable_name)
        return len(spans)

    def _check_trigger(self) -> None:
        if self.text[:self.cursor].endswith(TRIGGER):
            self.trigger_position = self.cursor
            self.selector.open(self._options_provider())
            return

        if not self.selector.is_open:
            return
        start = self.trigger_position - len(TRIGGER)
        in_progress = self.text[start:self.cursor] if self.cursor >= start else ""
        if TRIGGER not in in_progress:
            self.selector.close()
            self.trigger_position = None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.text, self.variables)
