"""
Variable Selector

Navigation state machine for the dropdown that offers upstream outputs
when a variable trigger is typed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import logging

from engine.dag.store import GraphState

logger = logging.getLogger(__name__)


class SelectorState(Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class OutputOption:
    """One selectable output of another node"""
    node_id: str
    node_name: str
    node_type: str
    output_name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.node_name}.{self.output_name}"


def collect_output_options(state: GraphState, self_node_id: str) -> List[OutputOption]:
    """
    Every other node's declared outputs, in store order.

    Nodes without declared outputs still offer a synthetic "output" option.
    """
    options = []
    for node in state.nodes:
        if node.id == self_node_id:
            continue
        for output_name in node.outputs or ["output"]:
            options.append(OutputOption(
                node_id=node.id,
                node_name=node.display_name,
                node_type=node.type,
                output_name=output_name,
            ))
    return options


class VariableSelector:
    """
    Selector states: CLOSED -> OPEN on open(); OPEN -> CLOSED on commit,
    escape or close().

    While open, the highlighted index moves within [0, len(options) - 1] and
    the highlighted option's node is reported through on_highlight so the
    canvas can emphasize it (None when nothing is highlighted).
    """

    def __init__(self, on_highlight: Optional[Callable[[Optional[str]], None]] = None):
        self.state = SelectorState.CLOSED
        self.options: List[OutputOption] = []
        self.highlighted_index = 0
        self._on_highlight = on_highlight

    @property
    def is_open(self) -> bool:
        return self.state is SelectorState.OPEN

    @property
    def highlighted(self) -> Optional[OutputOption]:
        if not self.is_open or not self.options:
            return None
        return self.options[self.highlighted_index]

    def open(self, options: List[OutputOption]) -> None:
        self.state = SelectorState.OPEN
        self.options = list(options)
        self.highlighted_index = 0
        logger.debug(f"Selector opened with {len(self.options)} options")
        self._emphasize()

    def close(self) -> None:
        if not self.is_open:
            return
        self.state = SelectorState.CLOSED
        self.options = []
        self.highlighted_index = 0
        self._emphasize()

    def move(self, delta: int) -> None:
        """Move the highlight, clamped to the option range"""
        if not self.is_open:
            return
        last = max(len(self.options) - 1, 0)
        self.highlighted_index = min(max(self.highlighted_index + delta, 0), last)
        self._emphasize()

    def commit(self) -> Optional[OutputOption]:
        """
        Select the highlighted option and close.

        Returns:
            The chosen option, or None when there is nothing to choose
            (the selector then stays open)
        """
        option = self.highlighted
        if option is not None:
            self.close()
        return option

    def handle_key(self, key: str) -> Optional[OutputOption]:
        """
        Route a navigation key.

        Returns:
            The committed option on Enter, otherwise None
        """
        if not self.is_open:
            return None
        if key == "ArrowDown":
            self.move(1)
        elif key == "ArrowUp":
            self.move(-1)
        elif key == "Enter":
            return self.commit()
        elif key == "Escape":
            self.close()
        return None

    def _emphasize(self) -> None:
        if self._on_highlight is None:
            return
        option = self.highlighted
        self._on_highlight(option.node_id if option else None)
