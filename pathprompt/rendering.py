import math
import os
from typing import List, Optional, Sequence, Tuple, TypeVar

from prompt_toolkit.output import Output
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from pathprompt.shell.paths import PathEntry

T = TypeVar("T")

# Number of candidates shown under the prompt
RANGE_SIZE = 5


def slice_window(length: int, index: int, size: int = RANGE_SIZE) -> Tuple[int, int]:
    """
    Bounds of a window of `size` items around `index` in a list of `length` items.
    The window is shifted, never shrunk, when it would run past either end.
    Returns: the half-open range (low, high).
    """
    low = index - size // 2
    high = index + (size + 1) // 2
    if low < 0:
        high = min(length, high - low)
        low = 0
    elif high >= length:
        low = max(0, low - (high - length))
        high = length
    return low, high


def window(items: Sequence[T], index: int, size: int = RANGE_SIZE) -> List[T]:
    low, high = slice_window(len(items), index, size)
    return list(items[low:high])


def render_candidate(entry: PathEntry, selected: bool = False) -> str:
    suffix = os.sep if entry.is_directory() else ""
    name = escape(entry.get_name())
    if selected:
        return f"[black on white]{name}{escape(suffix)}[/black on white]"
    color = "red" if entry.is_directory() else "green"
    return f"[{color}]{name}[/{color}]{escape(suffix)}"


def render_candidates(entries: Sequence[PathEntry], selected: Optional[PathEntry]) -> str:
    return "\n".join(render_candidate(entry, entry == selected) for entry in entries)


class Screen:
    """
    Draws the prompt block: one message line and an optional bottom panel.
    Each render erases the previous block, then leaves the cursor on the message line.
    """

    def __init__(self, output: Output, console: Optional[Console] = None):
        self.output = output
        self.console = console or Console(force_terminal=True, highlight=False)
        # Row of the cursor, counted from the first row of the block
        self.cursor_row = 0

    def width(self) -> int:
        return max(1, self.output.get_size().columns)

    def rows(self, markup: str) -> int:
        width = self.width()
        return sum(max(1, math.ceil(Text.from_markup(line).cell_len / width)) for line in markup.split("\n"))

    def to_ansi(self, markup: str) -> str:
        with self.console.capture() as capture:
            self.console.print(Text.from_markup(markup), end="", soft_wrap=True)
        return capture.get()

    def clean(self):
        if self.cursor_row:
            self.output.cursor_up(self.cursor_row)
        self.output.write_raw("\r")
        self.output.erase_down()
        self.cursor_row = 0

    def render(self, message: str, bottom: str = "", cursor: Optional[int] = None):
        self.clean()
        content = message + ("\n" + bottom if bottom else "")
        self.output.write_raw(self.to_ansi(content).replace("\n", "\r\n"))

        width = self.width()
        if cursor is None:
            cursor = Text.from_markup(message).cell_len
        # The cursor sits after the last drawn row, bring it back onto the message line
        last_row = self.rows(content) - 1
        # A cursor on an exact multiple of the width ends the previous row
        target_row = min(max(cursor - 1, 0) // width, self.rows(message) - 1)
        if last_row > target_row:
            self.output.cursor_up(last_row - target_row)
        self.cursor_row = target_row
        self.cursor_to(cursor)

    def cursor_to(self, column: int):
        width = self.width()
        self.output.write_raw("\r")
        offset = column % width
        if column and not offset:
            offset = width
        if offset:
            self.output.cursor_forward(offset)
        self.output.flush()

    def commit_line(self):
        """Keep the drawn message on screen and start a new block below it."""
        self.output.write_raw("\r\n")
        self.output.flush()
        self.cursor_row = 0

    def done(self):
        self.output.erase_down()
        self.output.write_raw("\r\n")
        self.output.show_cursor()
        self.output.flush()
        self.cursor_row = 0
