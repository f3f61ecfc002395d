from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

LINE = "line"
INTERRUPT = "interrupt"
KEYPRESS = "keypress"


@dataclass(frozen=True)
class KeyEvent:
    name: str
    sequence: str = ""
    ctrl: bool = False
    shift: bool = False
    meta: bool = False


# Keys whose prompt_toolkit value would otherwise read as a control chord
NAMED_KEYS = {
    Keys.Tab: KeyEvent("tab", "\t"),
    Keys.BackTab: KeyEvent("tab", "\t", shift=True),
    Keys.Enter: KeyEvent("enter", "\r"),
    Keys.ControlJ: KeyEvent("enter", "\n"),
    Keys.Backspace: KeyEvent("backspace", "\x7f"),
    Keys.Delete: KeyEvent("delete"),
    Keys.Escape: KeyEvent("escape", "\x1b"),
    Keys.Up: KeyEvent("up"),
    Keys.Down: KeyEvent("down"),
    Keys.Left: KeyEvent("left"),
    Keys.Right: KeyEvent("right"),
    Keys.Home: KeyEvent("home"),
    Keys.End: KeyEvent("end"),
}


def translate_key(key_press: KeyPress) -> Optional[KeyEvent]:
    """Turn a prompt_toolkit key press into a KeyEvent. Returns None for keys we have no name for."""
    key = key_press.key
    if key in NAMED_KEYS:
        return NAMED_KEYS[key]
    if key == Keys.BracketedPaste:
        return KeyEvent("paste", key_press.data)
    if isinstance(key, Keys):
        value = key.value
        if value.startswith("c-"):
            return KeyEvent(value[2:], key_press.data, ctrl=True)
        if value.startswith("s-"):
            return KeyEvent(value[2:], key_press.data, shift=True)
        return None
    # Plain characters arrive as the character itself
    return KeyEvent(key.lower(), key_press.data or key, shift=key != key.lower())


class InterruptGuard:
    """
    Holds the interrupt channel of a LineReader.
    The listeners found on acquisition are taken off the reader and put back exactly once on release.
    """

    def __init__(self, reader: "LineReader"):
        self.reader = reader
        self.saved = reader.listeners(INTERRUPT)
        self.released = False
        reader.remove_all_listeners(INTERRUPT)

    def release(self):
        if self.released:
            return
        self.released = True
        for listener in self.saved:
            self.reader.add_listener(INTERRUPT, listener)

    def forward(self, *args):
        """Re-dispatch a signal to the listeners that were in place before acquisition."""
        for listener in self.saved:
            listener(*args)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class LineReader:
    """
    Line buffer plus listener registry for the `line`, `interrupt` and `keypress` events.
    Default line editing happens before the keypress listeners run.
    """

    def __init__(self):
        self.line = ""
        self.cursor = 0
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)

    def add_listener(self, event: str, listener: Callable):
        self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: Callable):
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def remove_all_listeners(self, event: str):
        self._listeners[event] = []

    def listeners(self, event: str) -> List[Callable]:
        return list(self._listeners[event])

    def emit(self, event: str, *args):
        for listener in self.listeners(event):
            listener(*args)

    def acquire_interrupts(self) -> InterruptGuard:
        return InterruptGuard(self)

    def feed(self, key: KeyEvent):
        if key.ctrl and key.name == "c":
            self.emit(INTERRUPT)
        elif key.name == "enter":
            line = self.line
            self.line = ""
            self.cursor = 0
            self.emit(LINE, line)
        elif key.name == "backspace":
            if self.cursor > 0:
                self.line = self.line[:self.cursor - 1] + self.line[self.cursor:]
                self.cursor -= 1
        elif key.ctrl and key.name == "u":
            self.line = ""
            self.cursor = 0
        elif key.name == "paste" or (not key.ctrl and not key.meta and key.sequence and key.sequence.isprintable()):
            self.insert(key.sequence)

        self.emit(KEYPRESS, key)

    def insert(self, text: str):
        self.line = self.line[:self.cursor] + text + self.line[self.cursor:]
        self.cursor += len(text)

    @contextmanager
    def attached(self):
        yield self


class TerminalLineReader(LineReader):
    """LineReader fed from the real terminal through prompt_toolkit's raw input."""

    def __init__(self, input: Optional[Input] = None):
        super().__init__()
        self.input = input or create_input()

    def keys_ready(self):
        for key_press in self.input.read_keys():
            key = translate_key(key_press)
            if key is not None:
                self.feed(key)

    @contextmanager
    def attached(self):
        with self.input.raw_mode(), self.input.attach(self.keys_ready):
            yield self
