import pytest
from unittest.mock import MagicMock
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from pathprompt.terminal import (
    INTERRUPT, KEYPRESS, LINE, KeyEvent, LineReader, TerminalLineReader, translate_key
)

@pytest.mark.parametrize("key_press, expected", [
    (KeyPress(Keys.Tab), KeyEvent("tab", "\t")),
    (KeyPress(Keys.BackTab), KeyEvent("tab", "\t", shift=True)),
    (KeyPress(Keys.Enter), KeyEvent("enter", "\r")),
    (KeyPress(Keys.Backspace), KeyEvent("backspace", "\x7f")),
    (KeyPress(Keys.Up), KeyEvent("up")),
    (KeyPress(Keys.ControlC, "\x03"), KeyEvent("c", "\x03", ctrl=True)),
    (KeyPress("a", "a"), KeyEvent("a", "a")),
    (KeyPress("A", "A"), KeyEvent("a", "A", shift=True)),
    (KeyPress("/", "/"), KeyEvent("/", "/")),
    (KeyPress(Keys.BracketedPaste, "src/main.py"), KeyEvent("paste", "src/main.py")),
])
def test_translate_key(key_press, expected):
    assert translate_key(key_press) == expected

def test_translate_unnamed_key():
    assert translate_key(KeyPress(Keys.PageUp)) is None

def feed_text(reader, text):
    for char in text:
        reader.feed(KeyEvent(char.lower(), char))

def test_typing_edits_line():
    reader = LineReader()
    feed_text(reader, "abc")
    assert reader.line == "abc"
    assert reader.cursor == 3

    reader.feed(KeyEvent("backspace", "\x7f"))
    assert reader.line == "ab"
    assert reader.cursor == 2

    reader.feed(KeyEvent("u", "\x15", ctrl=True))
    assert reader.line == ""
    assert reader.cursor == 0

def test_paste_inserts_text():
    reader = LineReader()
    reader.feed(KeyEvent("paste", "src/main.py"))
    assert reader.line == "src/main.py"

def test_tab_does_not_edit_line():
    reader = LineReader()
    feed_text(reader, "ab")
    reader.feed(KeyEvent("tab", "\t"))
    assert reader.line == "ab"

def test_enter_emits_line_and_clears():
    """Test that enter emits the line before the keypress"""
    reader = LineReader()
    events = []
    reader.add_listener(LINE, lambda line: events.append(("line", line, reader.line)))
    reader.add_listener(KEYPRESS, lambda key: events.append(("keypress", key.name, reader.line)))

    feed_text(reader, "x")
    reader.feed(KeyEvent("enter", "\r"))

    assert events == [
        ("keypress", "x", "x"),
        ("line", "x", ""),
        ("keypress", "enter", ""),
    ]

def test_ctrl_c_emits_interrupt():
    reader = LineReader()
    listener = MagicMock()
    reader.add_listener(INTERRUPT, listener)
    reader.feed(KeyEvent("c", "\x03", ctrl=True))
    listener.assert_called_once_with()

def test_remove_listener():
    reader = LineReader()
    listener = MagicMock()
    reader.add_listener(LINE, listener)
    reader.remove_listener(LINE, listener)
    reader.remove_listener(LINE, listener)
    reader.emit(LINE, "x")
    listener.assert_not_called()

def test_interrupt_guard_restores_listeners_once():
    """Test that released interrupt listeners come back exactly once"""
    reader = LineReader()
    first, second = MagicMock(), MagicMock()
    reader.add_listener(INTERRUPT, first)
    reader.add_listener(INTERRUPT, second)

    guard = reader.acquire_interrupts()
    assert reader.listeners(INTERRUPT) == []

    reader.emit(INTERRUPT)
    first.assert_not_called()

    guard.release()
    guard.release()
    assert reader.listeners(INTERRUPT) == [first, second]

def test_interrupt_guard_forward():
    reader = LineReader()
    listener = MagicMock()
    reader.add_listener(INTERRUPT, listener)
    with reader.acquire_interrupts() as guard:
        guard.forward("SIGINT")
        listener.assert_called_once_with("SIGINT")
    assert reader.listeners(INTERRUPT) == [listener]

def test_terminal_reader_feeds_key_presses():
    terminal_input = MagicMock()
    terminal_input.read_keys.return_value = [
        KeyPress("h", "h"), KeyPress("i", "i"), KeyPress(Keys.PageUp)
    ]
    reader = TerminalLineReader(terminal_input)
    keys = []
    reader.add_listener(KEYPRESS, keys.append)

    reader.keys_ready()

    assert reader.line == "hi"
    assert [key.name for key in keys] == ["h", "i"]

def test_terminal_reader_attached_uses_raw_mode():
    terminal_input = MagicMock()
    reader = TerminalLineReader(terminal_input)
    with reader.attached() as attached:
        assert attached is reader
    terminal_input.raw_mode.assert_called_once_with()
    terminal_input.attach.assert_called_once_with(reader.keys_ready)
