import asyncio
import inspect
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from rich.markup import escape
from rich.text import Text

from pathprompt.config import PromptOptions
from pathprompt.rendering import Screen, render_candidates, window
from pathprompt.shell.autocomplete import ShellPathAutocomplete
from pathprompt.terminal import INTERRUPT, KEYPRESS, LINE, InterruptGuard, KeyEvent, LineReader

logger = logging.getLogger(__name__)

TAB_KEY = "tab"
ENTER_KEY = "enter"
CYCLE_KEYS = {"up": False, "down": True}

INVALID_PATH = "Invalid path"


class PromptStatus(Enum):
    EDITING = "editing"
    SELECTING = "selecting"
    VALIDATING = "validating"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"


@dataclass
class SessionState:
    status: PromptStatus = PromptStatus.EDITING
    cancel_count: int = 0

    @property
    def selection_active(self) -> bool:
        return self.status is PromptStatus.SELECTING


async def run_async(func: Callable, *args) -> Any:
    """Call a plain or async callable and return its result."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class PathPrompt:
    """
    A prompt for a single path (or a list of paths in multi mode),
    completing paths as zsh does.
    """

    def __init__(self, options: PromptOptions, reader: LineReader, screen: Screen,
                 answers: Optional[Dict[str, Any]] = None):
        self.options = options
        self.reader = reader
        self.screen = screen
        self.answers = answers if answers is not None else {}
        self.answer = [] if options.multi else None
        self.state = SessionState()
        self.shell = ShellPathAutocomplete(
            options.starting_directory(),
            directory_only=options.directory_only,
            show_hidden=options.show_hidden,
        )
        self.default = self.shell.get_working_directory().get_name()
        self.done: Optional[Callable] = None
        self.fail: Optional[Callable] = None
        self.interrupts: Optional[InterruptGuard] = None
        self._tasks = set()
        # Checked in order, the first matching guard handles the interrupt
        self.interrupt_chain = [
            (self._is_browsing, self._cancel_selection),
            (self._can_finish_multi, self._finish_multi),
            (lambda: True, self._abort),
        ]

    def run(self, done: Callable, fail: Optional[Callable] = None) -> "PathPrompt":
        """
        Attach to the reader and draw the prompt.
        Args:
            done: Called once with the answer.
            fail: Called with any exception raised by a validator or filter,
                logged when missing.
        """
        self.done = done
        self.fail = fail
        self.interrupts = self.reader.acquire_interrupts()

        self.reader.add_listener(LINE, self.on_submit)
        self.reader.add_listener(INTERRUPT, self.on_cancel)
        self.reader.add_listener(KEYPRESS, self.on_key_press)

        self.render()
        return self

    def _set_status(self, status: PromptStatus):
        if self.state.status is not status:
            logger.debug("%s -> %s", self.state.status.value, status.value)
        self.state.status = status

    def on_key_press(self, key: KeyEvent):
        if key.ctrl:
            return
        if self.state.status not in (PromptStatus.EDITING, PromptStatus.SELECTING):
            return
        self.state.cancel_count = 0

        if key.name == TAB_KEY:
            self._complete(forward=not key.shift)
        elif key.name == ENTER_KEY:
            if not self.shell.has_selected_path():
                # Submission goes through on_submit
                return
            self.shell.set_input_path(self.shell.get_selected_path())
            self._set_status(PromptStatus.EDITING)
        elif key.name in CYCLE_KEYS and self.state.selection_active:
            self.shell.select_next_potential_path(CYCLE_KEYS[key.name])
        else:
            self._set_status(PromptStatus.EDITING)
            self.shell.set_input_path(self.reader.line)

        # Drop whatever the key itself added to the line
        self.sync_line()
        self.render()

    def _complete(self, forward: bool):
        self.shell.refresh()
        if self.shell.has_common_potential_path():
            self._set_status(PromptStatus.EDITING)
            self.shell.set_input_path(self.shell.get_common_potential_path())
        elif not self.shell.get_potential_paths():
            self._set_status(PromptStatus.EDITING)
        elif not self.state.selection_active:
            self._set_status(PromptStatus.SELECTING)
        else:
            self.shell.select_next_potential_path(forward)

    def on_submit(self, line: str = ""):
        if self.shell.has_selected_path():
            # The keypress handler accepts the candidate
            return
        if self.state.status is not PromptStatus.EDITING:
            logger.debug("Dropping submission while %s", self.state.status.value)
            return
        self.state.cancel_count = 0
        value = os.path.abspath(self.shell.get_input_path_reference().get_path())
        self._set_status(PromptStatus.VALIDATING)
        self._spawn(self._validate_entry(value))

    async def _validate_entry(self, value: str):
        is_valid = await run_async(self.options.validate_entry, value, self.answers)
        if self.state.status is not PromptStatus.VALIDATING:
            logger.debug("Discarding validation of %s", value)
            return
        if is_valid is True:
            await self.on_success(value)
        else:
            self._set_status(PromptStatus.EDITING)
            self.on_error(is_valid)

    def on_cancel(self, *args):
        for guard, handler in self.interrupt_chain:
            if guard():
                handler(*args)
                return

    def _is_browsing(self) -> bool:
        return self.state.selection_active or self.shell.has_selected_path()

    def _can_finish_multi(self) -> bool:
        return (self.options.multi
                and self.state.cancel_count < 1
                and self.state.status is PromptStatus.EDITING)

    def _cancel_selection(self, *args):
        self._set_status(PromptStatus.EDITING)
        self.shell.reset_select_potential_path()
        self.sync_line()
        self.render()

    def _finish_multi(self, *args):
        self._set_status(PromptStatus.VALIDATING)
        self._spawn(self._validate_collection())

    async def _validate_collection(self):
        is_valid = await run_async(self.options.validate_multi, list(self.answer), self.answers)
        if self.state.status is not PromptStatus.VALIDATING:
            return
        if is_valid is True:
            self.on_finish()
        else:
            self._set_status(PromptStatus.EDITING)
            self.state.cancel_count += 1
            self.on_error(is_valid)

    def _abort(self, *args):
        self._set_status(PromptStatus.CANCELLED)
        self.cleanup()
        self.screen.done()
        self.interrupts.forward(*args)

    def on_error(self, error):
        if not isinstance(error, str) or not error:
            error = INVALID_PATH
        # Keep the state
        self.sync_line()
        self.render_error(error)

    async def on_success(self, value: str):
        filtered = await run_async(self.options.filter, value)
        if self.state.status is not PromptStatus.VALIDATING:
            return
        self.render(filtered)

        if self.options.multi:
            # Keep the rendered answer above the next prompt
            self.screen.commit_line()

            self.shell.set_input_path("")
            self.shell.reset_select_potential_path()
            self.state = SessionState()
            self.answer.append(filtered)

            self.sync_line()
            self.render()
        else:
            self.answer = filtered
            self.on_finish()

    def on_finish(self):
        if self.state.status is PromptStatus.FINALIZED:
            return
        self._set_status(PromptStatus.FINALIZED)
        self.cleanup()
        self.screen.done()
        answer = list(self.answer) if self.options.multi else self.answer
        self.done(answer)

    def _spawn(self, coro):
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled() or task.exception() is None:
            return
        error = task.exception()
        self._set_status(PromptStatus.CANCELLED)
        self.cleanup()
        if self.fail is None:
            logger.error("Prompt callback failed", exc_info=error)
            return
        self.fail(error)

    def sync_line(self):
        self.reader.line = self.shell.get_input_path(True)
        self.reset_cursor()

    def reset_cursor(self):
        """Move the display cursor and the line cursor to the end of the input."""
        end = len(self.shell.get_input_path(True))
        self.screen.cursor_to(self.question_width() + end)
        self.reader.cursor = end

    def get_question(self) -> str:
        question = f"[green]?[/green] [bold]{escape(self.options.message)}[/bold] "
        if self.state.status is not PromptStatus.FINALIZED and self.default:
            question += f"[dim]({escape(self.default)})[/dim] "
        return question

    def question_width(self) -> int:
        return Text.from_markup(self.get_question()).cell_len

    def render(self, final_answer: Optional[Any] = None):
        message = self.render_message(final_answer)
        if final_answer is not None:
            self.screen.render(message)
            return
        self.screen.render(message, self.render_bottom(), self.question_width() + self.reader.cursor)

    def render_error(self, error: str):
        self.screen.render(
            self.render_message(),
            "[red]>> [/red]" + escape(error),
            self.question_width() + self.reader.cursor,
        )

    def render_message(self, final_answer: Optional[Any] = None) -> str:
        message = self.get_question()
        if final_answer is not None:
            message += f"[cyan]{escape(str(final_answer))}[/cyan]"
        else:
            message += self.shell.get_input_path()
        return message

    def render_bottom(self) -> str:
        if not self.state.selection_active:
            return ""
        potential_paths = self.shell.get_potential_paths()
        selected_path = self.shell.get_selected_path()
        index = potential_paths.index(selected_path) if selected_path in potential_paths else 0
        return render_candidates(window(potential_paths, index, self.options.window_size), selected_path)

    def cleanup(self):
        """Detach the prompt's listeners and give the interrupt channel back. Safe to call repeatedly."""
        self.reader.remove_listener(LINE, self.on_submit)
        self.reader.remove_listener(INTERRUPT, self.on_cancel)
        self.reader.remove_listener(KEYPRESS, self.on_key_press)
        if self.interrupts is not None:
            self.interrupts.release()

