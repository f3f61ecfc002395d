import asyncio
from typing import Any, Dict, List, Optional, Union

from prompt_toolkit.output import Output, create_output
from rich.console import Console

from pathprompt.config import PromptOptions
from pathprompt.prompt import PathPrompt
from pathprompt.rendering import Screen
from pathprompt.terminal import INTERRUPT, LineReader, TerminalLineReader

Answer = Union[str, List[str]]


async def prompt_path(
    message: str,
    *,
    reader: Optional[LineReader] = None,
    output: Optional[Output] = None,
    console: Optional[Console] = None,
    answers: Optional[Dict[str, Any]] = None,
    **options
) -> Answer:
    """
    Ask for a path (or a list of paths with multi=True) on the terminal.
    Raises KeyboardInterrupt when the user aborts the prompt.
    """
    prompt_options = PromptOptions(message=message, **options)
    reader = reader or TerminalLineReader()
    screen = Screen(output or create_output(), console)

    result = asyncio.get_running_loop().create_future()

    def on_interrupt(*args):
        if not result.done():
            result.set_exception(KeyboardInterrupt())

    def on_done(answer):
        if not result.done():
            result.set_result(answer)

    def on_fail(error):
        if not result.done():
            result.set_exception(error)

    reader.add_listener(INTERRUPT, on_interrupt)
    prompt = PathPrompt(prompt_options, reader, screen, answers=answers)
    try:
        with reader.attached():
            prompt.run(on_done, on_fail)
            return await result
    finally:
        prompt.cleanup()
        reader.remove_listener(INTERRUPT, on_interrupt)


def run_prompt(message: str, **options) -> Answer:
    return asyncio.run(prompt_path(message, **options))
