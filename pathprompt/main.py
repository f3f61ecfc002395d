import asyncio
import html
import os
from typing import Callable, List, Optional

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from rich.console import Console
from rich.markup import escape

from pathprompt.cli_prompt import ShellPathCompleter
from pathprompt.config import accept_all, get_settings, setup_logging
from pathprompt.prompt import INVALID_PATH, run_async
from pathprompt.rendering import render_candidate
from pathprompt.runner import prompt_path
from pathprompt.shell.autocomplete import ShellPathAutocomplete

app = typer.Typer(no_args_is_help=True)
console = Console()


def path_exists(value: str, answers=None):
    if os.path.exists(value):
        return True
    return f"Path does not exist: {value}"


def at_least(count: int) -> Callable:
    def validate(paths: List[str], answers=None):
        if len(paths) >= count:
            return True
        return f"Select at least {count} path{'s' if count != 1 else ''}"
    return validate


@app.callback()
def main():
    """
    pathprompt - ask for paths with zsh-like completion
    """
    pass


@app.command()
def ask(
    message: str = typer.Argument("Path", help="Question shown in front of the input"),
    cwd: Optional[str] = typer.Option(None, "--cwd", help="Directory relative paths are completed from"),
    directory_only: bool = typer.Option(False, "--directory-only", "-d", help="Only offer directories"),
    multi: bool = typer.Option(False, "--multi", "-m", help="Collect several paths, Ctrl+C to finish"),
    must_exist: bool = typer.Option(False, "--must-exist", help="Reject paths that do not exist"),
    min_count: int = typer.Option(0, "--min-count", help="Minimum number of paths in multi mode"),
    plain: bool = typer.Option(False, "--plain", help="Use a plain prompt_toolkit prompt with a completion menu"),
):
    """
    Ask for a path and print the answer.
    """
    settings = get_settings()
    setup_logging(settings)

    validate = path_exists if must_exist else accept_all
    validate_multi = at_least(min_count) if min_count else accept_all

    try:
        if plain:
            answer = asyncio.run(plain_prompt(
                message, cwd or os.getcwd(), directory_only, settings.show_hidden,
                validate, validate_multi, multi
            ))
        else:
            answer = asyncio.run(prompt_path(
                message,
                cwd=cwd,
                directory_only=directory_only,
                multi=multi,
                show_hidden=settings.show_hidden,
                window_size=settings.window_size,
                validate=validate,
                validate_multi=validate_multi,
            ))
    except (KeyboardInterrupt, EOFError):
        console.print("[yellow]Prompt cancelled.[/yellow]")
        raise typer.Exit(code=130)

    for path in (answer if multi else [answer]):
        console.print(path, markup=False, highlight=False)


async def plain_prompt(message: str, cwd: str, directory_only: bool, show_hidden: bool,
                       validate: Callable, validate_multi: Callable, multi: bool):
    """
    Prompt through a PromptSession and its completion menu.
    In multi mode an empty line finishes the list.
    """
    session = PromptSession(
        completer=ShellPathCompleter(cwd, directory_only, show_hidden),
        complete_while_typing=True
    )
    prompt = HTML(f"<ansigreen><b>?</b></ansigreen> <b>{html.escape(message)}</b> ")
    answers = []

    while True:
        text = await session.prompt_async(prompt)

        if multi and not text:
            is_valid = await run_async(validate_multi, list(answers), {})
            if is_valid is True:
                return answers
        else:
            value = os.path.abspath(os.path.join(cwd, os.path.expanduser(text)))
            is_valid = await run_async(validate, value, {})
            if is_valid is True:
                if not multi:
                    return value
                answers.append(value)
                continue

        if not isinstance(is_valid, str) or not is_valid:
            is_valid = INVALID_PATH
        console.print(f"[red]>> [/red]{escape(is_valid)}")


@app.command()
def complete(
    partial: str = typer.Argument("", help="Partial path to complete"),
    cwd: Optional[str] = typer.Option(None, "--cwd", help="Directory relative paths are completed from"),
    directory_only: bool = typer.Option(False, "--directory-only", "-d", help="Only offer directories"),
):
    """
    Print the completion of a partial path without prompting.
    """
    settings = get_settings()
    setup_logging(settings)

    shell = ShellPathAutocomplete(cwd or os.getcwd(), directory_only, settings.show_hidden)
    shell.set_input_path(partial)
    shell.refresh()

    if shell.has_common_potential_path():
        console.print(f"[bold]{escape(shell.get_common_potential_path())}[/bold]", highlight=False)
    for potential_path in shell.get_potential_paths():
        console.print(render_candidate(potential_path), highlight=False)


if __name__ == "__main__":
    app()
