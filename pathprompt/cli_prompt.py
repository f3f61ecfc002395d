from prompt_toolkit.completion import Completer, Completion

from pathprompt.shell.autocomplete import ShellPathAutocomplete
from pathprompt.shell.paths import InputPath


class ShellPathCompleter(Completer):
    """prompt_toolkit completer over the shell path candidates, for the plain prompt."""

    def __init__(self, cwd: str, directory_only: bool = False, show_hidden: bool = False):
        self.cwd = cwd
        self.directory_only = directory_only
        self.show_hidden = show_hidden

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        # Replace only what was typed, refresh() moves the selection into the input
        segment = InputPath(self.cwd, text).get_segment()

        shell = ShellPathAutocomplete(self.cwd, self.directory_only, self.show_hidden)
        shell.set_input_path(text)
        shell.refresh()

        for potential_path in shell.get_potential_paths():
            yield Completion(
                potential_path.get_display_name(),
                start_position=-len(segment),
                display_meta="directory" if potential_path.is_directory() else "file"
            )
