import logging
import os
from typing import List, Optional, Union

from rich.markup import escape

from pathprompt.shell.paths import InputPath, PathEntry

logger = logging.getLogger(__name__)


class ShellPathAutocomplete:
    """
    Completes paths the way zsh does: a Tab fills in the unambiguous part,
    further Tabs cycle through the candidates of the segment being typed.
    """

    def __init__(self, cwd: str, directory_only: bool = False, show_hidden: bool = False):
        working_directory = os.path.abspath(os.path.expanduser(cwd))
        self.working_directory = PathEntry(working_directory, True)
        self.directory_only = directory_only
        self.show_hidden = show_hidden
        self.input_path = InputPath(working_directory)
        self.potential_paths: List[PathEntry] = []
        self.selected_path: Optional[PathEntry] = None

    def refresh(self):
        """Re-read the candidates for the typed text, keeping the selection when still listed."""
        directory = self.input_path.get_directory()
        segment = self.input_path.get_segment()
        self.potential_paths = self._list_directory(directory, segment)

        if self.selected_path not in self.potential_paths:
            self.selected_path = self.potential_paths[0] if self.potential_paths else None

        logger.debug("Found %d candidates for %r in %s", len(self.potential_paths), segment, directory)

    def _list_directory(self, directory: str, segment: str) -> List[PathEntry]:
        try:
            entries = os.scandir(directory)
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            return []

        found = []
        with entries:
            for entry in entries:
                if not entry.name.startswith(segment):
                    continue
                if entry.name.startswith(".") and not (self.show_hidden or segment.startswith(".")):
                    continue
                is_directory = entry.is_dir()
                if self.directory_only and not is_directory:
                    continue
                found.append(PathEntry(entry.path, is_directory))

        return sorted(found, key=lambda entry: entry.get_name())

    def _common_prefix(self) -> str:
        if len(self.potential_paths) == 1:
            return self.potential_paths[0].get_display_name()
        return os.path.commonprefix([p.get_name() for p in self.potential_paths])

    def has_common_potential_path(self) -> bool:
        if not self.potential_paths:
            return False
        return len(self._common_prefix()) > len(self.input_path.get_segment())

    def get_common_potential_path(self) -> str:
        return self.input_path.get_directory_text() + self._common_prefix()

    def has_selected_path(self) -> bool:
        return self.selected_path is not None

    def get_selected_path(self) -> Optional[PathEntry]:
        return self.selected_path

    def select_next_potential_path(self, forward: bool = True):
        if not self.potential_paths:
            return
        if self.selected_path is None:
            self.selected_path = self.potential_paths[0 if forward else -1]
            return
        step = 1 if forward else -1
        index = self.potential_paths.index(self.selected_path)
        self.selected_path = self.potential_paths[(index + step) % len(self.potential_paths)]

    def reset_select_potential_path(self):
        self.selected_path = None

    def set_input_path(self, path: Union[str, PathEntry]):
        if isinstance(path, PathEntry):
            path = self.input_path.get_directory_text() + path.get_display_name()
        self.input_path = InputPath(self.working_directory.get_path(), path)
        self.potential_paths = []
        self.selected_path = None

    def get_input_path(self, for_cursor: bool = False) -> str:
        """
        Text of the current input. A selected candidate replaces the typed segment.
        Args:
            for_cursor: Return plain text for the line buffer instead of display markup.
        """
        directory_text = self.input_path.get_directory_text()
        if self.selected_path is None:
            text = self.input_path.get_text()
            return text if for_cursor else escape(text)

        completed = self.selected_path.get_display_name()
        if for_cursor:
            return directory_text + completed
        return f"{escape(directory_text)}[underline]{escape(completed)}[/underline]"

    def get_input_path_reference(self) -> InputPath:
        return InputPath(self.working_directory.get_path(), self.get_input_path(True))

    def get_potential_paths(self) -> List[PathEntry]:
        return list(self.potential_paths)

    def get_working_directory(self) -> PathEntry:
        return self.working_directory
