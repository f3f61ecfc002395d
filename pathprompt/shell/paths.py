import os
from dataclasses import dataclass


@dataclass(frozen=True)
class PathEntry:
    """A filesystem entry offered as a completion candidate."""
    path: str
    directory: bool = False

    @classmethod
    def from_path(cls, path: str) -> "PathEntry":
        return cls(path, os.path.isdir(path))

    def get_name(self) -> str:
        # The root has no basename, show the path itself
        return os.path.basename(self.path.rstrip(os.sep)) or self.path

    def get_path(self) -> str:
        return self.path

    def is_directory(self) -> bool:
        return self.directory

    def get_display_name(self) -> str:
        name = self.get_name()
        if self.directory and not name.endswith(os.sep):
            name += os.sep
        return name


class InputPath:
    """
    The text typed by the user, interpreted against a working directory.
    The last separator splits it into a directory part and the segment being completed.
    """

    def __init__(self, cwd: str, text: str = ""):
        self.cwd = cwd
        self.text = text

    def get_text(self) -> str:
        return self.text

    def get_directory_text(self) -> str:
        index = self.text.rfind(os.sep)
        return self.text[:index + 1]

    def get_segment(self) -> str:
        return self.text[len(self.get_directory_text()):]

    def get_directory(self) -> str:
        directory_text = self.get_directory_text()
        if not directory_text:
            return self.cwd
        return self._absolute(directory_text)

    def get_path(self) -> str:
        if not self.text:
            return self.cwd
        return self._absolute(self.text)

    def _absolute(self, text: str) -> str:
        expanded = os.path.expanduser(text)
        return os.path.normpath(os.path.join(self.cwd, expanded))

    def __repr__(self):
        return f"InputPath(cwd={self.cwd!r}, text={self.text!r})"
