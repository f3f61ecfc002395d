import pytest
from prompt_toolkit.completion import CompleteEvent
from prompt_toolkit.document import Document
from pathprompt.cli_prompt import ShellPathCompleter

@pytest.fixture
def tree(tmp_path):
    (tmp_path / "setup.py").write_text("")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("")
    (tmp_path / "srv").mkdir()
    return tmp_path

def completions(completer, text):
    return list(completer.get_completions(Document(text), CompleteEvent()))

def test_completes_segment(tree):
    """Test that completions replace only the segment being typed"""
    results = completions(ShellPathCompleter(str(tree)), "sr")
    assert [c.text for c in results] == ["src/", "srv/"]
    assert all(c.start_position == -2 for c in results)
    assert [c.display_meta_text for c in results] == ["directory", "directory"]

def test_completes_nested_path(tree):
    results = completions(ShellPathCompleter(str(tree)), "src/")
    assert [c.text for c in results] == ["main.py"]
    assert results[0].start_position == 0
    assert results[0].display_meta_text == "file"

def test_directory_only(tree):
    results = completions(ShellPathCompleter(str(tree), directory_only=True), "s")
    assert [c.text for c in results] == ["src/", "srv/"]

def test_accepting_completion_keeps_typed_directory(tree):
    """Test that applying a completion to the typed text gives the candidate path"""
    for text, expected in (("sr", "src/"), ("src/", "src/main.py"), ("src/m", "src/main.py")):
        completion = completions(ShellPathCompleter(str(tree)), text)[0]
        assert text[:len(text) + completion.start_position] + completion.text == expected
