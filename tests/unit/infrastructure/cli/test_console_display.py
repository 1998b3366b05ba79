import pytest
from unittest.mock import MagicMock

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pocketcache.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()


@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    return ConsoleDisplay(console=mock_console)


def _printed(mock_console: MagicMock):
    mock_console.print.assert_called_once()
    args, _ = mock_console.print.call_args
    return args[0]


def test_display_output_plain(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Values without a title are printed as plain text."""
    console_display.display_output("42")
    printed = _printed(mock_console)
    assert isinstance(printed, Text)
    assert printed.plain == "42"


def test_display_output_with_title(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_output("85/100", title="Cache health")
    printed = _printed(mock_console)
    assert isinstance(printed, Panel)
    assert "Cache health" in printed.title
    assert printed.renderable.plain == "85/100"


@pytest.mark.parametrize("method, label, border", [
    ("display_error", "Error", "red"),
    ("display_info", "Info", "blue"),
    ("display_warning", "Warning", "yellow"),
])
def test_message_panels(console_display: ConsoleDisplay, mock_console: MagicMock, method, label, border):
    getattr(console_display, method)("Something happened")
    printed = _printed(mock_console)
    assert isinstance(printed, Panel)
    assert label in printed.title
    assert printed.border_style == border
    assert printed.renderable.plain == "Something happened"


def test_display_table(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_table("Keys", ["Key", "TTL"], [("a", -1), ("b", 500)])
    printed = _printed(mock_console)
    assert isinstance(printed, Table)
    assert printed.title == "Keys"
    assert [c.header for c in printed.columns] == ["Key", "TTL"]
    assert printed.row_count == 2
    assert list(printed.columns[1].cells) == ["-1", "500"]
