"""Unit tests for CLI console module."""

from rich.console import Console
from rich.table import Table

from cli.console import console, create_table, print_error, print_panel, print_success


class TestConsole:
    """Tests for the console helpers."""

    def test_console_is_rich_console(self):
        """console should be a rich Console."""
        assert isinstance(console, Console)

    def test_create_table_returns_rich_table(self):
        """create_table should return a rich Table with the title."""
        table = create_table("Test Table")
        assert isinstance(table, Table)
        assert table.title == "Test Table"

    def test_markup_in_messages_is_literal(self, capsys):
        """Bracketed text in messages is printed, not parsed as markup."""
        print_error("pattern [a-z]+ and [/bold] stay literal")
        out = capsys.readouterr().out
        assert "[a-z]+" in out
        assert "[/bold]" in out

    def test_print_success_and_panel(self, capsys):
        """Success lines and panels reach stdout."""
        print_success("done")
        print_panel("Title", "body [x]")
        out = capsys.readouterr().out
        assert "done" in out
        assert "body [x]" in out
