"""Unit tests for bindery.cli.output."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from bindery.cli import output


@pytest.fixture
def plain_console() -> Generator[None, None, None]:
    """Swap in a colorless console for the duration of a test."""
    original_console = output.console
    output.console = output.create_console(no_color=True)
    try:
        yield
    finally:
        output.console = original_console


class TestCreateConsole:
    def test_no_color(self) -> None:
        """no_color=True disables colors."""
        assert output.create_console(no_color=True).no_color is True


@pytest.mark.usefixtures("plain_console")
class TestMessages:
    """Tests for message helpers."""

    def test_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.success("Provisioned 2 target(s)")

        captured = capsys.readouterr()
        assert "✓" in captured.out
        assert "Provisioned 2 target(s)" in captured.out

    def test_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.error("Can not get runtime releases")

        captured = capsys.readouterr()
        assert "✗" in captured.out
        assert "Can not get runtime releases" in captured.out

    def test_warning(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.warning("1 of 2 target(s) were not provisioned")

        assert "⚠" in capsys.readouterr().out

    def test_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        output.info("binDir=/work/app/dist-native")

        assert "binDir=/work/app/dist-native" in capsys.readouterr().out


class TestSetNoColor:
    def test_replaces_console(self) -> None:
        """set_no_color swaps the module console."""
        original_console = output.console
        try:
            output.set_no_color(True)
            assert output.console is not original_console
            assert output.console.no_color is True
        finally:
            output.console = original_console
