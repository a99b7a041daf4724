"""Tests for output formatting."""

import io
import json

import pytest
from rich.console import Console

from fskit.output import OutputContext


@pytest.mark.unit
class TestOutputContextPrintJson:
    """Tests for OutputContext.print_json method."""

    def test_print_json_in_json_mode(self, capsys: pytest.CaptureFixture[str]) -> None:
        """print_json should output JSON in json mode."""
        ctx = OutputContext(console=Console(), json_mode=True)

        ctx.print_json({"path": "/tmp/data.txt", "locked": True})
        data = json.loads(capsys.readouterr().out)
        assert data == {"path": "/tmp/data.txt", "locked": True}

    def test_print_json_suppressed_in_normal_mode(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """print_json should be suppressed in normal mode."""
        ctx = OutputContext(console=Console(), json_mode=False)

        ctx.print_json({"locked": True})
        assert capsys.readouterr().out == ""


@pytest.mark.unit
class TestOutputContextResult:
    """Tests for OutputContext.result method."""

    def test_result_plain_line(self, capsys: pytest.CaptureFixture[str]) -> None:
        """result prints the bare message for shell capture."""
        ctx = OutputContext(console=Console(), json_mode=False)

        ctx.result({"token": "ab12"}, "ab12")
        assert capsys.readouterr().out == "ab12\n"

    def test_result_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        """result prints the data in json mode."""
        ctx = OutputContext(console=Console(), json_mode=True)

        ctx.result({"token": "ab12"}, "ab12")
        assert json.loads(capsys.readouterr().out) == {"token": "ab12"}


@pytest.mark.unit
class TestOutputContextError:
    """Tests for OutputContext.error method."""

    def test_error_in_normal_mode(self) -> None:
        """error should go to the console with an Error prefix."""
        output = io.StringIO()
        ctx = OutputContext(console=Console(file=output, force_terminal=False))

        ctx.error("lock is held")
        assert "Error: lock is held" in output.getvalue()

    def test_error_in_json_mode(self, capsys: pytest.CaptureFixture[str]) -> None:
        """error should output JSON with the extra data in json mode."""
        ctx = OutputContext(console=Console(), json_mode=True)

        ctx.error("lock is held", {"path": "/tmp/data.txt"})
        data = json.loads(capsys.readouterr().out)
        assert data == {"error": "lock is held", "path": "/tmp/data.txt"}
