from __future__ import annotations

import json
import sys
from pathlib import Path

from typer.testing import CliRunner

from shellkit.cli.main import app
from shellkit.errors import ShellError


def test_cli_run_prints_captured_output() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "/bin/echo", "hello", "world"])

    assert result.exit_code == 0
    assert result.output.strip() == "hello world"


def test_cli_run_passes_dashed_arguments_to_program() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "/bin/echo", "-n", "--not-an-option"])

    assert result.exit_code == 0
    assert "--not-an-option" in result.output


def test_cli_sh_runs_through_shell() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["sh", "echo one | tr a-z A-Z"])

    assert result.exit_code == 0
    assert result.output.strip() == "ONE"


def test_cli_sh_failure_uses_command_exit_code() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["sh", "echo broken >&2; exit 3"])

    assert result.exit_code == 3
    assert "broken" in result.output
    assert "exited with code 3" in result.output


def test_cli_missing_program_exits_127() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "/non/existent/program"])

    assert result.exit_code == 127
    assert "Unable to start" in result.output


def test_cli_timeout_option_stops_command() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["sh", "--timeout", "0.5", "echo waiting; sleep 30"])

    assert result.exit_code != 0
    assert "waiting" in result.output
    assert "timed out" in result.output


def test_cli_rejects_non_positive_timeout() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["sh", "--timeout", "0", "true"])

    assert result.exit_code == 2


def test_cli_stream_option_uses_streaming_call(monkeypatch: object) -> None:
    runner = CliRunner()
    captured: dict[str, object] = {}

    def fake_shell_streaming(self: object, command_line: str) -> None:
        captured["command_line"] = command_line

    def fake_shell(self: object, command_line: str) -> str:
        raise AssertionError("Captured call should not be used with --stream")

    monkeypatch.setattr("shellkit.execution.local_exec.LocalShell.shell_streaming", fake_shell_streaming)
    monkeypatch.setattr("shellkit.execution.local_exec.LocalShell.shell", fake_shell)

    result = runner.invoke(app, ["sh", "--stream", "make all"])

    assert result.exit_code == 0
    assert captured["command_line"] == "make all"


def test_cli_signal_exit_code_is_mapped(monkeypatch: object) -> None:
    runner = CliRunner()

    def fake_run(self: object, program: str, args: object = ()) -> str:
        raise ShellError(program, -9, "")

    monkeypatch.setattr("shellkit.execution.local_exec.LocalShell.run", fake_run)

    result = runner.invoke(app, ["run", sys.executable])

    assert result.exit_code == 137


def test_cli_show_config_reads_config_file(tmp_path: Path) -> None:
    runner = CliRunner()
    (tmp_path / "shellkit.yaml").write_text(
        '{"shell_binary": "/bin/sh", "timeout_s": 9}',
        encoding="utf-8",
    )

    result = runner.invoke(app, ["--config", str(tmp_path), "show-config"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["shell_binary"] == "/bin/sh"
    assert data["timeout_s"] == 9


def test_cli_invalid_config_exits_with_error(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = tmp_path / "shellkit.yaml"
    config_path.write_text('{"timeout_s": -1}', encoding="utf-8")

    result = runner.invoke(app, ["--config", str(config_path), "show-config"])

    assert result.exit_code == 1
    assert "Error:" in result.output
