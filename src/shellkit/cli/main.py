"""CLI entrypoints for shellkit."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Final

import typer

from shellkit.config import ShellConfig, config_to_dict, create_shell, load_config, update_timeout
from shellkit.errors import CommandTimeoutError, ProcessLaunchError, ShellError
from shellkit.execution.local_exec import LocalShell
from shellkit.util.logging import configure_logging

LAUNCH_FAILURE_EXIT_CODE: Final[int] = 127

app = typer.Typer(help="Run programs and shell command lines with captured output.")


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (e.g., DEBUG, INFO, WARNING). Overrides the config file.",
    ),
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a config file or a directory containing one.",
    ),
) -> None:
    """Load configuration and set up logging."""

    try:
        config = load_config(config_path)
    except (ValueError, RuntimeError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    configure_logging(log_level or config.log_level)
    ctx.obj = config


@app.command(
    "run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
def run_command(
    ctx: typer.Context,
    program: str = typer.Argument(..., help="Program to execute."),
    args: list[str] = typer.Argument(None, help="Arguments passed to the program."),
    timeout_s: float = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait before stopping the program.",
    ),
    stream: bool = typer.Option(
        False,
        "--stream",
        help="Forward output live instead of capturing it. Ignores --timeout.",
    ),
) -> None:
    """Run a program directly, without a shell."""

    shell = _build_shell(ctx, timeout_s)
    argv = list(args or [])
    if stream:
        _execute(lambda: shell.run_streaming(program, argv))
    else:
        _execute(lambda: shell.run(program, argv))


@app.command("sh")
def shell_command(
    ctx: typer.Context,
    command_line: str = typer.Argument(..., help="Command line passed to the shell."),
    timeout_s: float = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Seconds to wait before stopping the command.",
    ),
    stream: bool = typer.Option(
        False,
        "--stream",
        help="Forward output live instead of capturing it. Ignores --timeout.",
    ),
) -> None:
    """Run a command line through the configured shell."""

    shell = _build_shell(ctx, timeout_s)
    if stream:
        _execute(lambda: shell.shell_streaming(command_line))
    else:
        _execute(lambda: shell.shell(command_line))


@app.command("show-config")
def show_config(ctx: typer.Context) -> None:
    """Print the effective configuration as JSON."""

    typer.echo(json.dumps(config_to_dict(_config(ctx)), indent=2, sort_keys=True))


def _config(ctx: typer.Context) -> ShellConfig:
    if isinstance(ctx.obj, ShellConfig):
        return ctx.obj
    return ShellConfig()


def _build_shell(ctx: typer.Context, timeout_s: float | None) -> LocalShell:
    config = _config(ctx)
    if timeout_s is not None:
        if timeout_s <= 0:
            raise typer.BadParameter("must be positive.", param_hint="--timeout")
        config = update_timeout(config, timeout_s)
    return create_shell(config)


def _execute(action: Callable[[], str | None]) -> None:
    try:
        output = action()
    except ShellError as exc:
        if exc.output:
            typer.echo(exc.output, err=True)
        if isinstance(exc, CommandTimeoutError):
            typer.echo(f"Error: {exc.program} timed out after {exc.timeout_s:g}s", err=True)
        else:
            typer.echo(f"Error: {exc.program} exited with code {exc.code}", err=True)
        raise typer.Exit(code=_exit_code(exc.code)) from exc
    except ProcessLaunchError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=LAUNCH_FAILURE_EXIT_CODE) from exc
    if output:
        typer.echo(output)


def _exit_code(code: int) -> int:
    """Map a process exit code, possibly a negative signal number, into 1..255."""

    if code < 0:
        return min(128 - code, 255)
    return code % 256 or 1
