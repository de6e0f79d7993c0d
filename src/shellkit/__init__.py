"""Run external programs and shell command lines behind a mockable interface."""

from shellkit.errors import CommandTimeoutError, ProcessLaunchError, ShellError, ShellKitError
from shellkit.execution import DEFAULT_SHELL, LocalShell, Shell

__all__ = [
    "CommandTimeoutError",
    "DEFAULT_SHELL",
    "LocalShell",
    "ProcessLaunchError",
    "Shell",
    "ShellError",
    "ShellKitError",
]
