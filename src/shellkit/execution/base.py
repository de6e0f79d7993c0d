"""Execution interface shared by real and mock shells."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Final, Sequence

DEFAULT_SHELL: Final[str] = "/bin/bash"


def format_invocation(program: str, args: Sequence[str] = ()) -> str:
    """Return the normalized string form of a direct program call.

    Arguments are joined with single spaces and kept verbatim, so whitespace
    inside an argument is preserved. A call without arguments is just the
    program.
    """

    if not args:
        return program
    return f"{program} {' '.join(args)}"


class Shell(ABC):
    """Abstract base class for command execution backends.

    Attributes:
        shell_binary: Shell used by ``shell`` and ``shell_streaming``, invoked
            as ``<shell_binary> -c <command_line>``.
    """

    shell_binary: str = DEFAULT_SHELL

    @abstractmethod
    def run(self, program: str, args: Sequence[str] = ()) -> str:
        """Execute a program directly, without shell interpretation.

        Args:
            program: Path of the program to execute.
            args: Arguments passed to the program as-is.

        Returns:
            Combined stdout and stderr output with surrounding whitespace removed.

        Raises:
            ShellError: If the program exits with a non-zero status.
            ProcessLaunchError: If the program could not be started.
        """

    @abstractmethod
    def run_streaming(self, program: str, args: Sequence[str] = ()) -> None:
        """Execute a program, forwarding its output live instead of capturing it.

        Args:
            program: Path of the program to execute.
            args: Arguments passed to the program as-is.

        Raises:
            ShellError: If the program exits with a non-zero status.
            ProcessLaunchError: If the program could not be started.
        """

    def shell(self, command_line: str) -> str:
        """Run a command line through the shell binary and return its output."""

        return self.run(self.shell_binary, ["-c", command_line])

    def shell_streaming(self, command_line: str) -> None:
        """Run a command line through the shell binary, streaming its output."""

        self.run_streaming(self.shell_binary, ["-c", command_line])
