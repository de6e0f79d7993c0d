"""Error types shared by every shell backend."""

from __future__ import annotations


class ShellKitError(RuntimeError):
    """Base class for errors raised by shellkit."""


class ProcessLaunchError(ShellKitError):
    """Raised when a process could not be started at all.

    Attributes:
        program: The program that was requested.
        reason: Description of the underlying operating-system failure.
    """

    def __init__(self, program: str, reason: str) -> None:
        self.program = program
        self.reason = reason
        super().__init__(f"Unable to start {program}: {reason}")

    def __reduce__(self) -> tuple[type, tuple[str, str]]:
        return self.__class__, (self.program, self.reason)


class ShellError(ShellKitError):
    """Raised when a command ran and finished unsuccessfully.

    Attributes:
        program: The program or shell binary that failed.
        code: Exit code reported for the command. Signal termination is
            reported as the negative signal number.
        output: Combined stdout and stderr output, trimmed.
    """

    def __init__(self, program: str, code: int, output: str = "") -> None:
        self.program = program
        self.code = code
        self.output = output
        message = f"{program} failed with exit code {code}"
        if output:
            message = f"{message}: {output}"
        super().__init__(message)

    def __reduce__(self) -> tuple[type, tuple[object, ...]]:
        return self.__class__, (self.program, self.code, self.output)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(program={self.program!r}, "
            f"code={self.code!r}, output={self.output!r})"
        )


class CommandTimeoutError(ShellError):
    """Raised when a command is stopped because its timeout elapsed."""

    def __init__(self, program: str, code: int, output: str, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        super().__init__(program, code, output)

    def __reduce__(self) -> tuple[type, tuple[object, ...]]:
        return self.__class__, (self.program, self.code, self.output, self.timeout_s)

    def __str__(self) -> str:
        message = f"{self.program} timed out after {self.timeout_s:g}s"
        if self.output:
            message = f"{message}: {self.output}"
        return message
