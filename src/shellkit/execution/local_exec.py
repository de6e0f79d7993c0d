"""Local execution engine implementation."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import threading
import time
from typing import IO, Any, Final, Sequence

from shellkit.errors import CommandTimeoutError, ProcessLaunchError, ShellError
from shellkit.execution.base import DEFAULT_SHELL, Shell, format_invocation
from shellkit.util.logging import get_logger
from shellkit.util.observability import ObservabilityManager

DEFAULT_KILL_GRACE_S: Final[float] = 2.0
_READ_CHUNK_SIZE: Final[int] = 64 * 1024


class LocalShell(Shell):
    """Execute commands as real processes on the local host.

    Captured calls merge stderr into stdout and drain the pipe on a reader
    thread while the process runs, so output larger than the pipe buffer is
    never lost or truncated.
    """

    def __init__(
        self,
        timeout_s: float | None = None,
        *,
        shell_binary: str = DEFAULT_SHELL,
        kill_grace_s: float = DEFAULT_KILL_GRACE_S,
        observability: ObservabilityManager | None = None,
    ) -> None:
        """Initialize the shell.

        Args:
            timeout_s: Optional timeout in seconds for captured calls. None
                waits indefinitely. Streaming calls never time out.
            shell_binary: Shell used for command lines.
            kill_grace_s: Seconds to wait after SIGTERM before sending SIGKILL.
            observability: Optional manager receiving command events and metrics.
        """

        if timeout_s is not None and timeout_s <= 0:
            raise ValueError("timeout_s must be positive when provided.")
        if kill_grace_s < 0:
            raise ValueError("kill_grace_s must not be negative.")
        self.shell_binary = shell_binary
        self._timeout_s = timeout_s
        self._kill_grace_s = kill_grace_s
        self._observability = observability
        self._logger = get_logger(self.__class__.__name__)

    @property
    def timeout_s(self) -> float | None:
        """Timeout applied to captured calls, if any."""

        return self._timeout_s

    def run(self, program: str, args: Sequence[str] = ()) -> str:
        """Run a program and capture its combined output.

        Args:
            program: Path of the program to execute.
            args: Arguments passed to the program as-is.

        Returns:
            The merged stdout and stderr text, stripped of surrounding whitespace.

        Raises:
            ShellError: If the program exits with a non-zero status.
            CommandTimeoutError: If the configured timeout elapses first.
            ProcessLaunchError: If the program could not be started.
        """

        invocation = format_invocation(program, args)
        self._logger.debug("Running command: %s", invocation)
        start = time.monotonic()
        # With a timeout the child leads its own process group so anything it
        # forks can be signalled along with it.
        group = self._timeout_s is not None
        process = self._spawn(program, args, capture=True, new_session=group)

        chunks: list[bytes] = []
        reader = threading.Thread(
            target=_drain,
            args=(process.stdout, chunks),
            name="shellkit-output-reader",
            daemon=True,
        )
        reader.start()

        deadline = None if self._timeout_s is None else start + self._timeout_s
        timed_out = False
        try:
            returncode = process.wait(timeout=self._timeout_s)
        except subprocess.TimeoutExpired:
            timed_out = True
            self._logger.warning(
                "Command exceeded timeout of %ss, terminating: %s",
                self._timeout_s,
                invocation,
            )
            returncode = self._terminate(process, group=group)
        except KeyboardInterrupt:
            self._terminate(process, group=group)
            reader.join()
            raise

        if deadline is not None:
            # Background children of the command keep the output pipe open
            # after it exits; the timeout bounds them too.
            reader.join(timeout=max(0.0, deadline - time.monotonic()))
            if reader.is_alive():
                if not timed_out:
                    timed_out = True
                    self._logger.warning(
                        "Background processes held output past timeout of %ss, killing: %s",
                        self._timeout_s,
                        invocation,
                    )
                self._send_signal(process, signal.SIGKILL, group=True)
        reader.join()

        duration = time.monotonic() - start
        output = _decode(chunks).strip()
        self._logger.info(
            "Command finished with exit code %s in %.2fs.",
            returncode,
            duration,
        )
        self._record(invocation, returncode, duration, timed_out)

        if timed_out and self._timeout_s is not None:
            raise CommandTimeoutError(program, returncode, output, self._timeout_s)
        if returncode != 0:
            raise ShellError(program, returncode, output)
        return output

    def run_streaming(self, program: str, args: Sequence[str] = ()) -> None:
        """Run a program with its output forwarded to this process's stdout/stderr.

        Args:
            program: Path of the program to execute.
            args: Arguments passed to the program as-is.

        Raises:
            ShellError: If the program exits with a non-zero status. The
                error output is empty because nothing is captured.
            ProcessLaunchError: If the program could not be started.
        """

        invocation = format_invocation(program, args)
        self._logger.debug("Streaming command: %s", invocation)
        sys.stdout.flush()
        sys.stderr.flush()
        process = self._spawn(program, args, capture=False, new_session=False)
        try:
            returncode = process.wait()
        except KeyboardInterrupt:
            self._terminate(process, group=False)
            raise
        self._logger.info("Streaming command finished with exit code %s.", returncode)
        if returncode != 0:
            raise ShellError(program, returncode, "")

    def _spawn(
        self,
        program: str,
        args: Sequence[str],
        *,
        capture: bool,
        new_session: bool,
    ) -> subprocess.Popen[bytes]:
        command = [program, *args]
        try:
            if capture:
                return subprocess.Popen(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    start_new_session=new_session,
                )
            return subprocess.Popen(command, start_new_session=new_session)
        except OSError as exc:
            raise ProcessLaunchError(program, exc.strerror or str(exc)) from exc

    def _terminate(self, process: subprocess.Popen[bytes], *, group: bool) -> int:
        """Stop a running process, escalating from SIGTERM to SIGKILL."""

        self._send_signal(process, signal.SIGTERM, group=group)
        try:
            returncode = process.wait(timeout=self._kill_grace_s)
        except subprocess.TimeoutExpired:
            self._logger.warning(
                "Process %s ignored SIGTERM for %ss, killing.",
                process.pid,
                self._kill_grace_s,
            )
            self._send_signal(process, signal.SIGKILL, group=group)
            returncode = process.wait()
        if group:
            # Children forked by the process may still hold the output pipe open.
            self._send_signal(process, signal.SIGKILL, group=True)
        return returncode

    def _send_signal(
        self,
        process: subprocess.Popen[bytes],
        sig: signal.Signals,
        *,
        group: bool,
    ) -> None:
        try:
            if group:
                os.killpg(process.pid, sig)
            else:
                process.send_signal(sig)
        except ProcessLookupError:
            self._logger.debug("Process %s already exited.", process.pid)

    def _record(self, invocation: str, returncode: int, duration: float, timed_out: bool) -> None:
        if self._observability is None:
            return
        metrics = self._observability.metrics
        metrics.increment("commands.total")
        metrics.record_duration("command.duration", duration)
        payload: dict[str, Any] = {
            "command": invocation,
            "exit_code": returncode,
            "duration_s": duration,
        }
        context = {"shell_binary": self.shell_binary}
        if timed_out:
            metrics.increment("commands.timed_out")
            payload["timeout_s"] = self._timeout_s
            self._observability.log_event(
                "command.timed_out", payload, level="WARNING", context=context
            )
        elif returncode != 0:
            metrics.increment("commands.failed")
            self._observability.log_event("command.failed", payload, context=context)
        else:
            self._observability.log_event("command.finished", payload, context=context)


def _drain(stream: IO[bytes] | None, chunks: list[bytes]) -> None:
    """Read a stream to end-of-file, appending each chunk as it arrives."""

    if stream is None:
        return
    with stream:
        while True:
            chunk = stream.read1(_READ_CHUNK_SIZE)  # type: ignore[attr-defined]
            if not chunk:
                break
            chunks.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")
