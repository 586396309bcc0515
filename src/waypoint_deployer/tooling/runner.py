"""Execution of the Waypoint CLI as a subprocess."""

from __future__ import annotations

import os
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, TextIO

from ..utils.logging import get_logger, mask, mask_secret

logger = get_logger(__name__)

OutputListener = Callable[[str], None]


class ToolCommandError(RuntimeError):
    """Raised when a Waypoint housekeeping command fails."""

    def __init__(self, command: Sequence[str], exit_code: int, stderr: str, message: Optional[str] = None) -> None:
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            message or f"Command {' '.join(self.command)} failed with code {exit_code}: {stderr}"
        )


class ToolNotFoundError(RuntimeError):
    """Raised when the Waypoint binary cannot be launched."""


@dataclass
class ProcessResult:
    """Result of one Waypoint invocation."""

    command: List[str]
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class ToolEnvironment:
    """Connection settings every Waypoint subprocess of a run must see."""

    server_address: str
    server_token: str
    tls: bool = True
    tls_skip_verify: bool = True

    def materialize(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        env = dict(os.environ if base is None else base)
        env["WAYPOINT_SERVER_ADDR"] = self.server_address
        env["WAYPOINT_SERVER_TOKEN"] = self.server_token
        if self.tls:
            env["WAYPOINT_SERVER_TLS"] = "1"
        if self.tls_skip_verify:
            env["WAYPOINT_SERVER_TLS_SKIP_VERIFY"] = "1"
        return env


class WaypointRunner:
    """
    Runs `<binary> <subcommand> [args...]` and captures the outcome.

    Output is streamed line by line: every stdout line is echoed to
    `output` (unless silent), handed to the caller's listener and appended
    to the buffer returned in the ProcessResult, in that order. A non-zero
    exit is returned, never raised.
    """

    def __init__(
        self,
        environment: ToolEnvironment,
        binary: str = "waypoint",
        *,
        output: Optional[TextIO] = None,
        error_output: Optional[TextIO] = None,
        working_dir: Optional[str] = None,
    ) -> None:
        self.environment = environment
        self.binary = binary
        self.output = output
        self.error_output = error_output
        self.working_dir = working_dir
        mask_secret(environment.server_token)

    def invoke(
        self,
        subcommand: str,
        args: Sequence[str] = (),
        *,
        silent: bool = False,
        on_stdout: Optional[OutputListener] = None,
        on_stderr: Optional[OutputListener] = None,
    ) -> ProcessResult:
        command = [self.binary, subcommand, *args]
        logger.info("Running: %s", mask(" ".join(command)))

        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=self.working_dir,
                env=self.environment.materialize(),
            )
        except OSError as exc:
            raise ToolNotFoundError(f"Unable to run {self.binary!r}: {exc}") from exc

        stdout_chunks: List[str] = []
        stderr_chunks: List[str] = []

        # stderr is drained on a helper thread so neither pipe can fill up
        stderr_reader = threading.Thread(
            target=self._pump,
            args=(process.stderr, stderr_chunks, self._stderr_stream(), silent, on_stderr),
            daemon=True,
        )
        stderr_reader.start()
        try:
            self._pump(process.stdout, stdout_chunks, self._stdout_stream(), silent, on_stdout)
        except BaseException:
            process.kill()
            process.stdout.close()
            raise
        finally:
            process.wait()
            stderr_reader.join()

        result = ProcessResult(
            command=command,
            exit_code=process.returncode,
            stdout="".join(stdout_chunks),
            stderr="".join(stderr_chunks),
        )
        if not result.ok:
            logger.warning("%s %s exited with code %d", self.binary, subcommand, result.exit_code)
        return result

    def validate_installation(self) -> None:
        """Check that the binary runs and can report on itself."""
        logger.info("Validating Waypoint installation")
        result = self.invoke("version", silent=True)
        if not result.ok:
            raise ToolCommandError(
                result.command,
                result.exit_code,
                result.stderr,
                message=(
                    f"Attempt to output Waypoint version failed (exit code {result.exit_code}). "
                    "Waypoint may not be installed; install it before running this action."
                ),
            )

        # TODO: switch to `waypoint status` once the CLI ships it
        status = self.invoke("version", silent=True)
        if not status.ok:
            raise ToolCommandError(
                status.command,
                status.exit_code,
                status.stderr,
                message=(
                    "The 'waypoint status' command failed. This could mean that Waypoint "
                    "is misconfigured. Below is the output returned from Waypoint:\n\n"
                    f"{status.stderr}"
                ),
            )

    def create_context(self, name: str = "action") -> None:
        """Create and select a Waypoint CLI context for the configured server."""
        logger.info("Creating Waypoint context configuration")
        result = self.invoke(
            "context",
            [
                "create",
                "-server-addr",
                self.environment.server_address,
                "-server-auth-token",
                self.environment.server_token,
                "-server-tls-skip-verify",
                "-set-default",
                "-server-require-auth",
                name,
            ],
        )
        if not result.ok:
            raise ToolCommandError(
                result.command,
                result.exit_code,
                result.stderr,
                message="Failed to set up a context for Waypoint to communicate with the server.",
            )

    def _stdout_stream(self) -> TextIO:
        return self.output or sys.stdout

    def _stderr_stream(self) -> TextIO:
        return self.error_output or sys.stderr

    @staticmethod
    def _pump(
        pipe: TextIO,
        chunks: List[str],
        echo: TextIO,
        silent: bool,
        listener: Optional[OutputListener],
    ) -> None:
        for line in pipe:
            if not silent:
                echo.write(line)
                echo.flush()
            if listener is not None:
                listener(line)
            chunks.append(line)
        pipe.close()
