"""ProcessRunner: spawn an external test runner and capture its output.

Streams the child's stdout and stderr to our own streams as chunks
arrive, so an operator can watch the run, while buffering both for the
parsers. A non-zero exit is returned as data; only a failure to start
the process at all is raised.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TextIO

from splitcheck.errors import SplitcheckError
from splitcheck.models.result import RunResult

log = logging.getLogger(__name__)

_CHUNK_SIZE = 4096


class SpawnError(SplitcheckError):
    """Raised when the runner executable cannot be started.

    Attributes:
        command: The argument vector that failed to start.
        cwd: Working directory the process was started in.
        reason: OS-level reason (e.g. "No such file or directory").
    """

    def __init__(self, command: Sequence[str], cwd: Path, reason: str) -> None:
        self.command = list(command)
        self.cwd = cwd
        self.reason = reason
        super().__init__(f"Could not start {self.command[0]!r} in {cwd}: {reason}")


class ProcessRunner:
    """Runs one external command at a time and returns a RunResult.

    Args:
        timeout: Seconds before the process group is killed and the run
            is reported with ``timed_out=True``. None waits forever.
        echo: Mirror the child's output to our stdout/stderr.
        stdout: Stream for mirrored stdout. Defaults to sys.stdout at
            call time.
        stderr: Stream for mirrored stderr. Defaults to sys.stderr at
            call time.
    """

    def __init__(
        self,
        timeout: float | None = None,
        echo: bool = True,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.timeout = timeout
        self.echo = echo
        self._stdout = stdout
        self._stderr = stderr

    async def run(
        self,
        command: Sequence[str],
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> RunResult:
        """Run command in cwd and wait for it to exit.

        Args:
            command: Argument vector; no shell is involved.
            cwd: Working directory for the child.
            env: Variables added on top of the inherited environment.

        Returns:
            RunResult with exit code, both streams, and combined output.

        Raises:
            SpawnError: If the process could not be started.
        """
        if not command:
            raise ValueError("command must not be empty")

        merged_env = {**os.environ, **(env or {})}
        log.info("Running %s (cwd=%s)", " ".join(command), cwd)

        start = time.perf_counter()
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=merged_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=os.name == "posix",
            )
        except OSError as exc:
            raise SpawnError(command, cwd, exc.strerror or str(exc)) from exc

        stdout_parts: list[str] = []
        stderr_parts: list[str] = []
        combined: list[str] = []

        echo_out = (self._stdout or sys.stdout) if self.echo else None
        echo_err = (self._stderr or sys.stderr) if self.echo else None

        assert proc.stdout is not None and proc.stderr is not None
        pumps = asyncio.gather(
            _pump(proc.stdout, stdout_parts, combined, echo_out),
            _pump(proc.stderr, stderr_parts, combined, echo_err),
        )

        timed_out = False
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.timeout)
        except TimeoutError:
            timed_out = True
            log.warning(
                "%s exceeded %.0fs timeout; killing process group",
                command[0],
                self.timeout,
            )
            _kill(proc)
            await proc.wait()

        await pumps
        duration = time.perf_counter() - start

        exit_code = proc.returncode if proc.returncode is not None else -1
        log.info("%s exited with %d after %.2fs", command[0], exit_code, duration)

        return RunResult(
            command=list(command),
            exit_code=exit_code,
            stdout="".join(stdout_parts),
            stderr="".join(stderr_parts),
            combined_output="".join(combined),
            duration_seconds=duration,
            timed_out=timed_out,
        )


async def _pump(
    stream: asyncio.StreamReader,
    parts: list[str],
    combined: list[str],
    echo_to: TextIO | None,
) -> None:
    """Drain one pipe, buffering and optionally mirroring decoded text."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        text = decoder.decode(chunk, final=not chunk)
        if text:
            parts.append(text)
            combined.append(text)
            if echo_to is not None:
                echo_to.write(text)
                echo_to.flush()
        if not chunk:
            return


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        if os.name == "posix":
            # Runners like npx fork node; kill the whole session.
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        log.debug("Process %d exited before it could be killed", proc.pid)
