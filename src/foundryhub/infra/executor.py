"""External command execution.

Runs one process per call from an explicit argument vector (no shell), with a
wall-clock timeout, and maps failures to ExecutionFailure.
"""

import asyncio
import logging
import os
from collections.abc import Mapping, Sequence

from foundryhub.core.errors import ExecutionFailure
from foundryhub.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class CommandExecutor:
    """Runs external commands and captures their output."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout

    async def run(
        self,
        argv: Sequence[str],
        *,
        stderr_fatal: bool = False,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> str:
        """Run a command and return its trimmed stdout.

        Args:
            argv: Program and arguments, passed to the OS unchanged
            stderr_fatal: Treat any stderr output as failure, even on exit 0
            timeout: Override the default timeout (seconds)
            env: Extra environment variables for the child process

        Raises:
            ExecutionFailure: non-zero exit, fatal stderr, timeout, or the
                program could not be launched
        """
        if not argv:
            raise ValueError("argv cannot be empty")

        limit = timeout if timeout is not None else self._timeout
        program = argv[0]
        logger.debug("Executing command: %s", " ".join(argv))

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **env} if env else None,
            )
        except OSError as e:
            logger.error(
                "Failed to launch %s: %s",
                program,
                e,
                extra={"event": LogEvent.COMMAND_FAILED},
            )
            raise ExecutionFailure(f"Failed to launch {program}", str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit)
        except TimeoutError as e:
            proc.kill()
            await proc.wait()
            logger.error(
                "Command timed out after %ss: %s",
                limit,
                program,
                extra={"event": LogEvent.COMMAND_FAILED},
            )
            raise ExecutionFailure(f"{program} timed out after {limit}s") from e

        out = stdout.decode(errors="replace").strip()
        err = stderr.decode(errors="replace").strip()

        if proc.returncode != 0:
            logger.error(
                "Command exited with %s: %s",
                proc.returncode,
                err or out,
                extra={"event": LogEvent.COMMAND_FAILED},
            )
            raise ExecutionFailure(
                f"{program} exited with status {proc.returncode}", err or out
            )

        if err and stderr_fatal:
            logger.error(
                "Command stderr: %s", err, extra={"event": LogEvent.COMMAND_FAILED}
            )
            raise ExecutionFailure(f"{program} wrote to stderr", err)

        logger.debug(
            "Command succeeded: %s", program, extra={"event": LogEvent.COMMAND_EXECUTED}
        )
        return out
