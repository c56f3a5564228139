"""
DavPanel - WebDAV Restart Runner
==================================
Restarts the external WebDAV service so it picks up the saved configuration.

The actual command is environment specific (``systemctl restart webdav`` by
default) and is treated as an opaque shell command. It runs as an asyncio
subprocess, so only the request that asked for the restart waits on it.

The command is bounded by a timeout: a hung service manager cannot hold the
request open forever. On timeout the process is killed and the restart is
reported as failed.

Usage:
    runner = RestartRunner("systemctl restart webdav", timeout=30)
    result = await runner.run()     # RestartResult(output=..., stderr=...)
"""

import asyncio
from dataclasses import dataclass

from panel.errors import ExternalCommandError
from panel.log import PanelLogger


DEFAULT_RESTART_COMMAND = "systemctl restart webdav"
DEFAULT_RESTART_TIMEOUT = 30.0


@dataclass
class RestartResult:
    """Captured output of a successful restart."""
    output: str
    stderr: str


class RestartRunner:
    """
    Runs the configured restart command.

    Attributes:
        command: Shell command string.
        timeout: Max execution time in seconds.
    """

    def __init__(
        self,
        command: str = DEFAULT_RESTART_COMMAND,
        timeout: float = DEFAULT_RESTART_TIMEOUT,
        logger: PanelLogger | None = None,
    ):
        self.command = command
        self.timeout = timeout
        self.logger = logger or PanelLogger()

    async def run(self) -> RestartResult:
        """
        Execute the restart command and wait for it to finish.

        Returns:
            RestartResult with stdout and stderr exactly as produced. On failure
            the raised error carries both streams unchanged as well.

        Raises:
            ExternalCommandError: If the command cannot be started, exits
                                  non-zero, or exceeds the timeout.
        """
        self.logger.info("RESTART", f"Executing restart command: {self.command}")

        try:
            proc = await asyncio.create_subprocess_shell(
                self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalCommandError(f"Cannot start restart command: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), self.timeout)
        except asyncio.TimeoutError:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
            raise ExternalCommandError(
                f"Restart command timed out after {self.timeout:g}s"
            )

        output = stdout.decode("utf-8", errors="replace")
        err_text = stderr.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            message = err_text.strip() or f"Command failed with exit code {proc.returncode}"
            raise ExternalCommandError(message, output=output, stderr=err_text)

        if output:
            self.logger.info("RESTART", f"Restart command output: {output.strip()}")
        if err_text:
            self.logger.info("RESTART", f"Restart command stderr: {err_text.strip()}")
        return RestartResult(output=output, stderr=err_text)
