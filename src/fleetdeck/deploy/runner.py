"""Runners executing external commands for deployment tasks."""

from __future__ import annotations

import asyncio
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import click

from fleetdeck.lib.errors import CommandError, DeploymentError
from fleetdeck.lib.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a successfully executed command.

    Attributes:
        command: Executed argv
        returncode: Exit status (always 0 for results that are returned)
        stdout: Captured standard output, empty when streamed to the terminal
    """

    command: tuple[str, ...]
    returncode: int = 0
    stdout: str = ""


class BaseRunner(ABC):
    """Abstract base class for command runners."""

    @abstractmethod
    async def run(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        operation: str = "command",
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            command: argv to execute
            cwd: Working directory for the process
            capture: Capture output instead of streaming it to the terminal
            operation: Task name reported in errors

        Returns:
            CommandResult for a zero exit status

        Raises:
            CommandError: If the command exits with a non-zero status
            DeploymentError: If the command cannot be started
        """


class CommandRunner(BaseRunner):
    """Runs commands as subprocesses on the asyncio event loop.

    Commands are executed directly (no shell). There is no timeout; the
    lifetime of each command is bounded only by the external process.
    """

    async def run(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        operation: str = "command",
    ) -> CommandResult:
        """Run a command, raising CommandError on a non-zero exit."""
        logger.info(f"$ {shlex.join(command)}")
        if cwd is not None:
            logger.debug(f"  (in {cwd})")

        pipe = asyncio.subprocess.PIPE if capture else None
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                stdout=pipe,
                stderr=pipe,
            )
        except OSError as exc:
            raise DeploymentError(
                operation=operation,
                message=f"Failed to start `{command[0]}`: {exc}",
            ) from exc

        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""

        if process.returncode != 0:
            raise CommandError(
                command=command,
                returncode=process.returncode or 1,
                stdout=stdout,
                stderr=stderr,
                operation=operation,
            )

        return CommandResult(command=tuple(command), returncode=0, stdout=stdout)


class DryRunRunner(BaseRunner):
    """Prints commands instead of executing them.

    Every command "succeeds" with empty output, so tag verification always
    passes in a dry run.
    """

    def __init__(self) -> None:
        self.commands: list[tuple[str, ...]] = []

    async def run(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        operation: str = "command",
    ) -> CommandResult:
        """Record and echo the command without running it."""
        self.commands.append(tuple(command))
        location = f" (in {cwd})" if cwd is not None else ""
        click.secho(f"[DRY RUN] {shlex.join(command)}{location}", fg="yellow")
        return CommandResult(command=tuple(command))
