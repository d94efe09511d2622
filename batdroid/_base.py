"""Abstract base for command runners."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

# Screen recordings and large dumps can be tens of megabytes.
MAX_OUTPUT_BYTES = 50 * 1024 * 1024


class CommandError(RuntimeError):
    """An external command exited non-zero, timed out, or could not start."""


def run_command(argv: list[str], *, timeout: float, binary: bool = False) -> str | bytes:
    """Run ``argv`` to completion and return its stdout.

    Raises:
        CommandError: On a non-zero exit, a timeout, or a missing binary.
            The message carries the command line and stderr (or the reason).
    """
    cmdline = " ".join(argv)
    logger.debug("running %s (timeout %.1fs)", cmdline, timeout)
    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise CommandError(f"{cmdline} failed: timed out after {timeout:g}s") from None
    except OSError as exc:
        raise CommandError(f"{cmdline} failed: {exc}") from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        reason = stderr.strip() or f"exit status {result.returncode}"
        raise CommandError(f"{cmdline} failed: {reason}")

    stdout = result.stdout
    if len(stdout) > MAX_OUTPUT_BYTES:
        raise CommandError(f"{cmdline} failed: output exceeded {MAX_OUTPUT_BYTES} bytes")
    if binary:
        return stdout
    return stdout.decode("utf-8", errors="replace")


class CommandRunner(ABC):
    """Interface for running device-control commands.

    The hierarchy capture, device queries and actions only talk to the
    device through this interface, so tests can substitute an in-memory
    runner that returns canned output.
    """

    # ---- identity --------------------------------------------------------

    @property
    @abstractmethod
    def device_id(self) -> str | None:
        """Return the serial of the device commands are bound to, if any."""
        ...

    # ---- execution -------------------------------------------------------

    @abstractmethod
    def run(self, args: list[str], *, timeout: float | None = None) -> str:
        """Run a command and return its full text output.

        Args:
            args: Arguments after the tool name (e.g. ``["shell", "wm", "size"]``).
            timeout: Seconds before the command is killed. ``None`` uses the
                     runner's default.

        Raises:
            CommandError: If the command fails or times out.
        """
        ...

    @abstractmethod
    def run_raw(self, args: list[str], *, timeout: float | None = None) -> bytes:
        """Run a command and return its output as bytes (screenshots, video)."""
        ...
