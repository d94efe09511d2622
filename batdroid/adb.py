"""ADB-backed command runner."""

from __future__ import annotations

import os

from batdroid._base import CommandRunner, run_command

DEFAULT_TIMEOUT = 15.0


class AdbRunner(CommandRunner):
    """Run ``adb`` commands, optionally pinned to one device with ``-s``.

    Example::

        runner = AdbRunner().for_device("emulator-5554")
        size = runner.run(["shell", "wm", "size"])
    """

    def __init__(
        self,
        device_id: str | None = None,
        *,
        adb_path: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._device_id = device_id
        self._adb_path = adb_path or os.environ.get("BATDROID_ADB", "adb")
        if timeout is None:
            timeout = float(os.environ.get("BATDROID_ADB_TIMEOUT", DEFAULT_TIMEOUT))
        self._timeout = float(timeout)

    @property
    def device_id(self) -> str | None:
        return self._device_id

    @property
    def timeout(self) -> float:
        return self._timeout

    def for_device(self, device_id: str | None) -> AdbRunner:
        """Return a runner with the same settings bound to ``device_id``."""
        return AdbRunner(device_id, adb_path=self._adb_path, timeout=self._timeout)

    def _argv(self, args: list[str]) -> list[str]:
        if self._device_id:
            return [self._adb_path, "-s", self._device_id, *args]
        return [self._adb_path, *args]

    def _effective_timeout(self, timeout: float | None) -> float:
        return self._timeout if timeout is None else timeout

    def run(self, args: list[str], *, timeout: float | None = None) -> str:
        return run_command(self._argv(args), timeout=self._effective_timeout(timeout))

    def run_raw(self, args: list[str], *, timeout: float | None = None) -> bytes:
        return run_command(
            self._argv(args), timeout=self._effective_timeout(timeout), binary=True
        )
