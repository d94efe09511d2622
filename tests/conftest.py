"""Shared fixtures: an in-memory command runner standing in for adb."""

from __future__ import annotations

from typing import Callable

import pytest

from batdroid._base import CommandRunner


class FakeRunner(CommandRunner):
    """Returns canned output keyed by the argument list and records every call.

    A response may be a string, bytes, or an exception instance to raise.
    Unknown commands return an empty string.
    """

    def __init__(self, responses: dict | None = None, *, device_id: str | None = "emulator-5554"):
        self._device_id = device_id
        self.responses: dict[tuple[str, ...], object] = {
            tuple(k.split()) if isinstance(k, str) else tuple(k): v
            for k, v in (responses or {}).items()
        }
        self.calls: list[tuple[tuple[str, ...], float | None]] = []

    @property
    def device_id(self) -> str | None:
        return self._device_id

    def _respond(self, args: list[str], timeout: float | None) -> object:
        key = tuple(args)
        self.calls.append((key, timeout))
        response = self.responses.get(key, "")
        if isinstance(response, Exception):
            raise response
        return response

    def run(self, args: list[str], *, timeout: float | None = None) -> str:
        return self._respond(args, timeout)

    def run_raw(self, args: list[str], *, timeout: float | None = None) -> bytes:
        return self._respond(args, timeout)

    def commands(self) -> list[str]:
        return [" ".join(args) for args, _ in self.calls]


@pytest.fixture
def fake_runner() -> Callable[..., FakeRunner]:
    """Factory fixture: ``fake_runner({"shell wm size": "Physical size: 1080x2400"})``."""
    return FakeRunner
