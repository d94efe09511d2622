"""Device discovery, selection and foreground-activity lookup."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Literal

from batdroid._base import CommandError

if TYPE_CHECKING:
    from batdroid._base import CommandRunner

logger = logging.getLogger(__name__)

DeviceType = Literal["emulator", "device"]


class DeviceError(RuntimeError):
    """No usable device, an ambiguous choice, or unknown foreground state."""


@dataclass
class AdbDevice:
    """One line of ``adb devices -l``."""

    id: str
    type: DeviceType
    model: str
    status: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


_MODEL_RE = re.compile(r"model:(\S+)")


def parse_devices(output: str) -> list[AdbDevice]:
    """Parse ``adb devices -l`` output (header line skipped)."""
    devices: list[AdbDevice] = []
    for line in output.strip().splitlines()[1:]:
        if not line.strip():
            continue
        parts = line.split()
        device_id = parts[0]
        status = parts[1] if len(parts) > 1 else ""
        model_match = _MODEL_RE.search(line)
        devices.append(
            AdbDevice(
                id=device_id,
                type="emulator" if device_id.startswith("emulator-") else "device",
                model=model_match.group(1) if model_match else "unknown",
                status=status,
            )
        )
    return devices


def list_devices(runner: CommandRunner) -> list[AdbDevice]:
    """Return every device adb knows about, online or not."""
    return parse_devices(runner.run(["devices", "-l"]))


def resolve_device(runner: CommandRunner, device_id: str | None = None) -> str:
    """Pick the device to talk to.

    An explicit ``device_id`` is returned as-is. Otherwise exactly one
    online device must be connected.

    Raises:
        DeviceError: If no device, or more than one, is online.
    """
    if device_id:
        return device_id

    online = [d for d in list_devices(runner) if d.status == "device"]
    if not online:
        raise DeviceError("No connected devices found. Start an emulator or connect a device.")
    if len(online) > 1:
        ids = ", ".join(d.id for d in online)
        raise DeviceError(f"Multiple devices connected ({ids}). Specify device_id.")
    return online[0].id


# ---------------------------------------------------------------------------
# Foreground activity
# ---------------------------------------------------------------------------

# (dumpsys arguments, patterns tried in order). Each pattern captures
# (package, activity). Later sources cover Android versions (API 36+) where
# the earlier ones no longer report focus.
_ACTIVITY_STRATEGIES: list[tuple[list[str], list[re.Pattern[str]]]] = [
    (
        ["shell", "dumpsys", "window", "windows"],
        [
            re.compile(r"mCurrentFocus=.*?\s+(\S+)/(\S+)"),
            re.compile(r"mFocusedApp=.*?\s+(\S+)/(\S+)"),
        ],
    ),
    (
        ["shell", "dumpsys", "activity", "activities"],
        [
            re.compile(r"topResumedActivity=ActivityRecord\{[^}]*\s+(\S+)/(\S+)"),
            re.compile(r"mResumedActivity=ActivityRecord\{[^}]*\s+(\S+)/(\S+)"),
            re.compile(r"ResumedActivity:\s+ActivityRecord\{[^}]*\s+(\S+)/(\S+)"),
        ],
    ),
    (
        ["shell", "dumpsys", "window", "displays"],
        [re.compile(r"focusedApp=.*?(\S+)/(\S+)")],
    ),
]


def get_current_activity(runner: CommandRunner) -> dict[str, str]:
    """Return ``{"package": ..., "activity": ...}`` for the focused app.

    Tries each dumpsys source in turn; a failing command moves on to the
    next source.

    Raises:
        DeviceError: If no source reports a focused activity.
    """
    for args, patterns in _ACTIVITY_STRATEGIES:
        try:
            output = runner.run(args)
        except CommandError as exc:
            logger.debug("%s unavailable: %s", " ".join(args[1:]), exc)
            continue
        for pattern in patterns:
            match = pattern.search(output)
            if match:
                return {"package": match.group(1), "activity": match.group(2)}

    raise DeviceError(
        "Could not determine current activity. Tried: dumpsys window windows, "
        "dumpsys activity activities, dumpsys window displays"
    )
