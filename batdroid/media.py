"""Screenshots and short screen recordings split into frames."""

from __future__ import annotations

import logging
import pathlib
import tempfile
import time
from typing import TYPE_CHECKING

from batdroid._base import CommandError, run_command

if TYPE_CHECKING:
    from batdroid._base import CommandRunner

logger = logging.getLogger(__name__)

REMOTE_RECORDING = "/sdcard/batdroid_recording.mp4"
FFMPEG_TIMEOUT = 30.0
MAX_RECORD_SECONDS = 30


def screenshot(runner: CommandRunner, *, wait_ms: int = 500) -> bytes:
    """Capture the screen as PNG bytes.

    Args:
        wait_ms: Milliseconds to let the UI settle before capturing.
    """
    if wait_ms > 0:
        time.sleep(wait_ms / 1000)
    return runner.run_raw(["exec-out", "screencap", "-p"])


def _extract_frames(video: pathlib.Path, out_dir: pathlib.Path, interval_ms: int) -> list[pathlib.Path]:
    pattern = str(out_dir / "frame_%04d.png")
    # select= copes with emulator screenrecord output whose timestamps are
    # degenerate (Duration: N/A, zero-length frames).
    interval_s = interval_ms / 1000
    try:
        run_command(
            [
                "ffmpeg",
                "-i", str(video),
                "-fps_mode", "vfr",
                "-vf", f"select='isnan(prev_selected_t)+gte(t-prev_selected_t\\,{interval_s:g})'",
                "-vsync", "0",
                pattern,
            ],
            timeout=FFMPEG_TIMEOUT,
        )
    except CommandError as exc:
        logger.debug("interval frame extraction failed: %s", exc)

    frames = sorted(out_dir.glob("frame_*.png"))
    if frames:
        return frames

    # Fall back to every frame in the file.
    try:
        run_command(["ffmpeg", "-i", str(video), "-vsync", "0", pattern], timeout=FFMPEG_TIMEOUT)
    except CommandError as exc:
        logger.warning("frame extraction failed: %s", exc)
    return sorted(out_dir.glob("frame_*.png"))


def record_screen(
    runner: CommandRunner,
    *,
    duration_seconds: int = 3,
    frame_interval_ms: int = 500,
) -> list[bytes]:
    """Record the screen and return PNG frames sampled every ``frame_interval_ms``.

    Requires ``ffmpeg`` on the host PATH.

    Raises:
        ValueError: If the duration is outside 1..30 seconds or the interval
            is not positive.
        CommandError: If recording or pulling the video fails.
    """
    if not 1 <= duration_seconds <= MAX_RECORD_SECONDS:
        raise ValueError(f"duration_seconds must be between 1 and {MAX_RECORD_SECONDS}")
    if frame_interval_ms <= 0:
        raise ValueError("frame_interval_ms must be positive")

    with tempfile.TemporaryDirectory(prefix="batdroid-") as tmp:
        tmp_dir = pathlib.Path(tmp)
        local_video = tmp_dir / "recording.mp4"

        runner.run(
            ["shell", "screenrecord", "--time-limit", str(duration_seconds), REMOTE_RECORDING],
            timeout=duration_seconds + 5,
        )
        runner.run(["pull", REMOTE_RECORDING, str(local_video)])
        try:
            runner.run(["shell", "rm", REMOTE_RECORDING])
        except CommandError as exc:
            logger.debug("could not remove %s: %s", REMOTE_RECORDING, exc)

        frames = _extract_frames(local_video, tmp_dir, frame_interval_ms)
        return [frame.read_bytes() for frame in frames]
