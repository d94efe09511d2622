"""Action executor — turns element selectors and gestures into adb input commands."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from batdroid._base import CommandError
from batdroid.actions._keys import escape_input_text, resolve_keycode
from batdroid.hierarchy import DUMP_TIMEOUT, DumpError, element_center, get_ui_hierarchy
from batdroid.search import Selector, find_elements

if TYPE_CHECKING:
    from batdroid._base import CommandRunner

logger = logging.getLogger(__name__)

Direction = Literal["up", "down", "left", "right"]

ANIMATION_SETTINGS = (
    "window_animation_scale",
    "transition_animation_scale",
    "animator_duration_scale",
)

_SCREEN_SIZE_RE = re.compile(r"(\d+)x(\d+)")
_FALLBACK_SCREEN = (1080, 1920)


@dataclass
class ActionResult:
    """Result of an action execution."""

    success: bool
    message: str
    error: str | None = None
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "error": self.error,
        }
        if self.data is not None:
            result.update(self.data)
        return result


def _fail(error: str) -> ActionResult:
    return ActionResult(success=False, message="", error=error)


class ActionExecutor:
    """Device interactions over a command runner.

    Usage::

        executor = ActionExecutor(runner)
        result = executor.tap_element(Selector(text="Sign in"))
        result = executor.press_key("BACK")

    Command failures never escape; they come back as a failed
    :class:`ActionResult`.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def _shell(self, *args: str) -> str:
        return self._runner.run(["shell", *args])

    # -- element taps ------------------------------------------------------

    def tap_element(
        self,
        selector: Selector,
        index: int | None = None,
        *,
        dump_timeout: float = DUMP_TIMEOUT,
    ) -> ActionResult:
        """Dump the UI, find the element matching ``selector`` and tap its center.

        When several elements match, ``index`` (0-based, in tree order)
        picks one; without it the candidates are listed in the error.
        """
        if selector.is_empty():
            return _fail("at least one of resource_id, text, or content_desc must be provided")

        try:
            hierarchy = get_ui_hierarchy(self._runner, timeout=dump_timeout)
        except (CommandError, DumpError) as exc:
            return _fail(str(exc))

        found = find_elements(hierarchy, selector)
        if not found:
            return _fail(f"No element found matching {selector.to_dict()}")

        if len(found) > 1 and index is None:
            summaries = [
                f"[{i}] class={el.class_name} text=\"{el.text}\" "
                f"bounds=[{el.bounds.x},{el.bounds.y},{el.bounds.width}x{el.bounds.height}]"
                for i, el in enumerate(found)
            ]
            return _fail(
                f"Multiple elements match ({len(found)}). Specify index:\n" + "\n".join(summaries)
            )

        pick = index or 0
        if not 0 <= pick < len(found):
            return _fail(f"Index {index} out of range ({len(found)} matches)")

        target = found[pick]
        x, y = element_center(target)
        logger.debug("tapping match %d of %d at (%d, %d)", pick, len(found), x, y)
        try:
            self._shell("input", "tap", str(x), str(y))
        except CommandError as exc:
            return _fail(str(exc))

        return ActionResult(
            success=True,
            message=f"Tapped {target.class_name} at ({x}, {y})",
            data={
                "element_found": {
                    "class": target.class_name,
                    "text": target.text,
                    "resource_id": target.resource_id,
                },
                "coordinates_tapped": {"x": x, "y": y},
            },
        )

    # -- raw input ---------------------------------------------------------

    def tap(self, x: int, y: int) -> ActionResult:
        try:
            self._shell("input", "tap", str(x), str(y))
        except CommandError as exc:
            return _fail(str(exc))
        return ActionResult(success=True, message=f"Tapped at ({x}, {y})")

    def type_text(self, text: str) -> ActionResult:
        """Type into the focused field. ASCII only; shell specials are escaped."""
        try:
            self._shell("input", "text", escape_input_text(text))
        except CommandError as exc:
            return _fail(str(exc))
        return ActionResult(success=True, message=f'Typed: "{text}"')

    def press_key(self, key: str) -> ActionResult:
        """Send a key event by name (BACK, HOME, ENTER, ...) or numeric code."""
        keycode = resolve_keycode(key)
        try:
            self._shell("input", "keyevent", keycode)
        except CommandError as exc:
            return _fail(str(exc))
        return ActionResult(success=True, message=f"Pressed key: {key} (keycode {keycode})")

    def screen_size(self) -> tuple[int, int]:
        """Return (width, height) from ``wm size``, or a phone-sized default."""
        match = _SCREEN_SIZE_RE.search(self._shell("wm", "size"))
        if not match:
            return _FALLBACK_SCREEN
        return int(match.group(1)), int(match.group(2))

    def swipe(
        self,
        start_x: int | None = None,
        start_y: int | None = None,
        end_x: int | None = None,
        end_y: int | None = None,
        *,
        direction: Direction | None = None,
        distance: int = 500,
        duration_ms: int = 300,
    ) -> ActionResult:
        """Swipe between two points, or ``distance`` pixels through the screen center.

        ``direction`` names where the content moves under the finger: "up"
        drags from below the center to above it.
        """
        try:
            if direction is not None:
                half = distance // 2
                offsets = {
                    "up": (0, half, 0, -half),
                    "down": (0, -half, 0, half),
                    "left": (half, 0, -half, 0),
                    "right": (-half, 0, half, 0),
                }
                if direction not in offsets:
                    return _fail(f"Unknown swipe direction {direction!r} (up/down/left/right)")
                dsx, dsy, dex, dey = offsets[direction]
                width, height = self.screen_size()
                cx, cy = (width + 1) // 2, (height + 1) // 2
                sx, sy, ex, ey = cx + dsx, cy + dsy, cx + dex, cy + dey
            elif None not in (start_x, start_y, end_x, end_y):
                sx, sy, ex, ey = start_x, start_y, end_x, end_y
            else:
                return _fail(
                    "provide either direction or all four coordinates "
                    "(start_x, start_y, end_x, end_y)"
                )

            self._shell("input", "swipe", str(sx), str(sy), str(ex), str(ey), str(duration_ms))
        except CommandError as exc:
            return _fail(str(exc))

        return ActionResult(
            success=True,
            message=f"Swiped from ({sx}, {sy}) to ({ex}, {ey}) over {duration_ms}ms",
        )

    # -- apps and settings -------------------------------------------------

    def launch_app(self, package: str, activity: str | None = None) -> ActionResult:
        """Start ``package``, either at a given activity or via its launcher intent.

        A relative activity (``.MainActivity``) is expanded against the package.
        """
        try:
            if activity:
                if activity.startswith("."):
                    component = f"{package}/{package}{activity}"
                else:
                    component = f"{package}/{activity}"
                output = self._shell("am", "start", "-n", component)
            else:
                output = self._shell(
                    "monkey", "-p", package, "-c", "android.intent.category.LAUNCHER", "1"
                )
        except CommandError as exc:
            return _fail(str(exc))

        target = f"{package}/{activity}" if activity else package
        return ActionResult(success=True, message=output.strip() or f"Launched {target}")

    def set_animations(self, enabled: bool) -> ActionResult:
        """Set all three global animation scales to 1 (enabled) or 0 (disabled)."""
        scale = "1" if enabled else "0"
        try:
            previous = {
                setting: self._shell("settings", "get", "global", setting).strip()
                for setting in ANIMATION_SETTINGS
            }
            for setting in ANIMATION_SETTINGS:
                self._shell("settings", "put", "global", setting, scale)
        except CommandError as exc:
            return _fail(str(exc))

        state = "enabled" if enabled else "disabled"
        return ActionResult(
            success=True,
            message=f"Animations {state}",
            data={
                "previous": previous,
                "current": {setting: scale for setting in ANIMATION_SETTINGS},
            },
        )
