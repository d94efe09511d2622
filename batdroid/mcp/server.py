"""batdroid MCP Server — Android device tools for AI agents.

Exposes focused tools for UI hierarchy capture, element search, taps,
typing, gestures, screenshots and short screen recordings.
"""

from __future__ import annotations

import json

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.utilities.types import Image

import batdroid
from batdroid.format import MAX_OUTPUT_CHARS, format_line

mcp = FastMCP(
    name="batdroid",
    instructions=(
        "batdroid controls Android emulators and devices over adb.\n\n"
        "WORKFLOW — follow this pattern:\n"
        "1. get_ui_hierarchy to see the current screen\n"
        "2. find_elements to check a selector before acting\n"
        "3. tap_element / type_text / press_key / swipe to interact\n"
        "4. get_ui_hierarchy again after the UI changes\n\n"
        "Selectors match resource_id (full 'pkg:id/name' or just 'name'), "
        "exact text, or exact content_desc. When several elements match, "
        "tap_element lists them; pass index to choose one.\n\n"
        "Every call dumps the UI fresh, so results always describe the "
        "current screen.\n\n"
        "All tools accept device_id; it may be omitted when exactly one "
        "device is connected."
    ),
)

_RECOVERABLE = (batdroid.CommandError, batdroid.DumpError, batdroid.DeviceError, ValueError)


def _error(message: str) -> str:
    return json.dumps({"success": False, "message": "", "error": message})


def _session(device_id: str | None) -> batdroid.Session:
    return batdroid.Session(device_id)


# ---------------------------------------------------------------------------
# Device tools
# ---------------------------------------------------------------------------


@mcp.tool()
def list_devices() -> str:
    """List connected Android emulators and physical devices."""
    try:
        devices = batdroid.list_devices(batdroid.AdbRunner())
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps([d.to_dict() for d in devices], indent=2)


@mcp.tool()
def get_current_activity(device_id: str | None = None) -> str:
    """Return the currently focused activity and package name.

    Args:
        device_id: Target device ID (optional if only one device connected).
    """
    try:
        activity = _session(device_id).current_activity()
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(activity, indent=2)


@mcp.tool()
def launch_app(package: str, activity: str | None = None, device_id: str | None = None) -> str:
    """Start an app by package name, or a specific activity within it.

    Args:
        package: App package name (e.g. com.example.myapp).
        activity: Activity to launch (e.g. .MainActivity). Without it the
                  app's launcher activity is started.
        device_id: Target device ID.
    """
    try:
        result = _session(device_id).launch_app(package, activity)
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict())


# ---------------------------------------------------------------------------
# Observation tools
# ---------------------------------------------------------------------------


@mcp.tool()
def screenshot(device_id: str | None = None, wait_ms: int = 500) -> Image:
    """Capture the current screen as a PNG image.

    Args:
        device_id: Target device ID.
        wait_ms: Milliseconds to wait first so the UI can settle (default 500).
    """
    try:
        png_bytes = _session(device_id).screenshot(wait_ms=wait_ms)
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return Image(data=png_bytes, format="png")


@mcp.tool()
def get_ui_hierarchy(
    device_id: str | None = None,
    flat: bool = False,
    compact: bool = True,
    max_depth: int | None = None,
) -> str:
    """Dump and parse the UIAutomator accessibility tree.

    Elements with Modifier.testTag() appear as resource_id when
    testTagsAsResourceId is enabled. The compact format (default) is one
    line per element:

        Class "text" [x,y wxh] id:name desc:"label" [clickable] [scrollable]

    Indentation (two spaces per level) shows nesting.

    Args:
        device_id: Target device ID.
        flat: With compact=false, return a flat list with a depth field
              instead of the nested tree.
        compact: Return compact text (default). Set false for full JSON.
        max_depth: Maximum tree depth to return.
    """
    try:
        return _session(device_id).snapshot(
            compact=compact,
            flat=flat,
            max_depth=max_depth,
            max_chars=MAX_OUTPUT_CHARS,
        )
    except _RECOVERABLE as exc:
        return _error(str(exc))


@mcp.tool()
def find_elements(
    resource_id: str | None = None,
    text: str | None = None,
    content_desc: str | None = None,
    device_id: str | None = None,
) -> str:
    """Find elements by resource_id, text and/or content_desc without tapping.

    Returns one compact line per match, in tree order, numbered with the
    index tap_element expects.

    Args:
        resource_id: Element resource-id or testTag (full or short form).
        text: Exact text content.
        content_desc: Exact content description (accessibility label).
        device_id: Target device ID.
    """
    # Empty strings are unset, as in tap_element, so indices line up.
    resource_id = resource_id or None
    text = text or None
    content_desc = content_desc or None
    if resource_id is None and text is None and content_desc is None:
        return _error("At least one of resource_id, text, or content_desc must be provided.")

    try:
        found = _session(device_id).find(
            resource_id=resource_id,
            text=text,
            content_desc=content_desc,
        )
    except _RECOVERABLE as exc:
        return _error(str(exc))

    if not found:
        return json.dumps({"success": True, "message": "No matching elements found.", "matches": 0})

    lines = [f"[{i}] {format_line(el)}" for i, el in enumerate(found)]
    header = f"# {len(found)} match{'es' if len(found) != 1 else ''} found"
    return "\n".join([header, ""] + lines) + "\n"


@mcp.tool()
def record_screen(
    duration_seconds: int = 3,
    frame_interval_ms: int = 500,
    device_id: str | None = None,
) -> list:
    """Record the screen for a few seconds and return frames as images.

    Requires ffmpeg on the machine running this server.

    Args:
        duration_seconds: Recording length, 1-30 seconds (default 3).
        frame_interval_ms: Interval between extracted frames (default 500).
        device_id: Target device ID.
    """
    try:
        frames = _session(device_id).record_screen(
            duration_seconds=duration_seconds,
            frame_interval_ms=frame_interval_ms,
        )
    except _RECOVERABLE as exc:
        return [_error(str(exc))]

    summary = (
        f"Recorded {duration_seconds}s, extracted {len(frames)} frames "
        f"at {frame_interval_ms}ms intervals"
    )
    return [summary] + [Image(data=frame, format="png") for frame in frames]


# ---------------------------------------------------------------------------
# Interaction tools
# ---------------------------------------------------------------------------


@mcp.tool()
def tap_element(
    resource_id: str | None = None,
    text: str | None = None,
    content_desc: str | None = None,
    index: int | None = None,
    device_id: str | None = None,
) -> str:
    """Find a UI element by selector and tap its center.

    Args:
        resource_id: Element resource-id or testTag value.
        text: Exact text content of the element.
        content_desc: Content description (accessibility label).
        index: Index for disambiguation when multiple elements match (0-based).
        device_id: Target device ID.
    """
    try:
        result = _session(device_id).tap_element(
            resource_id=resource_id or None,
            text=text or None,
            content_desc=content_desc or None,
            index=index,
        )
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict(), indent=2)


@mcp.tool()
def tap_coordinates(x: int, y: int, device_id: str | None = None) -> str:
    """Tap at raw screen coordinates (x, y)."""
    try:
        result = _session(device_id).tap(x, y)
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict())


@mcp.tool()
def type_text(text: str, device_id: str | None = None) -> str:
    """Type text into the focused input field.

    ASCII only; shell special characters are escaped automatically.
    """
    try:
        result = _session(device_id).type_text(text)
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict())


@mcp.tool()
def press_key(key: str, device_id: str | None = None) -> str:
    """Send a key event.

    Args:
        key: Key name (BACK, HOME, ENTER, TAB, DPAD_UP, DPAD_DOWN, DPAD_LEFT,
             DPAD_RIGHT, DEL, DELETE, VOLUME_UP, VOLUME_DOWN, POWER,
             APP_SWITCH, ESCAPE, MENU) or a numeric keycode.
        device_id: Target device ID.
    """
    try:
        result = _session(device_id).press_key(key)
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict())


@mcp.tool()
def swipe(
    start_x: int | None = None,
    start_y: int | None = None,
    end_x: int | None = None,
    end_y: int | None = None,
    direction: str | None = None,
    distance: int = 500,
    duration_ms: int = 300,
    device_id: str | None = None,
) -> str:
    """Perform a swipe gesture.

    Either give all four coordinates, or a direction (up/down/left/right)
    plus an optional distance, which swipes through the screen center.

    Args:
        start_x: Start X coordinate.
        start_y: Start Y coordinate.
        end_x: End X coordinate.
        end_y: End Y coordinate.
        direction: Swipe direction, alternative to explicit coordinates.
        distance: Swipe distance in pixels when using direction (default 500).
        duration_ms: Swipe duration in milliseconds (default 300).
        device_id: Target device ID.
    """
    try:
        result = _session(device_id).swipe(
            start_x,
            start_y,
            end_x,
            end_y,
            direction=direction,
            distance=distance,
            duration_ms=duration_ms,
        )
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict())


# ---------------------------------------------------------------------------
# Configuration tools
# ---------------------------------------------------------------------------


@mcp.tool()
def set_animations(enabled: bool, device_id: str | None = None) -> str:
    """Enable or disable window, transition and animator duration scales.

    Args:
        enabled: true for scale 1, false for scale 0.
        device_id: Target device ID.
    """
    try:
        result = _session(device_id).set_animations(enabled)
    except _RECOVERABLE as exc:
        return _error(str(exc))
    return json.dumps(result.to_dict(), indent=2)


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
