"""
batdroid -- Android UI hierarchy capture and device control over adb.

Quick start::

    import batdroid

    # Session is the primary API — capture + actions
    session = batdroid.Session()                 # the single connected device
    text = session.snapshot()                    # compact text for LLM context
    tree = session.hierarchy()                   # list[Element]
    buttons = session.find(resource_id="submit")
    result = session.tap_element(text="Sign in")

    # Convenience functions (use a default session internally)
    tree = batdroid.get_hierarchy()
    text = batdroid.get_compact()
"""

from __future__ import annotations

from typing import Any

from batdroid._base import CommandError, CommandRunner
from batdroid.actions import ActionExecutor, ActionResult
from batdroid.adb import AdbRunner
from batdroid.devices import (
    AdbDevice,
    DeviceError,
    get_current_activity,
    list_devices,
    resolve_device,
)
from batdroid.format import (
    DEFAULT_COMPACT_DEPTH,
    DEFAULT_FLAT_DEPTH,
    FlatElement,
    flatten_hierarchy,
    serialize_compact,
    serialize_json,
)
from batdroid.hierarchy import (
    DUMP_TIMEOUT,
    Bounds,
    DumpError,
    Element,
    element_center,
    get_ui_hierarchy,
    parse_bounds,
    parse_hierarchy,
)
from batdroid.media import record_screen, screenshot
from batdroid.search import Selector, find_elements

__all__ = [
    "get_hierarchy",
    "get_compact",
    "Session",
    "ActionResult",
    "Element",
    "FlatElement",
    "Bounds",
    "Selector",
    "AdbDevice",
    "CommandError",
    "DumpError",
    "DeviceError",
    # Advanced / building blocks
    "AdbRunner",
    "CommandRunner",
    "parse_bounds",
    "parse_hierarchy",
    "get_ui_hierarchy",
    "find_elements",
    "element_center",
    "serialize_compact",
    "serialize_json",
    "flatten_hierarchy",
    "list_devices",
    "resolve_device",
]


# ---------------------------------------------------------------------------
# Default session — used by the convenience functions below
# ---------------------------------------------------------------------------

_default_session: Session | None = None


def _get_default_session() -> Session:
    global _default_session
    if _default_session is None:
        _default_session = Session()
    return _default_session


def get_hierarchy() -> list[Element]:
    """Dump and parse the UI of the single connected device."""
    return _get_default_session().hierarchy()


def get_compact(*, max_depth: int = DEFAULT_COMPACT_DEPTH) -> str:
    """Dump the UI of the single connected device as compact text."""
    return _get_default_session().snapshot(compact=True, max_depth=max_depth)


# ---------------------------------------------------------------------------
# Session — one device, fresh dump per call
# ---------------------------------------------------------------------------


class Session:
    """Capture and act on one Android device.

    The device is resolved on first use: an explicit ``device_id`` wins,
    otherwise exactly one device must be online.  A runner already bound
    to a device must agree with ``device_id``; a mismatch raises
    :class:`DeviceError`.  Nothing is cached between calls -- every
    capture or element tap dumps the UI again, so results never describe
    a stale screen.

    Example::

        session = batdroid.Session("emulator-5554")
        print(session.snapshot())
        session.tap_element(resource_id="login_button")
    """

    def __init__(
        self,
        device_id: str | None = None,
        *,
        runner: CommandRunner | None = None,
        dump_timeout: float = DUMP_TIMEOUT,
    ) -> None:
        self._requested_device = device_id
        self._base_runner = runner
        self._runner: CommandRunner | None = None
        if runner is not None and runner.device_id:
            if device_id and device_id != runner.device_id:
                raise DeviceError(
                    f"device_id {device_id!r} conflicts with runner bound to {runner.device_id!r}"
                )
            self._runner = runner
        self._dump_timeout = dump_timeout

    @property
    def runner(self) -> CommandRunner:
        """Command runner bound to the resolved device.

        An :class:`AdbRunner` is rebound to the resolved serial; any other
        runner is used as given once a device is known to be available.
        """
        if self._runner is None:
            base = self._base_runner or AdbRunner()
            device_id = resolve_device(base, self._requested_device)
            if isinstance(base, AdbRunner):
                self._runner = base.for_device(device_id)
            else:
                self._runner = base
        return self._runner

    @property
    def device_id(self) -> str | None:
        return self.runner.device_id

    # -- capture -----------------------------------------------------------

    def hierarchy(self) -> list[Element]:
        """Dump and parse the current UI."""
        return get_ui_hierarchy(self.runner, timeout=self._dump_timeout)

    def snapshot(
        self,
        *,
        compact: bool = True,
        flat: bool = False,
        max_depth: int | None = None,
        max_chars: int = 0,
    ) -> str:
        """Capture the UI as compact text (default) or JSON.

        Args:
            compact: Return the indented compact text format.
            flat: With ``compact=False``, return a depth-annotated flat list
                  instead of the nested tree.
            max_depth: Deepest level to include. Defaults to 15 for compact
                       text and 20 for the flat list; the nested JSON tree is
                       unbounded unless given.
            max_chars: Character limit for compact text (0 = unlimited).
        """
        tree = self.hierarchy()
        if compact:
            depth = DEFAULT_COMPACT_DEPTH if max_depth is None else max_depth
            return serialize_compact(tree, max_depth=depth, max_chars=max_chars)
        if flat:
            depth = DEFAULT_FLAT_DEPTH if max_depth is None else max_depth
            return serialize_json(flatten_hierarchy(tree, max_depth=depth))
        return serialize_json(tree)

    def find(
        self,
        *,
        resource_id: str | None = None,
        text: str | None = None,
        content_desc: str | None = None,
    ) -> list[Element]:
        """Dump the UI and return elements matching every given field."""
        selector = Selector(resource_id=resource_id, text=text, content_desc=content_desc)
        return find_elements(self.hierarchy(), selector)

    def current_activity(self) -> dict[str, str]:
        """Return the focused ``{"package", "activity"}``."""
        return get_current_activity(self.runner)

    def screenshot(self, *, wait_ms: int = 500) -> bytes:
        """Capture the screen and return PNG bytes."""
        return screenshot(self.runner, wait_ms=wait_ms)

    def record_screen(
        self,
        *,
        duration_seconds: int = 3,
        frame_interval_ms: int = 500,
    ) -> list[bytes]:
        """Record the screen and return sampled PNG frames (needs ffmpeg)."""
        return record_screen(
            self.runner,
            duration_seconds=duration_seconds,
            frame_interval_ms=frame_interval_ms,
        )

    # -- actions -----------------------------------------------------------

    def _actions(self) -> ActionExecutor:
        return ActionExecutor(self.runner)

    def tap_element(
        self,
        *,
        resource_id: str | None = None,
        text: str | None = None,
        content_desc: str | None = None,
        index: int | None = None,
    ) -> ActionResult:
        """Tap the center of the element matching the given fields.

        Args:
            index: 0-based choice among several matches (tree order).
        """
        selector = Selector(resource_id=resource_id, text=text, content_desc=content_desc)
        return self._actions().tap_element(selector, index, dump_timeout=self._dump_timeout)

    def tap(self, x: int, y: int) -> ActionResult:
        return self._actions().tap(x, y)

    def type_text(self, text: str) -> ActionResult:
        return self._actions().type_text(text)

    def press_key(self, key: str) -> ActionResult:
        return self._actions().press_key(key)

    def swipe(self, *args: int, **kwargs: Any) -> ActionResult:
        """Swipe by coordinates or by ``direction=``; see :meth:`ActionExecutor.swipe`."""
        return self._actions().swipe(*args, **kwargs)

    def launch_app(self, package: str, activity: str | None = None) -> ActionResult:
        return self._actions().launch_app(package, activity)

    def set_animations(self, enabled: bool) -> ActionResult:
        return self._actions().set_animations(enabled)
