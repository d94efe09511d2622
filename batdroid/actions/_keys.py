"""Android key-event names and ``input text`` escaping."""

from __future__ import annotations

import re

# Named keys -> Android KeyEvent codes
KEY_MAP: dict[str, int] = {
    "HOME": 3,
    "BACK": 4,
    "CALL": 5,
    "ENDCALL": 6,
    "DPAD_UP": 19,
    "DPAD_DOWN": 20,
    "DPAD_LEFT": 21,
    "DPAD_RIGHT": 22,
    "DPAD_CENTER": 23,
    "VOLUME_UP": 24,
    "VOLUME_DOWN": 25,
    "POWER": 26,
    "CAMERA": 27,
    "CLEAR": 28,
    "TAB": 61,
    "SPACE": 62,
    "ENTER": 66,
    "DEL": 67,  # backspace
    "MENU": 82,
    "SEARCH": 84,
    "MEDIA_PLAY_PAUSE": 85,
    "ESCAPE": 111,
    "DELETE": 112,  # forward delete
    "APP_SWITCH": 187,  # recent apps
}


def resolve_keycode(key: str) -> str:
    """Resolve a key name or number to an ``input keyevent`` argument.

    Examples::

        >>> resolve_keycode("back")
        '4'
        >>> resolve_keycode("66")
        '66'
        >>> resolve_keycode("page_up")
        'KEYCODE_PAGE_UP'
    """
    upper = key.upper()
    if upper in KEY_MAP:
        return str(KEY_MAP[upper])
    if key.isascii() and key.isdigit():
        return key
    return f"KEYCODE_{upper}"


_SHELL_SPECIAL_RE = re.compile(r"""([&|;<>()$`\\!"'~*?#{}\[\] ])""")


def escape_input_text(text: str) -> str:
    """Backslash-escape characters the device shell would interpret."""
    return _SHELL_SPECIAL_RE.sub(r"\\\1", text)
