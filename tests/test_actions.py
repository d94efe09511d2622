"""Tests for the action execution layer."""

from __future__ import annotations

import pytest

from batdroid._base import CommandError
from batdroid.actions._keys import KEY_MAP, escape_input_text, resolve_keycode
from batdroid.actions.executor import ANIMATION_SETTINGS, ActionExecutor, ActionResult
from batdroid.search import Selector

DUMP_KEY = "exec-out uiautomator dump /dev/tty"

LOGIN_DUMP = (
    '<?xml version=\'1.0\' encoding=\'UTF-8\' standalone=\'yes\' ?><hierarchy rotation="0">'
    '<node class="android.widget.FrameLayout" bounds="[0,0][1080,1920]">'
    '<node class="android.widget.Button" text="OK" resource-id="com.app:id/ok" '
    'clickable="true" bounds="[100,200][300,300]" />'
    '<node class="android.widget.Button" text="Cancel" resource-id="com.app:id/cancel" '
    'content-desc="Dismiss" clickable="true" bounds="[400,200][605,301]" />'
    '<node class="android.widget.Button" text="OK" resource-id="com.app:id/ok_footer" '
    'clickable="true" bounds="[0,1800][1080,1920]" />'
    "</node></hierarchy>\n"
    "UI hierchary dumped to: /dev/tty"
)

# ---------------------------------------------------------------------------
# Key names and text escaping
# ---------------------------------------------------------------------------


class TestResolveKeycode:
    def test_named(self):
        assert resolve_keycode("BACK") == "4"
        assert resolve_keycode("ENTER") == "66"

    def test_case_insensitive(self):
        assert resolve_keycode("home") == "3"
        assert resolve_keycode("App_Switch") == "187"

    def test_numeric_passthrough(self):
        assert resolve_keycode("66") == "66"

    def test_unknown_name_prefixed(self):
        assert resolve_keycode("page_up") == "KEYCODE_PAGE_UP"

    def test_non_ascii_digits_not_numeric(self):
        assert resolve_keycode("٣") == "KEYCODE_٣"

    def test_map_values_are_keycodes(self):
        assert KEY_MAP["DEL"] == 67
        assert KEY_MAP["DELETE"] == 112


class TestEscapeInputText:
    def test_plain(self):
        assert escape_input_text("hello") == "hello"

    def test_space(self):
        assert escape_input_text("a b") == "a\\ b"

    @pytest.mark.parametrize("ch", list("&|;<>()$`\\!\"'~*?#{}[]"))
    def test_specials(self, ch):
        assert escape_input_text(ch) == "\\" + ch

    def test_mixed(self):
        assert escape_input_text("it's $5") == "it\\'s\\ \\$5"


# ---------------------------------------------------------------------------
# ActionResult
# ---------------------------------------------------------------------------


class TestActionResult:
    def test_success(self):
        r = ActionResult(success=True, message="Tapped")
        assert r.success is True
        assert r.message == "Tapped"
        assert r.error is None

    def test_failure(self):
        r = ActionResult(success=False, message="", error="Not found")
        assert r.success is False
        assert r.error == "Not found"

    def test_to_dict_merges_data(self):
        r = ActionResult(success=True, message="ok", data={"coordinates_tapped": {"x": 1, "y": 2}})
        assert r.to_dict() == {
            "success": True,
            "message": "ok",
            "error": None,
            "coordinates_tapped": {"x": 1, "y": 2},
        }


# ---------------------------------------------------------------------------
# tap_element
# ---------------------------------------------------------------------------


class TestTapElement:
    def test_single_match_taps_center(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(resource_id="cancel"))
        assert result.success is True
        # [400,200][605,301] -> 205x101, center rounds half up
        assert runner.commands()[-1] == "shell input tap 503 251"
        assert result.data["coordinates_tapped"] == {"x": 503, "y": 251}
        assert result.data["element_found"] == {
            "class": "android.widget.Button",
            "text": "Cancel",
            "resource_id": "com.app:id/cancel",
        }

    def test_by_content_desc(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(content_desc="Dismiss"))
        assert result.success is True

    def test_empty_selector_rejected_without_dump(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector())
        assert result.success is False
        assert "at least one of" in result.error
        assert runner.calls == []

    def test_no_match(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(text="Nope"))
        assert result.success is False
        assert result.error == "No element found matching {'text': 'Nope'}"
        assert runner.commands() == [DUMP_KEY]

    def test_multiple_matches_need_index(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(text="OK"))
        assert result.success is False
        lines = result.error.split("\n")
        assert lines[0] == "Multiple elements match (2). Specify index:"
        assert lines[1] == '[0] class=android.widget.Button text="OK" bounds=[100,200,200x100]'
        assert lines[2].startswith("[1] ")
        assert runner.commands() == [DUMP_KEY]

    def test_index_picks_match(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(text="OK"), index=1)
        assert result.success is True
        assert runner.commands()[-1] == "shell input tap 540 1860"

    def test_index_zero(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(text="OK"), index=0)
        assert result.data["coordinates_tapped"] == {"x": 200, "y": 250}

    @pytest.mark.parametrize("index", [2, -1])
    def test_index_out_of_range(self, fake_runner, index):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        result = ActionExecutor(runner).tap_element(Selector(text="OK"), index=index)
        assert result.success is False
        assert result.error == f"Index {index} out of range (2 matches)"

    def test_dump_failure_reported(self, fake_runner):
        runner = fake_runner({DUMP_KEY: "ERROR: null root node returned by UiTestAutomationBridge."})
        result = ActionExecutor(runner).tap_element(Selector(text="OK"))
        assert result.success is False
        assert "unexpected output" in result.error

    def test_tap_failure_reported(self, fake_runner):
        runner = fake_runner(
            {DUMP_KEY: LOGIN_DUMP, "shell input tap 503 251": CommandError("device offline")}
        )
        result = ActionExecutor(runner).tap_element(Selector(resource_id="cancel"))
        assert result.success is False
        assert result.error == "device offline"

    def test_dump_timeout_passed_through(self, fake_runner):
        runner = fake_runner({DUMP_KEY: LOGIN_DUMP})
        ActionExecutor(runner).tap_element(Selector(text="Cancel"), dump_timeout=3)
        assert runner.calls[0][1] == 3


# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------


class TestRawInput:
    def test_tap(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).tap(10, 20)
        assert result.message == "Tapped at (10, 20)"
        assert runner.commands() == ["shell input tap 10 20"]

    def test_type_text_escapes(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).type_text("hi there")
        assert result.message == 'Typed: "hi there"'
        assert runner.calls[0][0] == ("shell", "input", "text", "hi\\ there")

    def test_press_key(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).press_key("back")
        assert result.message == "Pressed key: back (keycode 4)"
        assert runner.commands() == ["shell input keyevent 4"]

    def test_command_error_becomes_failure(self, fake_runner):
        runner = fake_runner({"shell input keyevent 66": CommandError("boom")})
        result = ActionExecutor(runner).press_key("ENTER")
        assert result.success is False
        assert result.error == "boom"


# ---------------------------------------------------------------------------
# Swipe
# ---------------------------------------------------------------------------

WM_SIZE = "shell wm size"


class TestSwipe:
    def test_explicit_coordinates(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).swipe(1, 2, 3, 4, duration_ms=100)
        assert result.success is True
        assert runner.commands() == ["shell input swipe 1 2 3 4 100"]

    @pytest.mark.parametrize(
        "direction, expected",
        [
            ("up", "540 1450 540 950"),
            ("down", "540 950 540 1450"),
            ("left", "790 1200 290 1200"),
            ("right", "290 1200 790 1200"),
        ],
    )
    def test_direction_through_center(self, fake_runner, direction, expected):
        runner = fake_runner({WM_SIZE: "Physical size: 1080x2400\n"})
        ActionExecutor(runner).swipe(direction=direction)
        assert runner.commands() == [WM_SIZE, f"shell input swipe {expected} 300"]

    def test_odd_screen_center_rounds_up(self, fake_runner):
        runner = fake_runner({WM_SIZE: "Physical size: 1081x1921"})
        ActionExecutor(runner).swipe(direction="up", distance=100)
        assert runner.commands()[-1] == "shell input swipe 541 1011 541 911 300"

    def test_unparseable_size_falls_back(self, fake_runner):
        runner = fake_runner({WM_SIZE: "no size here"})
        ActionExecutor(runner).swipe(direction="down", distance=0)
        assert runner.commands()[-1] == "shell input swipe 540 960 540 960 300"

    def test_override_size_reported_first(self, fake_runner):
        runner = fake_runner({WM_SIZE: "Physical size: 1440x3200\nOverride size: 1080x2400"})
        assert ActionExecutor(runner).screen_size() == (1440, 3200)

    def test_unknown_direction(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).swipe(direction="sideways")
        assert result.success is False
        assert "sideways" in result.error
        assert runner.calls == []

    def test_incomplete_coordinates(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).swipe(1, 2, 3)
        assert result.success is False
        assert "all four coordinates" in result.error
        assert runner.calls == []

    def test_direction_wins_over_coordinates(self, fake_runner):
        runner = fake_runner({WM_SIZE: "Physical size: 1080x2400"})
        ActionExecutor(runner).swipe(0, 0, 0, 0, direction="up")
        assert runner.commands()[-1] == "shell input swipe 540 1450 540 950 300"


# ---------------------------------------------------------------------------
# Apps and settings
# ---------------------------------------------------------------------------


class TestLaunchApp:
    def test_launcher_intent(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).launch_app("com.app")
        assert result.success is True
        assert result.message == "Launched com.app"
        assert runner.commands() == [
            "shell monkey -p com.app -c android.intent.category.LAUNCHER 1"
        ]

    def test_relative_activity_expanded(self, fake_runner):
        runner = fake_runner()
        ActionExecutor(runner).launch_app("com.app", ".MainActivity")
        assert runner.commands() == ["shell am start -n com.app/com.app.MainActivity"]

    def test_absolute_activity(self, fake_runner):
        output = "Starting: Intent { cmp=com.app/org.lib.Screen }\n"
        runner = fake_runner({"shell am start -n com.app/org.lib.Screen": output})
        result = ActionExecutor(runner).launch_app("com.app", "org.lib.Screen")
        assert result.message == "Starting: Intent { cmp=com.app/org.lib.Screen }"

    def test_failure(self, fake_runner):
        runner = fake_runner(
            {"shell monkey -p com.nope -c android.intent.category.LAUNCHER 1": CommandError("no")}
        )
        result = ActionExecutor(runner).launch_app("com.nope")
        assert result.success is False


class TestSetAnimations:
    def test_disable_reports_previous(self, fake_runner):
        runner = fake_runner(
            {f"shell settings get global {s}": "1.0\n" for s in ANIMATION_SETTINGS}
        )
        result = ActionExecutor(runner).set_animations(False)
        assert result.success is True
        assert result.message == "Animations disabled"
        assert result.data["previous"] == {s: "1.0" for s in ANIMATION_SETTINGS}
        assert result.data["current"] == {s: "0" for s in ANIMATION_SETTINGS}
        puts = [c for c in runner.commands() if " put " in c]
        assert puts == [f"shell settings put global {s} 0" for s in ANIMATION_SETTINGS]

    def test_enable(self, fake_runner):
        runner = fake_runner()
        result = ActionExecutor(runner).set_animations(True)
        assert result.message == "Animations enabled"
        assert runner.commands()[-1] == "shell settings put global animator_duration_scale 1"

    def test_failure_stops_early(self, fake_runner):
        key = f"shell settings get global {ANIMATION_SETTINGS[0]}"
        runner = fake_runner({key: CommandError("permission denied")})
        result = ActionExecutor(runner).set_animations(False)
        assert result.success is False
        assert not any(" put " in c for c in runner.commands())
