"""batdroid action execution layer.

Taps, typing, key events, swipes and device settings, dispatched through a
command runner.
"""

from batdroid.actions.executor import ActionExecutor, ActionResult

__all__ = ["ActionExecutor", "ActionResult"]
