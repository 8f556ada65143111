"""Terminal front-end for the recorder."""

from .recorder_screen import RecorderScreen
from .keyboard_input import KeyboardInputHandler

__all__ = [
    "RecorderScreen",
    "KeyboardInputHandler",
]
