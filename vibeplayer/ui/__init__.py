"""Terminal user interface for vibeplayer."""

from .key_bindings import PlayerKeyBindings
from .keyboard_input import KeyboardInputHandler, MouseClick
from .player_screen import PlayerScreen

__all__ = [
    "PlayerKeyBindings",
    "KeyboardInputHandler",
    "MouseClick",
    "PlayerScreen",
]
