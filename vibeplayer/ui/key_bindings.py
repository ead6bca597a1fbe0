"""Maps keys and clicks to session state changes and player commands."""

import logging
from typing import Callable, Optional

from ..models.commands import Seek, SetVolume, Skip
from ..models.ui import InputMode
from ..services.command_publisher import CommandPublisher
from ..services.session_state import SessionState
from .keyboard_input import (
    InputEvent, MouseClick,
    UP, DOWN, LEFT, RIGHT, ENTER, TAB, ESCAPE, BACKSPACE, CTRL_C
)

logger = logging.getLogger(__name__)

SEEK_STEP_SECONDS = 10.0
VOLUME_STEP = 5


class PlayerKeyBindings:
    """Keyboard callback for ``KeyboardInputHandler``.

    Never calls the playback controller: every transport action becomes a
    command on the ``player.command`` topic.
    """

    def __init__(self,
                 state: SessionState,
                 submit_request: Callable[[str], None],
                 on_click: Optional[Callable[[int, int], object]] = None,
                 publisher: Optional[CommandPublisher] = None):
        """Initialize key bindings.

        Args:
            state: Shared session state
            submit_request: Receives text typed into the input bar (the agent worker)
            on_click: Receives (row, column) of a left click
            publisher: Publishes player commands
        """
        self.state = state
        self.submit_request = submit_request
        self.on_click = on_click
        self.publisher = publisher or CommandPublisher()

    def __call__(self, event: InputEvent) -> bool:
        return self.handle(event)

    def handle(self, event: InputEvent) -> bool:
        """Handle one key or click. Returns True to continue, False to quit."""
        if isinstance(event, MouseClick):
            if self.on_click is not None:
                self.on_click(event.row, event.column)
            return True

        if event == CTRL_C:
            logger.info("User: Ctrl+C quit")
            self.state.request_quit()
            return False

        if event == TAB:
            with self.state.lock:
                editing = self.state.input.mode == InputMode.EDITING
                self.state.input.mode = InputMode.NORMAL if editing else InputMode.EDITING
            logger.debug(f"User: Tab -> {'normal' if editing else 'editing'} mode")
            return True

        with self.state.lock:
            editing = self.state.input.mode == InputMode.EDITING
        if editing:
            self._handle_editing(event)
            return True
        return self._handle_normal(event)

    def _handle_editing(self, key: str) -> None:
        if key == ENTER:
            with self.state.lock:
                text = self.state.input.submit()
            if text.strip():
                logger.info(f"User submitted input: {text}")
                self.submit_request(text)
        elif key == BACKSPACE:
            with self.state.lock:
                self.state.input.backspace()
        elif key == ESCAPE:
            logger.debug("User: Esc -> normal mode")
            with self.state.lock:
                self.state.input.mode = InputMode.NORMAL
        elif len(key) == 1 and key.isprintable():
            with self.state.lock:
                self.state.input.insert(key)

    def _handle_normal(self, key: str) -> bool:
        state = self.state

        if key == "q":
            logger.info("User: q quit")
            state.request_quit()
            return False
        elif key in ("i", "/"):
            with state.lock:
                state.input.mode = InputMode.EDITING
        elif key == "p":
            state.toggle_pause()
        elif key == "n":
            logger.info("User: skip/next")
            self.publisher.publish_command(Skip())
        elif key in ("f", "b"):
            with state.lock:
                if state.current is None:
                    return True
                step = SEEK_STEP_SECONDS if key == "f" else -SEEK_STEP_SECONDS
                position = state.playback_position + step
            logger.info(f"User: seek to {max(position, 0.0):.1f}s")
            self.publisher.publish_command(Seek(position))
        elif key in ("+", "=", "-"):
            with state.lock:
                step = -VOLUME_STEP if key == "-" else VOLUME_STEP
                level = state.volume + step
            self.publisher.publish_command(SetVolume(level))
        elif key == UP:
            state.move_cursor_up()
        elif key == DOWN:
            state.move_cursor_down()
        elif key == LEFT:
            state.switch_panel_left()
        elif key == RIGHT:
            state.switch_panel_right()
        elif key == " ":
            state.play_selected()
        else:
            logger.debug(f"Unhandled key: {key!r}")
        return True
