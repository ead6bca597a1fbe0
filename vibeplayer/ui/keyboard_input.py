"""Keyboard and mouse input handling for the terminal UI."""

import sys
import threading
import time
from typing import Optional, Callable, NamedTuple, Union
import logging

logger = logging.getLogger(__name__)

# Key names produced besides single printable characters
UP, DOWN, LEFT, RIGHT = "up", "down", "left", "right"
ENTER, TAB, ESCAPE, BACKSPACE, CTRL_C = "enter", "tab", "escape", "backspace", "ctrl+c"

ESCAPE_SEQUENCES = {
    "[A": UP,
    "[B": DOWN,
    "[C": RIGHT,
    "[D": LEFT,
}

CONTROL_KEYS = {
    "\r": ENTER,
    "\n": ENTER,
    "\t": TAB,
    "\x7f": BACKSPACE,
    "\x08": BACKSPACE,
    "\x03": CTRL_C,
}

ENABLE_MOUSE = "\x1b[?1000h\x1b[?1006h"
DISABLE_MOUSE = "\x1b[?1000l\x1b[?1006l"


class MouseClick(NamedTuple):
    """Left button press at a 0-based (row, column)."""
    row: int
    column: int


InputEvent = Union[str, MouseClick]


def parse_sequence(sequence: str) -> Optional[InputEvent]:
    """Decode what followed an ESC byte.

    Handles arrow keys and SGR mouse reports (``[<button;col;rowM``).
    Returns None for sequences the player does not use.
    """
    if not sequence:
        return ESCAPE
    if sequence in ESCAPE_SEQUENCES:
        return ESCAPE_SEQUENCES[sequence]
    if sequence.startswith("[<") and sequence.endswith("M"):
        try:
            button, column, row = (int(part) for part in sequence[2:-1].split(";"))
        except ValueError:
            logger.debug(f"Malformed mouse report: {sequence!r}")
            return None
        if button == 0:
            return MouseClick(row - 1, column - 1)
    return None


def decode_key(char: str) -> str:
    return CONTROL_KEYS.get(char, char)


class KeyboardInputHandler:
    """Read keys and clicks from the terminal on a background thread."""

    def __init__(self, callback: Callable[[InputEvent], bool], enable_mouse: bool = True):
        """Initialize keyboard handler.

        Args:
            callback: Function that takes a key or click and returns True to continue, False to quit
            enable_mouse: Ask the terminal to report mouse clicks
        """
        self.callback = callback
        self.enable_mouse = enable_mouse
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the keyboard input handler."""
        if self.running:
            return

        self.running = True
        if self.enable_mouse:
            sys.stdout.write(ENABLE_MOUSE)
            sys.stdout.flush()
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        """Stop the keyboard input handler."""
        self.running = False
        if self.thread:
            self.thread.join(timeout=1.0)
        if self.enable_mouse:
            sys.stdout.write(DISABLE_MOUSE)
            sys.stdout.flush()
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        """Main input handling loop."""
        logger.info("Starting keyboard input loop")
        while self.running:
            try:
                event = self._get_key()
                if event:
                    logger.debug(f"Input event: {event!r}")
                    if not self.callback(event):
                        logger.info("Callback returned False, breaking input loop")
                        break
                else:
                    # Small delay to prevent busy waiting
                    time.sleep(0.01)
            except Exception as e:
                logger.error(f"Error in input loop: {e}", exc_info=True)
                break
        logger.info("Keyboard input loop ended")

    def _get_key(self) -> Optional[InputEvent]:
        """Get a single key or click, or None if nothing is pending."""
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()

    def _get_key_windows(self) -> Optional[InputEvent]:
        try:
            import msvcrt
        except ImportError:
            logger.warning("msvcrt not available for Windows key input")
            return None

        if not msvcrt.kbhit():
            return None
        char = msvcrt.getwch()
        if char in ("\x00", "\xe0"):
            return {"H": UP, "P": DOWN, "K": LEFT, "M": RIGHT}.get(msvcrt.getwch())
        if char == "\x1b":
            return ESCAPE
        return decode_key(char)

    def _get_key_unix(self) -> Optional[InputEvent]:
        import select
        import tty
        import termios

        if not select.select([sys.stdin], [], [], 0.05)[0]:
            return None

        # Raw mode for the whole sequence so multi-byte keys arrive intact
        old_settings = termios.tcgetattr(sys.stdin)
        try:
            tty.setraw(sys.stdin.fileno())
            char = sys.stdin.read(1)
            if char != "\x1b":
                return decode_key(char)

            sequence = ""
            while select.select([sys.stdin], [], [], 0.01)[0]:
                sequence += sys.stdin.read(1)
                if sequence[-1].isalpha() or sequence[-1] == "~":
                    break
            return parse_sequence(sequence)
        finally:
            termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
