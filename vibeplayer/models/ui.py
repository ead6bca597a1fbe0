"""UI-related data models shared between the core and the screen."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FocusedPanel(Enum):
    LIBRARY = "library"
    QUEUE = "queue"


class InputMode(Enum):
    NORMAL = "normal"
    EDITING = "editing"


@dataclass(frozen=True)
class AgentStatus:
    """What the natural-language agent is doing right now."""
    kind: str = "idle"  # "idle" | "thinking" | "acting"
    tool: Optional[str] = None

    @classmethod
    def idle(cls) -> "AgentStatus":
        return cls()

    @classmethod
    def thinking(cls) -> "AgentStatus":
        return cls(kind="thinking")

    @classmethod
    def acting(cls, tool: str) -> "AgentStatus":
        return cls(kind="acting", tool=tool)

    @property
    def label(self) -> str:
        if self.kind == "acting":
            return f"Acting: {self.tool}"
        return self.kind.capitalize()


@dataclass
class InputState:
    """Single-line editor for agent requests."""
    text: str = ""
    cursor: int = 0
    mode: InputMode = InputMode.NORMAL

    def insert(self, char: str) -> None:
        self.text = self.text[:self.cursor] + char + self.text[self.cursor:]
        self.cursor += len(char)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
            self.cursor -= 1

    def clear(self) -> None:
        self.text = ""
        self.cursor = 0

    def submit(self) -> str:
        text = self.text
        self.clear()
        return text
