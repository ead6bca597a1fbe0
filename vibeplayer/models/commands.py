"""Player commands queued by producers and applied by the playback loop."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class PlayFile:
    """Start playing a resolved local file."""
    path: Path
    title: str
    artist: str
    url: str
    duration: Optional[float] = None


@dataclass(frozen=True)
class Skip:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class SetVolume:
    """Volume in percent. Out-of-range levels are clamped, not rejected."""
    level: int

    def __post_init__(self):
        object.__setattr__(self, "level", max(0, min(100, int(self.level))))


@dataclass(frozen=True)
class Seek:
    """Advisory reposition, in seconds from the start of the track."""
    position: float

    def __post_init__(self):
        object.__setattr__(self, "position", max(0.0, float(self.position)))


PlayerCommand = Union[PlayFile, Skip, Pause, Resume, SetVolume, Seek]
