"""Now-playing bookkeeping."""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .track import Track, TrackStatus


@dataclass
class NowPlaying:
    """The active track plus the timing state needed for ``elapsed``."""
    track: Track
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)
    started_at: float = field(default=None)
    paused_elapsed: float = 0.0
    paused_at: Optional[float] = None

    def __post_init__(self):
        if self.started_at is None:
            self.started_at = self.clock()
        self.track.advance(TrackStatus.PLAYING)

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def elapsed(self) -> float:
        """Seconds of playback, excluding every paused interval."""
        now = self.paused_at if self.paused_at is not None else self.clock()
        return max(0.0, now - self.started_at - self.paused_elapsed)

    def pause(self) -> None:
        if self.paused_at is None:
            self.paused_at = self.clock()

    def resume(self) -> None:
        if self.paused_at is not None:
            self.paused_elapsed += self.clock() - self.paused_at
            self.paused_at = None

    def finish(self) -> None:
        """Mark the track as played once it leaves the player."""
        self.track.advance(TrackStatus.PLAYED)
