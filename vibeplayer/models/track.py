"""Track data model and its status state machine."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Optional

from ..errors import InvalidTransitionError


class TrackStatus(Enum):
    """Lifecycle of a track from request to playback."""
    QUEUED = "queued"
    DOWNLOADING = "downloading"
    READY = "ready"
    PLAYING = "playing"
    PLAYED = "played"


# The only place status changes are validated.
ALLOWED_TRANSITIONS: Dict[TrackStatus, FrozenSet[TrackStatus]] = {
    TrackStatus.QUEUED: frozenset({TrackStatus.DOWNLOADING, TrackStatus.READY}),
    TrackStatus.DOWNLOADING: frozenset({TrackStatus.READY}),
    TrackStatus.READY: frozenset({TrackStatus.PLAYING}),
    TrackStatus.PLAYING: frozenset({TrackStatus.PLAYED}),
    TrackStatus.PLAYED: frozenset(),
}


@dataclass
class Track:
    """One addressable piece of audio and its metadata."""
    title: str
    artist: str
    url: str  # Source identifier, stable across queue mutations
    file_path: Optional[Path] = None
    duration: Optional[float] = None  # Seconds
    status: TrackStatus = TrackStatus.QUEUED

    @classmethod
    def queued(cls, title: str, artist: str, url: str) -> "Track":
        return cls(title=title, artist=artist, url=url)

    @classmethod
    def downloading(cls, url: str, title: str = "Loading...", artist: str = "") -> "Track":
        """Placeholder shown while a retrieval is in flight."""
        return cls(title=title or "Loading...", artist=artist, url=url,
                   status=TrackStatus.DOWNLOADING)

    @classmethod
    def ready(cls, title: str, artist: str, url: str,
              file_path: Path, duration: Optional[float]) -> "Track":
        return cls(title=title, artist=artist, url=url, file_path=Path(file_path),
                   duration=duration, status=TrackStatus.READY)

    def advance(self, target: TrackStatus) -> None:
        """Move to ``target`` status.

        Raises:
            InvalidTransitionError: If the transition table does not allow it
        """
        if target == self.status:
            return
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status, target)
        self.status = target

    def resolve(self, file_path: Path, title: str, artist: str,
                duration: Optional[float]) -> None:
        """Fill in retrieved metadata and mark the track ready to play."""
        self.advance(TrackStatus.READY)
        self.file_path = Path(file_path)
        self.title = title
        self.artist = artist
        self.duration = duration

    @property
    def is_playable(self) -> bool:
        return self.status == TrackStatus.READY and self.file_path is not None
