"""Data models for the vibeplayer application."""

from .audio import AudioFeatures
from .commands import PlayerCommand, PlayFile, Skip, Pause, Resume, SetVolume, Seek
from .events import FetchEvent
from .library import LibraryEntry
from .playback import NowPlaying
from .track import Track, TrackStatus, ALLOWED_TRANSITIONS
from .ui import AgentStatus, FocusedPanel, InputMode, InputState

__all__ = [
    "AudioFeatures",
    "PlayerCommand",
    "PlayFile",
    "Skip",
    "Pause",
    "Resume",
    "SetVolume",
    "Seek",
    "FetchEvent",
    "LibraryEntry",
    "NowPlaying",
    "Track",
    "TrackStatus",
    "ALLOWED_TRANSITIONS",
    "AgentStatus",
    "FocusedPanel",
    "InputMode",
    "InputState",
]
