"""Exception hierarchy for vibeplayer."""


class VibePlayerError(Exception):
    """Base exception for vibeplayer."""

    pass


class PlaybackError(VibePlayerError):
    """Raised when the playback pipeline cannot be established."""

    pass


class PlaybackIOError(PlaybackError):
    """Raised when an audio file cannot be opened."""

    pass


class PlaybackDecodeError(PlaybackError):
    """Raised when an audio file has an unrecognized or corrupt format."""

    pass


class PlaybackDeviceError(PlaybackError):
    """Raised when the audio device refuses an output stream for a decoded file."""

    pass


class SeekError(PlaybackError):
    """Raised when the decoder refuses to seek. Never surfaced to the user."""

    pass


class InvalidTransitionError(VibePlayerError):
    """Raised when a track status change is not in the transition table."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Invalid track status transition: {current.value} -> {target.value}")


class FetchError(VibePlayerError):
    """Raised when retrieving or searching the video platform fails."""

    pass


class LibraryError(VibePlayerError):
    """Raised when the library file cannot be read or written."""

    pass


class AgentError(VibePlayerError):
    """Raised when the LLM call fails or returns something unusable."""

    pass
