"""Session state: the single shared aggregate behind one lock."""

import time
import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..models.audio import AudioFeatures
from ..models.commands import PlayerCommand, PlayFile, Pause, Resume
from ..models.playback import NowPlaying
from ..models.track import Track, TrackStatus
from ..models.ui import AgentStatus, FocusedPanel, InputState

logger = logging.getLogger(__name__)


class SessionState:
    """Now playing, queue, library, UI cursors and the pending command queue.

    Shared by the playback loop, fetch threads, the agent thread and the
    keyboard thread. Every public method takes ``lock`` for the duration of a
    small in-memory mutation and never performs I/O. Callers that need
    several reads to be consistent (the screen, for instance) hold ``lock``
    themselves; it is re-entrant.
    """

    def __init__(self, volume: int = 70, clock: Callable[[], float] = time.monotonic):
        """Initialize an idle session.

        Args:
            volume: Initial volume, 0-100
            clock: Monotonic clock handed to every NowPlaying
        """
        self.lock = threading.RLock()
        self.clock = clock

        self.queue: List[Track] = []
        self.library: List[Track] = []
        self.current: Optional[NowPlaying] = None

        self.input = InputState()
        self.agent_status = AgentStatus.idle()
        self.volume = max(0, min(100, int(volume)))
        self.paused = False
        self.audio_features = AudioFeatures.silent()
        self.pending_commands: List[PlayerCommand] = []
        self.status_message: Optional[str] = None

        self.focused_panel = FocusedPanel.LIBRARY
        self.library_cursor = 0
        self.queue_cursor = 0
        self.playback_position = 0.0
        # Clickable progress bar region reported by the screen: (row, col_start, col_end)
        self.progress_bar_area: Optional[Tuple[int, int, int]] = None
        self.should_quit = False

    # Command queue

    def enqueue_command(self, command: PlayerCommand) -> None:
        with self.lock:
            self.pending_commands.append(command)
        logger.debug(f"Command enqueued: {command}")

    def drain_commands(self) -> List[PlayerCommand]:
        """Take every pending command, oldest first."""
        with self.lock:
            commands = self.pending_commands
            self.pending_commands = []
        return commands

    # Queue and library

    def append_to_queue(self, track: Track) -> None:
        with self.lock:
            self.queue.append(track)

    def resolve_queued(self, url: str, file_path: Path, title: str, artist: str,
                       duration: Optional[float]) -> bool:
        """Mark the downloading queue entry for ``url`` as ready, in place.

        Returns:
            False if no such entry is waiting any more (removed or cleared)
        """
        with self.lock:
            for track in self.queue:
                if track.url == url and track.status in (TrackStatus.QUEUED, TrackStatus.DOWNLOADING):
                    track.resolve(file_path, title, artist, duration)
                    return True
        return False

    def remove_from_queue(self, index: int) -> Optional[Track]:
        with self.lock:
            if not 0 <= index < len(self.queue):
                return None
            track = self.queue.pop(index)
            self.clamp_cursors()
            return track

    def discard_from_queue(self, track: Track) -> bool:
        """Remove ``track`` by identity, if it is still queued."""
        with self.lock:
            for i, queued in enumerate(self.queue):
                if queued is track:
                    del self.queue[i]
                    self.clamp_cursors()
                    return True
        return False

    def clear_queue(self) -> None:
        with self.lock:
            self.queue.clear()
            self.clamp_cursors()
        logger.info("Queue cleared")

    def add_to_library(self, track: Track) -> bool:
        """Append to the library panel unless the url is already there."""
        with self.lock:
            if any(existing.url == track.url for existing in self.library):
                return False
            self.library.append(track)
            self.clamp_cursors()
        logger.info(f"Added song to library panel: {track.title}")
        return True

    def next_ready(self) -> Optional[Track]:
        """First queue entry that can be played, left in place."""
        with self.lock:
            for track in self.queue:
                if track.is_playable:
                    return track
        return None

    def pop_next_ready(self) -> Optional[Track]:
        """Remove and return the first playable queue entry.

        Entries ahead of it that are still queued or downloading keep their
        place in the queue.
        """
        with self.lock:
            track = self.next_ready()
            if track is not None:
                self.discard_from_queue(track)
            return track

    # Cursors

    def clamp_cursors(self) -> None:
        """Pull both cursors back inside their collections."""
        with self.lock:
            self.library_cursor = min(self.library_cursor, max(len(self.library) - 1, 0))
            self.queue_cursor = min(self.queue_cursor, max(len(self.queue) - 1, 0))

    def move_cursor_up(self) -> None:
        with self.lock:
            if self.focused_panel == FocusedPanel.LIBRARY:
                self.library_cursor = max(self.library_cursor - 1, 0)
            else:
                self.queue_cursor = max(self.queue_cursor - 1, 0)

    def move_cursor_down(self) -> None:
        with self.lock:
            if self.focused_panel == FocusedPanel.LIBRARY:
                if self.library:
                    self.library_cursor = min(self.library_cursor + 1, len(self.library) - 1)
            else:
                if self.queue:
                    self.queue_cursor = min(self.queue_cursor + 1, len(self.queue) - 1)

    def switch_panel_left(self) -> None:
        with self.lock:
            self.focused_panel = FocusedPanel.LIBRARY

    def switch_panel_right(self) -> None:
        with self.lock:
            self.focused_panel = FocusedPanel.QUEUE

    def play_selected(self) -> Optional[PlayerCommand]:
        """Turn the selected ready entry into a PlayFile command.

        A queue entry leaves the queue; a library entry stays in the library.
        Without a playable selection this toggles pause on the current song.

        Returns:
            The enqueued command, or None if there was nothing to do
        """
        with self.lock:
            command = None
            if self.focused_panel == FocusedPanel.LIBRARY:
                index = self.library_cursor
                if index < len(self.library) and self.library[index].is_playable:
                    command = self._play_command(self.library[index])
            else:
                index = self.queue_cursor
                if index < len(self.queue) and self.queue[index].is_playable:
                    command = self._play_command(self.remove_from_queue(index))

            if command is None:
                return self.toggle_pause()

            self.enqueue_command(command)
            return command

    def toggle_pause(self) -> Optional[PlayerCommand]:
        """Enqueue Pause or Resume for the current song, if there is one."""
        with self.lock:
            if self.current is None:
                return None
            command = Resume() if self.paused else Pause()
            self.enqueue_command(command)
            return command

    @staticmethod
    def _play_command(track: Track) -> PlayFile:
        return PlayFile(
            path=track.file_path,
            title=track.title,
            artist=track.artist,
            url=track.url,
            duration=track.duration
        )

    # Now playing

    @property
    def is_active(self) -> bool:
        return self.current is not None

    def start_playing(self, track: Track) -> NowPlaying:
        """Make ``track`` the active song with a fresh timer."""
        with self.lock:
            now_playing = NowPlaying(track=track, clock=self.clock)
            self.current = now_playing
            self.paused = False
            self.playback_position = 0.0
            self.status_message = None
        logger.info(f"Now playing: {track.title} ({track.url})")
        return now_playing

    def stop_playing(self) -> None:
        """Retire the active song and go idle."""
        with self.lock:
            if self.current is not None:
                self.current.finish()
                logger.info(f"Finished: {self.current.track.title}")
            self.current = None
            self.paused = False
            self.playback_position = 0.0
            self.audio_features = AudioFeatures.silent()

    def set_paused(self, paused: bool) -> None:
        with self.lock:
            self.paused = paused
            if self.current is not None:
                if paused:
                    self.current.pause()
                else:
                    self.current.resume()

    def set_agent_status(self, status: AgentStatus) -> None:
        with self.lock:
            self.agent_status = status

    def set_status_message(self, message: Optional[str]) -> None:
        with self.lock:
            self.status_message = message

    def request_quit(self) -> None:
        with self.lock:
            self.should_quit = True

    def build_context(self) -> str:
        """Plain-text summary of the session for the agent prompt."""
        with self.lock:
            lines = []
            if self.current is not None:
                track = self.current.track
                lines.append(f"Now playing: {track.title} - {track.artist}")
            else:
                lines.append("Now playing: nothing")

            if self.library:
                lines.append("Library:")
                lines.extend(f"  {i}. {track.title}" for i, track in enumerate(self.library, 1))
            else:
                lines.append("Library: empty")

            if self.queue:
                lines.append("Queue:")
                lines.extend(f"  {i}. {track.title} ({track.status.value})"
                             for i, track in enumerate(self.queue, 1))
            else:
                lines.append("Queue: empty")

            lines.append(f"Volume: {self.volume}")
            lines.append(f"Paused: {'yes' if self.paused else 'no'}")
        return "\n".join(lines) + "\n"
