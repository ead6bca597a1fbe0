"""Playback service: the fixed-rate loop that owns the playback controller."""

import time
import logging
import threading
from typing import Callable, Optional

from pubsub import pub

from ..audio.player import PlaybackController
from ..errors import PlaybackError
from ..models.commands import PlayerCommand, PlayFile, Skip, Pause, Resume, SetVolume, Seek
from ..models.events import FetchEvent
from ..models.track import Track
from .command_publisher import COMMAND_TOPIC, FETCH_EVENTS_TOPIC
from .session_state import SessionState

logger = logging.getLogger(__name__)


class PlaybackService:
    """Drains the command queue and drives auto-advance, once per tick.

    This is the only code that touches the ``PlaybackController``. Keyboard,
    agent and fetch threads talk to it by enqueuing commands on the session
    state, directly or through the ``player.command`` pub/sub topic.
    """

    def __init__(self,
                 state: SessionState,
                 controller: PlaybackController,
                 renderer: Optional[Callable[[SessionState], None]] = None,
                 tick_interval: float = 0.05,
                 command_topic: str = COMMAND_TOPIC,
                 fetch_events_topic: str = FETCH_EVENTS_TOPIC):
        """Initialize playback service.

        Args:
            state: Shared session state
            controller: The single playback controller
            renderer: Called once per tick with the state, while its lock is held
            tick_interval: Seconds between ticks
            command_topic: Pub/sub topic carrying player commands
            fetch_events_topic: Pub/sub topic carrying fetch outcomes
        """
        self.state = state
        self.controller = controller
        self.renderer = renderer
        self.tick_interval = tick_interval
        self.command_topic = command_topic
        self.fetch_events_topic = fetch_events_topic

        self.stop_event = threading.Event()
        self.ticks = 0

        self.controller.set_volume(self.state.volume)
        pub.subscribe(self.on_command, self.command_topic)
        pub.subscribe(self.on_fetch_event, self.fetch_events_topic)
        logger.info(f"PlaybackService initialized (tick {tick_interval * 1000:.0f}ms)")

    # Pub/sub listeners

    def on_command(self, command: PlayerCommand) -> None:
        self.state.enqueue_command(command)

    def on_fetch_event(self, event: FetchEvent) -> None:
        if event.succeeded:
            self.state.set_status_message(None)
        else:
            self.state.set_status_message(f"Download error: {event.error}")

    # Loop

    def tick(self) -> None:
        """Run one iteration: poll, render, apply commands, auto-advance."""
        position = self.controller.get_position()
        features = self.controller.get_audio_features()

        with self.state.lock:
            if self.state.current is not None:
                self.state.playback_position = position
                self.state.audio_features = features
            if self.renderer is not None:
                self.renderer(self.state)

        for command in self.state.drain_commands():
            self.apply_command(command)

        self.auto_advance()
        self.ticks += 1

    def run(self) -> None:
        """Tick at a fixed rate until ``stop`` is called or the user quits."""
        logger.info("Playback loop started")
        while not self.stop_event.is_set():
            started = time.monotonic()
            self.tick()
            if self.state.should_quit:
                logger.info("Quit requested")
                break
            remaining = self.tick_interval - (time.monotonic() - started)
            if remaining > 0:
                self.stop_event.wait(remaining)
        logger.info(f"Playback loop stopped after {self.ticks} ticks")

    def stop(self) -> None:
        self.stop_event.set()

    def shutdown(self) -> None:
        """Stop the loop, unsubscribe and release the audio device."""
        self.stop()
        pub.unsubscribe(self.on_command, self.command_topic)
        pub.unsubscribe(self.on_fetch_event, self.fetch_events_topic)
        self.controller.close()
        logger.info("PlaybackService shut down")

    # Commands

    def apply_command(self, command: PlayerCommand) -> None:
        """Apply one command to the controller and mirror it in the state."""
        logger.debug(f"Applying command: {command}")
        if isinstance(command, PlayFile):
            self._play_file(command)
        elif isinstance(command, Skip):
            self.controller.stop()
            self.state.stop_playing()
        elif isinstance(command, (Pause, Resume)):
            if self.state.current is None:
                logger.debug(f"Ignoring {type(command).__name__}: nothing is playing")
            elif isinstance(command, Pause):
                self.controller.pause()
                self.state.set_paused(True)
            else:
                self.controller.resume()
                self.state.set_paused(False)
        elif isinstance(command, SetVolume):
            self.controller.set_volume(command.level)
            with self.state.lock:
                self.state.volume = command.level
        elif isinstance(command, Seek):
            self.controller.seek(command.position)
        else:
            raise TypeError(f"Unknown player command: {command!r}")

    def _play_file(self, command: PlayFile) -> None:
        try:
            self.controller.play(command.path, command.duration)
        except PlaybackError as e:
            logger.error(f"Failed to play {command.path}: {e}")
            self.state.set_status_message(f"Playback error: {e}")
            return

        track = Track.ready(command.title, command.artist, command.url,
                            command.path, command.duration)
        with self.state.lock:
            if self.state.current is not None:
                self.state.current.finish()
            self.state.start_playing(track)

    def auto_advance(self) -> None:
        """Play the next ready queue entry once the controller runs dry.

        Entries that are still queued or downloading keep their place. With
        nothing ready, the finished song is retired and the session goes idle.
        """
        if not self.controller.is_empty():
            return

        track = self.state.pop_next_ready()
        if track is None:
            if self.state.is_active:
                self.state.stop_playing()
            return

        try:
            self.controller.play(track.file_path, track.duration)
        except PlaybackError as e:
            logger.error(f"Failed to play queued song {track.title}: {e}")
            self.state.set_status_message(f"Playback error: {e}")
            return

        with self.state.lock:
            if self.state.current is not None:
                self.state.current.finish()
            self.state.start_playing(track)

    # Mouse

    def handle_click(self, row: int, column: int) -> Optional[Seek]:
        """Turn a click on the progress bar into a ``Seek`` command.

        Returns:
            The enqueued command, or None if the click missed the bar
        """
        with self.state.lock:
            area = self.state.progress_bar_area
            current = self.state.current
            if area is None or current is None or not current.track.duration:
                return None
            bar_row, col_start, col_end = area
            if row != bar_row or not col_start <= column < col_end:
                return None
            fraction = (column - col_start) / max(col_end - col_start, 1)
            command = Seek(fraction * current.track.duration)
            self.state.enqueue_command(command)
        logger.debug(f"Progress bar click at column {column} -> {command.position:.1f}s")
        return command
