"""Terminal player screen built with rich."""

import logging
from typing import Optional

from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.track import Track, TrackStatus
from ..models.ui import FocusedPanel, InputMode
from ..services.session_state import SessionState

logger = logging.getLogger(__name__)

INPUT_BAR_HEIGHT = 3
STATUS_BAR_HEIGHT = 1
NOW_PLAYING_HEIGHT = 4
LEFT_RATIO = 65
RIGHT_RATIO = 35
PROGRESS_PREFIX_WIDTH = 7  # "  [>>] "
VOLUME_BAR_WIDTH = 6

STATUS_STYLES = {
    TrackStatus.QUEUED: ("queued", "bright_black"),
    TrackStatus.DOWNLOADING: ("downloading...", "yellow"),
    TrackStatus.READY: ("ready", "green"),
    TrackStatus.PLAYING: ("playing", "magenta"),
    TrackStatus.PLAYED: ("played", "bright_black"),
}


def format_duration(seconds: Optional[float]) -> str:
    total = int(seconds or 0)
    return f"{total // 60}:{total % 60:02d}"


def level_bar(level: float, width: int = 20) -> str:
    filled = int(max(0.0, min(1.0, level)) * width)
    return "█" * filled + "░" * (width - filled)


class PlayerScreen:
    """Draws the session state: input bar, visualizer, now playing, library and queue.

    ``render`` is handed to the playback loop and runs under the session lock,
    so it only reads state and swaps the layout shown by ``Live``. Terminal
    output happens on the ``Live`` refresh thread.
    """

    def __init__(self, console: Optional[Console] = None, refresh_per_second: int = 20):
        self.console = console or Console()
        self.refresh_per_second = refresh_per_second
        self.live: Optional[Live] = None
        self.frames_rendered = 0

    def create_layout(self) -> Layout:
        """Create the main UI layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="input_bar", size=INPUT_BAR_HEIGHT),
            Layout(name="main", ratio=1),
            Layout(name="status_bar", size=STATUS_BAR_HEIGHT)
        )
        layout["main"].split_row(
            Layout(name="left", ratio=LEFT_RATIO),
            Layout(name="right", ratio=RIGHT_RATIO)
        )
        layout["left"].split_column(
            Layout(name="visualizer", ratio=1),
            Layout(name="now_playing", size=NOW_PLAYING_HEIGHT)
        )
        layout["right"].split_column(
            Layout(name="library", ratio=1),
            Layout(name="queue", ratio=1)
        )
        return layout

    def start(self) -> None:
        self.live = Live(self.create_layout(), console=self.console,
                         refresh_per_second=self.refresh_per_second, screen=True)
        self.live.start()
        logger.info("Player screen started")

    def stop(self) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None
        logger.info("Player screen stopped")

    def __call__(self, state: SessionState) -> Layout:
        return self.render(state)

    def render(self, state: SessionState) -> Layout:
        """Build a frame from ``state`` and hand it to the live display.

        Also records where the progress bar landed so clicks can seek.
        """
        layout = self.create_layout()
        width, height = self.console.size

        self.update_input_bar(layout, state)
        self.update_visualizer(layout, state)
        self.update_now_playing(layout, state, width, height)
        self.update_track_list(layout["library"], "LIBRARY", state.library, state.library_cursor,
                               state.focused_panel == FocusedPanel.LIBRARY, "library is empty")
        self.update_track_list(layout["queue"], "UP NEXT", state.queue, state.queue_cursor,
                               state.focused_panel == FocusedPanel.QUEUE, "queue is empty")
        self.update_status_bar(layout, state)

        if self.live is not None:
            self.live.update(layout)
        self.frames_rendered += 1
        return layout

    def update_input_bar(self, layout: Layout, state: SessionState) -> None:
        editing = state.input.mode == InputMode.EDITING
        status = state.agent_status

        if status.kind == "thinking":
            indicator = (" * thinking... ", "yellow")
        elif status.kind == "acting":
            indicator = (f" * {status.tool}... ", "cyan")
        else:
            indicator = (" > ", "green" if editing else "bright_black")

        if editing:
            text = Text.assemble(indicator, (state.input.text, "white"), ("_", "white"))
        elif state.input.text:
            text = Text.assemble(indicator, (state.input.text, "bright_black"))
        else:
            text = Text.assemble(indicator, ("press Tab to type, or use shortcuts below", "bright_black"))

        layout["input_bar"].update(Panel(
            text,
            title="vibeplayer",
            border_style="magenta" if editing else "bright_black"
        ))

    def update_visualizer(self, layout: Layout, state: SessionState) -> None:
        """Band levels from the latest audio feature snapshot."""
        if state.current is None:
            if state.status_message:
                message = Text(state.status_message, style="yellow")
            else:
                message = Text("paste a link or describe a vibe to start", style="bright_black")
            layout["visualizer"].update(Panel(Align.center(message, vertical="middle"),
                                              border_style="bright_black"))
            return

        features = state.audio_features
        table = Table(show_header=False, box=None, expand=True)
        table.add_column("Band", style="cyan", width=8)
        table.add_column("Level", ratio=1)
        table.add_column("Value", justify="right", width=6)

        for name, level, style in (("Bass", features.bass, "magenta"),
                                   ("Mid", features.mid, "yellow"),
                                   ("Treble", features.treble, "cyan"),
                                   ("RMS", features.rms, "blue")):
            table.add_row(name, Text(level_bar(level, 40), style=style), f"{level:.2f}")

        beat = Text("● BEAT", style="bold magenta") if features.is_beat else Text("○", style="bright_black")
        table.add_row("", beat, "")
        if state.status_message:
            table.add_row("", Text(state.status_message, style="yellow"), "")

        layout["visualizer"].update(Panel(table, border_style="bright_black"))

    def update_now_playing(self, layout: Layout, state: SessionState, width: int, height: int) -> None:
        current = state.current
        if current is None:
            state.progress_bar_area = None
            layout["now_playing"].update(Panel(Text(""), border_style="bright_black"))
            return

        track = current.track
        title = Text.assemble((f"  {track.title}", "bold white"))
        if track.artist:
            title.append(f" - {track.artist}", style="bright_black")

        duration = track.duration or 0.0
        elapsed = min(state.playback_position, duration) if duration > 0 else state.playback_position
        progress = elapsed / duration if duration > 0 else 0.0

        icon = "||" if state.paused else ">>"
        prefix = f"  [{icon}] "
        time_str = f" {format_duration(elapsed)} / {format_duration(duration)}"

        # Border and padding take two columns on each side of the panel
        panel_width = width * LEFT_RATIO // (LEFT_RATIO + RIGHT_RATIO) - 4
        bar_width = max(panel_width - len(prefix) - 1 - len(time_str), 0)
        filled = min(int(progress * bar_width), bar_width)

        progress_line = Text.assemble(
            (prefix, "green"),
            ("━" * filled, "magenta"),
            ("●", "white"),
            ("━" * (bar_width - filled), "bright_black"),
            time_str
        )

        # Progress line is the second line inside the bordered now-playing panel
        bar_row = height - STATUS_BAR_HEIGHT - NOW_PLAYING_HEIGHT + 2
        bar_col_start = 2 + PROGRESS_PREFIX_WIDTH
        state.progress_bar_area = (bar_row, bar_col_start, bar_col_start + bar_width)

        layout["now_playing"].update(Panel(Text("\n").join([title, progress_line]),
                                           border_style="bright_black"))

    def update_track_list(self, region: Layout, title: str, tracks, cursor: int,
                          focused: bool, empty_message: str) -> None:
        border = "cyan" if focused else "bright_black"
        if not tracks:
            region.update(Panel(Text(f"  {empty_message}", style="bright_black"),
                                title=title, border_style=border))
            return

        lines = []
        for i, track in enumerate(tracks):
            selected = i == cursor
            marker = "> " if selected else "  "
            title_style = "cyan" if selected and focused else "white"
            lines.append(Text.assemble((f"{marker}{i + 1}. ", "bright_black"),
                                       (track.title, title_style)))
            lines.append(self._track_detail(track))

        region.update(Panel(Text("\n").join(lines), title=title, border_style=border))

    @staticmethod
    def _track_detail(track: Track) -> Text:
        label, style = STATUS_STYLES[track.status]
        detail = Text("     ")
        if track.artist:
            detail.append(f"{track.artist}  ", style="bright_black")
        if track.duration:
            detail.append(f"{format_duration(track.duration)}  ", style="bright_black")
        detail.append(label, style=style)
        return detail

    def update_status_bar(self, layout: Layout, state: SessionState) -> None:
        """Key hints plus the volume gauge."""
        if state.input.mode == InputMode.EDITING:
            text = Text.assemble(
                (" INPUT ", "black on magenta"),
                (" [Tab]", "yellow"), (" controls ", "bright_black"),
                (" [Esc]", "yellow"), (" controls ", "bright_black"),
                (" [Enter]", "yellow"), (" send ", "bright_black")
            )
        else:
            text = Text.assemble(
                (" CONTROLS ", "black on cyan"),
                (" [Space]", "yellow"), (" play ", "bright_black"),
                (" [↑↓]", "yellow"), (" nav ", "bright_black"),
                (" [←→]", "yellow"), (" panel ", "bright_black"),
                (" [Tab]", "yellow"), (" input ", "bright_black"),
                (" [n]", "yellow"), (" next ", "bright_black"),
                (" [f/b]", "yellow"), (" seek ", "bright_black"),
                (" [+/-]", "yellow"), (" vol ", "bright_black"),
                (" [q]", "yellow"), (" quit ", "bright_black")
            )

        text.append("    vol ")
        text.append(level_bar(state.volume / 100.0, VOLUME_BAR_WIDTH), style="cyan")
        text.append(f" {state.volume}%", style="bright_black")
        layout["status_bar"].update(text)
