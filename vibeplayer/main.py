"""Main application entry point for vibeplayer."""

import sys
import logging
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .agent import Agent, AgentWorker, ClaudeClient
from .audio.player import PlaybackController
from .config import VibePlayerConfig
from .errors import LibraryError
from .fetch.downloader import YouTubeFetcher
from .services.command_publisher import CommandPublisher, FetchEventPublisher
from .services.fetch_service import FetchOrchestrator
from .services.playback_service import PlaybackService
from .services.session_state import SessionState
from .storage.library import Library
from .ui.key_bindings import PlayerKeyBindings
from .ui.keyboard_input import KeyboardInputHandler
from .ui.player_screen import PlayerScreen

logger = logging.getLogger(__name__)


class VibePlayerApp:
    """Wires the session state, playback loop, fetchers, agent and screen together."""

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None,
                 volume: Optional[int] = None):
        # Load configuration
        self.config = VibePlayerConfig(config_path)
        if volume is not None:
            self.config.set('player.default_volume', volume)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)

        self.playback: Optional[PlaybackService] = None
        self.agent_worker: Optional[AgentWorker] = None
        self.input_handler: Optional[KeyboardInputHandler] = None
        self.screen: Optional[PlayerScreen] = None
        self.fetch: Optional[FetchOrchestrator] = None

    def init(self) -> None:
        logger.info("Initializing services...")

        api_key = self.config.get_api_key()
        cache_dir = self.config.get_cache_directory()
        cache_dir.mkdir(parents=True, exist_ok=True)
        library_path = self.config.get_library_path()
        logger.info(f"Cache directory: {cache_dir}")
        logger.info(f"Library file: {library_path}")

        volume = int(self.config.get('player.default_volume', 70))
        tick_ms = self.config.get('player.tick_ms', 50)
        frames_per_buffer = self.config.get('player.frames_per_buffer', 1024)

        self.state = SessionState(volume=volume)
        self.library = Library.load(library_path)
        self.screen = PlayerScreen()

        self.playback = PlaybackService(
            self.state,
            PlaybackController(frames_per_buffer=frames_per_buffer, volume=volume),
            renderer=self.screen.render,
            tick_interval=tick_ms / 1000.0
        )
        self.fetch = FetchOrchestrator(
            self.state,
            self.library,
            YouTubeFetcher(cache_dir),
            cache_dir,
            FetchEventPublisher()
        )

        client = ClaudeClient(
            api_key,
            model=self.config.get('agent.model', 'claude-sonnet-4-5-20250929'),
            max_tokens=self.config.get('agent.max_tokens', 1024)
        )
        commands = CommandPublisher()
        self.agent_worker = AgentWorker(Agent(self.state, self.fetch, client, commands))

        bindings = PlayerKeyBindings(
            self.state,
            submit_request=self.agent_worker.submit,
            on_click=self.playback.handle_click,
            publisher=commands
        )
        self.input_handler = KeyboardInputHandler(bindings)
        logger.info(f"Player initialized: volume {volume}, tick {tick_ms}ms")

    def run(self, play_url: Optional[str] = None) -> None:
        try:
            self.fetch.restore_library()
            if play_url:
                self.fetch.queue_url(play_url)

            self.screen.start()
            self.agent_worker.start()
            self.input_handler.start()
            self.playback.run()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.input_handler:
            self.input_handler.stop()
        if self.agent_worker:
            self.agent_worker.shutdown()
        if self.playback:
            self.playback.shutdown()
        if self.screen:
            self.screen.stop()
        logger.info("vibeplayer shut down")


def setup_logging(config: VibePlayerConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get_log_path()
    console_output = config.get('logging.console_output', False)

    # Create logs directory if it doesn't exist
    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config, the terminal belongs to the UI
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("vibeplayer starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (default: built-in settings)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Set logging level (default: from config, INFO)")
@click.option("--volume", type=click.IntRange(0, 100, clamp=True),
              help="Initial volume 0-100 (overrides config)")
@click.option("--play", "play_url", metavar="URL", help="Queue a URL at start-up")
@click.version_option(__version__, prog_name="vibeplayer")
def main(config_path: Optional[str], log_level: Optional[str], volume: Optional[int],
         play_url: Optional[str]) -> None:
    """vibeplayer - paste a link or describe a vibe."""
    try:
        app = VibePlayerApp(config_path, log_level, volume)
        app.init()
    except (FileNotFoundError, ValueError, LibraryError) as e:
        raise click.ClickException(str(e))

    try:
        app.run(play_url)
    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
