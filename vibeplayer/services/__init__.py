"""Services layer for vibeplayer application logic."""

from .command_publisher import CommandPublisher, FetchEventPublisher, COMMAND_TOPIC, FETCH_EVENTS_TOPIC
from .fetch_service import FetchOrchestrator
from .playback_service import PlaybackService
from .session_state import SessionState

__all__ = [
    "CommandPublisher",
    "FetchEventPublisher",
    "COMMAND_TOPIC",
    "FETCH_EVENTS_TOPIC",
    "FetchOrchestrator",
    "PlaybackService",
    "SessionState",
]
