"""Pub/sub publishers for player commands and fetch outcomes."""

import logging

from pubsub import pub

from ..models.commands import PlayerCommand
from ..models.events import FetchEvent

logger = logging.getLogger(__name__)

COMMAND_TOPIC = "player.command"
FETCH_EVENTS_TOPIC = "fetch.events"


class CommandPublisher:
    """Publishes player commands for the playback service to queue."""
    
    def __init__(self, topic: str = COMMAND_TOPIC):
        """Initialize command publisher.
        
        Args:
            topic: Pub/sub topic name for player commands
        """
        self.topic = topic
        logger.info(f"CommandPublisher initialized with topic: {topic}")
    
    def publish_command(self, command: PlayerCommand) -> None:
        """Publish a command to the pub/sub topic.
        
        Args:
            command: Command to hand to the playback loop
        """
        pub.sendMessage(self.topic, command=command)
        logger.debug(f"Published command: {command}")


class FetchEventPublisher:
    """Publishes the outcome of background retrievals."""
    
    def __init__(self, topic: str = FETCH_EVENTS_TOPIC):
        self.topic = topic
        logger.info(f"FetchEventPublisher initialized with topic: {topic}")
    
    def publish_event(self, event: FetchEvent) -> None:
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published fetch event: {event.event_type} for {event.url}")
