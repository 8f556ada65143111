"""Recorder event publisher for pub/sub state notifications."""

import logging
from pubsub import pub
from ..models.events import RecorderEvent

logger = logging.getLogger(__name__)


class RecorderEventPublisher:
    """Publishes recorder events using pubsub.pub so front-ends can follow state changes."""
    
    def __init__(self, topic: str = "recorder.state"):
        """Initialize recorder event publisher.
        
        Args:
            topic: Pub/sub topic name for recorder events
        """
        self.topic = topic
        logger.info(f"RecorderEventPublisher initialized with topic: {topic}")
    
    def publish_recorder_event(self, event: RecorderEvent) -> None:
        """Publish a recorder event to the pub/sub topic.
        
        Args:
            event: RecorderEvent to publish
        """
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published recorder event: {event.event_type} ({event.state})")
