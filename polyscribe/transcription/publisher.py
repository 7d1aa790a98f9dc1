"""Transcription publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)

PARTIAL_TOPIC = "transcription.partial"
FINAL_TOPIC = "transcription.final"


class TranscriptionPublisher:
    """Publishes adopted transcription results using pubsub.pub."""

    def __init__(self, partial_topic: str = PARTIAL_TOPIC, final_topic: str = FINAL_TOPIC):
        """Initialize transcription publisher.

        Args:
            partial_topic: Topic name for intermediate results
            final_topic: Topic name for the final result of a run
        """
        self.partial_topic = partial_topic
        self.final_topic = final_topic
        logger.info(f"TranscriptionPublisher initialized with topics: {partial_topic}, {final_topic}")

    def publish_transcription_result(self, result: TranscriptionResult) -> None:
        """Publish a transcription result to the matching topic.

        Args:
            result: TranscriptionResult to publish
        """
        topic = self.final_topic if result.is_final else self.partial_topic
        pub.sendMessage(topic, result=result)
        logger.debug(f"Published transcription result #{result.sequence_number} on {topic}")
