"""Pub/sub topics and publisher for practice lifecycle events."""

import logging

from pubsub import pub

from .models.audio import PlaybackResult, RecordedAudio
from .models.evaluation import SpeechEvaluation

logger = logging.getLogger(__name__)

RECORDING_STARTED = "recording.started"
RECORDING_FINALIZED = "recording.finalized"
PRACTICE_EVALUATION = "practice.evaluation"
PLAYBACK_STARTED = "playback.started"


class PracticeEventPublisher:
    """Publishes practice events using pubsub.pub."""

    def recording_started(self, target_text: str) -> None:
        pub.sendMessage(RECORDING_STARTED, target_text=target_text)

    def recording_finalized(self, recording: RecordedAudio) -> None:
        pub.sendMessage(RECORDING_FINALIZED, recording=recording)
        logger.debug(f"Published recording: {len(recording.data)} bytes")

    def evaluation(self, target_text: str, evaluation: SpeechEvaluation) -> None:
        pub.sendMessage(PRACTICE_EVALUATION, target_text=target_text, evaluation=evaluation)

    def playback_started(self, result: PlaybackResult) -> None:
        pub.sendMessage(PLAYBACK_STARTED, result=result)
