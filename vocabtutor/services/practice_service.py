"""Practice service: record, evaluate and listen for one vocabulary word."""

import logging
from typing import Optional

from ..ai.gemini_client import GeminiClient
from ..audio.playback import AudioPlayer
from ..audio.session import RecordingSession
from ..events import PracticeEventPublisher
from ..exceptions import RemoteCallError
from ..models.audio import PlaybackResult, RecordedAudio
from ..models.evaluation import SpeechEvaluation

logger = logging.getLogger(__name__)


class PracticeService:
    """Ties the capture session, the player and the AI client together.

    Every audio or remote failure is contained here: the caller sees ``None``
    or a failed PlaybackResult and the service stays in its prior state. The
    only error that propagates is MicrophoneError from start_recording(), which
    the UI surfaces as a blocking alert.
    """

    def __init__(self, client: GeminiClient, player: AudioPlayer, capture_device,
                 publisher: Optional[PracticeEventPublisher] = None):
        """Initialize practice service.

        Args:
            client: Remote synthesis and evaluation client
            player: Player for synthesized speech and recorded attempts
            capture_device: Microphone device handed to the recording session
            publisher: Event publisher; a default one is created if omitted
        """
        self.client = client
        self.player = player
        self.publisher = publisher or PracticeEventPublisher()
        self.session = RecordingSession(capture_device, on_complete=self._on_recording_complete)

        self.is_recording = False
        self.target_text: Optional[str] = None
        self.evaluation: Optional[SpeechEvaluation] = None
        self.recording: Optional[RecordedAudio] = None
        self.recording_payload: Optional[str] = None

    def start_recording(self, target_text: str) -> None:
        """Start recording an attempt at ``target_text``.

        Raises:
            MicrophoneError: If the microphone cannot be acquired.
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        self.evaluation = None
        self.recording = None
        self.recording_payload = None
        self.target_text = target_text

        self.session.start()
        self.is_recording = True
        self.publisher.recording_started(target_text)

    def stop_recording(self) -> Optional[RecordedAudio]:
        """Stop recording and return the finalized recording, if any."""
        if not self.is_recording:
            return None

        self.is_recording = False
        self.session.stop()
        return self.recording

    def _on_recording_complete(self, recording: RecordedAudio, payload: str) -> None:
        self.recording = recording
        self.recording_payload = payload
        self.publisher.recording_finalized(recording)

    async def evaluate(self) -> Optional[SpeechEvaluation]:
        """Send the last recording for grading. Returns None on any failure."""
        if not self.recording_payload or not self.target_text:
            logger.warning("No recording to evaluate")
            return None

        try:
            evaluation = await self.client.evaluate_pronunciation(
                self.recording_payload,
                self.target_text,
                mime_type=self.recording.mime_type,
            )
        except RemoteCallError as e:
            logger.error(f"Pronunciation evaluation failed: {e}")
            return None

        self.evaluation = evaluation
        self.publisher.evaluation(self.target_text, evaluation)
        return evaluation

    async def speak(self, text: str) -> Optional[PlaybackResult]:
        """Synthesize ``text`` and play it. Returns None if no audio came back."""
        try:
            audio = await self.client.synthesize_speech(text)
        except RemoteCallError as e:
            logger.error(f"Speech synthesis failed: {e}")
            return None

        if not audio:
            logger.warning(f"No audio synthesized for {text!r}")
            return None
        return self.play(audio)

    def replay_recording(self) -> Optional[PlaybackResult]:
        """Play back the last recorded attempt."""
        if not self.recording_payload:
            logger.warning("No recording to replay")
            return None
        return self.play(self.recording_payload)

    def play(self, payload: str) -> PlaybackResult:
        """Play a payload and log, rather than raise, any failure."""
        result = self.player.play(payload)
        if result.ok:
            self.publisher.playback_started(result)
        else:
            logger.error(f"Error playing audio ({result.path.value}): {result.error}")
        return result
