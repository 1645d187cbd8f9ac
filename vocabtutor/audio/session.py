"""Recording session: one microphone recording from start to finalized blob."""

import logging
import threading
from typing import Callable, List, Optional

from ..exceptions import MicrophoneError, RecordingStateError
from ..models.audio import AudioChunkEvent, RecordedAudio, RecordingState

logger = logging.getLogger(__name__)


class RecordingSession:
    """Accumulates chunks from a capture device and finalizes them on stop.

    The device is passed in and owned for the duration of one recording: it is
    acquired on start() and always released on stop(), even if finalization
    fails afterwards. The finalized recording is handed to ``on_complete``
    exactly once per recording as ``(recording, data_uri_payload)``.
    """

    def __init__(
        self,
        device,
        on_complete: Callable[[RecordedAudio, str], None],
        mime_type: Optional[str] = None,
    ):
        """Initialize the session.

        Args:
            device: Capture device with ``acquire(on_chunk)``, ``stop()``,
                ``release()`` and a ``mime_type`` attribute
            on_complete: Called with the finalized recording and its data URI
            mime_type: Container mime type; defaults to the device's
        """
        self.device = device
        self.on_complete = on_complete
        self.mime_type = mime_type or device.mime_type

        self.state = RecordingState.IDLE
        self.chunks: List[bytes] = []
        self.recording: Optional[RecordedAudio] = None
        self._lock = threading.Lock()

    @property
    def is_recording(self) -> bool:
        return self.state is RecordingState.RECORDING

    def start(self) -> None:
        """Acquire the device and begin collecting chunks.

        Raises:
            MicrophoneError: If the device cannot be acquired. The session stays idle.
            RecordingStateError: If the session is not idle.
        """
        if self.state is not RecordingState.IDLE:
            raise RecordingStateError(f"Cannot start recording while {self.state.value}")

        with self._lock:
            self.chunks = []
            self.recording = None
            # Devices may deliver their first chunk from inside acquire()
            self.state = RecordingState.RECORDING

        acquired = False
        try:
            self.device.acquire(self.on_chunk)
            acquired = True
        except OSError as e:
            if isinstance(e, MicrophoneError):
                raise
            raise MicrophoneError(f"Microphone unavailable: {e}") from e
        finally:
            if not acquired:
                self.state = RecordingState.IDLE

        logger.info("Recording started")

    def on_chunk(self, event: AudioChunkEvent) -> None:
        """Append a chunk delivered by the device, in delivery order."""
        with self._lock:
            if self.state is RecordingState.IDLE:
                logger.debug(f"Dropping chunk {event.sequence_number} delivered while idle")
                return
            self.chunks.append(event.data)

    def stop(self) -> None:
        """Stop the device, release it and finalize. No-op when not recording."""
        if self.state is not RecordingState.RECORDING:
            logger.debug("stop() called while not recording")
            return

        self.state = RecordingState.FINALIZING
        try:
            self._stop_device()
            self._finalize()
        finally:
            self.state = RecordingState.IDLE

    def _stop_device(self) -> None:
        try:
            self.device.stop()
        except Exception as e:
            logger.error(f"Error flushing capture device: {e}")
        finally:
            try:
                self.device.release()
            except Exception as e:
                logger.error(f"Error releasing capture device: {e}")

    def _finalize(self) -> None:
        with self._lock:
            data = b"".join(self.chunks)
            self.chunks = []

        recording = RecordedAudio(data=data, mime_type=self.mime_type)
        try:
            payload = recording.to_data_uri()
            self.on_complete(recording, payload)
        except Exception as e:
            logger.error(f"Recording finalization failed: {e}")
            return

        self.recording = recording
        logger.info(f"Recording finalized: {len(data)} bytes ({self.mime_type})")
