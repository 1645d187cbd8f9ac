"""Audio output device and per-playback contexts."""

import logging
import threading
from typing import Optional

import numpy as np
import pyaudio

from ..models.audio import DecodedAudioBuffer

logger = logging.getLogger(__name__)


class PlaybackContext:
    """One PyAudio instance and output stream, owned by a single play() call.

    The context is closed exactly once, either by the caller on a failed start
    or by the playback watchdog after the buffer finishes (or times out).
    """

    def __init__(self, sample_rate: int, channels: int = 1):
        self.sample_rate = sample_rate
        self.channels = channels
        self.finished = threading.Event()
        self.closed = False

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = pyaudio.PyAudio()
        self.stream: Optional[pyaudio.Stream] = None

        self._samples: Optional[np.ndarray] = None
        self._position = 0
        self._lock = threading.Lock()

    def start(self, buffer: DecodedAudioBuffer) -> None:
        """Open the output stream and begin rendering the buffer."""
        if self.closed:
            raise RuntimeError("Playback context already closed")

        self._samples = buffer.samples
        self._position = 0

        if buffer.frame_count == 0:
            logger.debug("Empty buffer, nothing to render")
            self.finished.set()
            return

        self.stream = self.pyaudio_instance.open(
            format=pyaudio.paFloat32,
            channels=self.channels,
            rate=self.sample_rate,
            output=True,
            stream_callback=self._fill,
        )
        self.stream.start_stream()
        logger.debug(f"Playback started: {buffer.frame_count} frames at {self.sample_rate}Hz")

    def _fill(self, in_data, frame_count, time_info, status):
        """PyAudio callback: hand out the next slice of samples."""
        start = self._position * self.channels
        end = start + frame_count * self.channels
        chunk = self._samples[start:end]
        self._position += len(chunk) // self.channels

        if end >= len(self._samples):
            self.finished.set()
            return chunk.tobytes(), pyaudio.paComplete
        return chunk.tobytes(), pyaudio.paContinue

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the buffer has been fully handed to the device."""
        return self.finished.wait(timeout)

    def close(self) -> None:
        """Stop the stream and release the PyAudio instance. Idempotent."""
        with self._lock:
            if self.closed:
                return
            self.closed = True

        try:
            if self.stream:
                if self.stream.is_active():
                    self.stream.stop_stream()
                self.stream.close()
        finally:
            self.stream = None
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None
        logger.debug("Playback context closed")

    def __enter__(self) -> "PlaybackContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class PyAudioOutputDevice:
    """Default speaker output. Hands out an independent context per playback."""

    def open_context(self, sample_rate: int, channels: int = 1) -> PlaybackContext:
        return PlaybackContext(sample_rate=sample_rate, channels=channels)
