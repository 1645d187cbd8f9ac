"""Microphone capture device with a background reader thread."""

import logging
import struct
import time
from datetime import datetime
from threading import Event, Lock, Thread
from typing import Callable, Optional

import pyaudio

from ..exceptions import MicrophoneError, RecordingStateError
from ..models.audio import AudioChunkEvent, AudioStats

logger = logging.getLogger(__name__)

STREAMING_SIZE = 0xFFFFFFFF


def streaming_wav_header(sample_rate: int, channels: int = 1, sample_width: int = 2) -> bytes:
    """WAV header for a stream whose length is not known up front.

    RIFF and data sizes are set to 0xFFFFFFFF, which readers treat as
    "read until end of file".
    """
    block_align = channels * sample_width
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF", STREAMING_SIZE, b"WAVE",
        b"fmt ", 16, 1, channels, sample_rate, sample_rate * block_align, block_align, sample_width * 8,
        b"data", STREAMING_SIZE,
    )


class MicrophoneCapture:
    """PyAudio microphone that delivers WAV-packaged chunks in capture order.

    The first chunk delivered after acquire() is the WAV header, the rest are
    raw 16-bit PCM, so concatenating every chunk yields a playable WAV file.
    """

    mime_type = "audio/wav"

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        stop_timeout: float = 2.0,
    ):
        """Initialize microphone capture.

        Args:
            sample_rate: Capture sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            stop_timeout: Seconds to wait for the reader thread on stop
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.stop_timeout = stop_timeout

        self.on_chunk: Optional[Callable[[AudioChunkEvent], None]] = None

        # Reader thread management
        self.reader_thread: Optional[Thread] = None
        self.stop_event = Event()
        self._release_lock = Lock()

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0

        # Device handles, owned between acquire() and release()
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None

    @property
    def is_recording(self) -> bool:
        return self.reader_thread is not None and self.reader_thread.is_alive()

    def acquire(self, on_chunk: Callable[[AudioChunkEvent], None]) -> None:
        """Open the microphone and start delivering chunks to ``on_chunk``.

        Raises:
            MicrophoneError: If the device is denied, absent or fails to open.
            RecordingStateError: If the microphone is already acquired.
        """
        if self.stream is not None:
            raise RecordingStateError("Microphone already acquired")

        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None,
            )
        except OSError as e:
            logger.error(f"Could not open microphone: {e}")
            self._close_device()
            raise MicrophoneError(f"Microphone unavailable: {e}") from e

        logger.info(f"Microphone opened: {self.sample_rate}Hz, {self.chunk_size} samples/chunk")

        self.on_chunk = on_chunk
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0

        self.__deliver(streaming_wav_header(self.sample_rate, self.channels))

        self.reader_thread = Thread(target=self._read_continuously, args=(self.stream,), daemon=True)
        self.reader_thread.name = "MicrophoneReaderThread"
        self.reader_thread.start()

    def stop(self) -> None:
        """Signal the reader to flush its final chunk and wait for it to exit.

        The reader is always waited for: chunks read before the stop signal
        must reach ``on_chunk`` before the caller finalizes.
        """
        if self.reader_thread is None:
            return

        logger.info("Stopping microphone capture")
        self.stop_event.set()

        self.reader_thread.join(timeout=self.stop_timeout)
        if self.reader_thread.is_alive():
            logger.warning(f"Microphone reader still busy after {self.stop_timeout:.2f}s, "
                           f"waiting for the in-flight chunk")
            self.reader_thread.join()

        self.reader_thread = None
        logger.info(f"Microphone capture stopped. Total chunks: {self.total_chunks}")

    def release(self) -> None:
        """Stop and close the input stream and release PyAudio. Idempotent.

        While the reader is still running it owns the stream; it is told to
        stop and closes the device itself when its current read returns.
        """
        if self.reader_thread is not None and self.reader_thread.is_alive():
            self.stop_event.set()
            logger.debug("Reader still running, it will release the microphone on exit")
            return
        self._close_device()

    def _close_device(self) -> None:
        with self._release_lock:
            stream, self.stream = self.stream, None
            instance, self.pyaudio_instance = self.pyaudio_instance, None

        try:
            if stream:
                stream.stop_stream()
                stream.close()
        finally:
            if instance:
                instance.terminate()
                logger.debug("Microphone released")

    def __deliver(self, data: bytes, final: bool = False) -> None:
        self.total_chunks += 1
        event = AudioChunkEvent(
            data=data,
            sequence_number=self.total_chunks,
            timestamp=time.time(),
            final=final,
        )
        self.on_chunk(event)

    def __read_chunk(self, stream: pyaudio.Stream) -> bytes:
        return stream.read(self.chunk_size, exception_on_overflow=False)

    def _read_continuously(self, stream: pyaudio.Stream) -> None:
        """Internal method: reader loop running on the background thread."""
        try:
            while not self.stop_event.is_set():
                self.__deliver(self.__read_chunk(stream))
            # Flush whatever the device buffered up to the stop signal
            self.__deliver(self.__read_chunk(stream), final=True)
        except OSError as e:
            logger.error(f"Microphone read failed: {e}")
        finally:
            self._close_device()

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
        )
