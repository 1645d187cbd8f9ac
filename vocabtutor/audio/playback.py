"""Playback engine for base64 audio payloads.

Payloads come in two shapes, told apart by their leading characters only:

* ``data:audio/...;base64,...`` data URIs, which describe their own container
  (our own recordings). These go through the native container decoder.
* Anything else is headerless base64 of raw little-endian int16 mono PCM at
  24kHz (speech synthesis output). These go through the PCM decoder.
"""

import io
import logging
import threading
import wave

import numpy as np

from . import codec
from .output import PyAudioOutputDevice
from .pcm import DEFAULT_SAMPLE_RATE, PCM_SCALE, decode_pcm
from ..exceptions import DecodeError, UnsupportedAudioFormatError
from ..models.audio import DecodedAudioBuffer, PlaybackPath, PlaybackResult

logger = logging.getLogger(__name__)

WAV_MIME_TYPES = {"audio/wav", "audio/x-wav", "audio/wave"}


def decode_container(mime_type: str, body: bytes) -> DecodedAudioBuffer:
    """Decode a self-describing audio container into a float buffer.

    Only 16-bit PCM WAV is decoded locally. WAV headers written by a streaming
    recorder (unknown lengths set to 0xFFFFFFFF) are accepted.
    """
    base_type = mime_type.split(";", 1)[0].strip().lower()
    if base_type not in WAV_MIME_TYPES:
        raise UnsupportedAudioFormatError(f"Cannot decode {mime_type} audio locally")

    try:
        with wave.open(io.BytesIO(body), "rb") as wf:
            channels = wf.getnchannels()
            sample_width = wf.getsampwidth()
            sample_rate = wf.getframerate()
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise DecodeError(f"Malformed WAV payload: {e}") from e

    if sample_width != 2:
        raise UnsupportedAudioFormatError(f"Unsupported WAV sample width: {sample_width * 8} bits")

    if channels == 1:
        return decode_pcm(frames, sample_rate)

    usable = len(frames) - len(frames) % (2 * channels)
    if usable == 0:
        samples = np.zeros(0, dtype=np.float32)
    else:
        samples = np.frombuffer(frames[:usable], dtype="<i2").astype(np.float32) / np.float32(PCM_SCALE)
    return DecodedAudioBuffer(samples=samples, sample_rate=sample_rate, channels=channels)


class AudioPlayer:
    """Decodes base64 audio payloads and plays them on an output device."""

    def __init__(self, output_device=None, sample_rate: int = DEFAULT_SAMPLE_RATE,
                 grace_seconds: float = 1.0):
        """Initialize the player.

        Args:
            output_device: Object with ``open_context(sample_rate, channels)``;
                defaults to the PyAudio speaker output
            sample_rate: Sample rate assumed for headerless PCM payloads
            grace_seconds: Extra time past the buffer duration before the
                watchdog force-closes a playback context
        """
        self.output_device = output_device or PyAudioOutputDevice()
        self.sample_rate = sample_rate
        self.grace_seconds = grace_seconds

    @staticmethod
    def route(payload: str) -> PlaybackPath:
        """Pick the decode path from the payload's prefix."""
        return PlaybackPath.NATIVE if codec.is_data_uri(payload) else PlaybackPath.RAW_PCM

    def decode(self, payload: str) -> DecodedAudioBuffer:
        """Decode a payload along the path chosen by route()."""
        if self.route(payload) is PlaybackPath.NATIVE:
            mime_type, body = codec.parse_data_uri(payload)
            return decode_container(mime_type, body)
        return decode_pcm(codec.decode(payload), self.sample_rate)

    def play(self, payload: str) -> PlaybackResult:
        """Start playing a payload and return once playback has started.

        Never raises: decode and device failures are reported through the
        returned PlaybackResult so the caller decides how to log them.
        """
        path = self.route(payload)

        try:
            buffer = self.decode(payload)
        except Exception as e:
            logger.debug(f"Decode failed on {path.value} path: {e}")
            return PlaybackResult(ok=False, path=path, error=e)

        context = None
        try:
            context = self.output_device.open_context(buffer.sample_rate, buffer.channels)
            context.start(buffer)
        except Exception as e:
            if context is not None:
                self._close_quietly(context)
            logger.debug(f"Playback failed to start on {path.value} path: {e}")
            return PlaybackResult(ok=False, path=path, frame_count=buffer.frame_count, error=e)

        timeout = buffer.duration_seconds + self.grace_seconds
        watchdog = threading.Thread(
            target=self._release_when_done,
            args=(context, timeout),
            daemon=True,
            name="PlaybackWatchdog",
        )
        watchdog.start()

        return PlaybackResult(
            ok=True,
            path=path,
            frame_count=buffer.frame_count,
            duration_seconds=buffer.duration_seconds,
        )

    def _release_when_done(self, context, timeout: float) -> None:
        """Close the context when playback finishes or the timeout expires."""
        try:
            if not context.wait(timeout):
                logger.warning(f"Playback did not finish within {timeout:.2f}s, closing context")
        finally:
            self._close_quietly(context)

    @staticmethod
    def _close_quietly(context) -> None:
        try:
            context.close()
        except Exception as e:
            logger.error(f"Error closing playback context: {e}")
