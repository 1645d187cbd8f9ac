"""Raw 16-bit PCM decoding."""

import logging

import numpy as np

from ..models.audio import DecodedAudioBuffer

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 24000
BYTES_PER_SAMPLE = 2
PCM_SCALE = 32768.0


def decode_pcm(data: bytes, sample_rate: int = DEFAULT_SAMPLE_RATE) -> DecodedAudioBuffer:
    """Decode headerless little-endian int16 mono PCM into normalized floats.

    Each sample is divided by 32768.0 without clamping, so -32768 maps to
    exactly -1.0 while 32767 maps to about 0.99997. A trailing odd byte is
    dropped: the frame count is ``len(data) // 2``.

    Args:
        data: Raw PCM bytes
        sample_rate: Sample rate the bytes were produced at

    Returns:
        Read-only single-channel DecodedAudioBuffer
    """
    frame_count = len(data) // BYTES_PER_SAMPLE
    if len(data) % BYTES_PER_SAMPLE:
        logger.debug(f"Dropping trailing byte from odd-length PCM payload ({len(data)} bytes)")

    if frame_count == 0:
        return DecodedAudioBuffer(samples=np.zeros(0, dtype=np.float32), sample_rate=sample_rate, channels=1)

    samples = np.frombuffer(data[:frame_count * BYTES_PER_SAMPLE], dtype="<i2")
    normalized = samples.astype(np.float32) / np.float32(PCM_SCALE)
    return DecodedAudioBuffer(samples=normalized, sample_rate=sample_rate, channels=1)
