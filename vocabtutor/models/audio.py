"""Audio-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class RecordingState(Enum):
    """Lifecycle state of a recording session."""
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"


class PlaybackPath(Enum):
    """Which decode path a payload was routed to."""
    NATIVE = "native"
    RAW_PCM = "raw_pcm"


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int


@dataclass
class AudioChunkEvent:
    """A single captured chunk with capture metadata."""
    data: bytes
    sequence_number: int
    timestamp: float  # Unix timestamp when chunk was captured
    final: bool = False  # True for the flush chunk read after stop


@dataclass(frozen=True, eq=False)
class DecodedAudioBuffer:
    """Normalized float samples ready for an output device.

    The sample array is made read-only on construction; a buffer is produced
    once by the decoder and consumed once by a playback context.
    """
    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    def __post_init__(self):
        self.samples.setflags(write=False)

    @property
    def frame_count(self) -> int:
        return len(self.samples) // self.channels

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate


@dataclass(frozen=True)
class RecordedAudio:
    """Finalized recording: the concatenated chunks tagged with a container mime type."""
    data: bytes
    mime_type: str

    def to_data_uri(self) -> str:
        # Local import avoids a models <-> audio package cycle
        from ..audio.codec import build_data_uri
        return build_data_uri(self.data, self.mime_type)


@dataclass
class PlaybackResult:
    """Outcome of a single play() call."""
    ok: bool
    path: PlaybackPath
    frame_count: int = 0
    duration_seconds: float = 0.0
    error: Optional[Exception] = None
