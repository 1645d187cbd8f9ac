"""Data models for the vocabtutor application."""

from .audio import (
    AudioStats,
    AudioChunkEvent,
    DecodedAudioBuffer,
    PlaybackPath,
    PlaybackResult,
    RecordedAudio,
    RecordingState,
)
from .evaluation import SpeechEvaluation

__all__ = [
    "AudioStats",
    "AudioChunkEvent",
    "DecodedAudioBuffer",
    "PlaybackPath",
    "PlaybackResult",
    "RecordedAudio",
    "RecordingState",
    "SpeechEvaluation",
]
