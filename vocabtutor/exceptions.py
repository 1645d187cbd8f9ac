"""Exception hierarchy for vocabtutor."""

from typing import Optional


class VocabTutorError(Exception):
    """Base class for all vocabtutor errors."""


class ConfigError(VocabTutorError, ValueError):
    """Configuration is missing, empty or invalid."""


class MicrophoneError(VocabTutorError, PermissionError):
    """Microphone access was denied or no input device is available."""


class DecodeError(VocabTutorError, ValueError):
    """A base64, data-URI or PCM payload could not be decoded."""


class UnsupportedAudioFormatError(DecodeError):
    """A data-URI payload carries a container we cannot decode locally."""


class RecordingStateError(VocabTutorError, RuntimeError):
    """A recording session was driven through an invalid transition."""


class RemoteCallError(VocabTutorError):
    """The remote AI provider failed or returned an unusable response."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
