"""Audio capture, decoding and playback."""

from .capture import MicrophoneCapture
from .output import PlaybackContext, PyAudioOutputDevice
from .pcm import decode_pcm
from .playback import AudioPlayer
from .session import RecordingSession

__all__ = [
    'AudioPlayer',
    'MicrophoneCapture',
    'PlaybackContext',
    'PyAudioOutputDevice',
    'RecordingSession',
    'decode_pcm',
]
