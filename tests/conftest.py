"""Pytest configuration and fixtures for vocabtutor tests."""

import pytest
import threading
import time
import logging
from unittest.mock import Mock, patch
import numpy as np
from pubsub import pub

from vocabtutor.models.audio import AudioChunkEvent


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no hardware or network")
    config.addinivalue_line("markers", "integration: multi-component tests with mocked devices")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone and speaker")


class FakePlaybackContext:
    """Records what a player does with its playback context."""

    def __init__(self, sample_rate, channels, fail_on_start=False, finish=True):
        self.sample_rate = sample_rate
        self.channels = channels
        self.fail_on_start = fail_on_start
        self.finish = finish
        self.buffer = None
        self.finished = threading.Event()
        self.closed = threading.Event()
        self.close_calls = 0

    def start(self, buffer):
        if self.fail_on_start:
            raise OSError("Output device busy")
        self.buffer = buffer
        if self.finish:
            self.finished.set()

    def wait(self, timeout=None):
        return self.finished.wait(timeout)

    def close(self):
        self.close_calls += 1
        self.closed.set()


class FakeOutputDevice:
    """Output device handing out FakePlaybackContexts."""

    def __init__(self):
        self.fail_on_start = False
        self.finish = True
        self.contexts = []

    def open_context(self, sample_rate, channels=1):
        context = FakePlaybackContext(sample_rate, channels, self.fail_on_start, self.finish)
        self.contexts.append(context)
        return context


class FakeCaptureDevice:
    """Capture device driven by the test instead of a microphone."""

    mime_type = "audio/webm"

    def __init__(self):
        self.acquire_error = None
        self.stop_error = None
        self.flush_chunks = []
        self.on_chunk = None
        self.sequence = 0
        self.acquire_calls = 0
        self.stop_calls = 0
        self.release_calls = 0

    def acquire(self, on_chunk):
        self.acquire_calls += 1
        if self.acquire_error:
            raise self.acquire_error
        self.on_chunk = on_chunk

    def emit(self, data, final=False):
        self.sequence += 1
        self.on_chunk(AudioChunkEvent(data=data, sequence_number=self.sequence,
                                      timestamp=time.time(), final=final))

    def stop(self):
        self.stop_calls += 1
        for data in self.flush_chunks:
            self.emit(data, final=True)
        if self.stop_error:
            raise self.stop_error

    def release(self):
        self.release_calls += 1


@pytest.fixture
def output_device():
    """Fake speaker output."""
    return FakeOutputDevice()


@pytest.fixture
def capture_device():
    """Fake microphone."""
    return FakeCaptureDevice()


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop listeners left behind by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def sample_pcm():
    """One tenth of a second of a 440Hz tone as 24kHz int16 PCM bytes."""
    sample_rate = 24000
    t = np.linspace(0, 0.1, sample_rate // 10, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype("<i2").tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Configure mock stream
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.is_active.return_value = True
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
