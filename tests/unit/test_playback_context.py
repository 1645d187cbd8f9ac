"""Unit tests for the PyAudio-backed playback context."""

import numpy as np
import pyaudio
import pytest

from vocabtutor.audio.output import PlaybackContext, PyAudioOutputDevice
from vocabtutor.audio.pcm import decode_pcm


@pytest.mark.unit
class TestPlaybackContext:
    """Test cases for PlaybackContext."""

    def test_open_context_creates_independent_instances(self, mock_pyaudio):
        device = PyAudioOutputDevice()
        first = device.open_context(24000)
        second = device.open_context(24000)

        assert first is not second
        assert mock_pyaudio['class'].call_count == 2

    def test_start_opens_float_output_stream(self, mock_pyaudio):
        context = PlaybackContext(sample_rate=24000)
        context.start(decode_pcm(b"\x00\x40" * 8))

        kwargs = mock_pyaudio['instance'].open.call_args.kwargs
        assert kwargs['format'] == pyaudio.paFloat32
        assert kwargs['rate'] == 24000
        assert kwargs['channels'] == 1
        assert kwargs['output'] is True
        mock_pyaudio['stream'].start_stream.assert_called_once()

    def test_callback_feeds_samples_then_completes(self, mock_pyaudio):
        context = PlaybackContext(sample_rate=24000)
        context.start(decode_pcm(np.arange(5, dtype="<i2").tobytes()))

        data, flag = context._fill(None, 3, None, 0)
        assert flag == pyaudio.paContinue
        assert len(np.frombuffer(data, dtype=np.float32)) == 3
        assert not context.finished.is_set()

        data, flag = context._fill(None, 3, None, 0)
        assert flag == pyaudio.paComplete
        assert len(np.frombuffer(data, dtype=np.float32)) == 2
        assert context.wait(0)

    def test_empty_buffer_finishes_without_stream(self, mock_pyaudio):
        context = PlaybackContext(sample_rate=24000)
        context.start(decode_pcm(b""))

        mock_pyaudio['instance'].open.assert_not_called()
        assert context.wait(0)

    def test_close_releases_everything_once(self, mock_pyaudio):
        context = PlaybackContext(sample_rate=24000)
        context.start(decode_pcm(b"\x00\x40" * 8))

        context.close()
        context.close()

        mock_pyaudio['stream'].stop_stream.assert_called_once()
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()
        assert context.closed is True

    def test_start_after_close_fails(self, mock_pyaudio):
        context = PlaybackContext(sample_rate=24000)
        context.close()
        with pytest.raises(RuntimeError):
            context.start(decode_pcm(b"\x00\x00"))

    def test_context_manager_closes(self, mock_pyaudio):
        with PlaybackContext(sample_rate=24000) as context:
            context.start(decode_pcm(b"\x00\x40" * 8))
        mock_pyaudio['instance'].terminate.assert_called_once()
