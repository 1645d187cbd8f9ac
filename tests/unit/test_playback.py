"""Unit tests for AudioPlayer dispatch, decoding and context lifetime."""

import io
import wave

import numpy as np
import pytest

from vocabtutor.audio import codec
from vocabtutor.audio.playback import AudioPlayer, decode_container
from vocabtutor.exceptions import DecodeError, UnsupportedAudioFormatError
from vocabtutor.models.audio import PlaybackPath


def wav_bytes(samples, sample_rate=16000, channels=1):
    out = io.BytesIO()
    with wave.open(out, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(np.array(samples, dtype="<i2").tobytes())
    return out.getvalue()


@pytest.mark.unit
class TestRouting:
    """Payload shape decides the decode path."""

    @pytest.mark.parametrize("payload", [
        "data:audio/wav;base64,AAAA",
        "data:audio/webm;codecs=opus;base64,AAAA",
        "data:audio",
    ])
    def test_data_uri_goes_native(self, payload):
        assert AudioPlayer.route(payload) is PlaybackPath.NATIVE

    @pytest.mark.parametrize("payload", ["", "AAAA", "data:image/png;base64,AAAA", "UklGRg=="])
    def test_everything_else_is_raw_pcm(self, payload):
        assert AudioPlayer.route(payload) is PlaybackPath.RAW_PCM


@pytest.mark.unit
class TestDecodeContainer:
    """Test cases for native container decoding."""

    def test_wav_mono(self):
        buffer = decode_container("audio/wav", wav_bytes([0, 16384, -32768]))
        assert buffer.sample_rate == 16000
        assert buffer.frame_count == 3
        assert list(buffer.samples) == [0.0, 0.5, -1.0]

    def test_wav_stereo(self):
        buffer = decode_container("audio/x-wav", wav_bytes([1, 2, 3, 4], channels=2))
        assert buffer.channels == 2
        assert buffer.frame_count == 2

    def test_unsupported_container(self):
        with pytest.raises(UnsupportedAudioFormatError):
            decode_container("audio/webm;codecs=opus", b"\x1a\x45\xdf\xa3")

    def test_malformed_wav(self):
        with pytest.raises(DecodeError):
            decode_container("audio/wav", b"not a wav file at all")


@pytest.mark.unit
class TestAudioPlayer:
    """Test cases for AudioPlayer.play."""

    def test_raw_pcm_playback(self, output_device):
        player = AudioPlayer(output_device)
        payload = codec.encode(np.array([100, -100, 200, -200], dtype="<i2").tobytes())

        result = player.play(payload)

        assert result.ok is True
        assert result.path is PlaybackPath.RAW_PCM
        assert result.frame_count == 4
        context = output_device.contexts[0]
        assert context.sample_rate == 24000
        assert context.channels == 1
        assert context.buffer.frame_count == 4
        assert context.closed.wait(1.0)

    def test_empty_payload_plays_zero_samples(self, output_device):
        player = AudioPlayer(output_device)

        result = player.play("")

        assert result.ok is True
        assert result.path is PlaybackPath.RAW_PCM
        assert result.frame_count == 0
        assert result.error is None
        assert output_device.contexts[0].closed.wait(1.0)

    def test_configured_sample_rate(self, output_device):
        player = AudioPlayer(output_device, sample_rate=22050)
        player.play(codec.encode(b"\x00\x00"))
        assert output_device.contexts[0].sample_rate == 22050

    def test_data_uri_playback(self, output_device):
        player = AudioPlayer(output_device)
        payload = codec.build_data_uri(wav_bytes([0] * 160), "audio/wav")

        result = player.play(payload)

        assert result.ok is True
        assert result.path is PlaybackPath.NATIVE
        assert result.frame_count == 160
        assert result.duration_seconds == pytest.approx(0.01)
        assert output_device.contexts[0].sample_rate == 16000

    def test_malformed_base64_returns_error(self, output_device):
        player = AudioPlayer(output_device)

        result = player.play("@@not base64@@")

        assert result.ok is False
        assert result.path is PlaybackPath.RAW_PCM
        assert isinstance(result.error, DecodeError)
        assert output_device.contexts == []

    def test_unsupported_data_uri_returns_error(self, output_device):
        player = AudioPlayer(output_device)

        result = player.play("data:audio/webm;base64,GkXfow==")

        assert result.ok is False
        assert result.path is PlaybackPath.NATIVE
        assert isinstance(result.error, UnsupportedAudioFormatError)
        assert output_device.contexts == []

    def test_start_failure_closes_context(self, output_device):
        output_device.fail_on_start = True
        player = AudioPlayer(output_device)

        result = player.play(codec.encode(b"\x00\x01" * 10))

        assert result.ok is False
        assert isinstance(result.error, OSError)
        context = output_device.contexts[0]
        assert context.closed.is_set()
        assert context.close_calls == 1

    def test_watchdog_closes_unfinished_playback(self, output_device):
        output_device.finish = False
        player = AudioPlayer(output_device, grace_seconds=0.05)

        result = player.play(codec.encode(b"\x00\x01" * 10))

        assert result.ok is True
        context = output_device.contexts[0]
        assert context.closed.wait(2.0)
        assert not context.finished.is_set()
        assert context.close_calls == 1

    def test_each_play_gets_its_own_context(self, output_device):
        player = AudioPlayer(output_device)
        payload = codec.encode(b"\x00\x01" * 10)

        player.play(payload)
        player.play(payload)

        assert len(output_device.contexts) == 2
        assert output_device.contexts[0] is not output_device.contexts[1]
        for context in output_device.contexts:
            assert context.closed.wait(1.0)
