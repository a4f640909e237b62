import base64

import numpy as np
import pytest

from fakes import pcm16_payload
from recipe_narrator.core.pcm import PCMDecodeError, decode_pcm16, pcm16_to_float32


def test_decode_normalises_samples() -> None:
    audio = decode_pcm16(pcm16_payload([0, 16384, -16384, 32767, -32768]))
    assert audio.dtype == np.float32
    assert audio.shape == (5, 1)
    np.testing.assert_allclose(audio[:, 0], [0.0, 0.5, -0.5, 0.999969, -1.0], atol=1e-4)


def test_odd_length_payload_drops_trailing_byte() -> None:
    payload = base64.b64encode(b"\x00\x40\x00\xc0\x7f").decode("ascii")
    audio = decode_pcm16(payload)
    assert audio.shape == (2, 1)
    np.testing.assert_allclose(audio[:, 0], [0.5, -0.5], atol=1e-4)


def test_stereo_frames_are_interleaved() -> None:
    audio = decode_pcm16(pcm16_payload([16384, -16384, 0, 32767, 8192]), channels=2)
    assert audio.shape == (2, 2)
    np.testing.assert_allclose(audio[0], [0.5, -0.5], atol=1e-4)
    np.testing.assert_allclose(audio[1], [0.0, 0.999969], atol=1e-4)


def test_empty_payload_decodes_to_no_frames() -> None:
    assert pcm16_to_float32(b"").shape == (0, 1)


def test_invalid_base64_raises() -> None:
    with pytest.raises(PCMDecodeError):
        decode_pcm16("***not audio***")


def test_channel_count_must_be_positive() -> None:
    with pytest.raises(ValueError):
        pcm16_to_float32(b"\x00\x00", channels=0)
