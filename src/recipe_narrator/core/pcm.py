"""Decoding of raw PCM16 speech payloads.

The remote synthesizers deliver little-endian, signed 16-bit PCM encoded as
base64. This module turns such a payload into the float32 frames the audio
output plays.
"""

import base64
import binascii

import numpy as np
from numpy.typing import NDArray

PCM16_SCALE: float = 32768.0
BYTES_PER_SAMPLE: int = 2


class PCMDecodeError(ValueError):
    """Raised when a payload cannot be interpreted as PCM16 audio."""


def pcm16_to_float32(raw: bytes, channels: int = 1) -> NDArray[np.float32]:
    """Convert raw little-endian PCM16 bytes to normalised float32 frames.

    A trailing partial frame is dropped, so the frame count is
    ``len(raw) // (2 * channels)``.

    Args:
        raw: Interleaved PCM16 bytes
        channels: Number of interleaved channels

    Returns:
        NDArray[np.float32]: Samples in [-1.0, 1.0) shaped ``(frames, channels)``

    Raises:
        ValueError: If ``channels`` is less than one
    """
    if channels < 1:
        raise ValueError(f"Channel count must be at least 1, got {channels}")

    frame_size = BYTES_PER_SAMPLE * channels
    usable = len(raw) - len(raw) % frame_size
    samples = np.frombuffer(raw[:usable], dtype="<i2")
    return (samples.astype(np.float32) / PCM16_SCALE).reshape(-1, channels)


def decode_pcm16(payload: str, channels: int = 1) -> NDArray[np.float32]:
    """Decode a base64 PCM16 payload into float32 frames.

    Args:
        payload: Base64 text as returned by the synthesis service
        channels: Number of interleaved channels in the payload

    Returns:
        NDArray[np.float32]: Samples shaped ``(frames, channels)``

    Raises:
        PCMDecodeError: If the payload is not valid base64
    """
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PCMDecodeError(f"Invalid base64 audio payload: {e}") from e
    return pcm16_to_float32(raw, channels)
