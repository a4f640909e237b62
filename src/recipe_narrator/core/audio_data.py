"""Core audio data structures for the narration pipeline.

This module defines the decoded audio container and the outcome types the
narration controller dispatches on after asking a synthesizer for speech.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray


@dataclass
class NarrationAudio:
    """Decoded narration audio ready for playback.

    Args:
        samples: Float32 frames shaped (frames, channels)
        sample_rate: Sample rate in Hz
        channels: Number of channels in ``samples``
    """

    samples: NDArray[np.float32]
    sample_rate: int
    channels: int = 1

    @property
    def frame_count(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Playback length in seconds."""
        return self.frame_count / self.sample_rate


class UnavailableReason(Enum):
    REQUEST_FAILED = "request_failed"
    EMPTY_PAYLOAD = "empty_payload"
    DECODE_FAILED = "decode_failed"
    TIMED_OUT = "timed_out"
    PLAYBACK_FAILED = "playback_failed"


@dataclass(frozen=True)
class AudioReady:
    """Remote synthesis produced playable audio."""

    audio: NarrationAudio


@dataclass(frozen=True)
class SynthesisUnavailable:
    """Remote synthesis produced nothing playable; narration falls back to native speech."""

    reason: UnavailableReason
    detail: str = ""


SynthesisOutcome: TypeAlias = AudioReady | SynthesisUnavailable
