"""Audio output components.

This package provides an abstraction layer for narration playback, allowing
the narration controller to work with different audio backends
interchangeably.

Classes:
    PlaybackHandle: A single playing buffer bound to an output context
    AudioOutputProtocol: Abstract interface for opening playback sessions
    OutputResourceError: Raised when an output context cannot be opened, stopped or released

Functions:
    get_audio_output: Factory function to create AudioOutputProtocol instances
"""

from collections.abc import Callable
from typing import Protocol

import numpy as np
from numpy.typing import NDArray


class OutputResourceError(RuntimeError):
    """Raised when an audio output resource fails to open, stop or close."""


class PlaybackHandle(Protocol):
    def stop(self) -> None: ...
    def close(self) -> None: ...


class AudioOutputProtocol(Protocol):
    def play(
        self,
        audio: NDArray[np.float32],
        sample_rate: int,
        on_finished: Callable[[], None],
    ) -> PlaybackHandle: ...


# Factory function
def get_audio_output(backend_type: str = "sounddevice") -> AudioOutputProtocol:
    """
    Factory function to get an instance of an audio output system based on the specified backend type.

    Parameters:
        backend_type (str): The type of audio backend to use:
            - "sounddevice": Uses the sounddevice library for local playback

    Returns:
        AudioOutputProtocol: An instance of the requested audio output system

    Raises:
        ValueError: If the specified backend type is not supported
    """
    if backend_type == "sounddevice":
        from .sounddevice_io import SoundDeviceAudioOutput

        return SoundDeviceAudioOutput()
    else:
        raise ValueError(f"Unsupported audio backend type: {backend_type}")


__all__ = [
    "AudioOutputProtocol",
    "OutputResourceError",
    "PlaybackHandle",
    "get_audio_output",
]
