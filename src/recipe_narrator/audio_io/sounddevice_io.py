from collections.abc import Callable
import threading
from typing import Any

from loguru import logger
import numpy as np
from numpy.typing import NDArray
import sounddevice as sd  # type: ignore

from . import OutputResourceError


class SoundDevicePlayback:
    """A buffer source bound to its own sounddevice output stream.

    The stream callback copies frames out of the decoded buffer until it is
    exhausted, then stops the stream. ``on_finished`` is reported from
    PortAudio's finished callback, on PortAudio's thread, unless the playback
    was stopped explicitly first.
    """

    def __init__(
        self,
        audio: NDArray[np.float32],
        sample_rate: int,
        on_finished: Callable[[], None],
    ) -> None:
        if audio.ndim == 1:
            audio = audio.reshape(-1, 1)
        self._audio = audio
        self._position = 0
        self._on_finished = on_finished
        self._stopped = threading.Event()
        self.stream = sd.OutputStream(
            samplerate=sample_rate,
            channels=audio.shape[1],
            dtype="float32",
            callback=self._stream_callback,
            finished_callback=self._finished_callback,
        )

    def _stream_callback(
        self, outdata: NDArray[np.float32], frames: int, time: dict[str, Any], status: sd.CallbackFlags
    ) -> None:
        if status:
            logger.debug(f"Audio callback status: {status}")

        chunk = self._audio[self._position : self._position + frames]
        written = len(chunk)
        outdata[:written] = chunk
        self._position += written
        if written < frames:
            outdata[written:] = 0
            raise sd.CallbackStop

    def _finished_callback(self) -> None:
        if self._stopped.is_set():
            return
        self._on_finished()

    @property
    def frames_played(self) -> int:
        return self._position

    def start(self) -> None:
        try:
            self.stream.start()
        except sd.PortAudioError as e:
            raise OutputResourceError(f"Failed to start audio output stream: {e}") from e

    def stop(self) -> None:
        """Halt playback immediately; ``on_finished`` will not be reported."""
        self._stopped.set()
        try:
            self.stream.abort()
        except sd.PortAudioError as e:
            raise OutputResourceError(f"Failed to stop audio output stream: {e}") from e

    def close(self) -> None:
        try:
            self.stream.close()
        except sd.PortAudioError as e:
            raise OutputResourceError(f"Failed to close audio output stream: {e}") from e


class SoundDeviceAudioOutput:
    """Audio output implementation using sounddevice.

    Every call to :meth:`play` opens a fresh output stream at the requested
    sample rate, so each narration session owns its output context outright
    and releases it on stop or completion.
    """

    def play(
        self,
        audio: NDArray[np.float32],
        sample_rate: int,
        on_finished: Callable[[], None],
    ) -> SoundDevicePlayback:
        """Start playing ``audio`` through the default output device.

        Parameters:
            audio: Float32 frames shaped (frames, channels)
            sample_rate: Sample rate of the audio data in Hz
            on_finished: Called once, from the audio thread, when playback ends naturally

        Returns:
            SoundDevicePlayback: Handle used to stop and release the stream

        Raises:
            ValueError: If audio is empty
            OutputResourceError: If the output stream cannot be opened or started
        """
        if not isinstance(audio, np.ndarray) or audio.size == 0:
            raise ValueError("Invalid audio data")

        logger.debug(f"Playing audio with sample rate: {sample_rate} Hz, length: {len(audio)} frames")
        try:
            playback = SoundDevicePlayback(audio, sample_rate, on_finished)
        except sd.PortAudioError as e:
            raise OutputResourceError(f"Failed to open audio output stream: {e}") from e
        try:
            playback.start()
        except OutputResourceError:
            playback.stream.close()
            raise
        return playback
