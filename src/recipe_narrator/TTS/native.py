"""Device-native speech used when remote synthesis is unavailable.

Classes:
    NativeSpeechProtocol: Protocol for the on-device fallback voice
    Pyttsx3Speech: Fallback voice backed by the platform engine through pyttsx3
    SilentSpeech: Fallback that speaks nothing and reports completion at once

Functions:
    get_native_speech: Factory function to create fallback voices
"""

from collections.abc import Callable
import queue
import threading
from typing import Any, Protocol

from loguru import logger
import pyttsx3  # type: ignore


class NativeSpeechProtocol(Protocol):
    def speak(self, text: str, on_done: Callable[[], None]) -> None: ...
    def cancel(self) -> None: ...


class Pyttsx3Speech:
    """
    Reads text aloud with the platform's built-in voice.

    pyttsx3 hands out one cached engine per driver and ``runAndWait`` may not
    be re-entered, so a single daemon thread owns the engine and speaks queued
    utterances one after another. ``on_done`` is called from that thread once
    the utterance finishes, or once the engine has failed, unless
    :meth:`cancel` was called first.
    """

    def __init__(self, rate: int | None = None, volume: float | None = None, voice_id: str | None = None) -> None:
        if volume is not None and not 0 <= volume <= 1:
            raise ValueError("Volume must be between 0 and 1")
        self.rate = rate
        self.volume = volume
        self.voice_id = voice_id
        self._utterance_queue: queue.Queue[tuple[str, Callable[[], None], threading.Event]] = queue.Queue()
        self._lock = threading.Lock()
        self._engine: Any = None
        self._speaking = False
        self._cancelled: threading.Event | None = None
        self._worker: threading.Thread | None = None

    def _configure(self, engine: Any) -> None:
        if self.rate is not None:
            engine.setProperty("rate", self.rate)
        if self.volume is not None:
            engine.setProperty("volume", self.volume)
        if self.voice_id is not None:
            engine.setProperty("voice", self.voice_id)

    def speak(self, text: str, on_done: Callable[[], None]) -> None:
        cancelled = threading.Event()
        with self._lock:
            self._cancelled = cancelled
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._run, name="NativeSpeech", daemon=True)
                self._worker.start()
        self._utterance_queue.put((text, on_done, cancelled))

    def _run(self) -> None:
        logger.debug("NativeSpeech thread started.")
        while True:
            text, on_done, cancelled = self._utterance_queue.get()
            if cancelled.is_set():
                continue

            try:
                if self._engine is None:
                    engine = pyttsx3.init()
                    self._configure(engine)
                    self._engine = engine
                with self._lock:
                    if cancelled.is_set():
                        continue
                    self._speaking = True
                self._engine.say(text)
                self._engine.runAndWait()
            except Exception as e:
                logger.warning(f"Native speech failed: {e}")
                self._engine = None
            finally:
                with self._lock:
                    self._speaking = False

            if not cancelled.is_set():
                on_done()

    def cancel(self) -> None:
        """Stop the current utterance, if any, without reporting completion."""
        with self._lock:
            if self._cancelled is not None:
                self._cancelled.set()
            engine = self._engine if self._speaking else None
        if engine is not None:
            engine.stop()


class SilentSpeech:
    """Fallback for machines without a usable speech engine."""

    def speak(self, text: str, on_done: Callable[[], None]) -> None:
        logger.debug("Native speech disabled, skipping narration")
        on_done()

    def cancel(self) -> None:
        pass


# Factory function
def get_native_speech(
    engine_type: str = "pyttsx3",
    rate: int | None = None,
    volume: float | None = None,
) -> NativeSpeechProtocol:
    """
    Factory function to get the device-native fallback voice.

    Parameters:
        engine_type (str): The fallback to use:
            - "pyttsx3": Platform speech engine through pyttsx3
            - "none": No audible fallback
        rate (int | None): Optional speech rate in words per minute
        volume (float | None): Optional volume between 0 and 1

    Returns:
        NativeSpeechProtocol: An instance of the requested fallback

    Raises:
        ValueError: If the specified engine type is not supported
    """
    if engine_type == "pyttsx3":
        return Pyttsx3Speech(rate=rate, volume=volume)
    elif engine_type == "none":
        return SilentSpeech()
    else:
        raise ValueError(f"Unsupported native speech engine: {engine_type}")
