"""
Narration controller for recipe read-aloud.

This module provides the controller that owns narration playback, its
configuration model, and the per-session state it tracks. A controller holds
at most one live session: every ``speak`` first tears down the previous one,
and every asynchronous continuation checks its session's generation token
before touching shared state.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
import yaml

from ..audio_io import AudioOutputProtocol, PlaybackHandle, get_audio_output
from ..TTS import DEFAULT_MODEL, DEFAULT_SAMPLE_RATE, DEFAULT_VOICE, SpeechSynthesizerProtocol, get_speech_synthesizer
from ..TTS.native import NativeSpeechProtocol, get_native_speech
from .audio_data import AudioReady, NarrationAudio, SynthesisOutcome, SynthesisUnavailable, UnavailableReason
from .pcm import PCMDecodeError, decode_pcm16


class NarrationConfig(BaseModel):
    """
    Configuration model for recipe narration.

    Selects the remote synthesizer, the audio output backend and the native
    fallback voice, and bounds how long a synthesis request may take.
    """

    synthesizer: str = "gemini"
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    voice: str = DEFAULT_VOICE
    proxy_url: str = "http://localhost:3002"
    audio_output: str = "sounddevice"
    fallback: str = "pyttsx3"
    fallback_rate: int | None = None
    fallback_volume: float | None = Field(default=None, ge=0, le=1)
    sample_rate: int = Field(default=DEFAULT_SAMPLE_RATE, gt=0)
    channels: int = Field(default=1, ge=1)
    synthesis_timeout: float = Field(default=30.0, gt=0)

    @classmethod
    def from_yaml(cls, path: str | Path, key_to_config: tuple[str, ...] = ("Narrator",)) -> "NarrationConfig":
        """
        Load a NarrationConfig instance from a YAML configuration file.

        Parameters:
            path: Path to the YAML configuration file
            key_to_config: Tuple of keys to navigate nested configuration

        Returns:
            NarrationConfig: Configuration object with validated settings

        Raises:
            ValueError: If the YAML content is invalid
            OSError: If the file cannot be read
            pydantic.ValidationError: If the configuration is invalid
        """
        path = Path(path)

        # Try different encodings
        for encoding in ["utf-8", "utf-8-sig"]:
            try:
                data = yaml.safe_load(path.read_text(encoding=encoding))
                break
            except UnicodeDecodeError:
                if encoding == "utf-8-sig":
                    raise ValueError(f"Could not decode YAML file {path} with any supported encoding")

        # Navigate through nested keys
        config = data
        for key in key_to_config:
            config = config[key]

        return cls.model_validate(config or {})


class SessionState(Enum):
    REQUESTING = "requesting"
    DECODING = "decoding"
    PLAYING = "playing"
    COMPLETED = "completed"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def is_live(self) -> bool:
        return self in (SessionState.REQUESTING, SessionState.DECODING, SessionState.PLAYING)


@dataclass
class NarrationSession:
    """One request-to-completion narration lifecycle."""

    token: int
    source_text: str
    on_ended: Callable[[], None] | None = None
    state: SessionState = SessionState.REQUESTING
    task: asyncio.Task[None] | None = None
    playback: PlaybackHandle | None = None
    via_fallback: bool = False
    _ended_notified: bool = False

    def notify_ended(self) -> None:
        """Invoke ``on_ended`` at most once."""
        if self._ended_notified:
            return
        self._ended_notified = True
        if self.on_ended is not None:
            try:
                self.on_ended()
            except Exception as e:
                logger.exception(f"Narrator: on_ended callback raised: {e}")


class NarrationController:
    """
    Owns narration playback for one consumer.

    ``speak`` synthesizes text remotely and plays it, falling back to the
    device-native voice when remote synthesis is unavailable. ``stop`` cancels
    whatever is in flight. Both must be called from the event loop that runs
    the controller, and neither raises for collaborator failures.
    """

    def __init__(
        self,
        synthesizer: SpeechSynthesizerProtocol,
        audio_output: AudioOutputProtocol,
        native_speech: NativeSpeechProtocol,
        synthesis_timeout: float = 30.0,
    ) -> None:
        """
        Initialize the controller.

        Args:
            synthesizer (SpeechSynthesizerProtocol): Remote synthesizer returning base64 PCM16.
            audio_output (AudioOutputProtocol): Output used to play decoded audio.
            native_speech (NativeSpeechProtocol): Device-native voice used as the fallback.
            synthesis_timeout (float): Seconds to wait for the synthesizer before falling back.
        """
        self._synthesizer = synthesizer
        self._audio_output = audio_output
        self._native_speech = native_speech
        self.synthesis_timeout = synthesis_timeout

        self._generation = 0
        self._session: NarrationSession | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_config(cls, config: NarrationConfig) -> "NarrationController":
        """
        Create a NarrationController from a NarrationConfig configuration object.

        Parameters:
            config (NarrationConfig): Configuration object containing narration settings

        Returns:
            NarrationController: A new controller configured with the provided settings
        """
        synthesizer = get_speech_synthesizer(
            config.synthesizer,
            api_key=config.api_key,
            model=config.model,
            voice=config.voice,
            proxy_url=config.proxy_url,
            sample_rate=config.sample_rate,
            channels=config.channels,
            timeout=config.synthesis_timeout,
        )
        audio_output = get_audio_output(backend_type=config.audio_output)
        native_speech = get_native_speech(config.fallback, rate=config.fallback_rate, volume=config.fallback_volume)

        return cls(
            synthesizer=synthesizer,
            audio_output=audio_output,
            native_speech=native_speech,
            synthesis_timeout=config.synthesis_timeout,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "NarrationController":
        """
        Create a NarrationController from a configuration file.

        Example:
            narrator = NarrationController.from_yaml('configs/narrator_config.yaml')
        """
        return cls.from_config(NarrationConfig.from_yaml(path))

    @property
    def state(self) -> SessionState | None:
        """State of the current session, or None when idle."""
        return self._session.state if self._session is not None else None

    @property
    def is_active(self) -> bool:
        return self._session is not None and self._session.state.is_live

    def _is_current(self, session: NarrationSession) -> bool:
        return session is self._session and session.token == self._generation and session.state.is_live

    def speak(self, text: str, on_ended: Callable[[], None] | None = None) -> None:
        """
        Narrate ``text``, replacing any narration already in progress.

        Returns immediately; ``on_ended`` is called once when the narration
        finishes on its own, and never when it is stopped. Must be called from
        a coroutine or callback running on the event loop that will drive the
        session; called elsewhere, it logs an error and starts nothing.

        Args:
            text (str): Assembled narration text.
            on_ended (Callable[[], None] | None): Completion callback.
        """
        self.stop()

        if not text.strip():
            logger.warning(f"Narrator: Received empty or whitespace string: '{text}'")
            return

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Narrator: speak() called without a running event loop, nothing will be narrated")
            return
        self._generation += 1
        session = NarrationSession(token=self._generation, source_text=text, on_ended=on_ended)
        self._session = session
        logger.info(f"Narrator: session {session.token} requesting speech for {len(text)} characters")
        session.task = self._loop.create_task(self._run(session), name=f"narration-{session.token}")

    def stop(self) -> None:
        """
        Cancel the current narration, if any.

        Abandons an in-flight request, halts and releases playing audio and
        silences native fallback speech. ``on_ended`` is not invoked. Errors
        from releasing resources are logged and swallowed.
        """
        session = self._session
        self._session = None
        self._generation += 1

        if session is not None and session.state.is_live:
            logger.debug(f"Narrator: stopping session {session.token} in state {session.state.value}")
            session.state = SessionState.STOPPED
            if session.task is not None and not session.task.done():
                session.task.cancel()
            if session.playback is not None:
                self._release(session.playback, halt=True)
                session.playback = None

        try:
            self._native_speech.cancel()
        except Exception as e:
            logger.warning(f"Narrator: error cancelling native speech: {e}")

    async def aclose(self) -> None:
        """Stop narration and release the synthesizer's resources."""
        self.stop()
        await self._synthesizer.aclose()

    async def _run(self, session: NarrationSession) -> None:
        try:
            outcome = await self._synthesize(session)
            if not self._is_current(session):
                return

            match outcome:
                case AudioReady(audio=audio):
                    self._play(session, audio)
                case SynthesisUnavailable(reason=reason, detail=detail):
                    logger.warning(f"Narrator: remote speech unavailable ({reason.value}: {detail}), using fallback")
                    self._fallback(session)
        except asyncio.CancelledError:
            logger.debug(f"Narrator: session {session.token} cancelled")
            raise
        except Exception as e:
            logger.exception(f"Narrator: unexpected error in session {session.token}: {e}")
            if self._is_current(session) and not session.via_fallback:
                self._fallback(session)

    async def _synthesize(self, session: NarrationSession) -> SynthesisOutcome:
        """Request and decode speech, classifying every failure as unavailable."""
        try:
            async with asyncio.timeout(self.synthesis_timeout):
                payload = await self._synthesizer.synthesize(session.source_text)
        except TimeoutError:
            return SynthesisUnavailable(
                UnavailableReason.TIMED_OUT, f"no response after {self.synthesis_timeout:.1f}s"
            )
        except Exception as e:
            return SynthesisUnavailable(UnavailableReason.REQUEST_FAILED, str(e))

        if not payload:
            return SynthesisUnavailable(UnavailableReason.EMPTY_PAYLOAD, "no audio data returned")
        if not self._is_current(session):
            return SynthesisUnavailable(UnavailableReason.REQUEST_FAILED, "session superseded")

        session.state = SessionState.DECODING
        try:
            samples = decode_pcm16(payload, self._synthesizer.channels)
        except PCMDecodeError as e:
            return SynthesisUnavailable(UnavailableReason.DECODE_FAILED, str(e))
        if len(samples) == 0:
            return SynthesisUnavailable(UnavailableReason.EMPTY_PAYLOAD, "payload holds no complete frames")

        return AudioReady(NarrationAudio(samples, self._synthesizer.sample_rate, self._synthesizer.channels))

    def _play(self, session: NarrationSession, audio: NarrationAudio) -> None:
        try:
            playback = self._audio_output.play(
                audio.samples,
                audio.sample_rate,
                on_finished=lambda: self._call_threadsafe(self._playback_finished, session),
            )
        except Exception as e:
            logger.warning(f"Narrator: audio output unavailable ({UnavailableReason.PLAYBACK_FAILED.value}: {e})")
            self._fallback(session)
            return

        session.playback = playback
        session.state = SessionState.PLAYING
        logger.debug(f"Narrator: session {session.token} playing {audio.duration:.2f}s of audio")

    def _playback_finished(self, session: NarrationSession) -> None:
        if not self._is_current(session) or session.via_fallback:
            return
        playback = session.playback
        session.playback = None
        if playback is not None:
            self._release(playback, halt=False)
        self._complete(session)

    def _fallback(self, session: NarrationSession) -> None:
        session.via_fallback = True
        session.state = SessionState.PLAYING
        try:
            self._native_speech.speak(
                session.source_text,
                on_done=lambda: self._call_threadsafe(self._fallback_finished, session),
            )
        except Exception as e:
            logger.warning(f"Narrator: native speech failed to start: {e}")
            session.state = SessionState.FAILED
            self._session = None
            session.notify_ended()

    def _fallback_finished(self, session: NarrationSession) -> None:
        if not self._is_current(session) or not session.via_fallback:
            return
        self._complete(session)

    def _complete(self, session: NarrationSession) -> None:
        session.state = SessionState.COMPLETED
        self._session = None
        logger.success(f"Narrator: session {session.token} completed")
        session.notify_ended()

    def _release(self, playback: PlaybackHandle, halt: bool) -> None:
        if halt:
            try:
                playback.stop()
            except Exception as e:
                logger.warning(f"Narrator: error stopping audio source: {e}")
        try:
            playback.close()
        except Exception as e:
            logger.warning(f"Narrator: error closing audio output: {e}")

    def _call_threadsafe(self, callback: Callable[..., Any], *args: Any) -> None:
        """Run ``callback`` on the controller's loop; completions arrive from audio threads."""
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            logger.debug("Narrator: event loop closed, dropping late completion")
