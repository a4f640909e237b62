import pytest

from fakes import FakeAudioOutput, FakeNativeSpeech, FakeSynthesizer, pcm16_payload
from recipe_narrator.core.narrator import NarrationController


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer(payload=pcm16_payload([0, 16384, -16384, 32767]))


@pytest.fixture
def audio_output() -> FakeAudioOutput:
    return FakeAudioOutput()


@pytest.fixture
def native_speech() -> FakeNativeSpeech:
    return FakeNativeSpeech()


@pytest.fixture
def controller(
    synthesizer: FakeSynthesizer, audio_output: FakeAudioOutput, native_speech: FakeNativeSpeech
) -> NarrationController:
    return NarrationController(
        synthesizer=synthesizer,
        audio_output=audio_output,
        native_speech=native_speech,
        synthesis_timeout=1.0,
    )
