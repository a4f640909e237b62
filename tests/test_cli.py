from pathlib import Path

import numpy as np
import pytest
import soundfile as sf  # type: ignore

from fakes import FakeSynthesizer, pcm16_payload
from recipe_narrator import cli
from recipe_narrator.core.narrator import NarrationConfig


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "narrator.yaml"
    path.write_text("Narrator:\n  synthesizer: proxy\n  fallback: none\n", encoding="utf-8")
    return path


def test_say_narrates_text(monkeypatch: pytest.MonkeyPatch, config_path: Path) -> None:
    narrated: list[tuple[str, NarrationConfig]] = []

    async def fake_narrate(text: str, config: NarrationConfig) -> None:
        narrated.append((text, config))

    monkeypatch.setattr(cli, "narrate", fake_narrate)

    assert cli.main(["say", "Preheat the oven.", "--config", str(config_path)]) == 0
    assert narrated[0][0] == "Preheat the oven."
    assert narrated[0][1].synthesizer == "proxy"


def test_recipe_reads_meal_plan(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, config_path: Path) -> None:
    spoken: list[str] = []
    monkeypatch.setattr(cli, "say", lambda text, config_path: spoken.append(text))
    recipe = tmp_path / "meal.json"
    recipe.write_text(
        '{"title": "Soup Night", "courses": [{"name": "Soup", "instructions": ["Chop", "Simmer"]}]}',
        encoding="utf-8",
    )

    assert cli.main(["recipe", str(recipe), "--config", str(config_path)]) == 0
    assert spoken == ["Soup. Chop. Simmer"]


def test_recipe_without_courses_fails(tmp_path: Path, config_path: Path) -> None:
    recipe = tmp_path / "meal.json"
    recipe.write_text('{"title": "Empty"}', encoding="utf-8")
    assert cli.main(["recipe", str(recipe), "--config", str(config_path)]) == 1


def test_export_writes_audio_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, config_path: Path) -> None:
    synthesizer = FakeSynthesizer(payload=pcm16_payload([0, 16384, -16384]))
    monkeypatch.setattr(cli, "get_speech_synthesizer", lambda *args, **kwargs: synthesizer)
    output = tmp_path / "narration.wav"

    assert cli.main(["export", "Serve warm.", "--output", str(output), "--config", str(config_path)]) == 0

    audio, sample_rate = sf.read(output, dtype="float32")
    assert sample_rate == 24000
    np.testing.assert_allclose(audio, [0.0, 0.5, -0.5], atol=1e-3)
    assert synthesizer.closed


def test_export_without_audio_fails(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, config_path: Path) -> None:
    synthesizer = FakeSynthesizer(error=RuntimeError("quota exceeded"))
    monkeypatch.setattr(cli, "get_speech_synthesizer", lambda *args, **kwargs: synthesizer)
    output = tmp_path / "narration.wav"

    assert cli.main(["export", "Serve warm.", "-o", str(output), "--config", str(config_path)]) == 1
    assert not output.exists()


def test_missing_default_config_uses_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    assert cli.load_config() == NarrationConfig()


def test_missing_explicit_config_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        cli.load_config(tmp_path / "absent.yaml")
