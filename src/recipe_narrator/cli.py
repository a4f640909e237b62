import argparse
import asyncio
from pathlib import Path
import sys

from loguru import logger
from rich import print as rprint
import soundfile as sf  # type: ignore

from .core.narrator import NarrationConfig, NarrationController
from .core.pcm import PCMDecodeError, decode_pcm16
from .core.recipe import MealPlan, narration_text
from .TTS import get_speech_synthesizer

DEFAULT_CONFIG = Path("configs/narrator_config.yaml")


def load_config(config_path: str | Path = DEFAULT_CONFIG) -> NarrationConfig:
    """
    Load the narration configuration from *config_path*.

    Returns a default :class:`NarrationConfig` if the default file is missing;
    an explicitly requested file that does not exist is an error.
    """
    config_path = Path(config_path)
    if not config_path.exists() and config_path == DEFAULT_CONFIG:
        return NarrationConfig()
    return NarrationConfig.from_yaml(config_path)


async def narrate(text: str, config: NarrationConfig) -> None:
    """
    Speak ``text`` and wait until the narration has finished.

    Ctrl-C (or any cancellation) stops playback before returning.
    """
    controller = NarrationController.from_config(config)
    finished = asyncio.Event()
    try:
        controller.speak(text, on_ended=finished.set)
        if controller.is_active:
            await finished.wait()
    finally:
        await controller.aclose()


def say(text: str, config_path: str | Path = DEFAULT_CONFIG) -> None:
    """
    Narrate text through the configured synthesizer, falling back to the device voice.

    Example:
        say("Preheat the oven to 200 degrees.")
    """
    config = load_config(config_path)
    try:
        asyncio.run(narrate(text, config))
    except KeyboardInterrupt:
        rprint("[yellow]Narration stopped")


def read_recipe(recipe_path: str | Path, config_path: str | Path = DEFAULT_CONFIG) -> int:
    """
    Narrate a meal plan stored as JSON.

    Returns:
        int: Exit code (0 for success, 1 if the meal plan has nothing to read)
    """
    meal = MealPlan.model_validate_json(Path(recipe_path).read_text(encoding="utf-8"))
    text = narration_text(meal)
    if not text.strip():
        rprint(f"[bold red]{meal.title!r} has no courses to narrate")
        return 1
    rprint(f"[bold green]Narrating[/] {meal.title}")
    say(text, config_path)
    return 0


async def synthesize_to_file(text: str, output: Path, config: NarrationConfig) -> bool:
    """
    Synthesize ``text`` remotely and write the decoded audio to ``output``.

    The file format is taken from the file extension.

    Returns:
        bool: True if audio was written, False if the synthesizer returned none
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
    try:
        async with asyncio.timeout(config.synthesis_timeout):
            payload = await synthesizer.synthesize(text)
    except Exception as e:
        logger.error(f"Speech synthesis failed: {e!r}")
        return False
    finally:
        await synthesizer.aclose()

    if not payload:
        return False
    try:
        audio = decode_pcm16(payload, config.channels)
    except PCMDecodeError as e:
        logger.error(f"Could not decode synthesized audio: {e}")
        return False
    if len(audio) == 0:
        return False

    sf.write(output, audio, config.sample_rate, format=output.suffix.lstrip(".").upper() or "WAV")
    return True


def export(text: str, output: str | Path, config_path: str | Path = DEFAULT_CONFIG) -> int:
    output = Path(output)
    config = load_config(config_path)
    if asyncio.run(synthesize_to_file(text, output, config)):
        rprint(f"[bold green]Wrote narration to {output}")
        return 0
    rprint("[bold red]No audio was returned by the synthesizer")
    return 1


def main(argv: list[str] | None = None) -> int:
    """
    Command-line interface (CLI) entry point for recipe narration.

    Provides three commands:
    - 'say': Narrate the given text
    - 'recipe': Narrate a meal plan JSON file
    - 'export': Write synthesized narration to an audio file

    Optional Arguments:
        --log-level (str): loguru level for stderr output, defaults to 'SUCCESS'
        --config (str): Path to configuration file, defaults to 'configs/narrator_config.yaml'
    """
    parser = argparse.ArgumentParser(description="Recipe Narrator")
    parser.add_argument("--log-level", type=str, default="SUCCESS", help="Log level (default: SUCCESS)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_config_argument(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--config",
            type=str,
            default=str(DEFAULT_CONFIG),
            help=f"Path to configuration file (default: {DEFAULT_CONFIG})",
        )

    # Say command
    say_parser = subparsers.add_parser("say", help="Narrate text")
    say_parser.add_argument("text", type=str, help="Text to narrate")
    add_config_argument(say_parser)

    # Recipe command
    recipe_parser = subparsers.add_parser("recipe", help="Narrate a meal plan JSON file")
    recipe_parser.add_argument("path", type=str, help="Path to the meal plan JSON")
    add_config_argument(recipe_parser)

    # Export command
    export_parser = subparsers.add_parser("export", help="Write synthesized narration to an audio file")
    export_parser.add_argument("text", type=str, help="Text to synthesize")
    export_parser.add_argument("--output", "-o", type=str, required=True, help="Output file (.wav, .ogg, .flac)")
    add_config_argument(export_parser)

    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    if args.command == "say":
        say(args.text, args.config)
        return 0
    elif args.command == "recipe":
        return read_recipe(args.path, args.config)
    elif args.command == "export":
        return export(args.text, args.output, args.config)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
