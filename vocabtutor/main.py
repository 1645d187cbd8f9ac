"""Main application entry point for vocabtutor."""

import sys
import time
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .ai.gemini_client import GeminiClient
from .audio.capture import MicrophoneCapture
from .audio.playback import AudioPlayer
from .config import VocabTutorConfig
from .exceptions import MicrophoneError
from .models.audio import PlaybackResult
from .models.evaluation import SpeechEvaluation
from .services.practice_service import PracticeService

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "vocabtutor.yaml"


class App:

    def __init__(self, config_path: str):
        # Load configuration
        self.config = VocabTutorConfig(config_path)
        self.console = Console()

    def init(self) -> None:
        logger.info("Initializing services...")

        playback_rate = self.config.get('audio.playback.sample_rate', 24000)
        grace_seconds = self.config.get('audio.playback.grace_seconds', 1.0)
        capture_rate = self.config.get('audio.capture.sample_rate', 16000)
        chunk_size = self.config.get('audio.capture.chunk_size', 1024)

        logger.info(f"Audio settings: playback {playback_rate}Hz, capture {capture_rate}Hz, "
                    f"{chunk_size} samples/chunk")

        self.client = GeminiClient(
            api_key=self.config.get_api_key(),
            text_model=self.config.get('gemini.text_model', 'gemini-3-flash-preview'),
            tts_model=self.config.get('gemini.tts_model', 'gemini-2.5-flash-preview-tts'),
            voice=self.config.get('gemini.voice', 'Puck'),
            base_url=self.config.get('gemini.base_url', 'https://generativelanguage.googleapis.com/v1beta'),
            timeout_seconds=self.config.get('gemini.timeout_seconds', 30.0),
        )
        self.player = AudioPlayer(sample_rate=playback_rate, grace_seconds=grace_seconds)
        self.capture = MicrophoneCapture(
            sample_rate=capture_rate,
            chunk_size=chunk_size,
            stop_timeout=self.config.get('audio.capture.stop_timeout_seconds', 2.0),
        )
        self.practice = PracticeService(self.client, self.player, self.capture)

    def say(self, text: str) -> None:
        result = asyncio.run(self.practice.speak(text))
        if result is None or not result.ok:
            self.console.print("[yellow]No audio was played.[/yellow]")
            return
        self._wait_for(result)

    def practice_word(self, word: str, duration: float, playback: bool) -> Optional[SpeechEvaluation]:
        try:
            self.practice.start_recording(word)
        except MicrophoneError as e:
            self.console.print(Panel(str(e), title="Microphone unavailable", border_style="red"))
            return None

        self.console.print(f"Say [bold]{word}[/bold] now... ({duration:.0f}s)")
        try:
            time.sleep(duration)
        finally:
            recording = self.practice.stop_recording()

        if recording is None:
            self.console.print("[yellow]Nothing was recorded.[/yellow]")
            return None

        if playback:
            result = self.practice.replay_recording()
            if result is not None and result.ok:
                self._wait_for(result)

        evaluation = asyncio.run(self.practice.evaluate())
        if evaluation is None:
            self.console.print("[yellow]Evaluation unavailable, try again.[/yellow]")
            return None

        self.console.print(render_evaluation(word, evaluation))
        return evaluation

    def play_file(self, path: str) -> None:
        payload = Path(path).read_text(encoding='utf-8').strip()
        result = self.practice.play(payload)
        if result.ok:
            self._wait_for(result)
        else:
            self.console.print(f"[red]Could not play {path}: {result.error}[/red]")

    def _wait_for(self, result: PlaybackResult) -> None:
        # Playback runs on the device thread; keep the process alive until it ends
        time.sleep(result.duration_seconds + 0.2)


def render_evaluation(word: str, evaluation: SpeechEvaluation) -> Panel:
    """Render an evaluation as a rich panel."""
    if evaluation.score >= 80:
        color = "green"
    elif evaluation.score >= 50:
        color = "yellow"
    else:
        color = "red"

    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Score", f"[{color}]{evaluation.score:.0f}/100[/{color}]")
    table.add_row("Feedback", evaluation.feedback)
    if evaluation.mispronounced_phonemes:
        table.add_row("Sounds to work on", ", ".join(evaluation.mispronounced_phonemes))
    table.add_row("Tip", evaluation.improvement_tip)

    return Panel(table, title=f"Pronunciation: {word}", border_style=color)


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/vocabtutor.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info(f"Logging to {log_file_path} at {level}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="vocabtutor - listen, repeat and get your pronunciation graded"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="vocabtutor v0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    say_parser = subparsers.add_parser("say", help="Synthesize and play a word or phrase")
    say_parser.add_argument("text", help="Text to pronounce")

    practice_parser = subparsers.add_parser("practice", help="Record an attempt and get it graded")
    practice_parser.add_argument("word", help="Word or phrase to practice")
    practice_parser.add_argument(
        "--duration",
        type=float,
        default=3.0,
        help="Recording length in seconds (default: 3)"
    )
    practice_parser.add_argument(
        "--playback",
        action="store_true",
        help="Play the recording back before evaluating it"
    )

    play_parser = subparsers.add_parser("play-file", help="Play a base64 audio payload stored in a file")
    play_parser.add_argument("path", help="File holding a data URI or headerless PCM base64")

    return parser


def main() -> None:
    """Main entry point for vocabtutor."""
    args = build_parser().parse_args()

    try:
        app = App(args.config)
        setup_logging(app.config, args.log_level or app.config.get('logging.level', 'INFO'))
        app.init()

        if args.command == "say":
            app.say(args.text)
        elif args.command == "practice":
            app.practice_word(args.word, args.duration, args.playback)
        elif args.command == "play-file":
            app.play_file(args.path)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
