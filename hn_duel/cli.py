"""Command-line interface for Hacker News Duel."""

import asyncio
import logging
import logging.config
import sys
import threading
import time
import webbrowser
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import typer
from typing_extensions import Annotated

from hn_duel.config import Config
from hn_duel.duel.controller import DuelController
from hn_duel.duel.state import RoundPhase, ScoreBoard
from hn_duel.models.story import Story
from hn_duel.monitoring.metrics import PrometheusExporter
from hn_duel.source.hn_client import HackerNewsClient
from hn_duel.supply.buffer import StoryBuffer

app = typer.Typer(help="Hacker News Duel - guess which story got more points")

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


def setup_logging(log_level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "standard",
                "filename": "logs/hn_duel.log",
                "maxBytes": 10485760,  # 10 MB
                "backupCount": 5,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": "DEBUG",
                "propagate": True
            },
            "asyncio": {
                "level": "WARNING",
            },
            "aiohttp": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str) -> Config:
    """
    Load configuration and exit with status 1 if it is invalid.

    Runs before logging is configured, so errors are echoed only.
    """
    config = Config.from_files(config_path)
    validation_errors = config.validate()

    if validation_errors:
        for error in validation_errors:
            typer.echo(f"Configuration error: {error}", err=True)
        raise typer.Exit(code=1)

    return config


def render_round(controller: DuelController, now: Optional[float] = None) -> str:
    """Render the scoreboard and the current pair. Scores stay hidden until revealed."""
    board = controller.scoreboard
    lines = [
        "",
        f"Score: {board.score}   Current streak: {board.streak}   Longest streak: {board.longest_streak}",
        "Can you predict which post got more points?",
        "",
    ]
    revealed = controller.phase is RoundPhase.REVEALED

    for index, story in enumerate(controller.pair or ()):
        marker = ""
        if revealed and index == controller.selected_index:
            marker = "  <- correct!" if index == controller.correct_index else "  <- wrong"
        points = f"{story.score} points" if revealed else "??? points"
        comments = f"{story.descendants} comments" if revealed else "??? comments"
        lines.append(f"[{index + 1}] {story.title}{marker}")
        lines.append(f"    {points} by {story.by} {story.age_label(now)} | {comments}")

    lines.append("")
    lines.append(render_status(controller))
    return "\n".join(lines)


def render_status(controller: DuelController) -> str:
    """Render the prompt line for the current phase."""
    phase = controller.phase
    if phase is RoundPhase.AWAITING_GUESS:
        return "Pick [1] or [2] ([q] quits)"
    if phase is RoundPhase.REVEALED:
        if controller.paused:
            return "Paused. [p] resume  [n] next  [o1]/[o2] open  [q] quit"
        return (
            f"New posts in {controller.countdown} seconds. "
            "[p] pause  [n] next  [o1]/[o2] open  [q] quit"
        )
    return "No more stories available. [r] play again  [q] quit"


def render_summary(board: ScoreBoard) -> str:
    return (
        f"Game over. Score: {board.score}, longest streak: {board.longest_streak} "
        f"({board.correct} right, {board.incorrect} wrong)"
    )


def _start_stdin_reader(lines: "asyncio.Queue[Optional[str]]") -> threading.Thread:
    """Feed stdin lines into ``lines`` from a daemon thread; None marks EOF."""
    loop = asyncio.get_running_loop()

    def pump() -> None:
        try:
            for line in sys.stdin:
                loop.call_soon_threadsafe(lines.put_nowait, line.strip().lower())
            loop.call_soon_threadsafe(lines.put_nowait, None)
        except RuntimeError:
            # asyncio.run already closed the loop; nobody is reading any more
            logger.debug("Event loop closed, stopping stdin reader")

    thread = threading.Thread(target=pump, name="stdin-reader", daemon=True)
    thread.start()
    return thread


async def handle_command(controller: DuelController, command: str, echo: Echo) -> bool:
    """
    Apply one user command to the controller.

    Args:
        controller: Game controller
        command: Normalized input line
        echo: Output function

    Returns:
        False when the user asked to quit
    """
    if command == "q":
        return False

    phase = controller.phase
    if phase is RoundPhase.AWAITING_GUESS and command in ("1", "2"):
        outcome = controller.guess(int(command) - 1)
        if outcome is not None:
            echo("Correct!" if outcome.correct else "Wrong!")
    elif phase is RoundPhase.REVEALED and command == "p":
        controller.pause_toggle()
    elif phase is RoundPhase.REVEALED and command == "n":
        await controller.advance()
    elif phase is RoundPhase.REVEALED and command in ("o1", "o2"):
        story = controller.pair[int(command[1]) - 1]
        webbrowser.open(story.link)
    elif phase is RoundPhase.NO_ROUND and command == "r":
        echo("Loading stories...")
        await controller.restart()
    else:
        echo(render_status(controller))
    return True


async def play_loop(
    controller: DuelController,
    lines: "asyncio.Queue[Optional[str]]",
    echo: Echo,
) -> None:
    """Render controller state and feed user commands until the user quits or input ends."""
    changed = asyncio.Event()
    controller.add_listener(lambda _: changed.set())
    last_view: Optional[Tuple[object, RoundPhase]] = None

    try:
        while True:
            changed.clear()
            view = (controller.pair, controller.phase)
            if view != last_view:
                if controller.phase is RoundPhase.NO_ROUND:
                    echo(render_summary(controller.scoreboard))
                    echo(render_status(controller))
                else:
                    echo(render_round(controller))
                last_view = view
            elif controller.phase is RoundPhase.REVEALED:
                echo(render_status(controller))

            line_task = asyncio.ensure_future(lines.get())
            change_task = asyncio.ensure_future(changed.wait())
            done, pending = await asyncio.wait(
                {line_task, change_task}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()

            if line_task in done:
                command = line_task.result()
                if command is None or not await handle_command(controller, command, echo):
                    return
    finally:
        controller.close()


async def run_game(config: Config, echo: Echo = typer.echo) -> ScoreBoard:
    """
    Play duel rounds on the terminal.

    Args:
        config: Application configuration
        echo: Output function

    Returns:
        The final scoreboard
    """
    prometheus_exporter = None
    if config.monitoring.enable_prometheus:
        prometheus_exporter = PrometheusExporter(port=config.monitoring.prometheus_port)
        prometheus_exporter.start_server()

    async with HackerNewsClient(config.source, prometheus_exporter=prometheus_exporter) as client:
        buffer = StoryBuffer(client, config.supply, prometheus_exporter=prometheus_exporter)
        controller = DuelController(buffer, config.round, prometheus_exporter=prometheus_exporter)
        lines: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        _start_stdin_reader(lines)

        try:
            echo("Loading stories...")
            await controller.start_round()
            await play_loop(controller, lines, echo)
        finally:
            buffer.cancel_refill()

    echo(render_summary(controller.scoreboard))
    return controller.scoreboard


async def peek_stories(config: Config, limit: int) -> List[Story]:
    """Run a single refill and return up to ``limit`` admitted stories."""
    async with HackerNewsClient(config.source) as client:
        buffer = StoryBuffer(client, config.supply)
        try:
            await buffer.refill()
            return await buffer.take(limit)
        finally:
            buffer.cancel_refill()


@app.command()
def play(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    loglevel: Annotated[Optional[str], typer.Option("--loglevel", "-l", help="Console logging level")] = None,
) -> None:
    """
    Play Hacker News Duel in the terminal.
    """
    app_config = load_config(config)
    setup_logging(loglevel or app_config.log_level)
    logger.info("Starting Hacker News Duel")

    try:
        asyncio.run(run_game(app_config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


@app.command()
def peek(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of stories to show")] = 10,
    loglevel: Annotated[Optional[str], typer.Option("--loglevel", "-l", help="Console logging level")] = None,
) -> None:
    """
    Fetch one batch of eligible stories and print them.
    """
    app_config = load_config(config)
    setup_logging(loglevel or app_config.log_level)

    stories = asyncio.run(peek_stories(app_config, limit))
    if not stories:
        typer.echo("No eligible stories found")
        raise typer.Exit(code=1)

    now = time.time()
    for story in stories:
        typer.echo(f"{story.score:>5}  {story.title}  ({story.by}, {story.age_label(now)})")


@app.command("check-config")
def check_config(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
) -> None:
    """
    Validate the configuration file and environment.
    """
    app_config = Config.from_files(config)
    errors = app_config.validate()
    if errors:
        for error in errors:
            typer.echo(f"Configuration error: {error}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Configuration OK")


if __name__ == "__main__":
    app()
