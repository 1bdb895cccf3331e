"""CLI commands for tubepilot using Typer and Rich.

Commands:
- produce: Run one production and wait for the video to finish
- autopilot: Produce videos until the daily/weekly goal is met

Records live in memory, so quota counts only cover the current invocation.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from tubepilot import validate_dependencies
from tubepilot.models import VideoLength
from tubepilot.orchestrator.errors import OptimizationFailure, ScriptGenerationFailure
from tubepilot.orchestrator.state import VideoStatus
from tubepilot.runtime import Runtime, build_runtime

app = typer.Typer(name="tubepilot", help="Autopilot content production for AI-generated videos")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _validate() -> None:
    # Fail-fast dependency validation
    try:
        validate_dependencies()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(code=1)


@app.command()
def produce(
    length: VideoLength = typer.Argument(..., help="Video length: short or long"),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Topic hint for the script"),
    title: Optional[str] = typer.Option(None, "--title", help="Working title, kept as the original title"),
    playlist: Optional[str] = typer.Option(None, "--playlist", "-p", help="Playlist (series) name"),
    inspiration_url: Optional[str] = typer.Option(None, "--inspiration-url", help="Reference video URL"),
    script_file: Optional[Path] = typer.Option(
        None, "--script-file", exists=True, dir_okay=False, help="Use this script instead of generating one"
    ),
    timeout: float = typer.Option(900.0, "--timeout", help="Seconds to wait for generation to finish"),
):
    """Produce one video: script, metadata, generation and narration."""
    _validate()
    script = script_file.read_text(encoding="utf-8") if script_file else None
    asyncio.run(_produce_async(length, topic, title, playlist, inspiration_url, script, timeout))


async def _produce_async(
    length: VideoLength, topic: Optional[str], title: Optional[str], playlist: Optional[str],
    inspiration_url: Optional[str], script: Optional[str], timeout: float,
):
    """Async implementation of produce command."""
    with console.status("[bold green]Starting pipeline...") as status:
        runtime = build_runtime(progress_callback=lambda msg: status.update(f"[bold green]{msg}"))
        try:
            key = await runtime.pipeline.produce(
                length,
                playlist=playlist,
                topic=topic,
                title=title,
                inspiration_url=inspiration_url,
                script=script,
            )
        except (ScriptGenerationFailure, OptimizationFailure) as e:
            console.print(f"[red]✗ Pipeline failed:[/red] {str(e)}")
            raise typer.Exit(code=1)

        console.print(f"[green]Registered video:[/green] {key}")
        status.update("[bold green]Waiting for video generation...")
        settled = await runtime.poller.run_until_settled(timeout=timeout)

    _print_videos(runtime, [key])
    _exit_for(runtime, [key], settled)


@app.command()
def autopilot(
    length: Optional[VideoLength] = typer.Argument(
        None, help="short or long; defaults to whichever goal is unmet"
    ),
    timeout: float = typer.Option(1800.0, "--timeout", help="Seconds to wait for generation to finish"),
):
    """Produce videos until the daily short or weekly long goal is met.

    Records are kept in memory, so each invocation starts from zero.
    """
    _validate()
    asyncio.run(_autopilot_async(length, timeout))


async def _autopilot_async(length: Optional[VideoLength], timeout: float):
    """Async implementation of autopilot command."""
    with console.status("[bold green]Checking quota...") as status:
        runtime = build_runtime(progress_callback=lambda msg: status.update(f"[bold green]{msg}"))
        try:
            if length is None:
                keys = await runtime.scheduler.run_next()
            else:
                keys = await runtime.scheduler.run(length)
        except (ScriptGenerationFailure, OptimizationFailure) as e:
            console.print(f"[red]✗ Auto-Pilot failed:[/red] {str(e)}")
            raise typer.Exit(code=1)

        if not keys:
            console.print("[green]All goals met, nothing to produce.[/green]")
            return

        status.update(f"[bold green]Waiting for {len(keys)} video(s)...")
        settled = await runtime.poller.run_until_settled(timeout=timeout)

    _print_videos(runtime, keys)
    _print_quota(runtime)
    _exit_for(runtime, keys, settled)


def _print_quota(runtime: Runtime) -> None:
    """Print goal progress; counts cover videos produced by this process."""
    status = runtime.scheduler.quota()

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Goal")
    table.add_column("Done", justify="right")
    table.add_column("Target", justify="right")
    table.add_row("Shorts today", str(status.shorts_today), str(status.daily_short_goal))
    table.add_row("Longs this week", str(status.longs_this_week), str(status.weekly_long_goal))
    console.print(table)
    console.print(f"[bold]Next:[/bold] {runtime.scheduler.suggest_next_length()}")


def _print_videos(runtime: Runtime, keys: list[str]) -> None:
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Title")
    table.add_column("Length")
    table.add_column("Playlist")
    table.add_column("Status")
    table.add_column("Upload Time", style="dim")

    for key in keys:
        record = runtime.store.get(key)
        if record is None:
            continue
        status = runtime.store.get_status(key)
        status_value = status.value if status else "-"
        status_color = _get_status_color(status)
        table.add_row(
            key if len(key) <= 60 else key[:57] + "...",
            record.length.value,
            record.playlist or "-",
            f"[{status_color}]{status_value}[/{status_color}]",
            record.suggested_upload_time or "-",
        )
    console.print(table)


def _exit_for(runtime: Runtime, keys: list[str], settled: bool) -> None:
    if not settled:
        console.print("[yellow]Timed out waiting for generation; videos are still processing.[/yellow]")
        raise typer.Exit(code=1)
    ok = {VideoStatus.GENERATED, VideoStatus.SCHEDULED}
    if any(runtime.store.get_status(key) not in ok for key in keys):
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] Production complete!")


def _get_status_color(status: Optional[VideoStatus]) -> str:
    """Get Rich color for a video status.

    Color coding:
    - generated/scheduled/published: green
    - failed/timed out/lost: red
    - processing: yellow
    """
    if status in (VideoStatus.GENERATED, VideoStatus.SCHEDULED, VideoStatus.PUBLISHED):
        return "green"
    elif status in (VideoStatus.FAILED, VideoStatus.TIMED_OUT, VideoStatus.LOST):
        return "red"
    elif status == VideoStatus.PROCESSING:
        return "yellow"
    else:
        return "white"
