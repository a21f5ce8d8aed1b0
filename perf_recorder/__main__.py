"""Main entry point for perf-recorder."""

import asyncio
import functools
import logging
import shlex
import signal
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.text import Text

from .core.config_paths import ConfigPaths
from .config.settings_manager import (
    get_default_output_path,
    get_elevation_helpers,
    get_kill_timeout,
    get_perf_binary,
)
from .recording import (
    CommandComposer,
    Failed,
    Finished,
    Output,
    PerfRecordController,
    RecordingEvent,
    RecordRequest,
    Started,
    ensure_readable,
)


def build_request(
    pids: Tuple[str, ...],
    output: Optional[str],
    elevate: bool,
    perf_options: List[str],
    cwd: Optional[str],
    command: Tuple[str, ...],
) -> RecordRequest:
    """Turn command line arguments into a recording request."""
    output_path = str(Path(output or get_default_output_path()).expanduser().absolute())

    if pids and command:
        raise click.UsageError("Give either --pid or a command to run, not both.")
    if not pids and not command:
        raise click.UsageError("Give --pid or a command to run.")

    if pids:
        pid_list = [pid for value in pids for pid in value.split(",") if pid]
        return RecordRequest.for_pids(perf_options, output_path, elevate, pid_list)

    return RecordRequest.for_executable(
        perf_options,
        output_path,
        elevate,
        command[0],
        command[1:],
        cwd,
    )


async def run_plain(
    controller: PerfRecordController, request: RecordRequest, console: Console
) -> Optional[RecordingEvent]:
    """Run a recording, printing its output to the console."""
    result: Optional[RecordingEvent] = None

    def on_event(event: RecordingEvent) -> None:
        nonlocal result
        if isinstance(event, Started):
            console.print(
                Text(f"$ {controller.current_command_line()}", style="dim")
            )
        elif isinstance(event, Output):
            console.out(event.text, end="", highlight=False)
        elif isinstance(event, Finished):
            result = event
            console.print(
                Text(f"Recording saved to {event.artifact_path}", style="bold green")
            )
        elif isinstance(event, Failed):
            result = event
            console.print(Text(f"Error: {event.reason}", style="bold red"))

    controller.on_event = on_event

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, controller.stop)
    try:
        await controller.start(request)
        await controller.wait_finished()
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        await controller.close()
    return result


def _configure_logging(debug: bool, to_file: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    if to_file:
        logging.basicConfig(
            filename=ConfigPaths.get_log_file(),
            level=logging.DEBUG if debug else logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )
    else:
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.command(context_settings={"allow_interspersed_args": False})
@click.option(
    "--pid",
    "pids",
    multiple=True,
    help="Process id to attach to (repeatable, or comma separated)",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Where to write perf.data",
)
@click.option(
    "--elevate",
    is_flag=True,
    help="Run perf as root through kdesu/gksu",
)
@click.option(
    "-p",
    "--perf-options",
    default="",
    help="Options for perf record, e.g. --perf-options=\"-e cycles --call-graph dwarf\"",
)
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Working directory for the launched command",
)
@click.option(
    "--plain",
    is_flag=True,
    help="Print output to the terminal instead of starting the TUI",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging",
)
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def main(
    pids: Tuple[str, ...],
    output: Optional[str],
    elevate: bool,
    perf_options: str,
    cwd: Optional[str],
    plain: bool,
    debug: bool,
    command: Tuple[str, ...],
) -> None:
    """Record a perf profile of COMMAND or of running processes."""
    load_dotenv()
    _configure_logging(debug, to_file=not plain)

    request = build_request(
        pids, output, elevate, shlex.split(perf_options), cwd, command
    )
    composer = CommandComposer(
        perf_binary=get_perf_binary(),
        helper_names=get_elevation_helpers(),
    )
    controller = PerfRecordController(
        on_event=lambda event: None,
        composer=composer,
        readable_check=functools.partial(ensure_readable, resolver=composer.resolver),
        kill_timeout=get_kill_timeout(),
    )

    try:
        if plain:
            result = asyncio.run(run_plain(controller, request, Console()))
        else:
            from .app import RecorderApp

            result = RecorderApp(controller, request).run()
    except Exception as e:
        if debug:
            raise
        click.echo(click.style(f"Error: {e}", fg="red"))
        sys.exit(1)

    sys.exit(0 if isinstance(result, Finished) else 1)


if __name__ == "__main__":
    main()
