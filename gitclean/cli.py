"""CLI entry point for gitclean."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from contextlib import contextmanager, nullcontext
from functools import partial
from typing import Iterator

from gitclean import __version__
from gitclean.errors import InvalidRootPath
from gitclean.git import DEFAULT_TIMEOUT
from gitclean.pipeline import RunConfig, RunSummary, run_cleanup

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_ROOT = 1
EXIT_REPO_ERRORS = 2


def confirm_clean(repo: str, console) -> bool:
    """Ask whether to clean repo; a closed stdin counts as no."""
    from rich.prompt import Confirm

    try:
        return Confirm.ask(f"Clean [bold]{repo}[/bold]?", console=console, default=False)
    except EOFError:
        logger.warning("No answer for %s (stdin closed); leaving it alone", repo)
        return False


def setup_logging(verbosity: int) -> None:
    """Send log records to stderr through Rich; -v for INFO, -vv for DEBUG."""
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=verbosity >= 2,
        markup=False,
    )
    logger = logging.getLogger("gitclean")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


@contextmanager
def _cancel_on_interrupt() -> Iterator[threading.Event]:
    """First Ctrl-C asks the run to stop between repositories."""
    event = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield event
        return

    def handler(signum, frame):
        if event.is_set():
            raise KeyboardInterrupt
        print("\n  Stopping after the current repository...", file=sys.stderr)
        event.set()

    original = signal.signal(signal.SIGINT, handler)
    try:
        yield event
    finally:
        signal.signal(signal.SIGINT, original)


def summary_to_dict(summary: RunSummary) -> dict:
    """Plain-JSON form of a run summary."""
    return {
        "root": summary.root,
        "depth": summary.depth,
        "repos_found": summary.repos_found,
        "cleaned": list(summary.cleaned),
        "skipped": [
            {"path": p, "reason": summary.skipped_reasons.get(p, "")}
            for p in summary.skipped
        ],
        "errors": [
            {"path": e.repo, "stage": e.stage, "message": e.message}
            for e in summary.errors
        ],
        "unreadable": list(summary.unreadable),
        "unprocessed": list(summary.unprocessed),
        "bytes_reclaimed": summary.bytes_reclaimed,
        "duration_seconds": round(summary.duration.total_seconds(), 3),
        "simulated": summary.simulated,
        "cancelled": summary.cancelled,
    }


def print_summary(summary: RunSummary, console=None) -> None:
    """Print a Rich summary of a finished run to stdout."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.rule import Rule
    from rich.table import Table
    from rich.text import Text

    from gitclean.theme import (
        ACCENT_CLEANED,
        ACCENT_ERRORS,
        ACCENT_SKIPPED,
        CYAN,
        GREEN,
        ICON_CLEANED,
        ICON_CLOCK,
        ICON_DISK,
        ICON_ERROR,
        ICON_FOUND,
        ICON_ROOT,
        ICON_SKIPPED,
        MUTED,
        RED,
        SURFACE,
        YELLOW,
        format_duration,
        format_size,
        ratio_bar,
        render_banner,
    )

    console = console or Console()
    console.print(render_banner())

    if not summary.repos_found:
        console.print(f"[{RED}]No git repos found.[/{RED}] Try a larger --depth.")

    cleaned_label = "would be cleaned" if summary.simulated else "cleaned"
    overview = Text()
    overview.append(f"  {ICON_ROOT} {summary.root}", style=f"bold {CYAN}")
    overview.append(f"  (depth {summary.depth})", style=MUTED)
    overview.append(f"\n  {ICON_FOUND} {summary.repos_found}", style=f"bold {CYAN}")
    overview.append(" found", style=MUTED)
    overview.append(f"    {ICON_CLEANED} {len(summary.cleaned)}", style=f"bold {GREEN}")
    overview.append(f" {cleaned_label}", style=MUTED)
    overview.append(f"    {ICON_SKIPPED} {len(summary.skipped)}", style=f"bold {YELLOW}")
    overview.append(" skipped", style=MUTED)
    if summary.errors:
        overview.append(f"    {ICON_ERROR} {len(summary.errors)}", style=f"bold {RED}")
        overview.append(" failed", style=MUTED)
    overview.append(f"\n  {ICON_DISK} {format_size(summary.bytes_reclaimed)}", style=f"bold {GREEN}")
    overview.append(" reclaimed", style=MUTED)
    overview.append(f"    {ICON_CLOCK} {format_duration(summary.duration.total_seconds())}", style=f"bold {CYAN}")
    if summary.repos_found:
        overview.append("\n  ")
        overview.append_text(ratio_bar(len(summary.cleaned), summary.repos_found))
    if summary.unreadable:
        overview.append(f"\n  {len(summary.unreadable)} unreadable paths skipped", style=YELLOW)
    if summary.cancelled:
        overview.append(f"\n  Cancelled: {len(summary.unprocessed)} repos not processed", style=f"bold {RED}")

    title = f"{ICON_CLEANED} gitclean (dry run)" if summary.simulated else f"{ICON_CLEANED} gitclean"
    console.print(Panel(
        overview,
        title=f"[bold {GREEN}]{title}[/bold {GREEN}]",
        border_style=GREEN,
        padding=(1, 1),
    ))

    if summary.cleaned:
        console.print(Rule(f"[bold {ACCENT_CLEANED}]Cleaned[/bold {ACCENT_CLEANED}]", style=ACCENT_CLEANED))
        for repo in summary.cleaned:
            console.print(f"  {repo}", style=CYAN, highlight=False)
        console.print()

    if summary.skipped:
        console.print(Rule(f"[bold {ACCENT_SKIPPED}]Skipped[/bold {ACCENT_SKIPPED}]", style=ACCENT_SKIPPED))
        table = Table(border_style=SURFACE, show_edge=True, pad_edge=True)
        table.add_column("Repo", style=f"bold {CYAN}")
        table.add_column("Reason", style=YELLOW)
        for repo in summary.skipped:
            table.add_row(repo, summary.skipped_reasons.get(repo, ""))
        console.print(table)
        console.print()

    if summary.errors:
        console.print(Rule(f"[bold {ACCENT_ERRORS}]Errors[/bold {ACCENT_ERRORS}]", style=ACCENT_ERRORS))
        table = Table(border_style=SURFACE, show_edge=True, pad_edge=True)
        table.add_column("Repo", style=f"bold {CYAN}")
        table.add_column("Stage", style=YELLOW)
        table.add_column("Error", style=RED)
        for err in summary.errors:
            table.add_row(err.repo, err.stage, err.message)
        console.print(table)
        console.print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitclean",
        description="Find git repos under a directory and run `git clean -xdf` on the safe ones.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to search for git repos (default: current directory)",
    )
    parser.add_argument(
        "-d", "--depth",
        type=int,
        default=3,
        help="How many directory levels below PATH to search (default: 3)",
    )
    parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Clean repos even if they contain untracked files",
    )
    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        dest="simulate",
        help="Show what would be cleaned without deleting anything",
    )
    parser.add_argument(
        "-i", "--interactive",
        action="store_true",
        help="Ask before cleaning each repo",
    )
    parser.add_argument(
        "--calculate-space",
        action="store_true",
        dest="measure_size",
        help="Measure each repo before and after cleaning to report space reclaimed (slower)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        metavar="SECONDS",
        help=f"Timeout for each git command (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Repos to process in parallel (default: 1)",
    )
    parser.add_argument(
        "--skip",
        action="append",
        default=[],
        metavar="NAME",
        help="Directory name to never search inside (repeatable, e.g. node_modules)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the run summary as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log more detail (-vv for git commands)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"gitclean {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the gitclean CLI."""
    from rich.console import Console

    from gitclean.progress import RichProgress

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.depth < 0:
        parser.error("--depth must be >= 0")
    if args.workers < 1:
        parser.error("--workers must be >= 1")
    if args.timeout <= 0:
        parser.error("--timeout must be > 0")

    config = RunConfig(
        root=args.path,
        depth=args.depth,
        force=args.force,
        simulate=args.simulate,
        measure_size=args.measure_size,
        timeout=args.timeout,
        workers=args.workers,
        skip_dirs=frozenset(args.skip),
    )

    err_console = Console(stderr=True)
    confirm = None
    if args.interactive:
        confirm = partial(confirm_clean, console=err_console)

    # A live progress bar would fight with the prompts
    progress = nullcontext(None) if args.interactive else RichProgress(console=err_console)

    try:
        with _cancel_on_interrupt() as cancel, progress as sink:
            summary = run_cleanup(
                config,
                progress=sink,
                confirm=confirm,
                should_cancel=cancel.is_set,
            )
    except InvalidRootPath as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc.path} is not an existing directory")
        sys.exit(EXIT_INVALID_ROOT)

    if args.json_output:
        print(json.dumps(summary_to_dict(summary), indent=2))
    else:
        print_summary(summary)

    if summary.errors:
        sys.exit(EXIT_REPO_ERRORS)


if __name__ == "__main__":
    main()
