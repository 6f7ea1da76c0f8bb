"""
Training Library CLI - study training programs from the terminal.

Every command builds a TrainingSession from the configured content location,
reconciles where the learner left off (URL, saved snapshot, dashboard), and
then performs one navigation. `trainlib study` keeps the session open for an
interactive walk through the pages.

Usage:
    trainlib programs                      # Dashboard grouped by category
    trainlib open python-basics            # Resume at the first incomplete page
    trainlib open python-basics --page 3   # Jump to page 3
    trainlib goto "#program=git&page=2"    # Follow a shared link
    trainlib next | prev | complete        # Step through the current program
    trainlib progress                      # Completion per program
    trainlib reset-progress --yes          # Clear all completion records
    trainlib study                         # Interactive session
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Awaitable, Callable

import typer
from loguru import logger
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from ..config import Settings
from ..events import SessionEvent
from ..navigation.machine import NavigationResult, NavigationStatus, Phase
from ..session import TrainingSession
from .render import TerminalRenderer, render_dashboard, render_module_list

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="trainlib",
    help="📚 Training Library - navigate multi-page training programs",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()

SessionAction = Callable[[TrainingSession], Awaitable[NavigationResult]]


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<level>{level: <8}</level> {message}")


def _settings(ctx: typer.Context) -> Settings:
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    return Settings()


async def _print_dashboard(session: TrainingSession) -> None:
    groups = await session.dashboard()
    if not groups:
        console.print("[yellow]No training programs available.[/]")
        return
    console.print(render_dashboard(session.catalog.title, groups))


async def _run_session(
    settings: Settings,
    action: SessionAction | None = None,
    initial_url: str = "#",
    show_start: bool = False,
    ignored_message: str | None = None,
) -> int:
    """
    Start a session, optionally run one navigation, and render the outcome.

    Returns the process exit code.
    """
    async with TrainingSession.from_settings(settings, initial_url=initial_url) as session:
        renderer = TerminalRenderer(console, session.progress)
        fatal_token = session.subscribe(SessionEvent.SESSION_FAILED, renderer.on_session_failed)
        if show_start:
            session.events.unsubscribe(fatal_token)
            renderer.attach(session.events)

        result = await session.start()
        if session.navigator.phase == Phase.FAILED:
            return 1

        if action is not None:
            if not show_start:
                session.events.unsubscribe(fatal_token)
                renderer.attach(session.events)
            result = await action(session)

        if result.status == NavigationStatus.IGNORED and ignored_message:
            console.print(f"[dim]{ignored_message}[/]")
        if session.state.is_dashboard and result.status != NavigationStatus.IGNORED:
            await _print_dashboard(session)
        return 1 if result.status == NavigationStatus.FAILED else 0


def _run(settings: Settings, **kwargs) -> None:
    code = asyncio.run(_run_session(settings, **kwargs))
    if code:
        raise typer.Exit(code)


# =============================================================================
# Browsing Commands
# =============================================================================


@app.command("programs")
def list_programs(ctx: typer.Context) -> None:
    """Show the dashboard: every program grouped by category with its progress."""
    code = asyncio.run(_list_programs(_settings(ctx)))
    if code:
        raise typer.Exit(code)


async def _open_catalog(session: TrainingSession) -> bool:
    """Load the catalog without navigating, so the saved position is left alone."""
    renderer = TerminalRenderer(console, session.progress)
    session.subscribe(SessionEvent.SESSION_FAILED, renderer.on_session_failed)
    result = await session.navigator.initialize()
    return result.ok


async def _list_programs(settings: Settings) -> int:
    async with TrainingSession.from_settings(settings) as session:
        if not await _open_catalog(session):
            return 1
        await _print_dashboard(session)
        return 0


@app.command("open")
def open_program(
    ctx: typer.Context,
    program_id: Annotated[str, typer.Argument(help="Program id from the catalog")],
    page: Annotated[
        int | None, typer.Option("--page", "-p", min=1, help="1-based page number (default: resume)")
    ] = None,
) -> None:
    """
    Open a program.

    Without --page the program resumes at its first incomplete module.

    Examples:
        trainlib open python-basics
        trainlib open python-basics -p 4
    """

    async def open_it(session: TrainingSession) -> NavigationResult:
        if page is None:
            return await session.open_program(program_id)
        return await session.switch_program(program_id, page - 1)

    _run(_settings(ctx), action=open_it, ignored_message=f"Unknown program: {program_id}")


@app.command("goto")
def goto(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help='Hash link, e.g. "#program=git&page=2" or "#page-3"')],
) -> None:
    """Start the session at a shared link, the way a browser would open it."""
    _run(_settings(ctx), initial_url=url, show_start=True)


@app.command("resume")
def resume(ctx: typer.Context) -> None:
    """Return to the page the last session ended on."""
    _run(_settings(ctx), show_start=True)


@app.command("next")
def next_page(ctx: typer.Context) -> None:
    """Move to the next page of the current program."""

    async def advance(session: TrainingSession) -> NavigationResult:
        return await session.advance()

    _run(_settings(ctx), action=advance, ignored_message="Already on the last page (or no program open).")


@app.command("prev")
def previous_page(ctx: typer.Context) -> None:
    """Move to the previous page of the current program."""

    async def retreat(session: TrainingSession) -> NavigationResult:
        return await session.retreat()

    _run(_settings(ctx), action=retreat, ignored_message="Already on the first page (or no program open).")


@app.command("complete")
def complete(ctx: typer.Context) -> None:
    """Toggle completion of the current page."""

    async def toggle(session: TrainingSession) -> NavigationResult:
        return await session.toggle_complete()

    _run(_settings(ctx), action=toggle, ignored_message="No page is open.")


# =============================================================================
# Progress Commands
# =============================================================================


@app.command("progress")
def show_progress(
    ctx: typer.Context,
    program_id: Annotated[str | None, typer.Argument(help="Limit to one program")] = None,
) -> None:
    """Show completed modules and percentage per program."""
    code = asyncio.run(_show_progress(_settings(ctx), program_id))
    if code:
        raise typer.Exit(code)


async def _show_progress(settings: Settings, program_id: str | None) -> int:
    async with TrainingSession.from_settings(settings) as session:
        if not await _open_catalog(session):
            return 1

        programs = session.catalog.programs
        if program_id:
            programs = [p for p in programs if p.id == program_id]
            if not programs:
                console.print(f"[red]Unknown program: {program_id}[/]")
                return 1

        table = Table(title="📊 Progress")
        table.add_column("Program")
        table.add_column("Completed", justify="right")
        table.add_column("%", justify="right")
        for program in programs:
            summary = await session.program_progress(program)
            style = "green" if summary.is_complete else ""
            table.add_row(program.title, f"{summary.completed}/{summary.total}", f"{summary.percentage}%", style=style)
        console.print(table)
        return 0


@app.command("reset-progress")
def reset_progress(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Clear every completion record. This cannot be undone."""
    if not yes and not typer.confirm("Reset all progress? This cannot be undone."):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)

    async def reset(session: TrainingSession) -> NavigationResult:
        return await session.reset_all_progress()

    _run(_settings(ctx), action=reset)


# =============================================================================
# Interactive Study
# =============================================================================

STUDY_HELP = (
    "[bold]n[/]ext  [bold]p[/]rev  [bold]c[/]omplete  [bold]b[/]ack  [bold]f[/]orward  "
    "[bold]d[/]ashboard  [bold]l[/]ist  [bold]<N>[/] page  [bold]o[/] <id> open  "
    "[bold]g[/] <#link> go  [bold]q[/]uit"
)


@app.command("study")
def study(
    ctx: typer.Context,
    url: Annotated[str, typer.Option("--url", "-u", help="Start at a hash link")] = "#",
) -> None:
    """
    Interactive study session.

    Examples:
        trainlib study
        trainlib study -u "#program=python-basics&page=2"
    """
    code = asyncio.run(_study(_settings(ctx), url))
    if code:
        raise typer.Exit(code)


async def _study(settings: Settings, initial_url: str) -> int:
    async with TrainingSession.from_settings(settings, initial_url=initial_url) as session:
        renderer = TerminalRenderer(console, session.progress)
        renderer.attach(session.events)

        await session.start()
        if session.navigator.phase == Phase.FAILED:
            return 1
        if session.state.is_dashboard:
            await _print_dashboard(session)
        console.print(f"[dim]{STUDY_HELP}[/]")

        while True:
            try:
                command = (await asyncio.to_thread(Prompt.ask, "[cyan]>[/]", default="n")).strip()
            except (EOFError, KeyboardInterrupt):
                break
            if command in ("q", "quit", "exit"):
                break

            result = await _dispatch(session, command)
            if result is None:
                console.print(f"[dim]{STUDY_HELP}[/]")
                continue
            if result.status == NavigationStatus.IGNORED:
                console.print("[dim]Nothing to do.[/]")
            elif session.state.is_dashboard and result.ok:
                await _print_dashboard(session)

        console.print("[dim]Session saved. Run 'trainlib resume' to continue.[/]")
        return 0


async def _dispatch(session: TrainingSession, command: str) -> NavigationResult | None:
    """Run one study command; None means the command was not understood."""
    verb, _, argument = command.partition(" ")
    argument = argument.strip()

    if verb.isdigit():
        return await session.go_to_page(int(verb) - 1)
    if verb in ("n", "next"):
        return await session.advance()
    if verb in ("p", "prev"):
        return await session.retreat()
    if verb in ("c", "complete"):
        return await session.toggle_complete()
    if verb in ("b", "back"):
        return await session.back()
    if verb in ("f", "forward"):
        return await session.forward()
    if verb in ("d", "dashboard"):
        return await session.show_dashboard()
    if verb in ("o", "open") and argument:
        return await session.open_program(argument)
    if verb in ("g", "go") and argument:
        return await session.open_url(argument)
    if verb in ("l", "list"):
        program = session.navigator.current_program
        if program is None:
            await _print_dashboard(session)
        else:
            console.print(
                render_module_list(program, session.navigator.modules, session.state.page_index, session.progress)
            )
        return NavigationResult(NavigationStatus.APPLIED, session.state)
    return None


# =============================================================================
# Entry Point
# =============================================================================


@app.callback()
def main_callback(
    ctx: typer.Context,
    content: Annotated[
        str | None, typer.Option("--content", help="Content base: URL or local directory")
    ] = None,
    data_dir: Annotated[
        Path | None, typer.Option("--data-dir", help="Where progress and the session snapshot are kept")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """
    📚 Training Library - navigate multi-page training programs

    \b
    Quick Start:
      trainlib programs                # What can I study?
      trainlib open <program>          # Start or resume a program
      trainlib study                   # Interactive session
    """
    overrides: dict[str, object] = {}
    if content:
        overrides["content_url"] = content
    if data_dir:
        overrides["data_dir"] = data_dir
    settings = Settings(**overrides)
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = settings


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
