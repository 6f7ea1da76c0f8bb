"""
Terminal rendering for the training library (presentation collaborator).

Subscribes to session events and draws pages, errors and progress with rich.
Markdown in paragraphs and list items is delegated to rich.markdown.
"""

from __future__ import annotations

from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from ..content.models import (
    CodeSection,
    HeadingSection,
    ImageSection,
    ListSection,
    ModuleDescriptor,
    PageContent,
    ParagraphSection,
    ProgramDescriptor,
    QuizSection,
    QuoteSection,
    SubheadingSection,
    VideoSection,
    resolve_content_path,
)
from ..events import (
    EventEmitter,
    NavigationChanged,
    PageLoadFailed,
    ProgramCompleted,
    ProgressChanged,
    SessionEvent,
    SessionFailed,
)
from ..session import ProgramAction, ProgramSummary
from ..storage.progress import ProgressStore

ACTION_LABELS = {
    ProgramAction.START: "[cyan]Start[/]",
    ProgramAction.RESUME: "[yellow]Resume[/]",
    ProgramAction.REVIEW: "[green]Review ✓[/]",
}


def render_section(section, program: ProgramDescriptor | None = None) -> RenderableType:
    """Map one content section onto a rich renderable."""
    if isinstance(section, HeadingSection):
        return Text(section.content, style="bold cyan")
    if isinstance(section, SubheadingSection):
        return Text(section.content, style="bold")
    if isinstance(section, ParagraphSection):
        return Markdown(section.content)
    if isinstance(section, ListSection):
        if section.ordered:
            lines = [f"{number}. {item}" for number, item in enumerate(section.items, start=1)]
        else:
            lines = [f"- {item}" for item in section.items]
        return Markdown("\n".join(lines))
    if isinstance(section, CodeSection):
        return Syntax(section.content, section.language or "text", theme="ansi_dark", word_wrap=True)
    if isinstance(section, QuoteSection):
        return Markdown(f"> {section.content}")
    if isinstance(section, ImageSection):
        src = resolve_content_path(program.manifest_path, section.src) if program else section.src
        caption = f" - {section.caption}" if section.caption else ""
        return Text(f"[image] {section.alt or src} ({src}){caption}", style="dim")
    if isinstance(section, VideoSection):
        return Text(f"[video] {section.title or 'Video'}: {section.url}", style="dim")
    if isinstance(section, QuizSection):
        table = Table(show_header=False, box=None, padding=(0, 1))
        for number, question in enumerate(section.questions, start=1):
            table.add_row(f"[bold]Q{number}[/]", question.question)
            for letter, option in zip("abcdefghij", question.options):
                table.add_row("", f"{letter}) {option}")
        return Panel(table, title="Quiz", border_style="magenta")
    return Text(f"[unsupported section {getattr(section, 'type', '?')}]", style="dim")


def render_page(
    page: PageContent,
    program: ProgramDescriptor | None,
    module: ModuleDescriptor | None,
    page_index: int,
    module_count: int,
    completed: bool = False,
) -> RenderableType:
    parts: list[RenderableType] = [Text(page.title, style="bold underline")]
    for section in page.sections:
        parts.append(render_section(section, program))
    footer = f"Page {page_index + 1}/{module_count}"
    if completed:
        footer += "  ✓ complete"
    return Panel(
        Group(*parts),
        title=program.title if program else "",
        subtitle=footer,
        border_style="green" if completed else "cyan",
    )


def render_dashboard(title: str, groups: list[tuple[str, list[ProgramSummary]]]) -> RenderableType:
    table = Table(title=f"📚 {title}", show_lines=False)
    table.add_column("Category", style="bold")
    table.add_column("Program")
    table.add_column("ID", style="dim")
    table.add_column("Difficulty")
    table.add_column("Duration")
    table.add_column("Progress", justify="right")
    table.add_column("")

    for category, summaries in groups:
        for position, summary in enumerate(summaries):
            program, progress = summary.program, summary.progress
            progress_text = f"{progress.completed}/{progress.total} ({progress.percentage}%)" if progress.total else "-"
            table.add_row(
                category if position == 0 else "",
                f"{program.icon} {program.title}",
                program.id,
                program.difficulty,
                program.duration,
                progress_text,
                ACTION_LABELS[summary.action],
            )
    return table


def render_module_list(
    program: ProgramDescriptor,
    modules: list[ModuleDescriptor],
    current_index: int,
    progress: ProgressStore,
) -> RenderableType:
    table = Table(title=program.title, show_header=False, box=None)
    for index, module in enumerate(modules):
        marker = "✓" if progress.is_complete(program.id, module.id) else str(index + 1)
        style = "bold reverse" if index == current_index else ""
        table.add_row(marker, module.title, style=style)
    return table


class TerminalRenderer:
    """Event subscriber that prints navigation, failures and progress."""

    def __init__(self, console: Console, progress: ProgressStore):
        self.console = console
        self.progress = progress
        self._tokens: list[str] = []

    def attach(self, events: EventEmitter) -> None:
        self._tokens = [
            events.subscribe(SessionEvent.NAVIGATION_CHANGED, self.on_navigation),
            events.subscribe(SessionEvent.PAGE_LOAD_FAILED, self.on_failure),
            events.subscribe(SessionEvent.PROGRESS_CHANGED, self.on_progress),
            events.subscribe(SessionEvent.PROGRAM_COMPLETED, self.on_program_completed),
            events.subscribe(SessionEvent.SESSION_FAILED, self.on_session_failed),
        ]

    def detach(self, events: EventEmitter) -> None:
        for token in self._tokens:
            events.unsubscribe(token)
        self._tokens = []

    def on_navigation(self, change: NavigationChanged) -> None:
        if change.is_dashboard:
            self.console.print(Rule("Dashboard"))
            return
        if change.page is None:
            self.console.print(
                Panel(f"{change.program.title if change.program else change.program_id} has no modules yet.",
                      border_style="yellow")
            )
            return
        completed = bool(change.module) and self.progress.is_complete(change.program_id, change.module.id)
        self.console.print(
            render_page(change.page, change.program, change.module, change.page_index, change.module_count, completed)
        )

    def on_failure(self, failure: PageLoadFailed) -> None:
        self.console.print(
            Panel(
                f"{failure.message}\n[dim]Repeat the last action to retry.[/]",
                title="[red]Error[/]",
                border_style="red",
            )
        )

    def on_progress(self, change: ProgressChanged) -> None:
        if change.program_id is None:
            self.console.print("[dim]All progress cleared.[/]")
            return
        mark = "✓ completed" if change.completed else "✗ marked incomplete"
        summary = change.summary
        self.console.print(
            f"[dim]{change.module_id} {mark} - {summary.get('completed', 0)}/{summary.get('total', 0)} "
            f"({summary.get('percentage', 0)}%)[/]"
        )

    def on_program_completed(self, done: ProgramCompleted) -> None:
        self.console.print(
            Panel(
                f"🎉 Congratulations!\nYou've completed [bold]{done.title}[/]\n"
                f"All {done.module_count} modules completed",
                border_style="green",
            )
        )

    def on_session_failed(self, failure: SessionFailed) -> None:
        self.console.print(
            Panel(
                f"Failed to load training content.\n[dim]{failure.message}[/]",
                title="[red]Error[/]",
                border_style="red",
            )
        )
