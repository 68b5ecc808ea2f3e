"""errlens CLI - Browse failing snippets, improve their errors, rate the results."""

import argparse
import asyncio
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from errlens.catalog.snippets import MODELS, ExplanationStyle, SnippetCatalog
from errlens.config import Settings
from errlens.errors import ErrlensError, PersistFailed
from errlens.logging import configure_logging
from errlens.session.controller import SessionController, SessionView, build_controller
from errlens.session.feedback import FEEDBACK_QUESTIONS, FeedbackStore, default_export_name
from errlens.session.intents import (
    CancelFeedbackForm,
    OpenFeedbackForm,
    SelectModel,
    SelectSnippet,
    SelectStyle,
    ShowResult,
    SubmitFeedback,
    ToggleErrorPanel,
)
from errlens.session.state import ResultView

console = Console()

SESSION_HELP = """\
[bold]Commands[/bold]
  tab <n|id>             switch snippet
  style <name>           pragmatic | contingent
  model <n|name>         switch inference model
  improve                generate an improved error (runs in background)
  error                  show/hide the error panel
  view standard|improved switch error tab
  feedback               rate the current improved error
  export [path]          write all feedback to CSV
  help                   this text
  quit                   leave (waits for a running generation)"""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_view(controller: SessionController) -> None:
    """Draw tabs, editor, error panel and toolbar for the current view."""
    view = controller.view()

    tabs = Text()
    for i, snippet in enumerate(controller.catalog.list(), 1):
        label = f" {i}:{snippet.name} "
        style = "bold black on cyan" if snippet.id == view.snippet.id else "dim"
        tabs.append(label, style=style)
        tabs.append(" ")
    if view.feedback_open:
        tabs.append(" Feedback Form ", style="bold black on yellow")
    console.print(tabs)

    console.print(Syntax(
        view.editor.source_text,
        view.editor.syntax_hint,
        theme="monokai",
        line_numbers=True,
    ))

    if view.error_panel_visible:
        console.print(_error_panel(view))

    console.print(_toolbar(controller, view))

    if view.notice:
        colour = "red" if view.notice.level == "error" else "green"
        console.print(f"[{colour}]{view.notice.message}[/{colour}]")


def _error_panel(view: SessionView) -> Panel:
    labels = ["[reverse] Standard Error [/reverse]" if view.active_tab is ResultView.STANDARD
              else "Standard Error"]
    if view.explanation is not None:
        labels.append("[reverse] Improved Error [/reverse]" if view.active_tab is ResultView.IMPROVED
                      else "Improved Error")
    header = Text.from_markup("  ".join(labels))

    if view.active_tab is ResultView.IMPROVED and view.explanation is not None:
        body = Markdown(view.explanation.content)
        border = "green"
    else:
        body = Text(view.standard_error, style="red")
        border = "red"
    return Panel(Group(header, Text(""), body), border_style=border)


def _toolbar(controller: SessionController, view: SessionView) -> Text:
    state = controller.state
    parts = [
        f"Type: {state.style.value}",
        f"Model: {state.model}",
    ]
    if view.is_generating:
        parts.append("[yellow]Generating...[/yellow]")
    elif view.can_generate:
        parts.append("[green]improve available[/green]")
    else:
        parts.append("[dim]improve locked[/dim]")
    if view.can_give_feedback:
        parts.append("[cyan]feedback available[/cyan]")
    return Text.from_markup(" | ".join(parts))


# ---------------------------------------------------------------------------
# Interactive session
# ---------------------------------------------------------------------------

async def _generate(controller: SessionController, console_lock: asyncio.Lock) -> None:
    result = await controller.request_generation()
    # Hold the render until any feedback prompt has finished
    async with console_lock:
        _report_generation(controller, result)


def _report_generation(controller: SessionController, result) -> None:
    console.print()
    if result.accepted:
        render_view(controller)
    elif result.reason:
        console.print(f"[red]{result.reason}[/red]")


async def _collect_feedback(controller: SessionController, console_lock: asyncio.Lock) -> None:
    async with console_lock:
        await _ask_feedback(controller)


async def _ask_feedback(controller: SessionController) -> None:
    result = controller.handle(OpenFeedbackForm())
    if not result.accepted:
        render_view(controller)
        return

    view = controller.view()
    console.print(Panel(
        f"File: {view.snippet.name}\n"
        f"Error Type: {controller.state.style.value}\n"
        f"Model: {controller.state.model}",
        title="Feedback Form",
        border_style="yellow",
    ))

    answers: dict[str, bool] = {}
    for question in FEEDBACK_QUESTIONS:
        reply = await asyncio.to_thread(
            Prompt.ask, question.question, choices=["y", "n", "c"], console=console
        )
        if reply == "c":
            controller.handle(CancelFeedbackForm())
            console.print("[dim]Feedback cancelled.[/dim]")
            return
        answers[question.id] = reply == "y"

    controller.handle(SubmitFeedback(answers))
    render_view(controller)


def _export(store: FeedbackStore, target: str | None) -> bool:
    """Write the CSV export; returns False if the file could not be written."""
    path = Path(target) if target else Path(default_export_name(datetime.now()))
    try:
        written = store.export_to(path)
    except PersistFailed as e:
        console.print(f"[red]Export failed:[/red] {e.cause}")
        return False
    if written is None:
        console.print("[yellow]No feedback to export yet.[/yellow]")
    else:
        console.print(f"[green]Exported {len(store)} record(s) to {written}[/green]")
    return True


def _resolve_snippet(controller: SessionController, arg: str) -> str:
    snippets = controller.catalog.list()
    if arg.isdigit() and 1 <= int(arg) <= len(snippets):
        return snippets[int(arg) - 1].id
    for snippet in snippets:
        if arg in (snippet.id, snippet.name):
            return snippet.id
    return arg


def _resolve_model(controller: SessionController, arg: str) -> str:
    if arg.isdigit() and 1 <= int(arg) <= len(controller.models):
        return controller.models[int(arg) - 1]
    return arg


async def run_session(controller: SessionController) -> int:
    """Read commands until quit; generation runs as a background task."""
    generation: asyncio.Task | None = None
    console_lock = asyncio.Lock()
    render_view(controller)

    while True:
        try:
            line = await asyncio.to_thread(console.input, "[bold cyan]errlens>[/bold cyan] ")
        except (EOFError, KeyboardInterrupt):
            line = "quit"

        command, _, arg = line.strip().partition(" ")
        arg = arg.strip()

        if command in ("quit", "exit", "q"):
            if generation is not None and not generation.done():
                console.print("[dim]Waiting for the running generation to finish...[/dim]")
                await generation
            return 0
        elif command == "help":
            console.print(SESSION_HELP)
            continue
        elif command == "improve":
            if generation is not None and not generation.done():
                console.print("[red]Another explanation is already being generated[/red]")
                continue
            generation = asyncio.create_task(_generate(controller, console_lock))
            await asyncio.sleep(0)
            console.print("[yellow]Generating...[/yellow]")
            continue
        elif command == "tab":
            controller.handle(SelectSnippet(_resolve_snippet(controller, arg)))
        elif command == "style":
            controller.handle(SelectStyle(arg))
        elif command == "model":
            controller.handle(SelectModel(_resolve_model(controller, arg)))
        elif command == "error":
            controller.handle(ToggleErrorPanel())
        elif command == "view":
            try:
                controller.handle(ShowResult(ResultView(arg.lower())))
            except ValueError:
                console.print("[red]Usage: view standard|improved[/red]")
                continue
        elif command == "feedback":
            await _collect_feedback(controller, console_lock)
            continue
        elif command == "export":
            _export(controller.store, arg or None)
            continue
        elif command == "":
            pass
        else:
            console.print(f"[red]Unknown command:[/red] {command} (try 'help')")
            continue

        render_view(controller)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_snippets(args: argparse.Namespace) -> int:
    """List the snippet catalog and the model catalog."""
    catalog = SnippetCatalog()

    table = Table(title="Snippets")
    table.add_column("#", style="dim")
    table.add_column("Id", style="cyan")
    table.add_column("File", style="green")
    table.add_column("Error")
    for i, snippet in enumerate(catalog.list(), 1):
        table.add_row(str(i), snippet.id, snippet.name, snippet.error_type)
    console.print(table)

    console.print(f"[bold]Styles:[/bold] {', '.join(s.value for s in ExplanationStyle)}")
    console.print(f"[bold]Models:[/bold] {', '.join(MODELS)}")
    return 0


def cmd_session(args: argparse.Namespace) -> int:
    """Run the interactive study session."""
    settings = args.settings
    controller = build_controller(settings)
    console.print(
        f"[bold]errlens[/bold] - provider: {settings.provider}, "
        f"lock policy: {settings.lock_policy.value}, "
        f"feedback file: {settings.feedback_path}\n"
        "Type 'help' for commands.\n"
    )
    return asyncio.run(run_session(controller))


def cmd_export(args: argparse.Namespace) -> int:
    """Export stored feedback to CSV."""
    store = FeedbackStore(args.settings.feedback_path)
    return 0 if _export(store, args.output) else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="errlens",
        description="Compare standard Python errors with model-improved explanations",
    )
    parser.add_argument(
        "--feedback-path",
        help="Feedback JSON file (default: $ERRLENS_FEEDBACK_PATH or ./errlens_feedback.json)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    snippets_parser = subparsers.add_parser("snippets", help="List snippets and models")
    snippets_parser.set_defaults(func=cmd_snippets)

    session_parser = subparsers.add_parser("session", help="Start an interactive session")
    session_parser.set_defaults(func=cmd_session)

    export_parser = subparsers.add_parser("export", help="Export feedback to CSV")
    export_parser.add_argument("output", nargs="?", help="CSV path (default: feedback_<timestamp>.csv)")
    export_parser.set_defaults(func=cmd_export)

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        if args.feedback_path:
            settings = replace(settings, feedback_path=Path(args.feedback_path))
        configure_logging(settings.log_level)
        args.settings = settings
        return args.func(args)
    except ErrlensError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
