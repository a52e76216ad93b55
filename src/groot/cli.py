"""
cli.py — ``groot`` command-line interface
==========================================
  groot init                     create .groot/ in the current directory
  groot plant <topic>            Seedling generates a curriculum
  groot grow [topic] [--file F]  generate (or load) + Canopy/Bark review
  groot ask <question>           ask Bark, the tutor
  groot wake [--phase N]         start (or resume) a learning session
  groot rest [--notes] [--quick] end the session, write the handoff
  groot remember [title]         learning journal (--list / --view SLUG)
  groot seed [--phase N]         scaffold starter files for a phase
  groot status                   curriculum, session and BEADS overview

This module is the composition root: it owns the ``ActiveSession`` handle,
the active-session marker file and the only catch-all for ``GrootError``
(printed, exit status 1).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from groot import __version__
from groot.agent_trace import DebugEvent
from groot.beads import (
    BeadsError,
    create_beads_from_curriculum,
    get_ready_work,
    is_beads_available,
    is_beads_initialized,
    link_curriculum_to_beads,
    sync_beads,
    update_beads_session_progress,
)
from groot.config import Settings, get_settings
from groot.curriculum_store import (
    PHASE_STATUS_ICONS,
    get_current_curriculum,
    load_curriculum_json,
    save_curriculum,
    update_curriculum_progress,
    write_curriculum_markdown,
)
from groot.errors import GenerationError, GrootError, PhaseNotFoundError
from groot.journal import (
    JournalContext,
    get_journal_entry,
    list_journal_entries,
    save_journal_entry,
)
from groot.llm import ChatClient
from groot.models import (
    GROWTH_STAGE_ICONS,
    AgentFeedback,
    AgentName,
    Curriculum,
    FeedbackType,
    PhaseStatus,
    Session,
    SessionStatus,
    Severity,
)
from groot.orchestrator import OrchestratorCallbacks, create_orchestrator
from groot.paths import (
    get_active_marker_path,
    get_curriculum_path,
    get_journal_dir,
    get_sessions_dir,
    has_curriculum,
    init_groot_dir,
    is_groot_initialized,
)
from groot.personas import GENERATE_TOOL, build_generation_prompt, create_agent
from groot.scaffold import ScaffoldOptions, scaffold_phase
from groot.session import (
    ActiveSession,
    SessionManager,
    add_question_asked,
    add_session_note,
    clear_active_marker,
    format_duration,
    generate_handoff,
    mark_deliverable_complete,
    mark_objective_complete,
    session_summary,
    write_active_marker,
)
from groot.templates import DEFAULT_TEMPLATE, get_available_templates, get_template_definition

logger = logging.getLogger(__name__)

console = Console()

LOGO = (
    "[bold green]🌳 G.R.O.O.T.[/bold green]\n"
    "[dim]Guided Resource for Organized Objective Training[/dim]"
)

STAGE_MESSAGES = {
    "generate":           "🌿 Seedling is generating curriculum...",
    "technical-review":   "🌲 Canopy is reviewing technical feasibility...",
    "pedagogical-review": "🪵 Bark is reviewing pedagogical soundness...",
    "merge":              "📋 Merging feedback...",
}

FEEDBACK_ICONS = {
    FeedbackType.BLOCKER:    "🛑",
    FeedbackType.CONCERN:    "⚠️ ",
    FeedbackType.SUGGESTION: "💡",
    FeedbackType.APPROVAL:   "✅",
}

AGENT_STYLES = {
    AgentName.SEEDLING.value: "green",
    AgentName.CANOPY.value:   "blue",
    AgentName.BARK.value:     "yellow",
    "orchestrator":           "magenta",
}

STATUS_STYLES = {
    PhaseStatus.COMPLETED:   "green",
    PhaseStatus.IN_PROGRESS: "yellow",
    PhaseStatus.AVAILABLE:   "cyan",
    PhaseStatus.LOCKED:      "dim",
}


# ─── Composition root ────────────────────────────────────────────────────────

class App:
    """Per-invocation wiring: settings, project directory, session handle."""

    def __init__(self, settings: Settings, base: Optional[Path] = None, client: Any = None) -> None:
        self.settings = settings
        self.base     = base
        self._client  = client
        self.handle   = ActiveSession()
        self.sessions = SessionManager(get_sessions_dir(base), self.handle)

    @property
    def marker_path(self) -> Path:
        return get_active_marker_path(self.base)

    def client(self) -> Any:
        if self._client is None:
            self._client = ChatClient.from_settings(self.settings)
        return self._client

    def require_api_key(self) -> None:
        self.settings.require_api_key()

    def beads_ready(self) -> bool:
        return self.settings.beads_enabled and is_beads_available() and is_beads_initialized()

    def active_session(self) -> Optional[Session]:
        return (
            self.handle.current
            or self.sessions.resume(self.marker_path)
            or self.sessions.find_active_session()
        )

    def curriculum_for(self, session: Session) -> Curriculum:
        path = Path(session.curriculum_path) if session.curriculum_path else get_curriculum_path(self.base)
        return load_curriculum_json(path)


def _require_curriculum(app: App) -> Optional[Curriculum]:
    if not is_groot_initialized(app.base) or not has_curriculum(app.base):
        console.print("[yellow]No curriculum found in this project.[/yellow]")
        console.print('[dim]Generate one with: groot plant "your topic"[/dim]')
        return None
    return get_current_curriculum(app.base)


def _phase_table(curriculum: Curriculum) -> Table:
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
    table.add_column("Icon", no_wrap=True)
    table.add_column("Phase")
    table.add_column("Status", style="dim")
    for p in curriculum.phases:
        style = STATUS_STYLES[p.status]
        table.add_row(
            PHASE_STATUS_ICONS[p.status],
            f"[{style}]Phase {p.number}: {p.title}[/{style}]",
            p.status.value,
        )
    return table


def _save_with_extras(app: App, curriculum: Curriculum, args: argparse.Namespace) -> Curriculum:
    """Optional BEADS mirroring, then save (+ markdown)."""
    if args.beads:
        if not app.beads_ready():
            console.print("\n[yellow]⚠️  BEADS is not available or initialized.[/yellow]")
            console.print("[dim]   Skipping BEADS integration.[/dim]")
        else:
            console.print("\n[cyan]📋 Creating BEADS epics and tasks...[/cyan]")
            curriculum = link_curriculum_to_beads(curriculum, create_beads_from_curriculum(curriculum))
            console.print(f"[green]✅ Created {len(curriculum.phases)} phase epics with tasks[/green]")

    init_groot_dir(app.base)
    path = save_curriculum(curriculum, get_curriculum_path(app.base))
    console.print(f"\n[green]✅ Curriculum saved to {path}[/green]")

    if args.markdown:
        write_curriculum_markdown(curriculum, Path(args.markdown))
        console.print(f"[green]📄 Markdown saved to {args.markdown}[/green]")

    console.print("\n[cyan]Next steps:[/cyan]")
    console.print("[dim]  1. Review the curriculum[/dim]")
    console.print('[dim]  2. Use "groot wake" to start a learning session[/dim]')
    console.print('[dim]  3. Use "groot ask" to learn about concepts[/dim]')
    if args.beads:
        console.print('[dim]  4. Run "bd ready" to see ready work in BEADS[/dim]')
    return curriculum


# ─── init ────────────────────────────────────────────────────────────────────

def cmd_init(app: App, args: argparse.Namespace) -> int:
    console.print(LOGO)
    if is_groot_initialized(app.base):
        console.print("[yellow]GROOT is already initialized in this directory.[/yellow]")
        curriculum = get_current_curriculum(app.base)
        if curriculum:
            console.print(f"[cyan]   Curriculum: {curriculum.title}[/cyan]")
            console.print(f"[cyan]   Phases: {len(curriculum.phases)}[/cyan]")
        else:
            console.print('[dim]   No curriculum yet. Create one with: groot plant "your topic"[/dim]')
        return 0

    init_groot_dir(app.base)
    console.print("[green]Initialized GROOT in current directory.[/green]")
    console.print("[dim]\n   Created: .groot/\n            .groot/sessions/\n            .groot/journal/[/dim]")
    console.print("\n[cyan]Next steps:[/cyan]")
    console.print('[dim]   groot plant "your topic"  - Generate a curriculum[/dim]')
    console.print("[dim]   groot wake                - Start a learning session[/dim]")
    return 0


# ─── plant ───────────────────────────────────────────────────────────────────

def cmd_plant(app: App, args: argparse.Namespace) -> int:
    topic = " ".join(args.topic)
    app.require_api_key()

    if has_curriculum(app.base) and not Confirm.ask(
        "A curriculum already exists in this project. Overwrite it?", default=False,
    ):
        console.print("[dim]Cancelled.[/dim]")
        return 0

    console.print(LOGO)
    console.print("[green]🌿 Seedling is designing your curriculum...[/green]\n")
    console.print(f"[dim]Topic: {topic}[/dim]\n")

    seedling = create_agent(AgentName.SEEDLING, app.client())
    with console.status("Growing..."):
        response = seedling.chat(build_generation_prompt(topic))

    call = response.find_tool(GENERATE_TOOL)
    if call is None or not isinstance(call.output, dict):
        if args.verbose and response.content:
            console.print(Panel(response.content, title="Response", border_style="dim"))
        raise GenerationError("No curriculum was generated")

    _save_with_extras(app, call.output["curriculum"], args)
    return 0


# ─── grow ────────────────────────────────────────────────────────────────────

def _clip(text: str, limit: int) -> str:
    return escape(text[:limit] + ("..." if len(text) > limit else ""))


def _print_debug_event(event: DebugEvent) -> None:
    style = AGENT_STYLES.get(event.agent, "white")
    label = f"[{style}]{escape(f'[{event.agent.upper()}]')}[/{style}]"
    content = escape(event.content)
    if event.type == "prompt":
        console.print(f"\n   {label} [cyan]PROMPT:[/cyan]")
        console.print(f"   [dim]{_clip(event.content, 200)}[/dim]", highlight=False)
    elif event.type == "response":
        console.print(f"   {label} [cyan]RESPONSE:[/cyan]")
        console.print(f"   [dim]{_clip(event.content, 300)}[/dim]", highlight=False)
    elif event.type == "tool_call":
        console.print(f"   {label} [cyan]TOOL CALL: {content}[/cyan]")
        if event.data:
            lines = json.dumps(event.data, indent=2, default=str).splitlines()
            for line in lines[:10]:
                console.print(f"     {line}", style="dim", markup=False, highlight=False)
            if len(lines) > 10:
                console.print("     ... (truncated)", style="dim")
    elif event.type == "tool_result":
        console.print(f"   {label} [cyan]TOOL RESULT: {content}[/cyan]")
    elif event.type == "handoff":
        console.print(f"\n   {label} [magenta]HANDOFF: {content}[/magenta]")


def _print_feedback(feedback: AgentFeedback) -> None:
    style = {Severity.CRITICAL: "red", Severity.HIGH: "yellow"}.get(feedback.severity, "dim")
    console.print(f"   {FEEDBACK_ICONS[feedback.feedback_type]} {feedback.message}", style=style, markup=False)


def cmd_grow(app: App, args: argparse.Namespace) -> int:
    app.require_api_key()
    from_file = bool(args.file)
    topic = args.file if from_file else " ".join(args.topic)
    if not topic:
        console.print("[red]Please provide a topic or --file option[/red]")
        console.print('[dim]Usage: groot grow "Building REST APIs"\n       groot grow --file curriculum.json[/dim]')
        return 1

    console.print(LOGO)
    console.print("[cyan]Multi-Agent Curriculum Review[/cyan]\n")

    def on_phase_complete(stage: str, ok: bool) -> None:
        if args.verbose and ok:
            console.print(f"   ✓ {stage} complete", style="dim")

    callbacks = OrchestratorCallbacks(
        on_phase_start=lambda stage: console.print(STAGE_MESSAGES.get(stage, f"Starting {stage}..."), style="green"),
        on_phase_complete=on_phase_complete,
        on_feedback=None if args.debug else _print_feedback,
        on_log=lambda message: console.print(f"   {message}", style="dim", markup=False),
        on_debug=_print_debug_event,
    )
    orchestrator = create_orchestrator(
        app.settings, callbacks, client=app.client(),
        verbose=args.verbose, debug=args.debug or app.settings.debug_mode,
    )
    result = orchestrator.orchestrate(topic, from_file=from_file)

    console.print()
    if result.success:
        console.print("[green]✅ Curriculum review complete[/green]")
    else:
        console.print("[yellow]⚠️  Review complete with unresolved issues[/yellow]")
    console.print(
        f"[dim]   Feasibility {result.technical_score}/10 · "
        f"learning flow {result.pedagogy_score}/10[/dim]"
    )

    if result.applied_changes:
        console.print(f"\n[cyan]Applied {len(result.applied_changes)} changes:[/cyan]")
        for change in result.applied_changes[:5]:
            console.print(f"   • {change}", style="dim", markup=False)
        if len(result.applied_changes) > 5:
            console.print(f"[dim]   ... and {len(result.applied_changes) - 5} more[/dim]")

    if result.unresolved_issues:
        console.print(f"\n[yellow]{len(result.unresolved_issues)} unresolved issues:[/yellow]")
        for issue in result.unresolved_issues:
            console.print(f"   🚩 {issue.message}", style="yellow", markup=False)
            if issue.suggested_change:
                console.print(f"      Fix: {issue.suggested_change}", style="dim", markup=False)

    if args.trace and result.trace is not None:
        Path(args.trace).write_text(json.dumps(result.trace.to_dict(), indent=2), encoding="utf-8")
        console.print(f"[dim]   Trace written to {args.trace}[/dim]")

    _save_with_extras(app, result.final_curriculum, args)
    return 0


# ─── ask ─────────────────────────────────────────────────────────────────────

def cmd_ask(app: App, args: argparse.Namespace) -> int:
    question = " ".join(args.question)
    app.require_api_key()

    bark = create_agent(AgentName.BARK, app.client())

    session = app.active_session() if is_groot_initialized(app.base) else None
    if session is not None:
        curriculum = app.curriculum_for(session)
        bark.set_context(curriculum=curriculum, current_phase=curriculum.phase_by_number(session.phase_number))
    elif has_curriculum(app.base):
        bark.set_context(curriculum=get_current_curriculum(app.base))

    console.print("\n[green]🪵 Bark is thinking...[/green]\n")
    response = bark.chat(question)
    console.print(Panel(Markdown(response.content), border_style="cyan"))

    if args.verbose and response.tool_calls:
        console.print("\n[dim]Tools used:[/dim]")
        for call in response.tool_calls:
            console.print(f"[dim]  - {call.tool_name}[/dim]")

    if session is not None:
        add_question_asked(session, question)
        write_active_marker(session, app.marker_path)
    return 0


# ─── wake ────────────────────────────────────────────────────────────────────

def _print_session_info(app: App, session: Session) -> None:
    curriculum = app.curriculum_for(session)
    phase = curriculum.phase_by_number(session.phase_number)
    if phase is None:
        raise PhaseNotFoundError(session.phase_number)

    info = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
    info.add_column("Key", style="bold cyan", no_wrap=True)
    info.add_column("Value")
    info.add_row("Curriculum", session.curriculum_title)
    info.add_row("Phase", f"{session.phase_number} - {session.phase_title}")
    info.add_row("Started", session.started_at.astimezone().strftime("%H:%M"))
    console.print(info)

    progress = session.progress
    console.print("\n[cyan]   📋 Objectives:[/cyan]")
    for obj in phase.objectives:
        done = obj.completed or obj.id in progress.objectives_completed
        console.print(f"   {'[green]✓' if done else '[dim]○'} {obj.description}", highlight=False)
    console.print("\n[cyan]   📦 Deliverables:[/cyan]")
    for d in phase.deliverables:
        done = d.completed or d.id in progress.deliverables_completed
        console.print(f"   {'[green]✓' if done else '[dim]○'} {d.title}", highlight=False)

    if app.beads_ready():
        ready = get_ready_work()
        if ready:
            console.print("\n[cyan]   🔧 Ready Work (BEADS):[/cyan]")
            for issue in ready[:3]:
                console.print(f"   [{issue.id}] {issue.title}", markup=False)
            if len(ready) > 3:
                console.print(f"[dim]   ... and {len(ready) - 3} more[/dim]")

    console.print("\n[dim]   💡 Tip: Use 'groot ask' to ask questions\n           Use 'groot rest' when done[/dim]")


def _close_session(app: App, session: Session) -> None:
    curriculum = app.curriculum_for(session)
    phase = curriculum.phase_by_number(session.phase_number)
    if phase is None:
        raise PhaseNotFoundError(session.phase_number)
    app.sessions.end_session(session, generate_handoff(session, phase))
    clear_active_marker(app.marker_path)


def cmd_wake(app: App, args: argparse.Namespace) -> int:
    console.print(LOGO)
    console.print("\n[green]🌅 GROOT - Wake Up and Learn![/green]\n")

    curriculum = _require_curriculum(app)
    if curriculum is None:
        return 0

    existing = app.active_session()
    if existing is not None:
        summary = session_summary(existing)
        console.print("[yellow]⚠️  Active session found:[/yellow]")
        console.print(f"   Curriculum: {existing.curriculum_title}")
        console.print(f"   Phase: {existing.phase_number} - {existing.phase_title}")
        console.print(f"   Duration: {summary.duration}\n")

        choice = Prompt.ask(
            "What would you like to do?", choices=["resume", "end", "cancel"], default="resume",
        )
        if choice == "cancel":
            return 0
        if choice == "resume":
            _print_session_info(app, existing)
            return 0
        console.print("[dim]\nEnding previous session...[/dim]")
        _close_session(app, existing)
        console.print("[green]Previous session ended.[/green]\n")
        curriculum = get_current_curriculum(app.base)

    console.print(f"[cyan]📚 Curriculum: {curriculum.title}[/cyan]")
    console.print(_phase_table(curriculum))

    if args.phase is not None:
        phase_number = args.phase
    else:
        open_phases = [str(p.number) for p in curriculum.phases if p.status != PhaseStatus.LOCKED]
        if not open_phases:
            console.print("[red]No unlocked phases available.[/red]")
            return 1
        phase_number = IntPrompt.ask("Select a phase", choices=open_phases, default=int(open_phases[0]))

    phase = curriculum.phase_by_number(phase_number)
    if phase is None:
        raise PhaseNotFoundError(phase_number)
    if phase.status == PhaseStatus.LOCKED:
        console.print(f"[red]Phase {phase_number} is locked. Complete previous phases first.[/red]")
        return 1

    console.print("\n[cyan]🌅 Starting learning session...[/cyan]\n")
    session = app.sessions.start_session(curriculum, phase_number, str(get_curriculum_path(app.base)))
    write_active_marker(session, app.marker_path)
    _print_session_info(app, session)
    return 0


# ─── rest ────────────────────────────────────────────────────────────────────

def cmd_rest(app: App, args: argparse.Namespace) -> int:
    console.print(LOGO)
    console.print("\n[blue]🌙 GROOT - Time to Rest[/blue]\n")

    session = app.active_session() if is_groot_initialized(app.base) else None
    if session is None:
        console.print("[yellow]No active session found.[/yellow]")
        console.print("[dim]Start one with: groot wake[/dim]")
        return 0

    curriculum = app.curriculum_for(session)
    phase = curriculum.phase_by_number(session.phase_number)
    if phase is None:
        raise PhaseNotFoundError(session.phase_number)

    duration = session_summary(session).duration
    console.print(f"[cyan]Session Duration: {duration}[/cyan]\n")

    progress = session.progress
    if not args.quick:
        for obj in phase.objectives:
            already = obj.completed or obj.id in progress.objectives_completed
            if Confirm.ask(f"Objective done? [white]{obj.description}[/white]", default=already):
                mark_objective_complete(session, obj.id)
        for d in phase.deliverables:
            already = d.completed or d.id in progress.deliverables_completed
            if Confirm.ask(f"Deliverable done? [white]{d.title}[/white]", default=already):
                mark_deliverable_complete(session, d.id)
        if not args.notes and Confirm.ask("Add session notes?", default=False):
            note = Prompt.ask("Enter notes", default="").strip()
            if note:
                add_session_note(session, note)
    if args.notes:
        add_session_note(session, args.notes)

    console.print("\n[cyan]📝 Generating handoff...[/cyan]\n")
    handoff = generate_handoff(session, phase, "; ".join(session.notes))
    path = app.sessions.end_session(session, handoff)
    clear_active_marker(app.marker_path)

    update_curriculum_progress(
        Path(session.curriculum_path) if session.curriculum_path else get_curriculum_path(app.base),
        session.phase_number,
        progress.objectives_completed,
        progress.deliverables_completed,
    )

    console.print("[green]   ✅ Session Complete![/green]\n")
    console.print(
        f"   Summary: {len(progress.objectives_completed)}/{len(phase.objectives)} objectives, "
        f"{len(progress.deliverables_completed)}/{len(phase.deliverables)} deliverables"
    )
    console.print(f"   Time: {format_duration(progress.time_spent_minutes)}\n")

    body = []
    if handoff.completed_work:
        body.append("[bold]Completed:[/bold]")
        body += [f"[green]• {w}[/green]" for w in handoff.completed_work]
    if handoff.remaining_work:
        body.append("\n[bold]Remaining:[/bold]")
        body += [f"[yellow]• {w}[/yellow]" for w in handoff.remaining_work]
    if handoff.next_steps:
        body.append("\n[bold]Next Steps:[/bold]")
        body += [f"[cyan]• {s}[/cyan]" for s in handoff.next_steps]
    console.print(Panel("\n".join(body) or "[dim]Nothing recorded[/dim]",
                        title="📋 Handoff for Next Session", border_style="cyan"))
    console.print(f"[dim]   💾 Session saved to: {path}[/dim]")

    if app.beads_ready():
        task_ids = [
            d.beads_task_id for d in phase.deliverables
            if d.id in progress.deliverables_completed and d.beads_task_id
        ]
        update_beads_session_progress(task_ids, phase.beads_epic_id, handoff.summary)
        try:
            sync_beads()
            console.print("[dim]   🔄 BEADS synced[/dim]")
        except BeadsError as exc:
            logger.debug("BEADS sync skipped: %s", exc)
    return 0


# ─── remember ────────────────────────────────────────────────────────────────

def _read_multiline() -> str:
    """Read lines until two consecutive empty lines."""
    lines: list[str] = []
    blank = 0
    while True:
        try:
            line = console.input("")
        except EOFError:
            break
        if line == "":
            blank += 1
            if blank >= 2:
                break
            lines.append("")
        else:
            blank = 0
            lines.append(line)
    return "\n".join(lines).strip()


def cmd_remember(app: App, args: argparse.Namespace) -> int:
    console.print(LOGO)
    journal_dir = get_journal_dir(app.base)

    if args.list:
        entries = list_journal_entries(journal_dir)
        if not entries:
            console.print("[dim]No journal entries yet.\n\nCreate one with: groot remember \"My first insight\"[/dim]")
            return 0
        table = Table(title="📓 Learning Journal Entries", box=box.SIMPLE)
        table.add_column("Date", style="cyan", no_wrap=True)
        table.add_column("Title")
        table.add_column("Slug", style="dim")
        for e in entries:
            table.add_row(e.date, e.title, e.slug)
        console.print(table)
        console.print(f"[dim]{len(entries)} entries total\nView an entry: groot remember --view <slug>[/dim]")
        return 0

    if args.view:
        entry = get_journal_entry(args.view, journal_dir)
        if entry is None:
            console.print(f"[red]Entry not found: {args.view}[/red]")
            console.print('[dim]\nUse "groot remember --list" to see available entries[/dim]')
            return 1
        meta = [f"Captured: {entry.captured_at:%Y-%m-%d %H:%M}"]
        if entry.context and entry.context.phase:
            meta.append(f"Phase: {entry.context.phase}")
        if entry.context and entry.context.activity:
            meta.append(f"Activity: {entry.context.activity}")
        console.print(f"[cyan]📓 {entry.title}[/cyan]")
        console.print("\n".join(meta), style="dim")
        console.print(Panel(Markdown(entry.content), border_style="cyan"))
        if entry.takeaways:
            console.print("[cyan]📌 Key Takeaways:[/cyan]")
            for t in entry.takeaways:
                console.print(f"  • {t}")
        if entry.related_topics:
            console.print("[dim]\nRelated Topics:[/dim]")
            for t in entry.related_topics:
                console.print(f"[dim]  • {t}[/dim]")
        return 0

    title = " ".join(args.title)
    if not title:
        console.print("[red]Please provide a title for the journal entry[/red]")
        console.print(
            '[dim]Usage: groot remember "How the Orchestrator works"\n'
            "       groot remember --list\n"
            "       groot remember --view <slug>[/dim]"
        )
        return 1

    content = args.content
    if not content:
        console.print(f'[cyan]📝 Creating journal entry: "{title}"[/cyan]\n')
        console.print("[dim]Enter your content (end with two empty lines):[/dim]")
        content = _read_multiline()
    if not content or not content.strip():
        console.print("[red]No content provided. Entry not created.[/red]")
        return 1

    context = JournalContext(phase=args.phase, activity=args.activity, curriculum_id=args.curriculum)
    entry = save_journal_entry(
        title, content,
        context=None if context.is_empty() else context,
        takeaways=args.takeaway,
        related_topics=args.related,
        journal_dir=journal_dir,
    )
    console.print("\n[green]📓 Learning Journal Entry Created[/green]")
    console.print(f"[dim]   File: {entry.path}[/dim]")
    console.print("[cyan]\n   💡 Tip: Use 'groot remember --list' to see all entries[/cyan]")
    return 0


# ─── seed ────────────────────────────────────────────────────────────────────

def cmd_seed(app: App, args: argparse.Namespace) -> int:
    console.print(LOGO)
    console.print("\n[green]🌾 GROOT - Seed Your Project[/green]\n")

    curriculum = _require_curriculum(app)
    if curriculum is None:
        return 0
    console.print(f"[cyan]📚 Curriculum: {curriculum.title}[/cyan]\n")

    if args.phase is not None:
        phase_number = args.phase
    else:
        numbers = [str(p.number) for p in curriculum.phases]
        for p in curriculum.phases:
            console.print(f"   Phase {p.number}: {p.title} ({len(p.deliverables)} deliverables)")
        phase_number = IntPrompt.ask("Select a phase to scaffold", choices=numbers)
    phase = curriculum.phase_by_number(phase_number)
    if phase is None:
        console.print(f"[red]Phase {phase_number} not found in curriculum[/red]")
        console.print(f"[dim]Available phases: {', '.join(str(p.number) for p in curriculum.phases)}[/dim]")
        return 1

    template_type = args.template or Prompt.ask(
        "Select a project template", choices=get_available_templates(), default=DEFAULT_TEMPLATE,
    )
    template = get_template_definition(template_type)
    if template is None:
        console.print(f"[red]Invalid template: {template_type}[/red]")
        console.print(f"[dim]Available templates: {', '.join(get_available_templates())}[/dim]")
        return 1

    output_dir = Path(args.output or app.settings.output_dir)
    console.print("\n[cyan]📋 Scaffold Plan:[/cyan]")
    console.print(f"   Phase: {phase.number} - {phase.title}")
    console.print(f"   Template: {template.display_name}")
    console.print(f"   Output: {output_dir}")
    console.print(f"   Deliverables: {len(phase.deliverables)}")

    if args.dry_run:
        console.print("\n[yellow]   [DRY RUN - No files will be created][/yellow]\n")
    elif not Confirm.ask("Proceed with scaffolding?", default=True):
        console.print("[dim]\nScaffolding cancelled.[/dim]")
        return 0

    result = scaffold_phase(curriculum, ScaffoldOptions(
        phase_number=phase_number,
        template_type=template_type,
        output_dir=output_dir,
        dry_run=args.dry_run,
        force=args.force,
    ))

    if result.files_created:
        verb = "Would create" if args.dry_run else "Created"
        console.print(f"\n[green]✅ {verb} {len(result.files_created)} files in {result.output_dir}:[/green]")
        for f in result.files_created:
            console.print(f"[dim]   {'📝' if args.dry_run else '✓'} {f}[/dim]")
    if result.files_skipped:
        console.print(f"\n[yellow]⚠️  Skipped {len(result.files_skipped)} existing files:[/yellow]")
        for f in result.files_skipped:
            console.print(f"[dim]   → {f}[/dim]")
        console.print("[dim]   Use --force to overwrite[/dim]")
    if result.errors:
        console.print("\n[red]❌ Errors:[/red]")
        for e in result.errors:
            console.print(f"   {e}", style="red", markup=False)
        return 1

    if not args.dry_run:
        console.print("\n[cyan]🌱 Next steps:[/cyan]")
        console.print("[dim]   1. Review generated files[/dim]")
        console.print(f"[dim]   2. Run: groot wake --phase {phase_number}[/dim]")
        console.print("[dim]   3. Implement the deliverables[/dim]")
        console.print("[dim]   4. Use: groot ask <question> for help[/dim]")
    return 0


# ─── status ──────────────────────────────────────────────────────────────────

def cmd_status(app: App, args: argparse.Namespace) -> int:
    console.print(LOGO)
    if not is_groot_initialized(app.base):
        console.print("[yellow]GROOT is not initialized in this directory.[/yellow]")
        console.print("[dim]Run: groot init[/dim]")
        return 0

    curriculum = get_current_curriculum(app.base)
    if curriculum:
        console.print(f"[green]📚 Curriculum: {curriculum.title}[/green]")
        console.print(_phase_table(curriculum))
    else:
        console.print('[dim]No curriculum yet.\nCreate one with: groot plant "your topic"[/dim]\n')

    session = app.active_session()
    if session is not None:
        summary = session_summary(session)
        console.print("[green]📖 Active Session[/green]")
        console.print(f"   Phase: {session.phase_number} - {session.phase_title}")
        console.print(f"   Time: {summary.duration}")
        console.print(
            f"   Progress: {summary.objectives_completed} objectives, "
            f"{summary.deliverables_completed} deliverables"
        )
        if summary.notes:
            console.print(f"[dim]   Notes: {summary.notes}[/dim]")
        console.print()
    elif curriculum:
        console.print("[dim]No active session. Start one with: groot wake[/dim]\n")

    completed = [s for s in app.sessions.list_sessions() if s.status == SessionStatus.COMPLETED][:3]
    if completed:
        console.print("[cyan]📋 Recent Sessions[/cyan]")
        for s in completed:
            console.print(
                f"[dim]   {s.started_at:%Y-%m-%d} - {s.curriculum_title} Phase {s.phase_number} "
                f"({format_duration(s.progress.time_spent_minutes)})[/dim]"
            )
        console.print()

    if not app.settings.beads_enabled:
        console.print("[dim]BEADS integration disabled (GROOT_BEADS_ENABLED=false)[/dim]")
    elif not is_beads_available():
        console.print("[yellow]⚠️  BEADS is not installed.[/yellow]")
        console.print("[dim]   Install: https://github.com/steveyegge/beads[/dim]\n")
    elif not is_beads_initialized():
        console.print("[yellow]⚠️  BEADS is not initialized in this directory.[/yellow]")
        console.print("[dim]   Run: bd init[/dim]\n")
    else:
        console.print("[green]✅ BEADS is ready[/green]")
        ready = get_ready_work()
        if ready:
            console.print(f"\n[cyan]📋 Ready to work on ({len(ready)} items):[/cyan]")
            for issue in ready[:5]:
                console.print(f"   [{issue.id}] {issue.title}", style="red" if issue.priority <= 1 else None,
                              markup=False)
            if len(ready) > 5:
                console.print(f"[dim]   ... and {len(ready) - 5} more[/dim]")
        else:
            console.print("[dim]\n   No ready work items. Time to plant some seeds! 🌱[/dim]")

    if curriculum:
        stage = curriculum.growth_stage
        console.print(f"\n[cyan]{GROWTH_STAGE_ICONS[stage]} Growth Stage: {stage.value.title()}[/cyan]\n")
    return 0


# ─── Argument parsing ────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")

    parser = argparse.ArgumentParser(prog="groot", description="AI-powered learning curriculum generator")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", parents=[common], help="Initialize GROOT in the current directory")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("plant", parents=[common], help="Generate a new learning curriculum")
    p.add_argument("topic", nargs="+")
    p.add_argument("--markdown", metavar="FILE", help="Also output as markdown file")
    p.add_argument("--beads", action="store_true", help="Create BEADS epics and tasks from curriculum")
    p.set_defaults(func=cmd_plant)

    p = sub.add_parser("grow", parents=[common], help="Generate and review a curriculum with all agents")
    p.add_argument("topic", nargs="*")
    p.add_argument("-f", "--file", help="Review an existing curriculum JSON file")
    p.add_argument("--markdown", metavar="FILE", help="Also output as markdown file")
    p.add_argument("--beads", action="store_true", help="Create BEADS epics and tasks from curriculum")
    p.add_argument("--debug", action="store_true", help="Show full agent interaction details")
    p.add_argument("--trace", metavar="FILE", help="Write the run trace as JSON")
    p.set_defaults(func=cmd_grow)

    p = sub.add_parser("ask", parents=[common], help="Ask Bark (the tutor) a question")
    p.add_argument("question", nargs="+")
    p.set_defaults(func=cmd_ask)

    p = sub.add_parser("wake", parents=[common], help="Start a learning session")
    p.add_argument("-p", "--phase", type=int, help="Phase number to start")
    p.set_defaults(func=cmd_wake)

    p = sub.add_parser("rest", parents=[common], help="End your learning session and save progress")
    p.add_argument("-n", "--notes", help="Add session notes")
    p.add_argument("-q", "--quick", action="store_true", help="Skip interactive prompts")
    p.set_defaults(func=cmd_rest)

    p = sub.add_parser("remember", parents=[common], help="Capture learning insights in the journal")
    p.add_argument("title", nargs="*")
    p.add_argument("-l", "--list", action="store_true", help="List all journal entries")
    p.add_argument("--view", metavar="SLUG", help="View a specific journal entry")
    p.add_argument("-c", "--content", help="Entry content (prompted for if omitted)")
    p.add_argument("--takeaway", action="append", default=[], help="Key takeaway (repeatable)")
    p.add_argument("--related", action="append", default=[], help="Related topic (repeatable)")
    p.add_argument("--phase", help="Context: current phase name")
    p.add_argument("--activity", help="Context: current activity")
    p.add_argument("--curriculum", help="Context: curriculum ID")
    p.set_defaults(func=cmd_remember)

    p = sub.add_parser("seed", parents=[common], help="Scaffold project files for a curriculum phase")
    p.add_argument("-p", "--phase", type=int, help="Phase number to scaffold")
    p.add_argument("-t", "--template", choices=get_available_templates(), help="Project template")
    p.add_argument("-d", "--dry-run", action="store_true", help="Preview without writing files")
    p.add_argument("-f", "--force", action="store_true", help="Overwrite existing files")
    p.add_argument("-o", "--output", help="Output directory (default: GROOT_OUTPUT_DIR)")
    p.set_defaults(func=cmd_seed)

    p = sub.add_parser("status", parents=[common], help="Show your current learning progress")
    p.set_defaults(func=cmd_status)

    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # the HTTP stack is noisy at DEBUG
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)


def main(argv: Optional[list[str]] = None, app: Optional[App] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    app = app or App(get_settings())

    try:
        return args.func(app, args)
    except GrootError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        return 1
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
