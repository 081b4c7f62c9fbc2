"""
Zap: terminal front-end.

A Rich terminal interface over the study engine.

Commands:
- zap add-card   - Add a flashcard
- zap due        - Preview the prioritized session pool
- zap review     - Review cards and earn XP
- zap focus      - Run a focus countdown and earn XP
- zap progress   - Show XP and animal tier
- zap sessions   - Show recent sessions
"""
from __future__ import annotations

import sys
import time
from datetime import datetime
from typing import Optional
from uuid import uuid4

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from config import get_settings
from zap.study.errors import StudyError, XPNotRecordedError
from zap.study.focus_monitor import FocusEvent, FocusIntegrityMonitor, FocusMonitorConfig
from zap.study.models import CardState
from zap.study.session import SessionContext, StudyPreferences
from zap.study.study_service import SessionAward, StudyService

from .state_store import StateStore

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="zap",
    help="Zap: spaced repetition, focus sessions and XP",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)
console = Console()

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "warning": "bold yellow",
    "dim": "dim",
}


def _get_service() -> StudyService:
    settings = get_settings()
    store = StateStore(settings.zap_db_path)
    return StudyService(
        store,
        user_id=settings.zap_user_id,
        quick_session_cap=settings.quick_session_cap,
        deck_session_cap=settings.deck_session_cap,
    )


def _alert_interruption(event: FocusEvent) -> None:
    if event.is_interruption:
        console.print(f"[{STYLES['warning']}]Focus lost: {event.type.value}[/]")


def _new_context(focus_minutes: int | None = None) -> SessionContext:
    settings = get_settings()
    preferences = StudyPreferences(
        card_difficulty=settings.card_difficulty,
        focus_alerts=settings.focus_alerts,
        focus_duration_minutes=focus_minutes or settings.focus_duration_minutes,
    )
    # A terminal cannot observe window focus, visibility or input during the
    # countdown, so no signal source is attached and idle detection is off.
    monitor = FocusIntegrityMonitor(
        config=FocusMonitorConfig(
            idle_threshold_seconds=settings.idle_threshold_seconds,
            detect_idle=False,
        )
    )
    if preferences.focus_alerts:
        monitor.subscribe(_alert_interruption)
    return SessionContext(preferences, monitor)


def _format_progress_bar(fraction: float, width: int = 20) -> str:
    filled = int(fraction * width)
    return "#" * filled + "-" * (width - filled)


def _show_award(award: SessionAward) -> None:
    record = award.record
    content = Text()
    content.append(f"+{record.xp_earned} XP\n\n", style="bold green")
    content.append(f"Duration: {record.duration_minutes} min\n")
    content.append(f"Correct cards: {record.correct_cards}/{record.cards_studied}\n")
    if record.focus_interrupted:
        content.append("Focus was interrupted: 30% XP penalty\n", style="yellow")
    content.append(f"\nTotal XP: {award.xp_total}\n")
    content.append(f"Tier: {award.tier.name} (level {award.tier.level})\n", style="cyan")
    if award.new_tier is not None:
        content.append(f"\nLevel up! You are now a {award.new_tier.name}!\n", style="bold magenta")

    console.print(Panel(content, title="[bold]Session Complete[/bold]", border_style="green"))


# =============================================================================
# Commands
# =============================================================================


@app.command("add-card")
def add_card(
    question: str = typer.Argument(..., help="Front of the card"),
    answer: str = typer.Argument(..., help="Back of the card"),
    deck: Optional[str] = typer.Option(None, "--deck", "-d", help="Deck id"),
    difficulty: float = typer.Option(1.0, min=1.0, max=5.0, help="Starting difficulty (1-5)"),
) -> None:
    """Add a flashcard, due immediately."""
    service = _get_service()
    card = CardState(
        card_id=uuid4().hex[:12],
        deck_id=deck,
        question=question,
        answer=answer,
        difficulty=difficulty,
        next_review=datetime.now(),
    )
    service.store.save_card(card)
    console.print(f"[green]Added card {card.card_id}[/green]")


@app.command("due")
def show_due(
    deck: Optional[str] = typer.Option(None, "--deck", "-d", help="Deck id"),
    cap: Optional[int] = typer.Option(None, "--cap", "-n", min=1, help="Session size"),
) -> None:
    """Preview the cards the next session would present."""
    service = _get_service()
    now = datetime.now()
    cards = service.session_cards(deck, cap, now)

    if not cards:
        console.print("[yellow]No cards yet. Add some with 'zap add-card'.[/yellow]")
        return

    table = Table(title="Next Session")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Card")
    table.add_column("Question")
    table.add_column("Status")
    table.add_column("Difficulty", justify="right")
    table.add_column("Interval", justify="right")

    for i, card in enumerate(cards, 1):
        if card.is_due(now):
            status = f"[red]overdue {card.days_overdue(now)}d[/red]"
        else:
            status = f"[dim]due {card.next_review:%Y-%m-%d}[/dim]"
        table.add_row(
            str(i),
            card.card_id,
            card.question[:50],
            status,
            f"{card.difficulty:.1f}",
            f"{card.interval_days}d",
        )

    console.print(table)


@app.command("review")
def review(
    deck: Optional[str] = typer.Option(None, "--deck", "-d", help="Deck id"),
) -> None:
    """Review the prioritized card pool."""
    service = _get_service()
    context = _new_context()
    total = service.start_card_session(context, deck)

    if total == 0:
        console.print("[yellow]No cards to review.[/yellow]")
        return

    try:
        while context.cards is not None and not context.cards.is_complete:
            card = context.cards.current_card
            index = context.cards.current_index + 1
            console.print(
                Panel(card.question, title=f"Card {index}/{total}", title_align="left", border_style="cyan")
            )
            Prompt.ask("[dim]Press Enter to reveal[/dim]", default="", show_default=False)
            console.print(Panel(card.answer, border_style="dim"))

            known = Confirm.ask("Did you know it?", default=True)
            updated = service.answer_card(context, known)
            style = STYLES["correct"] if known else STYLES["incorrect"]
            console.print(
                f"[{style}]Next review in {updated.interval_days} day(s)[/{style}]\n"
            )
    except KeyboardInterrupt:
        context.reset_cards()
        console.print("\n[yellow]Session abandoned. No XP recorded.[/yellow]")
        return

    try:
        award = service.complete_card_session(context)
    except XPNotRecordedError as e:
        console.print(f"[{STYLES['warning']}]Warning:[/] {e}. Try again later.")
        return
    _show_award(award)


@app.command("focus")
def focus(
    minutes: Optional[int] = typer.Option(
        None, "--minutes", "-m", min=1, max=120, help="Focus duration (1-120)"
    ),
) -> None:
    """Run a focus countdown; answer the card count at the end."""
    service = _get_service()
    context = _new_context(minutes)
    session = context.start_focus()

    console.print(
        Panel(
            f"Focus for {session.duration_minutes} minutes.\n"
            "Press Ctrl+C to abandon (no XP).",
            title="[bold cyan]Focus Mode[/bold cyan]",
            border_style="cyan",
        )
    )

    try:
        while not context.tick_focus():
            if session.time_left % 60 == 0:
                console.print(f"[dim]{session.time_left // 60} min remaining[/dim]")
            time.sleep(1)
    except KeyboardInterrupt:
        context.reset_focus()
        console.print("\n[yellow]Focus session reset. No XP recorded.[/yellow]")
        return

    correct_cards = IntPrompt.ask("How many cards did you answer correctly?", default=0)
    try:
        award = service.complete_focus_session(context, max(0, correct_cards))
    except XPNotRecordedError as e:
        console.print(f"[{STYLES['warning']}]Warning:[/] {e}. Try again later.")
        return
    _show_award(award)


@app.command("progress")
def progress() -> None:
    """Show XP, current tier and the tier table."""
    service = _get_service()
    xp = service.store.get_xp(service.user_id)
    status = service.ledger.get_tier_for_xp(xp)

    content = Text()
    content.append(f"{status.name} (level {status.level})\n", style="bold cyan")
    content.append(f"XP: {xp}\n")
    if status.next_min_xp is not None:
        content.append(f"[{_format_progress_bar(status.progress)}] {status.progress:.0%}\n")
        content.append(f"{status.xp_to_next} XP to the next tier\n", style="dim")
    else:
        content.append("Top tier reached\n", style="bold green")
    console.print(Panel(content, title="[bold]Progress[/bold]", border_style="blue"))

    table = Table(title="Tiers")
    table.add_column("Level", justify="right")
    table.add_column("Animal")
    table.add_column("Min XP", justify="right")
    table.add_column("")
    for tier in service.ledger.tiers:
        marker = ""
        if tier.level == status.level:
            marker = "[cyan]current[/cyan]"
        elif tier.min_xp <= xp:
            marker = "[green]unlocked[/green]"
        table.add_row(str(tier.level), tier.name, str(tier.min_xp), marker)
    console.print(table)


@app.command("sessions")
def sessions(
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Sessions to show"),
) -> None:
    """Show recent study sessions."""
    service = _get_service()
    records = service.store.list_sessions(service.user_id, limit)
    if not records:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return

    table = Table(title="Recent Sessions")
    table.add_column("When")
    table.add_column("Type")
    table.add_column("Minutes", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("XP", justify="right")
    table.add_column("Interrupted")
    for record in records:
        table.add_row(
            f"{record.created_at:%Y-%m-%d %H:%M}",
            record.session_type.value,
            str(record.duration_minutes),
            f"{record.correct_cards}/{record.cards_studied}",
            f"+{record.xp_earned}",
            "yes" if record.focus_interrupted else "",
        )
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    try:
        app()
    except StudyError as e:
        console.print(f"[{STYLES['incorrect']}]Error:[/] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
