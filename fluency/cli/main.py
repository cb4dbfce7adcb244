"""
Typer CLI for the fluency progress engine.

Commands:
    fluency init-db                       - Create database tables
    fluency load-catalog catalog.json     - Load lessons and sentences
    fluency init-learner LEARNER          - Create profile and lesson rows
    fluency exercise ITEM --type TYPE     - Show an exercise for an item
    fluency answer LEARNER ITEM ANSWER    - Submit an answer
    fluency quiz LEARNER [MODE]           - Run a practice/timed/challenge quiz
    fluency progress LEARNER              - Profile stats and item progress
    fluency lessons LEARNER               - Level completion and lesson locks
    fluency badges LEARNER                - Unlocked and locked badges
    fluency ack LEARNER [BADGE...]        - Acknowledge new badges
    fluency limits LEARNER                - Plan usage and limits
    fluency chat LEARNER                  - Count one support chat message

Usage:
    fluency --help
    fluency init-db
    fluency answer alice s1 "I am happy" --type translation
    fluency answer alice s1 "I am happy" --type word-order --lesson l1
"""

from __future__ import annotations

import asyncio
import random
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from fluency.core.errors import FluencyError, ValidationError
from fluency.core.logging import configure_logging
from fluency.core.plans import Feature
from fluency.core.quiz import QuizQuestion, QuizTally
from fluency.db import async_session_scope, configure_engine, dispose_engine, init_db
from fluency.engine import (
    AchievementEvaluator,
    ContentCatalog,
    DailyActivityAggregator,
    LessonGate,
    MasteryTracker,
    PlanUsageService,
    PracticeService,
    ProfileService,
    QuizService,
    load_catalog,
)
from fluency.schemas import AcknowledgeRequest, PracticeOutcome

app = typer.Typer(
    help="fluency: progress & mastery engine for language practice",
    no_args_is_help=True,
)

console = Console()

RARITY_STYLES = {
    "bronze": "dark_orange3",
    "silver": "grey70",
    "gold": "yellow",
    "platinum": "cyan",
    "diamond": "magenta",
}


def _run(coro):
    """Run a coroutine and release pooled connections afterwards."""

    async def runner():
        try:
            return await coro
        finally:
            await dispose_engine()

    try:
        return asyncio.run(runner())
    except FluencyError as e:
        logger.error(str(e))
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)


# ========================================
# Database
# ========================================


@app.command("init-db")
def init_db_command() -> None:
    """
    Create all engine tables if they don't exist.

    Safe to run multiple times (idempotent).
    """
    logger.info("Initializing database tables...")
    _run(init_db())
    rprint("[green]✓[/green] Database initialized!")


@app.command("load-catalog")
def load_catalog_command(
    path: Annotated[Path, typer.Argument(help="Catalog JSON with 'lessons' and 'sentences'")],
) -> None:
    """Load lessons and sentences into the catalog tables."""

    async def _load():
        await init_db()
        async with async_session_scope() as session:
            return await load_catalog(session, path)

    try:
        counts = _run(_load())
    except FileNotFoundError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    rprint(
        f"[green]✓[/green] Loaded {counts['sentences']} sentences, "
        f"{counts['lessons']} lessons, {counts['lesson_items']} lesson items"
    )


@app.command("init-learner")
def init_learner(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
) -> None:
    """
    Create the profile and lesson-progress rows for a learner.

    Safe to run multiple times; existing rows are kept.
    """

    async def _init():
        async with async_session_scope() as session:
            await ProfileService(session).ensure_profile(learner_id)
            return await LessonGate(session).initialize_lesson_progress(learner_id)

    created = _run(_init())
    rprint(f"[green]✓[/green] {learner_id}: {created} lesson progress row(s) created")


# ========================================
# Practice
# ========================================


@app.command()
def exercise(
    item_id: Annotated[str, typer.Argument(help="Sentence id")],
    exercise_type: Annotated[
        Optional[str], typer.Option("--type", "-t", help="Exercise type (random when omitted)")
    ] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
) -> None:
    """Show the exercise built for an item."""

    async def _build():
        async with async_session_scope() as session:
            return await ContentCatalog(session).build_exercise(
                item_id, exercise_type, rng=random.Random(seed)
            )

    payload = _run(_build())
    lines = [f"[bold]{payload['exercise_type']}[/bold]", f"Prompt: {payload.get('prompt', '')}"]
    if "options" in payload:
        lines.extend(f"  {i}. {option}" for i, option in enumerate(payload["options"], 1))
    if "pool" in payload:
        lines.append(f"Words: {' | '.join(payload['pool'])}")
    if "display" in payload:
        lines.append(f"Fill in: {payload['display']}")
    console.print(Panel("\n".join(lines), title=f"Item {item_id}", border_style="cyan"))


@app.command()
def answer(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
    item_id: Annotated[str, typer.Argument(help="Sentence id")],
    text: Annotated[str, typer.Argument(help="Candidate answer (word order: space separated)")],
    exercise_type: Annotated[
        str, typer.Option("--type", "-t", help="Exercise type")
    ] = "translation",
    lesson_id: Annotated[
        Optional[str], typer.Option("--lesson", "-l", help="Lesson the item belongs to")
    ] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Seed used to build the exercise")] = None,
) -> None:
    """Submit one answer and show the verdict and its effects."""

    async def _answer() -> PracticeOutcome:
        async with async_session_scope() as session:
            built = await ContentCatalog(session).build_exercise(
                item_id, exercise_type, rng=random.Random(seed)
            )
            return await PracticeService(session).submit_answer(
                learner_id, built, text, lesson_id=lesson_id
            )

    outcome = _run(_answer())
    _print_outcome(outcome)


def _print_outcome(outcome: PracticeOutcome) -> None:
    verdict = outcome.verdict
    mark = "[green]✓ Correct[/green]" if verdict.correct else "[red]✗ Incorrect[/red]"
    lines = [
        mark,
        f"Score: {verdict.score:.2f}" + (f" ({verdict.tier})" if verdict.tier else ""),
        verdict.feedback,
    ]
    if outcome.saved:
        lines.append(f"Status: {outcome.status}  +{outcome.points_awarded} pts")
        lines.append(f"Today: {outcome.daily_practiced} practiced, goal met: {outcome.daily_goal_met}")
        if outcome.mastered_now:
            lines.append("[bold green]Item mastered![/bold green]")
        if outcome.lesson_completed:
            lines.append("[bold green]Lesson completed![/bold green]")
    else:
        lines.append("[yellow]⚠ Scored but not saved[/yellow]")
        lines.extend(f"[dim]{error}[/dim]" for error in outcome.errors)
    console.print(Panel("\n".join(lines), title=verdict.exercise_type, border_style="cyan"))

    if outcome.celebration and outcome.celebration.badges:
        for badge in outcome.celebration.badges:
            style = RARITY_STYLES.get(badge.rarity, "white")
            rprint(f"🏆 [{style}]{badge.name}[/{style}] unlocked (+{badge.points_reward} pts)")


# ========================================
# Quiz
# ========================================


def _print_question(number: int, question: QuizQuestion) -> None:
    exercise = question.exercise
    lines = [
        f"[bold]{exercise['exercise_type']}[/bold]  "
        f"[dim]{question.difficulty.value}, {question.points} pts[/dim]",
        f"Translate: {exercise.get('prompt', '')}",
    ]
    if "options" in exercise:
        lines.extend(f"  {i}. {option}" for i, option in enumerate(exercise["options"], 1))
    console.print(Panel("\n".join(lines), title=f"Question {number}", border_style="magenta"))


@app.command()
def quiz(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
    mode: Annotated[str, typer.Argument(help="practice, timed or challenge")] = "practice",
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
) -> None:
    """
    Run a quiz interactively.

    Every answer counts as practice (mastery, points, streaks, badges).
    Multiple choice accepts the option number or its text.
    """

    async def _quiz() -> QuizTally:
        async with async_session_scope() as session:
            service = QuizService(session)
            built = await service.build(mode, rng=random.Random(seed))
            timing = f", {built.time_limit}s per question" if built.time_limit else ""
            rprint(
                f"[bold cyan]{built.mode.value.title()} quiz[/bold cyan]: "
                f"{len(built.questions)} questions{timing}"
            )

            tally = QuizTally()
            for number, question in enumerate(built.questions, 1):
                _print_question(number, question)
                options = question.exercise.get("options") or []
                while True:
                    text = typer.prompt("Answer")
                    if text.strip().isdigit() and 1 <= int(text) <= len(options):
                        text = options[int(text) - 1]
                    try:
                        result = await service.answer(learner_id, question, text, tally=tally)
                    except ValidationError as e:
                        rprint(f"[yellow]⚠[/yellow] {e}")
                        continue
                    break
                _print_outcome(result.outcome)
            return tally

    tally = _run(_quiz())
    rprint(
        f"\n[bold]Quiz complete:[/bold] {tally.correct}/{tally.answered} correct "
        f"({tally.percentage:.0f}%), {tally.points} quiz points"
    )


# ========================================
# Progress
# ========================================


@app.command()
def progress(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
    limit: Annotated[int, typer.Option("--limit", "-n", help="Items to list")] = 20,
) -> None:
    """Show profile stats, daily goal and per-item progress."""

    async def _progress():
        async with async_session_scope() as session:
            profiles = ProfileService(session)
            activity = DailyActivityAggregator(session)
            stats = await profiles.get_stats(learner_id)
            return (
                stats,
                await profiles.xp_level(learner_id),
                await activity.daily_goal_progress(learner_id),
                await activity.goal_streak(learner_id, stats.daily_goal),
                await MasteryTracker(session).list_progress(learner_id),
            )

    stats, xp, practiced_today, goal_streak, records = _run(_progress())

    console.print(
        Panel(
            f"Level: {stats.level.display_name}   XP level {xp.level} ({xp.name}, "
            f"{xp.progress(stats.points):.0f}%)\n"
            f"Points: {stats.points}   Streak: {stats.streak_count} days   "
            f"Goal streak: {goal_streak} days\n"
            f"Today: {practiced_today}/{stats.daily_goal}   "
            f"Phrases learned: {stats.total_phrases_learned}",
            title=f"Learner {learner_id}",
            border_style="cyan",
        )
    )

    if not records:
        rprint("[dim]No practice yet.[/dim]")
        return

    table = Table(title="Item progress")
    table.add_column("Item", style="cyan")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Last practiced")
    for record in records[:limit]:
        status_style = "green" if record.is_mastered else "yellow"
        table.add_row(
            record.item_id,
            f"[{status_style}]{record.status}[/{status_style}]",
            str(record.attempts),
            str(record.correct_attempts),
            record.last_practiced_at.strftime("%Y-%m-%d %H:%M") if record.last_practiced_at else "-",
        )
    console.print(table)


@app.command()
def lessons(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
) -> None:
    """Show level completion and which lessons are open."""

    async def _summary():
        async with async_session_scope() as session:
            return await LessonGate(session).summary(learner_id)

    for level in _run(_summary()):
        lock = "🔓" if level.unlocked else "🔒"
        table = Table(
            title=f"{lock} {level.level.display_name}: {level.mastered}/{level.required} "
            f"mastered ({level.completion:.0f}%)"
        )
        table.add_column("#", justify="right")
        table.add_column("Lesson", style="cyan")
        table.add_column("Status")
        table.add_column("Open")
        for state in level.lessons:
            table.add_row(
                str(state.index + 1),
                state.title,
                state.status.value,
                "[green]yes[/green]" if state.unlocked else "[dim]no[/dim]",
            )
        console.print(table)


# ========================================
# Achievements
# ========================================


@app.command()
def badges(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
) -> None:
    """Show unlocked badges and progress toward the rest."""

    async def _badges():
        async with async_session_scope() as session:
            evaluator = AchievementEvaluator(session)
            return await evaluator.unlocked_badges(learner_id), await evaluator.locked_badges(learner_id)

    unlocked, locked = _run(_badges())

    table = Table(title=f"Badges for {learner_id}")
    table.add_column("Badge")
    table.add_column("Rarity")
    table.add_column("Reward", justify="right")
    table.add_column("Progress", justify="right")
    for badge in unlocked:
        style = RARITY_STYLES.get(badge.rarity, "white")
        new = " [bold red]NEW[/bold red]" if badge.is_new else ""
        table.add_row(
            f"🏆 {badge.name}{new}",
            f"[{style}]{badge.rarity}[/{style}]",
            str(badge.points_reward),
            "100%",
        )
    for badge in locked:
        table.add_row(
            f"[dim]{badge.name}[/dim]",
            f"[dim]{badge.rarity}[/dim]",
            str(badge.points_reward),
            f"{badge.progress:.0f}%",
        )
    console.print(table)


@app.command()
def ack(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
    badge_ids: Annotated[
        Optional[list[str]], typer.Argument(help="Badge ids (all new badges when omitted)")
    ] = None,
) -> None:
    """Acknowledge newly unlocked badges."""

    request = AcknowledgeRequest(learner_id=learner_id, badge_ids=badge_ids or None)

    async def _ack():
        async with async_session_scope() as session:
            return await AchievementEvaluator(session).acknowledge(
                request.learner_id, request.badge_ids
            )

    count = _run(_ack())
    rprint(f"[green]✓[/green] Acknowledged {count} badge(s)")


# ========================================
# Plan limits
# ========================================


@app.command()
def limits(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
) -> None:
    """Show plan usage against limits."""

    async def _limits():
        async with async_session_scope() as session:
            usage = PlanUsageService(session)
            return await usage.gate(learner_id), await usage.usage_views(learner_id)

    gate, views = _run(_limits())

    table = Table(title=f"{gate.tier.value.title()} plan usage")
    table.add_column("Feature", style="cyan")
    table.add_column("Used", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Status")
    for view in views:
        table.add_row(
            view.feature,
            "?" if view.used is None else str(view.used),
            "∞" if view.limit < 0 else str(view.limit),
            "∞" if view.remaining < 0 else str(view.remaining),
            "[red]limit reached[/red]" if view.limited else f"{view.percentage:.0f}%",
        )
    console.print(table)

    blocked = [
        feature.value
        for feature in (Feature.AUDIO, Feature.SPACED_REPETITION, Feature.ADVANCED_QUIZZES)
        if gate.is_feature_limited(feature)
    ]
    if blocked:
        rprint(f"[dim]Not in plan: {', '.join(blocked)}[/dim]")


@app.command()
def chat(
    learner_id: Annotated[str, typer.Argument(help="Learner id")],
) -> None:
    """Count one support chat message against today's quota."""

    async def _chat():
        async with async_session_scope() as session:
            usage = PlanUsageService(session)
            gate = await usage.gate(learner_id)
            if gate.has_reached_chat_limit():
                return None, gate
            await usage.increment_chat_messages(learner_id)
            return True, await usage.gate(learner_id)

    sent, gate = _run(_chat())
    if sent is None:
        rprint(f"[red]✗[/red] Chat limit reached for the {gate.tier.value} plan")
        raise typer.Exit(code=1)

    remaining = gate.remaining("chat")
    rprint(f"[green]✓[/green] Message counted ({'unlimited' if remaining < 0 else f'{remaining} left today'})")


# ========================================
# Entry Point
# ========================================


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
    database_url: Annotated[
        Optional[str], typer.Option("--database-url", help="Override DATABASE_URL")
    ] = None,
) -> None:
    """Progress & mastery engine CLI."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_file)
    if database_url:
        configure_engine(database_url)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
