"""CLI entry point for VoiceQuiz."""

from __future__ import annotations

import asyncio

import click

from voicequiz.config.logging import configure_logging
from voicequiz.config.settings import Settings
from voicequiz.engine.errors import QuizError


def _build_runner(ctx: click.Context, speech: bool = True):
    from voicequiz.engine.quiz_runner import QuizRunner
    from voicequiz.engine.speech import EchoPlayback, PromptCapture, SilentPlayback, UnavailableCapture
    from voicequiz.levels.registry import LevelRegistry
    from voicequiz.state.progress import ProgressStore

    settings: Settings = ctx.obj["settings"]
    speech = speech and settings.speech.enabled
    return QuizRunner(
        user_id=ctx.obj["user"],
        registry=LevelRegistry(settings.levels_dir),
        progress=ProgressStore(db_path=settings.progress_db),
        settings=settings,
        capture=PromptCapture(lambda: input("🎙️  Say your answer: ")) if speech else UnavailableCapture(),
        playback=EchoPlayback(lambda text: click.secho(text, bold=True)) if speech else SilentPlayback(),
    )


@click.group()
@click.option("--user", default="local", show_default=True, help="Learner whose progress is used")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, user: str, log_level: str | None) -> None:
    """VoiceQuiz: themed vocabulary levels answered by voice or by choice."""
    settings = Settings.load()
    if log_level:
        settings.log_level = log_level
    configure_logging(settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["user"] = user


@main.command()
@click.pass_context
def levels(ctx: click.Context) -> None:
    """List levels with their lock status and best score."""
    try:
        runner = _build_runner(ctx, speech=False)
        for level in runner.registry.list_levels():
            record = runner.progress.get(runner.user_id, level.number)
            status = record.status.value if record else "locked"
            best = record.high_score if record else 0
            click.echo(
                f"  {level.number}. {level.title} [{status}] "
                f"best {best}/{level.question_count}"
            )
    except QuizError as e:
        raise click.ClickException(str(e)) from e


@main.command()
@click.pass_context
def progress(ctx: click.Context) -> None:
    """Show the stored progress records for the current user."""
    from voicequiz.state.progress import ProgressStore

    settings: Settings = ctx.obj["settings"]
    store = ProgressStore(db_path=settings.progress_db)
    records = store.list_for_user(ctx.obj["user"])
    if not records:
        click.echo("No progress yet.")
        return
    for r in records:
        click.echo(f"  level {r.level_number}: {r.status.value}, high score {r.high_score} ({r.updated_at})")


@main.command()
@click.option("--level", "level_number", type=int, default=None, help="Reset a single level only")
@click.confirmation_option(prompt="Erase progress?")
@click.pass_context
def reset(ctx: click.Context, level_number: int | None) -> None:
    """Erase progress for the current user."""
    runner = _build_runner(ctx, speech=False)
    if level_number is None:
        runner.progress.reset_user(runner.user_id)
    else:
        runner.progress.reset_level(runner.user_id, level_number)
    runner.progress.ensure_user(runner.user_id, runner.registry.numbers())
    click.echo("Progress reset.")


@main.command()
@click.argument("level_number", type=int)
@click.option("--no-speech", is_flag=True, help="Disable spoken questions and answers")
@click.pass_context
def play(ctx: click.Context, level_number: int, no_speech: bool) -> None:
    """Play LEVEL_NUMBER interactively.

    Type an option number to select it, type words to answer as if spoken,
    or press Enter to speak.
    """
    from voicequiz.engine.quiz_runner import NoConfidentMatch
    from voicequiz.engine.session import SessionOutcome
    from voicequiz.engine.speech import CaptureError, describe_capture_error

    runner = _build_runner(ctx, speech=not no_speech)
    try:
        session = runner.start(level_number)
    except QuizError as e:
        raise click.ClickException(str(e)) from e

    click.secho(f"Level {session.level.number}: {session.level.title}", bold=True)
    warning = runner.capability_warning()
    if warning and not no_speech:
        click.secho(warning, fg="yellow")

    while not session.is_terminal:
        question = session.current_question
        click.echo()
        click.echo(
            f"Question {session.current_index + 1} of {session.total_questions}  "
            f"(score {session.score}, mistakes {session.mistakes}/{session.mistake_limit})"
        )
        # Echo playback already wrote the question to this terminal.
        if not asyncio.run(runner.speak_current()):
            click.secho(question.text, bold=True)
        for i, option in enumerate(question.options, start=1):
            click.echo(f"  {i}) {option}")

        raw = click.prompt("Answer", default="", show_default=False).strip()

        if raw.isdigit() and 1 <= int(raw) <= len(question.options):
            answer = runner.submit_answer(question.options[int(raw) - 1])
        else:
            if raw:
                spoken = runner.submit_utterance(raw)
            elif runner.speech_supported:
                spoken = asyncio.run(runner.listen())
            else:
                click.secho("Speech recognition not available. Select an option.", fg="yellow")
                continue

            if isinstance(spoken, CaptureError):
                click.secho(describe_capture_error(spoken), fg="yellow")
                continue
            if isinstance(spoken, NoConfidentMatch):
                click.secho("Unrecognized answer. Please try again or select an option.", fg="yellow")
                continue
            click.echo(f'You said: "{spoken.match.option}"')
            answer = spoken.answer

        if answer.correct:
            click.secho("Correct! 🎉", fg="green")
        else:
            click.secho(f"Incorrect! The answer was: {answer.correct_answer}", fg="red")

    outcome = session.outcome()
    click.echo()
    if outcome.result is SessionOutcome.COMPLETED:
        click.secho(f"Level completed! Score: {outcome.score}/{session.total_questions}", fg="green", bold=True)
        next_number = runner.registry.next_number(session.level.number)
        if next_number is not None:
            click.echo(f"Level {next_number} unlocked.")
    else:
        click.secho(f"You made {session.mistake_limit} mistakes. Quiz ended. Try again!", fg="red", bold=True)

    while runner.pending_update is not None:
        click.secho(f"Could not save progress: {runner.last_error}", fg="red")
        if not click.confirm("Retry saving?", default=True):
            break
        runner.retry_persist()


@main.command()
def serve() -> None:
    """Run the JSON-lines server on stdin/stdout."""
    from voicequiz.server.__main__ import main as server_main

    asyncio.run(server_main())
