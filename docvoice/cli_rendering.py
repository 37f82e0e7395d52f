"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
document summaries, paragraph audio outcomes, and alignment reports.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import CommandStageError
from .models import BatchOutcome, Document, MatchReport, SpeechResult

_PREVIEW_CHARS = 60


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, CommandStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_document_summary(document: Document) -> None:
    """Print document identity and text statistics."""

    typer.echo(f"Document id: {document.id}")
    typer.echo(f"Title: {document.title}")
    typer.echo(f"Type: {document.type.value}")
    typer.echo(
        f"Paragraphs: {document.paragraph_count} | Sentences: {document.sentence_count} "
        f"| Words: {document.word_count}"
    )


def echo_paragraphs(document: Document) -> None:
    """Print one preview row per paragraph with its audio locator."""

    for paragraph in document.paragraphs:
        preview = " ".join(paragraph.content.split())
        if len(preview) > _PREVIEW_CHARS:
            preview = f"{preview[: _PREVIEW_CHARS - 3]}..."
        audio = paragraph.audio.url if paragraph.audio is not None else "(no audio)"
        typer.echo(f"{paragraph.order}. {preview} [{audio}]")


def echo_batch_outcome(outcome: BatchOutcome) -> None:
    """Print paragraph audio success/failure counts and failed paragraphs."""

    typer.echo(f"Paragraph audio: {len(outcome.succeeded)} succeeded, {len(outcome.failed)} failed")
    for failure in outcome.failed:
        typer.echo(f"  paragraph {failure.paragraph_order} failed: {failure.error_type}")


def echo_speech_result(result: SpeechResult) -> None:
    """Print stored speech locator and metadata."""

    typer.echo(f"Audio URL: {result.audio_url}")
    typer.echo(f"File: {result.file_name}")
    typer.echo(f"Duration (s): {result.duration_seconds:.0f}")
    typer.echo(f"Voice: {result.voice_id} | Format: {result.output_format}")


def echo_match_report(report: MatchReport) -> None:
    """Print alignment strategy, counts, and review status."""

    typer.echo(f"Strategy: {report.strategy.value} (ratio {report.ratio:.3f})")
    typer.echo(f"Matched: {len(report.results)} | Failed: {len(report.failures)}")
    typer.echo(f"Needs manual adjustment: {'yes' if report.needs_manual_adjustment else 'no'}")
    if report.unmatched_paragraph_orders:
        orders = ", ".join(str(order) for order in report.unmatched_paragraph_orders)
        typer.echo(f"Unmatched paragraphs: {orders}")
    if report.unmatched_segment_indices:
        indices = ", ".join(str(index) for index in report.unmatched_segment_indices)
        typer.echo(f"Unmatched segments: {indices}")
    for failure in report.failures:
        typer.echo(f"  paragraph {failure.paragraph_order} failed: {failure.error_type}")


def echo_document_list(documents: list[Document], total: int, page: int) -> None:
    """Print compact document rows for one listing page."""

    for document in documents:
        typer.echo(
            f"{document.id}  {document.title}  paragraphs={document.paragraph_count} "
            f"created={document.created_at.isoformat()}"
        )
    typer.echo(f"Page {page}: {len(documents)} of {total} document(s)")
