"""Command-line interface for Docvoice.

Responsibilities:
- Expose user-facing commands for document, speech, and alignment operations.
- Convert CLI arguments into `DocvoiceConfig` runtime sources and services.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from dataclasses import replace
import os
from pathlib import Path
from typing import Annotated

import typer

from .audio.planner import FixedCount, FixedLength, Manual, SegmentationStrategy
from .cache import BoundedTTLCache
from .cli_rendering import (
    echo_batch_outcome,
    echo_document_list,
    echo_document_summary,
    echo_match_report,
    echo_paragraphs,
    echo_speech_result,
    exit_with_command_error,
)
from .config import ConfigLoader, DocvoiceConfig, RuntimeConfigSources
from .credentials import create_credential_store
from .errors import (
    AudioExtractionError,
    CommandStageError,
    DocumentParseError,
    InputError,
    NotFoundError,
    StorageError,
    SynthesisError,
)
from .io.repository import JsonDocumentRepository
from .parsing import normalize_optional_string
from .services import DocumentService, build_services
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="docvoice",
    no_args_is_help=True,
    help="Docvoice CLI: documents to paragraphs to speech.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
OutOption = Annotated[
    Path | None,
    typer.Option("--out", help="Output directory (overrides config value)."),
]


def _load_base_config(config_file: Path | None, out: Path | None) -> DocvoiceConfig:
    """Load YAML or environment config and apply the `--out` override."""

    try:
        if config_file is not None:
            config = ConfigLoader.from_yaml(config_file)
        else:
            config = ConfigLoader.from_env()
    except FileNotFoundError as exc:
        raise CommandStageError(
            stage="config",
            detail=f"Config file not found: `{config_file}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise CommandStageError(
            stage="config",
            detail=f"Invalid configuration: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    if out is not None:
        config = replace(config, output_dir=out)
    return config


def _with_runtime_sources(
    config: DocvoiceConfig,
    *,
    use_secure_store: bool = True,
    **cli_values: str | None,
) -> DocvoiceConfig:
    """Attach CLI, secure-store, and environment runtime sources to a config.

    The keyring is only read when `use_secure_store` is set and no CLI key is given.
    """

    runtime_cli_values = {
        key: normalized
        for key, value in cli_values.items()
        if (normalized := normalize_optional_string(value)) is not None
    }
    runtime_secure_values: dict[str, str] = {}
    if use_secure_store and "api_key" not in runtime_cli_values:
        stored_key = create_credential_store().get_api_key()
        if stored_key is not None:
            runtime_secure_values["api_key"] = stored_key
    return replace(
        config,
        runtime_sources=RuntimeConfigSources(
            cli=runtime_cli_values,
            secure=runtime_secure_values,
            env=os.environ,
        ),
    )


def _document_service(config: DocvoiceConfig) -> DocumentService:
    """Create a document service for lookup commands without synthesis providers."""

    return DocumentService(
        JsonDocumentRepository(config.documents_dir),
        BoundedTTLCache(max_items=config.cache_max_items),
        max_text_length=config.max_text_length,
    )


def _as_stage_error(exc: Exception, stage: str) -> Exception:
    """Map domain exceptions to stage-aware command errors with hints."""

    if isinstance(exc, CommandStageError):
        return exc
    if isinstance(exc, NotFoundError):
        return CommandStageError(
            stage="lookup",
            detail=str(exc),
            hint="Run `docvoice list` to see stored document ids.",
        )
    if isinstance(exc, InputError):
        return CommandStageError(stage="input", detail=str(exc))
    if isinstance(exc, DocumentParseError):
        return CommandStageError(
            stage="extract",
            detail=str(exc),
            hint="Only text-based PDFs, Word documents, and UTF-8 text files are supported.",
        )
    if isinstance(exc, SynthesisError):
        hint = None
        if exc.failure_kind == "invalid_api_key":
            hint = "Set `OPENAI_API_KEY` or run `docvoice credentials --set-api-key`."
        elif exc.is_transient:
            hint = "The provider is unavailable or throttling requests; retry later."
        return CommandStageError(stage="synthesis", detail=str(exc), hint=hint)
    if isinstance(exc, StorageError):
        return CommandStageError(
            stage="storage",
            detail=str(exc),
            hint="Check storage credentials, bucket name, and output directory permissions.",
        )
    if isinstance(exc, AudioExtractionError):
        return CommandStageError(stage="align", detail=str(exc))
    return CommandStageError(stage=stage, detail=str(exc))


def _parse_ranges(ranges: str) -> tuple[tuple[float, float], ...]:
    """Parse `start:end,start:end` manual range text."""

    parsed: list[tuple[float, float]] = []
    for token in ranges.split(","):
        start_text, separator, end_text = token.strip().partition(":")
        if not separator:
            raise InputError(f"Invalid range `{token.strip()}`; expected `start:end` seconds.")
        try:
            parsed.append((float(start_text), float(end_text)))
        except ValueError as exc:
            raise InputError(f"Invalid range `{token.strip()}`; bounds must be numbers.") from exc
    return tuple(parsed)


def _resolve_strategy(
    segments: int | None,
    segment_seconds: float | None,
    ranges: str | None,
    by_length: bool = False,
    default_segment_seconds: float = 30.0,
) -> SegmentationStrategy | None:
    """Resolve at most one segmentation strategy from CLI options."""

    selected = [value is not None for value in (segments, segment_seconds, ranges)]
    if sum(selected) + int(by_length) > 1:
        raise CommandStageError(
            stage="input",
            detail=(
                "Use only one of `--segments`, `--segment-seconds`, `--ranges`, "
                "or `--by-length`."
            ),
        )
    if by_length:
        return FixedLength(default_segment_seconds)
    if segments is not None:
        return FixedCount(segments)
    if segment_seconds is not None:
        return FixedLength(segment_seconds)
    if ranges is not None:
        return Manual(_parse_ranges(ranges))
    return None


@app.command("process")
def process_command(
    input_path: Annotated[Path, typer.Argument(help="Text, PDF, or Word document to process.")],
    title: Annotated[
        str | None, typer.Option("--title", help="Document title (defaults to file stem).")
    ] = None,
    mimetype: Annotated[
        str | None,
        typer.Option("--mimetype", help="MIME type override when the extension is ambiguous."),
    ] = None,
    audio: Annotated[
        bool,
        typer.Option("--audio/--no-audio", help="Synthesize audio for each paragraph."),
    ] = False,
    provider: Annotated[
        str | None, typer.Option("--provider", help="Synthesis provider: `polly` or `openai`.")
    ] = None,
    voice: Annotated[str | None, typer.Option("--voice", help="Voice id override.")] = None,
    output_format: Annotated[
        str | None,
        typer.Option("--format", help="Audio format: `mp3`, `ogg_vorbis`, or `pcm`."),
    ] = None,
    model: Annotated[
        str | None, typer.Option("--model", help="OpenAI speech model override.")
    ] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", help="OpenAI API key override.")
    ] = None,
    out: OutOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Parse a document into paragraphs, optionally generating paragraph audio."""

    try:
        config = _with_runtime_sources(
            _load_base_config(config_file, out),
            use_secure_store=audio,
            synthesis_provider=provider,
            voice_id=voice,
            output_format=output_format,
            openai_model=model,
            api_key=api_key,
        )
        if audio:
            services = build_services(config, run_logger=RunLogger())
            outcome = services.documents.ingest_file_with_audio(input_path, title, mimetype)
            document = outcome.document
        else:
            document = _document_service(config).ingest_file(input_path, title, mimetype)
            outcome = None
    except Exception as exc:
        exit_with_command_error("process", _as_stage_error(exc, "process"))

    echo_document_summary(document)
    if outcome is not None:
        echo_batch_outcome(outcome)


@app.command("speak")
def speak_command(
    text: Annotated[str, typer.Argument(help="Text to synthesize (max 3000 characters).")],
    file_name: Annotated[
        str | None, typer.Option("--file-name", help="Stored file stem without extension.")
    ] = None,
    provider: Annotated[
        str | None, typer.Option("--provider", help="Synthesis provider: `polly` or `openai`.")
    ] = None,
    voice: Annotated[str | None, typer.Option("--voice", help="Voice id override.")] = None,
    output_format: Annotated[
        str | None,
        typer.Option("--format", help="Audio format: `mp3`, `ogg_vorbis`, or `pcm`."),
    ] = None,
    model: Annotated[
        str | None, typer.Option("--model", help="OpenAI speech model override.")
    ] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", help="OpenAI API key override.")
    ] = None,
    out: OutOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Synthesize one text snippet and store the audio."""

    try:
        config = _with_runtime_sources(
            _load_base_config(config_file, out),
            synthesis_provider=provider,
            voice_id=voice,
            output_format=output_format,
            openai_model=model,
            api_key=api_key,
        )
        services = build_services(config, run_logger=RunLogger())
        result = services.speech.generate_speech(text, file_name=file_name)
    except Exception as exc:
        exit_with_command_error("speak", _as_stage_error(exc, "speak"))

    echo_speech_result(result)


@app.command("align")
def align_command(
    document_id: Annotated[str, typer.Argument(help="Stored document id.")],
    audio_path: Annotated[Path, typer.Argument(help="Recorded audio for the document.")],
    segments: Annotated[
        int | None,
        typer.Option("--segments", help="Split the track into this many equal segments."),
    ] = None,
    segment_seconds: Annotated[
        float | None,
        typer.Option("--segment-seconds", help="Split the track into fixed-length segments."),
    ] = None,
    ranges: Annotated[
        str | None,
        typer.Option("--ranges", help="Manual ranges in seconds, e.g. `0:12.5,12.5:30`."),
    ] = None,
    by_length: Annotated[
        bool,
        typer.Option(
            "--by-length",
            help="Split the track into segments of the configured `segment_seconds`.",
        ),
    ] = False,
    out: OutOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Align a recorded audio track with a stored document's paragraphs."""

    try:
        config = _with_runtime_sources(
            _load_base_config(config_file, out), use_secure_store=False
        )
        strategy = _resolve_strategy(
            segments, segment_seconds, ranges, by_length, config.segment_seconds
        )
        services = build_services(config, run_logger=RunLogger())
        if not audio_path.exists():
            raise InputError(f"Audio file not found: {audio_path}")
        saved_path, _url, _info = services.alignment.save_audio(
            audio_path.read_bytes(), audio_path.name
        )
        report = services.alignment.align_stored(document_id, saved_path, strategy)
    except Exception as exc:
        exit_with_command_error("align", _as_stage_error(exc, "align"))

    echo_match_report(report)


@app.command("list")
def list_command(
    page: Annotated[int, typer.Option("--page", help="1-based page number.")] = 1,
    limit: Annotated[int, typer.Option("--limit", help="Page size (max 100).")] = 10,
    out: OutOption = None,
    config_file: ConfigOption = None,
) -> None:
    """List stored documents, newest first."""

    try:
        service = _document_service(_load_base_config(config_file, out))
        documents, total = service.list_documents(page, limit)
    except Exception as exc:
        exit_with_command_error("list", _as_stage_error(exc, "list"))

    echo_document_list(documents, total, page)


@app.command("show")
def show_command(
    document_id: Annotated[str, typer.Argument(help="Stored document id.")],
    out: OutOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Show one stored document with paragraph previews and audio locators."""

    try:
        document = _document_service(_load_base_config(config_file, out)).get_document(
            document_id
        )
    except Exception as exc:
        exit_with_command_error("show", _as_stage_error(exc, "show"))

    echo_document_summary(document)
    echo_paragraphs(document)


@app.command("delete")
def delete_command(
    document_id: Annotated[str, typer.Argument(help="Stored document id.")],
    out: OutOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Delete one stored document."""

    try:
        _document_service(_load_base_config(config_file, out)).delete_document(document_id)
    except Exception as exc:
        exit_with_command_error("delete", _as_stage_error(exc, "delete"))

    typer.echo(f"Deleted document: {document_id}")


@app.command("credentials")
def credentials_command(
    set_api_key: Annotated[
        bool,
        typer.Option(
            "--set-api-key",
            help="Prompt for API key with hidden input and store it securely.",
        ),
    ] = False,
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure credential storage.",
        ),
    ] = False,
) -> None:
    """Manage securely stored CLI credentials."""

    if set_api_key and clear_api_key:
        exit_with_command_error(
            "credentials",
            CommandStageError(
                stage="credentials",
                detail="`--set-api-key` and `--clear-api-key` cannot be used together.",
                hint="Run one credentials action per command invocation.",
            ),
        )

    credential_store = create_credential_store()
    if set_api_key:
        prompted_api_key = normalize_optional_string(
            typer.prompt(
                "OpenAI API key (hidden input)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted_api_key is None:
            exit_with_command_error(
                "credentials",
                CommandStageError(
                    stage="credentials",
                    detail="No API key entered.",
                    hint="Provide a non-empty API key when using `--set-api-key`.",
                ),
            )
        try:
            credential_store.set_api_key(prompted_api_key)
        except (RuntimeError, ValueError) as exc:
            exit_with_command_error(
                "credentials",
                CommandStageError(
                    stage="credentials",
                    detail=f"Failed to store API key securely: {exc}",
                    hint="Install and configure a keyring backend and retry.",
                ),
            )
        typer.echo("API key stored in secure credential storage.")
        return

    if clear_api_key:
        removed = credential_store.clear_api_key()
        if removed:
            typer.echo("Stored API key cleared from secure credential storage.")
        else:
            typer.echo("No stored API key found in secure credential storage.")
        return

    availability = "available" if credential_store.is_available() else "unavailable"
    has_stored_key = credential_store.get_api_key() is not None
    status = "present" if has_stored_key else "not set"
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored OpenAI API key: {status}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
