"""Service wiring from configuration.

Responsibilities:
- Validate configuration and resolve synthesis runtime values.
- Construct shared cache, repository, storage, and synthesizer collaborators.
- Map configuration failures to stage-aware command errors.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from ..audio.probe import AudioProbe
from ..cache import BoundedTTLCache
from ..config import DocvoiceConfig, RuntimeConfigSources, SynthesisRuntimeConfig
from ..errors import CommandStageError
from ..io.repository import JsonDocumentRepository
from ..io.storage import AudioStorage
from ..provider_factory import ProviderFactory
from ..telemetry.logger import RunLogger
from ..tts.synthesizer import SpeechSynthesizer
from .alignment_service import AlignmentService
from .document_service import DocumentService
from .speech_service import SpeechService


@dataclass(slots=True)
class ServiceBundle:
    """Services sharing one cache, repository, and storage backend."""

    config: DocvoiceConfig
    runtime: SynthesisRuntimeConfig
    documents: DocumentService
    speech: SpeechService
    alignment: AlignmentService


def validate_config(config: DocvoiceConfig) -> None:
    """Validate configuration and map failures to a stage-aware error."""

    try:
        config.validate()
    except ValueError as exc:
        raise CommandStageError(
            stage="config",
            detail=str(exc),
            hint="Update configuration values or environment variables and rerun the command.",
        ) from exc


def resolve_runtime_config(config: DocvoiceConfig) -> SynthesisRuntimeConfig:
    """Resolve synthesis runtime settings with deterministic source precedence."""

    try:
        env_source = config.runtime_sources.env or os.environ
        runtime_sources = RuntimeConfigSources(
            cli=config.runtime_sources.cli,
            secure=config.runtime_sources.secure,
            env=env_source,
        )
        return config.resolved_synthesis_runtime(runtime_sources)
    except ValueError as exc:
        raise CommandStageError(
            stage="config",
            detail=str(exc),
            hint=(
                "Set a supported provider (`polly` or `openai`) and output format "
                "(`mp3`, `ogg_vorbis`, `pcm`) in CLI options, environment, or config."
            ),
        ) from exc


def build_services(
    config: DocvoiceConfig,
    *,
    run_logger: RunLogger | None = None,
    synthesizer: SpeechSynthesizer | None = None,
    storage: AudioStorage | None = None,
) -> ServiceBundle:
    """Construct document, speech, and alignment services for one invocation.

    `synthesizer` and `storage` override the configured providers, which keeps
    network clients out of tests.
    """

    validate_config(config)
    runtime = resolve_runtime_config(config)
    try:
        resolved_synthesizer = synthesizer or ProviderFactory.create_synthesizer(runtime, config)
        resolved_storage = storage or ProviderFactory.create_storage(config)
    except ValueError as exc:
        raise CommandStageError(stage="config", detail=str(exc)) from exc

    cache = BoundedTTLCache(
        max_items=config.cache_max_items,
        default_ttl_seconds=config.cache_ttl_seconds,
    )
    repository = JsonDocumentRepository(config.documents_dir)
    speech = SpeechService(
        resolved_synthesizer,
        resolved_storage,
        cache,
        run_logger=run_logger,
        words_per_minute=config.words_per_minute,
        default_voice=runtime.voice_id,
        default_format=runtime.output_format,
    )
    documents = DocumentService(
        repository,
        cache,
        speech_service=speech,
        run_logger=run_logger,
        max_text_length=config.max_text_length,
    )
    alignment = AlignmentService(
        repository,
        resolved_storage,
        config.uploads_dir,
        probe=AudioProbe(
            assumed_bitrate_kbps=config.assumed_bitrate_kbps,
            minimum_duration_seconds=config.minimum_duration_seconds,
        ),
        run_logger=run_logger,
    )
    return ServiceBundle(
        config=config,
        runtime=runtime,
        documents=documents,
        speech=speech,
        alignment=alignment,
    )
