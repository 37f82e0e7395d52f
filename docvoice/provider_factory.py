"""Provider factory helpers for synthesis and audio storage collaborators.

Responsibilities:
- Resolve provider identifiers to concrete synthesizer implementations.
- Resolve storage backend identifiers to concrete audio stores.
- Keep services independent from concrete client construction.
"""

from __future__ import annotations

from .config import DocvoiceConfig, SynthesisRuntimeConfig
from .io.storage import AudioStorage, LocalAudioStorage, S3AudioStorage
from .retry import RetryPolicy
from .tts.openai_client import OpenAISpeechClient
from .tts.synthesizer import OpenAISpeechSynthesizer, PollySpeechSynthesizer, SpeechSynthesizer


class ProviderFactory:
    """Factory for provider-backed collaborators used by the services."""

    @staticmethod
    def create_synthesizer(
        runtime: SynthesisRuntimeConfig,
        config: DocvoiceConfig,
    ) -> SpeechSynthesizer:
        """Create a speech synthesizer for the resolved provider identifier."""

        retry_policy = RetryPolicy(max_attempts=config.synthesis_max_attempts)
        if runtime.provider == "polly":
            return PollySpeechSynthesizer(region=config.aws_region, retry_policy=retry_policy)
        if runtime.provider == "openai":
            return OpenAISpeechSynthesizer(
                model=runtime.openai_model,
                client=OpenAISpeechClient(api_key=runtime.api_key, retry_policy=retry_policy),
            )
        raise ValueError(f"Unsupported synthesis provider `{runtime.provider}`.")

    @staticmethod
    def create_storage(config: DocvoiceConfig) -> AudioStorage:
        """Create the audio storage backend selected by configuration."""

        if config.storage_backend == "local":
            return LocalAudioStorage(config.audio_dir)
        if config.storage_backend == "s3":
            return S3AudioStorage(
                bucket=config.s3_bucket or "",
                region=config.resolved_s3_region,
                retry_policy=RetryPolicy(
                    max_attempts=config.storage_max_attempts,
                    backoff_base_seconds=2.0,
                    backoff_max_seconds=6.0,
                    backoff="linear",
                ),
            )
        raise ValueError(f"Unsupported storage backend `{config.storage_backend}`.")
