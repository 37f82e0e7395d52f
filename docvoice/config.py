"""Configuration model and loaders for Docvoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide deterministic precedence resolution for synthesis runtime settings.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `DocvoiceConfig`: normalized settings for services and collaborators.
- `SynthesisRuntimeConfig`: resolved provider, voice, format, and key values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `DocvoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .parsing import normalize_optional_string, parse_positive_float, parse_positive_int
from .tts.voices import parse_output_format


_DEFAULT_OPENAI_MODEL = "gpt-4o-mini-tts"
_SUPPORTED_SYNTHESIS_PROVIDERS = frozenset({"polly", "openai"})
_SUPPORTED_STORAGE_BACKENDS = frozenset({"local", "s3"})


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SynthesisRuntimeConfig:
    """Resolved synthesis settings for one command invocation.

    Attributes:
        provider: Synthesis provider identifier (`polly` or `openai`).
        voice_id: Voice identifier, or `None` to use the provider default.
        output_format: Output format token.
        openai_model: OpenAI speech model identifier.
        api_key: Optional OpenAI API key (resolved but never persisted).
    """

    provider: str
    voice_id: str | None
    output_format: str
    openai_model: str
    api_key: str | None = None


# Runtime keys resolved with CLI > secure > env > default precedence.
_RUNTIME_ENV_KEYS: dict[str, tuple[str, ...]] = {
    "synthesis_provider": ("DOCVOICE_SYNTHESIS_PROVIDER",),
    "voice_id": ("DOCVOICE_VOICE_ID", "POLLY_VOICE_ID"),
    "output_format": ("DOCVOICE_OUTPUT_FORMAT", "POLLY_OUTPUT_FORMAT"),
    "openai_model": ("DOCVOICE_OPENAI_MODEL",),
    "api_key": ("OPENAI_API_KEY",),
}


@dataclass(slots=True)
class DocvoiceConfig:
    """Runtime configuration for document, speech, and alignment services.

    Attributes:
        output_dir: Root directory for documents, audio, and uploads.
        synthesis_provider: Speech provider identifier.
        storage_backend: Audio storage backend (`local` or `s3`).
        aws_region: Region used for Polly requests.
        s3_bucket: Bucket name required by the `s3` storage backend.
        s3_region: Bucket region; defaults to `aws_region`.
        voice_id: Preferred voice, or `None` for the provider default.
        output_format: Default audio output format token.
        openai_model: OpenAI speech model identifier.
        api_key: Optional OpenAI API key.
        cache_ttl_seconds: Default cache entry lifetime.
        cache_max_items: Maximum cached entries before eviction.
        max_text_length: Maximum document length in characters.
        segment_seconds: Default fixed segment length for alignment.
        words_per_minute: Speaking rate used for speech duration estimates.
        assumed_bitrate_kbps: Bitrate used to estimate duration of compressed audio.
        minimum_duration_seconds: Floor applied to size-based duration estimates.
        synthesis_max_attempts: Attempt budget for synthesis requests.
        storage_max_attempts: Attempt budget for S3 uploads.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    output_dir: Path = Path("out")
    synthesis_provider: str = "polly"
    storage_backend: str = "local"
    aws_region: str = "us-east-1"
    s3_bucket: str | None = None
    s3_region: str | None = None
    voice_id: str | None = None
    output_format: str = "mp3"
    openai_model: str = _DEFAULT_OPENAI_MODEL
    api_key: str | None = None
    cache_ttl_seconds: float = 7 * 24 * 60 * 60.0
    cache_max_items: int = 100
    max_text_length: int = 50_000
    segment_seconds: float = 30.0
    words_per_minute: float = 150.0
    assumed_bitrate_kbps: int = 128
    minimum_duration_seconds: float = 10.0
    synthesis_max_attempts: int = 5
    storage_max_attempts: int = 3
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    @property
    def documents_dir(self) -> Path:
        """Return the directory holding persisted document JSON files."""

        return self.output_dir / "documents"

    @property
    def audio_dir(self) -> Path:
        """Return the directory holding locally stored audio."""

        return self.output_dir / "audio"

    @property
    def uploads_dir(self) -> Path:
        """Return the directory holding uploaded source audio and scratch segments."""

        return self.audio_dir / "uploads"

    @property
    def resolved_s3_region(self) -> str:
        """Return the bucket region, falling back to the AWS region."""

        return self.s3_region or self.aws_region

    def validate(self) -> None:
        """Validate configuration values before services are constructed."""

        self._validate_choice(
            self.synthesis_provider, _SUPPORTED_SYNTHESIS_PROVIDERS, "synthesis_provider"
        )
        self._validate_choice(self.storage_backend, _SUPPORTED_STORAGE_BACKENDS, "storage_backend")
        if self.storage_backend == "s3" and not self.s3_bucket:
            raise ValueError("`s3_bucket` is required when `storage_backend` is `s3`.")
        parse_output_format(self.output_format)
        for name in (
            "cache_max_items",
            "max_text_length",
            "assumed_bitrate_kbps",
            "synthesis_max_attempts",
            "storage_max_attempts",
        ):
            parse_positive_int(getattr(self, name), name)
        for name in (
            "cache_ttl_seconds",
            "segment_seconds",
            "words_per_minute",
            "minimum_duration_seconds",
        ):
            parse_positive_float(getattr(self, name), name)

    def resolved_synthesis_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> SynthesisRuntimeConfig:
        """Resolve synthesis settings with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field value.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        provider = self._resolve("synthesis_provider", self.synthesis_provider, resolved_sources)
        output_format = self._resolve("output_format", self.output_format, resolved_sources)
        openai_model = self._resolve("openai_model", self.openai_model, resolved_sources)
        runtime = SynthesisRuntimeConfig(
            provider=provider or self.synthesis_provider,
            voice_id=self._resolve("voice_id", self.voice_id, resolved_sources),
            output_format=output_format or self.output_format,
            openai_model=openai_model or self.openai_model,
            api_key=self._resolve("api_key", self.api_key, resolved_sources),
        )
        self._validate_choice(
            runtime.provider, _SUPPORTED_SYNTHESIS_PROVIDERS, "synthesis_provider"
        )
        parse_output_format(runtime.output_format)
        return runtime

    @staticmethod
    def _resolve(
        key: str, default_value: str | None, sources: RuntimeConfigSources
    ) -> str | None:
        """Resolve one runtime value from sources in precedence order."""

        for mapping in (sources.cli, sources.secure):
            value = normalize_optional_string(mapping.get(key))
            if value is not None:
                return value
        for env_key in _RUNTIME_ENV_KEYS.get(key, ()):
            value = normalize_optional_string(sources.env.get(env_key))
            if value is not None:
                return value
        return normalize_optional_string(default_value)

    @staticmethod
    def _validate_choice(value: str, supported: frozenset[str], field_name: str) -> None:
        if value not in supported:
            options = ", ".join(sorted(supported))
            raise ValueError(f"Unsupported `{field_name}` value `{value}`; expected one of: {options}.")


class ConfigLoader:
    """Factory methods for creating `DocvoiceConfig` from external sources."""

    _STRING_KEYS = frozenset(
        {
            "synthesis_provider",
            "storage_backend",
            "aws_region",
            "s3_bucket",
            "s3_region",
            "voice_id",
            "output_format",
            "openai_model",
            "api_key",
        }
    )
    _INT_KEYS = frozenset(
        {
            "cache_max_items",
            "max_text_length",
            "assumed_bitrate_kbps",
            "synthesis_max_attempts",
            "storage_max_attempts",
        }
    )
    _FLOAT_KEYS = frozenset(
        {
            "cache_ttl_seconds",
            "segment_seconds",
            "words_per_minute",
            "minimum_duration_seconds",
        }
    )
    _SUPPORTED_YAML_KEYS = _STRING_KEYS | _INT_KEYS | _FLOAT_KEYS | {"output_dir"}

    _ENV_KEYS: dict[str, str] = {
        "DOCVOICE_OUTPUT_DIR": "output_dir",
        "DOCVOICE_SYNTHESIS_PROVIDER": "synthesis_provider",
        "DOCVOICE_STORAGE_BACKEND": "storage_backend",
        "AWS_REGION": "aws_region",
        "S3_BUCKET_NAME": "s3_bucket",
        "S3_REGION": "s3_region",
        "POLLY_VOICE_ID": "voice_id",
        "DOCVOICE_VOICE_ID": "voice_id",
        "POLLY_OUTPUT_FORMAT": "output_format",
        "DOCVOICE_OUTPUT_FORMAT": "output_format",
        "DOCVOICE_OPENAI_MODEL": "openai_model",
        "OPENAI_API_KEY": "api_key",
        "DOCVOICE_CACHE_TTL_SECONDS": "cache_ttl_seconds",
        "DOCVOICE_CACHE_MAX_ITEMS": "cache_max_items",
        "DOCVOICE_MAX_TEXT_LENGTH": "max_text_length",
        "DOCVOICE_SEGMENT_SECONDS": "segment_seconds",
        "DOCVOICE_WORDS_PER_MINUTE": "words_per_minute",
        "DOCVOICE_ASSUMED_BITRATE_KBPS": "assumed_bitrate_kbps",
        "DOCVOICE_MIN_DURATION_SECONDS": "minimum_duration_seconds",
        "DOCVOICE_SYNTHESIS_MAX_ATTEMPTS": "synthesis_max_attempts",
        "DOCVOICE_STORAGE_MAX_ATTEMPTS": "storage_max_attempts",
    }

    @staticmethod
    def from_yaml(path: Path) -> DocvoiceConfig:
        """Create a validated config from a YAML file."""

        payload = ConfigLoader._parse_yaml_payload(path.read_text(encoding="utf-8"), path)
        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"YAML `{path}` includes unsupported key(s): {key_list}.")
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> DocvoiceConfig:
        """Create a validated config from environment variables.

        `DOCVOICE_*` names win over the provider-specific aliases they share a
        field with.
        """

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for env_key, field_name in ConfigLoader._ENV_KEYS.items():
            value = normalize_optional_string(env_map.get(env_key))
            if value is None:
                continue
            if field_name in payload and not env_key.startswith("DOCVOICE_"):
                continue
            payload[field_name] = value

        runtime_env = {
            env_key: str(env_map[env_key])
            for env_keys in _RUNTIME_ENV_KEYS.values()
            for env_key in env_keys
            if normalize_optional_string(env_map.get(env_key)) is not None
        }
        config = ConfigLoader._build_config_from_mapping(payload, source_label="Environment")
        config.runtime_sources = RuntimeConfigSources(env=runtime_env)
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(payload: Mapping[str, Any], source_label: str) -> DocvoiceConfig:
        """Build a validated config from a normalized mapping payload."""

        values: dict[str, Any] = {}
        output_dir = normalize_optional_string(payload.get("output_dir"))
        if output_dir is not None:
            values["output_dir"] = Path(output_dir)
        for key in ConfigLoader._STRING_KEYS:
            value = normalize_optional_string(payload.get(key))
            if value is not None:
                values[key] = value
        try:
            for key in ConfigLoader._INT_KEYS:
                if payload.get(key) is not None:
                    values[key] = parse_positive_int(payload[key], key)
            for key in ConfigLoader._FLOAT_KEYS:
                if payload.get(key) is not None:
                    values[key] = parse_positive_float(payload[key], key)
            config = DocvoiceConfig(**values)
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config
