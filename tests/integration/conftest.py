"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

import pytest

from docvoice.config import DocvoiceConfig
from docvoice.io import LocalAudioStorage
from docvoice.services import ServiceBundle, build_services

_PROVIDER_ENV_KEYS = (
    "DOCVOICE_OUTPUT_DIR",
    "DOCVOICE_SYNTHESIS_PROVIDER",
    "DOCVOICE_STORAGE_BACKEND",
    "DOCVOICE_VOICE_ID",
    "DOCVOICE_OUTPUT_FORMAT",
    "DOCVOICE_OPENAI_MODEL",
    "POLLY_VOICE_ID",
    "POLLY_OUTPUT_FORMAT",
    "OPENAI_API_KEY",
    "S3_BUCKET_NAME",
)


class InMemoryCredentialStore:
    """Simple in-memory credential store used for CLI tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        """Initialize the store with an optional pre-seeded API key."""

        self._api_key = initial_api_key

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_api_key(self) -> str | None:
        """Return currently stored API key value."""

        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key value."""

        self._api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        """Clear API key and return whether one existed."""

        existed = self._api_key is not None
        self._api_key = None
        return existed


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    """Provide the in-memory store installed for CLI commands."""

    return InMemoryCredentialStore()


@pytest.fixture(autouse=True)
def _isolate_cli_environment(
    monkeypatch: pytest.MonkeyPatch,
    credential_store: InMemoryCredentialStore,
) -> None:
    """Clear provider environment variables and replace the keyring store."""

    for key in _PROVIDER_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("docvoice.cli.create_credential_store", lambda: credential_store)


@pytest.fixture(autouse=True)
def _offline_services(monkeypatch: pytest.MonkeyPatch, fake_synthesizer) -> None:  # type: ignore[no-untyped-def]
    """Build CLI services with the fake synthesizer and local storage."""

    def _build_offline(config: DocvoiceConfig, **kwargs: object) -> ServiceBundle:
        kwargs.setdefault("synthesizer", fake_synthesizer)
        kwargs.setdefault("storage", LocalAudioStorage(config.audio_dir))
        return build_services(config, **kwargs)

    monkeypatch.setattr("docvoice.cli.build_services", _build_offline)
