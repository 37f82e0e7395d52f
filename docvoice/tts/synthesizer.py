"""Speech synthesizer interfaces and provider-backed implementations.

Responsibilities:
- Define the protocol for text-to-audio-bytes synthesis.
- Provide Amazon Polly (boto3) and OpenAI (requests) implementations.
- Surface every provider failure as a classified `SynthesisError`.
"""

from __future__ import annotations

from collections.abc import Callable
import time
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    HTTPClientError,
    ReadTimeoutError,
)

from ..errors import SynthesisError
from ..retry import RetryPolicy, call_with_retries
from .openai_client import OpenAISpeechClient
from .rate_limiter import RateLimiter
from .voices import OPENAI_VOICES, OutputFormat, VoiceId


class SpeechSynthesizer(Protocol):
    """Protocol for speech synthesis providers."""

    provider_id: str
    default_voice: str

    def supports_voice(self, voice_id: str) -> bool:
        """Return whether the provider accepts the voice identifier."""

    def synthesize(self, text: str, voice_id: str, output_format: OutputFormat) -> bytes:
        """Synthesize text and return encoded audio bytes."""


_POLLY_THROTTLING_CODES = frozenset({"ThrottlingException", "TooManyRequestsException"})
_POLLY_SERVER_CODES = frozenset({"ServiceFailureException", "InternalFailure", "ServiceUnavailable"})


class PollySpeechSynthesizer:
    """Amazon Polly synthesizer returning raw audio stream bytes."""

    provider_id = "polly"
    default_voice = VoiceId.JOANNA.value

    def __init__(
        self,
        *,
        region: str = "us-east-1",
        engine: str = "standard",
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client: Any | None = None,
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize Polly client settings; `client` overrides boto3 construction."""

        self.engine = engine
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = rate_limiter or RateLimiter()
        self._sleeper = sleeper
        self.retry_attempt_count = 0
        if client is None:
            credentials: dict[str, str] = {}
            if access_key_id and secret_access_key:
                credentials = {
                    "aws_access_key_id": access_key_id,
                    "aws_secret_access_key": secret_access_key,
                }
            client = boto3.client(
                "polly",
                region_name=region,
                config=Config(
                    connect_timeout=60,
                    read_timeout=120,
                    retries={"total_max_attempts": 1, "mode": "standard"},
                ),
                **credentials,
            )
        self._client = client

    def supports_voice(self, voice_id: str) -> bool:
        """Return whether the voice is one of the offered Polly voices."""

        return voice_id in {voice.value for voice in VoiceId}

    def synthesize(self, text: str, voice_id: str, output_format: OutputFormat) -> bytes:
        """Synthesize text with Polly, retrying transient failures."""

        params = {
            "Engine": self.engine,
            "VoiceId": voice_id,
            "OutputFormat": output_format.value,
            "Text": text,
            "TextType": "text",
        }

        def _attempt() -> bytes:
            self.rate_limiter.acquire(f"polly:tts:{voice_id}")
            return self._synthesize_once(params)

        return call_with_retries(
            _attempt,
            policy=self.retry_policy,
            should_retry=lambda exc: isinstance(exc, SynthesisError) and exc.is_transient,
            sleeper=self._sleeper,
            on_retry=self._record_retry,
        )

    def _record_retry(self, _attempt: int, _exc: Exception) -> None:
        self.retry_attempt_count += 1

    def _synthesize_once(self, params: dict[str, str]) -> bytes:
        """Issue one Polly request and read the full audio stream."""

        try:
            response = self._client.synthesize_speech(**params)
            stream = response.get("AudioStream")
            if stream is None:
                raise SynthesisError("Polly response did not include AudioStream.")
            audio_bytes = stream.read() if hasattr(stream, "read") else bytes(stream)
        except (ConnectTimeoutError, ReadTimeoutError) as exc:
            raise SynthesisError(
                "Network timeout during speech synthesis; retry later.",
                failure_kind="timeout",
            ) from exc
        except (EndpointConnectionError, HTTPClientError) as exc:
            raise SynthesisError(
                f"Polly request transport error: {exc}",
                failure_kind="transport",
            ) from exc
        except ClientError as exc:
            raise self._client_error_to_synthesis_error(exc) from exc
        except BotoCoreError as exc:
            raise SynthesisError(f"Polly request failed: {exc}") from exc

        if not audio_bytes:
            raise SynthesisError("Polly returned an empty audio stream.")
        return bytes(audio_bytes)

    @staticmethod
    def _client_error_to_synthesis_error(exc: ClientError) -> SynthesisError:
        """Classify a Polly service error by its error code."""

        error = exc.response.get("Error", {})
        code = str(error.get("Code", ""))
        message = str(error.get("Message", "")).strip() or code or "unknown error"
        status_code = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in _POLLY_THROTTLING_CODES:
            failure_kind = "throttled"
        elif code in _POLLY_SERVER_CODES or (isinstance(status_code, int) and status_code >= 500):
            failure_kind = "server_error"
        else:
            failure_kind = "invalid_request"
        return SynthesisError(
            f"Polly rejected the request ({code or 'unknown'}): {message}",
            failure_kind=failure_kind,
            status_code=status_code if isinstance(status_code, int) else None,
        )


class OpenAISpeechSynthesizer:
    """OpenAI-backed synthesizer using the `/audio/speech` endpoint."""

    provider_id = "openai"
    default_voice = "alloy"

    def __init__(
        self,
        *,
        model: str = "gpt-4o-mini-tts",
        api_key: str | None = None,
        client: OpenAISpeechClient | None = None,
    ) -> None:
        """Initialize OpenAI-backed synthesizer settings."""

        self.model = model
        self.client = client or OpenAISpeechClient(api_key=api_key)

    @property
    def retry_attempt_count(self) -> int:
        """Return retry attempt count performed by the underlying client."""

        return self.client.retry_attempt_count

    def supports_voice(self, voice_id: str) -> bool:
        """Return whether the voice is a known OpenAI voice."""

        return voice_id in OPENAI_VOICES

    def synthesize(self, text: str, voice_id: str, output_format: OutputFormat) -> bytes:
        """Synthesize text through OpenAI and return encoded audio bytes."""

        return self.client.synthesize_speech(
            model=self.model,
            voice=voice_id,
            text=text,
            response_format=output_format.openai_response_format,
        )
