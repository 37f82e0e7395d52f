"""OpenAI HTTP speech client.

Responsibilities:
- Send speech requests to OpenAI's `/audio/speech` REST endpoint.
- Classify HTTP and transport failures into `SynthesisError` kinds.
- Retry transient failures with bounded exponential backoff.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import re
import socket
import time
from typing import Any

import requests

from ..errors import SynthesisError
from ..retry import RetryPolicy, call_with_retries
from .rate_limiter import RateLimiter


class OpenAISpeechClient:
    """Minimal requests-based OpenAI speech HTTP client."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float = 120.0,
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize OpenAI HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = rate_limiter or RateLimiter()
        self._sleeper = sleeper
        self.retry_attempt_count = 0

    def synthesize_speech(
        self,
        *,
        model: str,
        voice: str,
        text: str,
        response_format: str = "mp3",
        speed: float = 1.0,
    ) -> bytes:
        """Return synthesized audio bytes from OpenAI `/audio/speech`."""

        if not self.api_key:
            raise SynthesisError(
                "Missing OpenAI API key. Set `OPENAI_API_KEY` or run "
                "`docvoice credentials --set-api-key`.",
                failure_kind="invalid_api_key",
            )

        payload = {
            "model": model,
            "voice": voice,
            "input": text,
            "response_format": response_format,
            "speed": speed,
        }

        def _attempt() -> bytes:
            self.rate_limiter.acquire(f"openai:tts:{model}")
            return self._post_json_bytes("/audio/speech", payload)

        return call_with_retries(
            _attempt,
            policy=self.retry_policy,
            should_retry=lambda exc: isinstance(exc, SynthesisError) and exc.is_transient,
            sleeper=self._sleeper,
            on_retry=self._record_retry,
        )

    def _record_retry(self, _attempt: int, _exc: Exception) -> None:
        self.retry_attempt_count += 1

    def _post_json_bytes(self, endpoint_path: str, payload: dict[str, Any]) -> bytes:
        """POST a JSON payload and map failures to `SynthesisError`."""

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                f"{self.base_url}{endpoint_path}",
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            response_bytes = bytes(response.content)
        except requests.HTTPError as exc:
            raise self._http_error_to_synthesis_error(exc) from exc
        except (requests.Timeout, socket.timeout, TimeoutError) as exc:
            raise SynthesisError(
                "Network timeout during speech synthesis; retry later.",
                failure_kind="timeout",
            ) from exc
        except requests.RequestException as exc:
            raise SynthesisError(
                f"OpenAI request transport error: {self._short_message(str(exc))}",
                failure_kind="transport",
            ) from exc

        if not response_bytes:
            raise SynthesisError("OpenAI speech response is empty.")
        return response_bytes

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize, redact, and cap provider message length."""

        compact = " ".join(text.split())
        compact = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", compact)
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, response: requests.Response | None) -> str:
        """Extract the provider error message from a JSON or plain-text body."""

        if response is None:
            return ""
        body = bytes(response.content).decode("utf-8", errors="replace").strip()
        if not body:
            return ""
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body)
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            message = payload["error"].get("message")
            if isinstance(message, str) and message.strip():
                return cls._short_message(message)
        return cls._short_message(body)

    @staticmethod
    def _classify_http_failure(status_code: int, provider_message: str) -> str:
        """Classify OpenAI HTTP errors into synthesis failure kinds."""

        message_lower = provider_message.lower()
        if status_code == 401 or "api key" in message_lower:
            return "invalid_api_key"
        if status_code == 429:
            return "throttled"
        if status_code in {408, 504} or "timed out" in message_lower:
            return "timeout"
        if status_code >= 500:
            return "server_error"
        return "invalid_request"

    @classmethod
    def _http_error_to_synthesis_error(cls, exc: requests.HTTPError) -> SynthesisError:
        """Convert an HTTP error into a classified synthesis error."""

        status_code = exc.response.status_code if exc.response is not None else 0
        provider_message = cls._extract_provider_message(exc.response)
        failure_kind = cls._classify_http_failure(status_code, provider_message)
        detail = f"OpenAI speech request failed (HTTP {status_code})"
        if provider_message:
            detail = f"{detail}: {provider_message}"
        return SynthesisError(detail, failure_kind=failure_kind, status_code=status_code)
