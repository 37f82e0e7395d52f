"""Unit tests for the Amazon Polly synthesizer adapter."""

from __future__ import annotations

import io

from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError
import pytest

from docvoice.errors import SynthesisError
from docvoice.retry import RetryPolicy
from docvoice.tts import OutputFormat, PollySpeechSynthesizer, RateLimiter


def _client_error(code: str, status_code: int = 400) -> ClientError:
    """Build a botocore client error with the given service code."""

    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} raised"},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        "SynthesizeSpeech",
    )


class _FakePollyClient:
    """Polly client double replaying scripted responses or failures."""

    def __init__(self, *steps: object) -> None:
        self.steps = list(steps)
        self.calls: list[dict[str, str]] = []

    def synthesize_speech(self, **params: str) -> dict[str, object]:
        self.calls.append(params)
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


def _synthesizer(client: _FakePollyClient, max_attempts: int = 5) -> PollySpeechSynthesizer:
    """Build a Polly synthesizer that never sleeps."""

    return PollySpeechSynthesizer(
        client=client,
        retry_policy=RetryPolicy(max_attempts=max_attempts, backoff_base_seconds=0.1),
        rate_limiter=RateLimiter(min_interval_seconds=0.0),
        sleeper=lambda _delay: None,
    )


def test_polly_synthesize_reads_audio_stream_and_sends_parameters() -> None:
    """A successful call should return stream bytes and send Polly parameters."""

    client = _FakePollyClient({"AudioStream": io.BytesIO(b"ID3data")})

    audio = _synthesizer(client).synthesize("Hello world.", "Matthew", OutputFormat.OGG_VORBIS)

    assert audio == b"ID3data"
    assert client.calls == [
        {
            "Engine": "standard",
            "VoiceId": "Matthew",
            "OutputFormat": "ogg_vorbis",
            "Text": "Hello world.",
            "TextType": "text",
        }
    ]


def test_polly_retries_throttling_then_succeeds() -> None:
    """Throttling errors should be retried and counted."""

    client = _FakePollyClient(
        _client_error("ThrottlingException"),
        _client_error("ServiceFailureException", status_code=500),
        {"AudioStream": io.BytesIO(b"audio")},
    )
    synthesizer = _synthesizer(client)

    assert synthesizer.synthesize("Hi.", "Joanna", OutputFormat.MP3) == b"audio"
    assert len(client.calls) == 3
    assert synthesizer.retry_attempt_count == 2


def test_polly_gives_up_after_max_attempts_on_timeouts() -> None:
    """Persistent timeouts should surface after the attempt budget."""

    client = _FakePollyClient(
        *[ReadTimeoutError(endpoint_url="https://polly.us-east-1.amazonaws.com") for _ in range(3)]
    )

    with pytest.raises(SynthesisError) as exc_info:
        _synthesizer(client, max_attempts=3).synthesize("Hi.", "Joanna", OutputFormat.MP3)

    assert exc_info.value.failure_kind == "timeout"
    assert len(client.calls) == 3


def test_polly_does_not_retry_invalid_requests() -> None:
    """Validation errors should be raised after a single attempt."""

    client = _FakePollyClient(_client_error("InvalidSsmlException"))

    with pytest.raises(SynthesisError, match="InvalidSsmlException") as exc_info:
        _synthesizer(client).synthesize("Hi.", "Joanna", OutputFormat.MP3)

    assert exc_info.value.failure_kind == "invalid_request"
    assert exc_info.value.status_code == 400
    assert len(client.calls) == 1


def test_polly_maps_endpoint_failures_to_transport() -> None:
    """Connection failures should be classified as transport errors."""

    client = _FakePollyClient(
        EndpointConnectionError(endpoint_url="https://polly.us-east-1.amazonaws.com")
    )

    with pytest.raises(SynthesisError) as exc_info:
        _synthesizer(client, max_attempts=1).synthesize("Hi.", "Joanna", OutputFormat.MP3)

    assert exc_info.value.failure_kind == "transport"


def test_polly_rejects_missing_or_empty_audio_stream() -> None:
    """Responses without usable audio should fail without retries."""

    missing = _FakePollyClient({})
    empty = _FakePollyClient({"AudioStream": io.BytesIO(b"")})

    with pytest.raises(SynthesisError, match="AudioStream"):
        _synthesizer(missing).synthesize("Hi.", "Joanna", OutputFormat.MP3)
    with pytest.raises(SynthesisError, match="empty audio stream"):
        _synthesizer(empty).synthesize("Hi.", "Joanna", OutputFormat.MP3)
    assert len(missing.calls) == 1
    assert len(empty.calls) == 1


def test_polly_supports_only_offered_voices() -> None:
    """Voice support should follow the offered Polly voice list."""

    synthesizer = _synthesizer(_FakePollyClient())

    assert synthesizer.supports_voice("Joanna") is True
    assert synthesizer.supports_voice("alloy") is False
    assert synthesizer.default_voice == "Joanna"
