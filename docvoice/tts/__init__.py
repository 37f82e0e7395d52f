"""Text-to-speech provider abstractions.

This package contains voice/format identifiers, synthesizer interfaces, and
the Polly and OpenAI provider implementations used by the speech service.
"""

from .openai_client import OpenAISpeechClient
from .rate_limiter import RateLimiter
from .synthesizer import OpenAISpeechSynthesizer, PollySpeechSynthesizer, SpeechSynthesizer
from .voices import OPENAI_VOICES, OutputFormat, VoiceId, parse_output_format

__all__ = [
    "OPENAI_VOICES",
    "OpenAISpeechClient",
    "OpenAISpeechSynthesizer",
    "OutputFormat",
    "PollySpeechSynthesizer",
    "RateLimiter",
    "SpeechSynthesizer",
    "VoiceId",
    "parse_output_format",
]
