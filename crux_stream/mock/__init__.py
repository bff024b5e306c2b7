"""Mock transport package exposing deterministic scripted streams for tests."""

from .transport import (
    MockScript,
    MockTransport,
    anthropic_text_script,
    chunk_text,
    openai_chunk,
    openai_text_script,
)

__all__ = [
    "MockScript",
    "MockTransport",
    "anthropic_text_script",
    "chunk_text",
    "openai_chunk",
    "openai_text_script",
]
