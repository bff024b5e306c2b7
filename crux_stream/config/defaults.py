"""crux_stream.config.defaults
===========================

Central place for small, stable default values used across the crux_stream
package. These defaults can be overridden via environment variables or an
external configuration file, but provide sensible fallbacks for local
development and tests.

Module Purpose
--------------
- Provide a single import location for conservative default constants (no I/O).
- Keep the streaming engine free of magic literals.

This module intentionally avoids importing from other crux_stream packages to
prevent circular dependencies. Only plain constants should live here.
"""

from __future__ import annotations

# ---- Publisher cadence ----

# 12 updates per second works well for 60Hz displays with a single pane.
STREAM_BASE_RATE_HZ = 12.0
# Throttle units: 0 disables throttling, 1 is the baseline cadence, n>1
# scales the interval by sqrt(n).
STREAM_DEFAULT_THROTTLE_UNITS = 1


# ---- Orchestrator policy ----

# What to do with a single malformed upstream event: "skip" or "abort".
STREAM_MALFORMED_EVENT_POLICY = "skip"
# Prefix of the inline error fragment appended when a stream fails.
STREAM_ERROR_FRAGMENT_PREFIX = "Issue: "
# Vendor assumed when an llm id carries no "vendor/" prefix.
STREAM_DEFAULT_VENDOR = "openai"


# ---- Vendor endpoints (reference HTTP transport) ----

OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
OPENROUTER_DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
ANTHROPIC_API_VERSION = "2023-06-01"
DEEPSEEK_DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
XAI_DEFAULT_BASE_URL = "https://api.x.ai/v1"
GROQ_DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
MISTRAL_DEFAULT_BASE_URL = "https://api.mistral.ai/v1"
TOGETHERAI_DEFAULT_BASE_URL = "https://api.together.xyz/v1"
PERPLEXITY_DEFAULT_BASE_URL = "https://api.perplexity.ai"
OLLAMA_DEFAULT_BASE_URL = "http://localhost:11434/v1"
LMSTUDIO_DEFAULT_BASE_URL = "http://localhost:1234/v1"
LOCALAI_DEFAULT_BASE_URL = "http://localhost:8080/v1"

VENDOR_DEFAULT_BASE_URLS = {
    "openai": OPENAI_DEFAULT_BASE_URL,
    "openrouter": OPENROUTER_DEFAULT_BASE_URL,
    "anthropic": ANTHROPIC_DEFAULT_BASE_URL,
    "deepseek": DEEPSEEK_DEFAULT_BASE_URL,
    "xai": XAI_DEFAULT_BASE_URL,
    "groq": GROQ_DEFAULT_BASE_URL,
    "mistral": MISTRAL_DEFAULT_BASE_URL,
    "togetherai": TOGETHERAI_DEFAULT_BASE_URL,
    "perplexity": PERPLEXITY_DEFAULT_BASE_URL,
    "ollama": OLLAMA_DEFAULT_BASE_URL,
    "lmstudio": LMSTUDIO_DEFAULT_BASE_URL,
    "localai": LOCALAI_DEFAULT_BASE_URL,
}


# ---- CLI Defaults ----
CLI_DEFAULT_LLM_ID = "openai/gpt-4o-mini"
CLI_DEFAULT_PANES = 1


__all__ = [
    "STREAM_BASE_RATE_HZ",
    "STREAM_DEFAULT_THROTTLE_UNITS",
    "STREAM_MALFORMED_EVENT_POLICY",
    "STREAM_ERROR_FRAGMENT_PREFIX",
    "STREAM_DEFAULT_VENDOR",
    "OPENAI_DEFAULT_BASE_URL",
    "OPENROUTER_DEFAULT_BASE_URL",
    "ANTHROPIC_DEFAULT_BASE_URL",
    "ANTHROPIC_API_VERSION",
    "DEEPSEEK_DEFAULT_BASE_URL",
    "XAI_DEFAULT_BASE_URL",
    "GROQ_DEFAULT_BASE_URL",
    "MISTRAL_DEFAULT_BASE_URL",
    "TOGETHERAI_DEFAULT_BASE_URL",
    "PERPLEXITY_DEFAULT_BASE_URL",
    "OLLAMA_DEFAULT_BASE_URL",
    "LMSTUDIO_DEFAULT_BASE_URL",
    "LOCALAI_DEFAULT_BASE_URL",
    "VENDOR_DEFAULT_BASE_URLS",
    "CLI_DEFAULT_LLM_ID",
    "CLI_DEFAULT_PANES",
]
