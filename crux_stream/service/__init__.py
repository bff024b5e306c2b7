"""Caller-facing services built on the streaming engine (runner, CLI)."""

from .chat_runner import ConversationRunner, PostCompletionHook

__all__ = ["ConversationRunner", "PostCompletionHook"]
