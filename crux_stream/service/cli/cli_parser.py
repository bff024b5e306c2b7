"""CLI parser construction for crux-stream.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions`` to keep the presentation layer thin.
"""

from __future__ import annotations

import argparse

from ...config.defaults import CLI_DEFAULT_LLM_ID, CLI_DEFAULT_PANES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI parser and subcommands.

    No I/O or network calls occur here.
    """
    p = argparse.ArgumentParser(prog="crux-stream", description="Stream a chat reply through the engine")
    sub = p.add_subparsers(dest="cmd")

    p_chat = sub.add_parser("chat", help="Stream one assistant reply to a prompt")
    p_chat.add_argument("prompt")
    p_chat.add_argument("--llm", default=CLI_DEFAULT_LLM_ID, help="vendor/model identifier")
    p_chat.add_argument("--system", default=None, help="Optional system prompt")
    p_chat.add_argument("--temperature", type=float, default=None)
    p_chat.add_argument("--max-tokens", type=int, default=None)
    p_chat.add_argument(
        "--panes",
        type=_non_negative_int,
        default=CLI_DEFAULT_PANES,
        help="Concurrent viewers (0 disables update throttling)",
    )
    p_chat.add_argument("--mock", action="store_true", help="Replay a scripted stream instead of calling a vendor")
    p_chat.add_argument("--json", action="store_true", help="Print the final outcome as JSON")
    p_chat.add_argument("--log-level", choices=LOG_LEVELS, default=None)
    return p


__all__ = ["build_parser", "LOG_LEVELS"]
