"""CLI action handlers.

Purpose
-------
Run one streamed generation for the ``chat`` subcommand: build the request,
pick the transport (HTTP, or the scripted mock with ``--mock``), stream
throttled updates to stdout and report the outcome.

Cancellation
------------
The generation runs on a worker thread; Ctrl+C in the main thread cancels
the run's token, and the final (partial) message is still printed.
"""

from __future__ import annotations

import argparse
import json
import sys
import threading
from typing import Any, Dict, List, Optional, TextIO

from ...base.logging import configure_logger
from ...base.streaming.outcome import OutcomeStatus, StreamOutcome
from ...base.streaming.snapshot import MessageSnapshot
from ...base.transport.http_transport import HttpStreamTransport
from ...base.transport.interfaces import StreamTransport
from ...base.wire.openai_wire import ChatCompletionRequest
from ...mock.transport import MockScript, MockTransport, anthropic_text_script, chunk_text, openai_text_script
from ..chat_runner import ConversationRunner

EXIT_CODES = {OutcomeStatus.SUCCESS: 0, OutcomeStatus.ERRORED: 1, OutcomeStatus.ABORTED: 130}
_JOIN_POLL_S = 0.1


def build_request(args: argparse.Namespace) -> ChatCompletionRequest:
    """Return the chat request described by the CLI arguments."""
    messages: List[Dict[str, Any]] = []
    if args.system:
        messages.append({"role": "system", "content": args.system})
    messages.append({"role": "user", "content": args.prompt})
    return ChatCompletionRequest.model_validate(
        {
            "model": args.llm,
            "messages": messages,
            "temperature": args.temperature,
            "max_tokens": args.max_tokens,
        }
    )


def build_mock_transport(prompt: str) -> MockTransport:
    """Mock transport echoing the prompt in both dialects."""
    pieces = chunk_text(f"Mock reply to: {prompt}", chunk_size=8)
    usage = {"prompt_tokens": len(prompt.split()), "completion_tokens": len(pieces)}
    return MockTransport(
        {
            "anthropic": MockScript(events=anthropic_text_script(pieces, input_tokens=usage["prompt_tokens"])),
            "*": MockScript(events=openai_text_script(pieces, usage=usage)),
        }
    )


class TerminalPrinter:
    """Sink printing only the text appended since the previous update."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._printed = 0
        self.updates = 0

    def __call__(self, snapshot: MessageSnapshot, done: bool) -> None:
        self.updates += 1
        text = snapshot.text
        if len(text) > self._printed:
            self._out.write(text[self._printed:])
            self._printed = len(text)
        if done:
            for call in snapshot.tool_calls:
                self._out.write(f"\n[tool_call {call.name}({call.arguments})]")
            for error in snapshot.errors:
                self._out.write(f"\n{error.message}")
            self._out.write("\n")
        self._out.flush()


def run_with_interrupt(runner: ConversationRunner, llm_id: str, request: ChatCompletionRequest, sink) -> Optional[StreamOutcome]:
    """Run ``runner.generate`` on a worker thread; Ctrl+C cancels the run."""
    result: Dict[str, StreamOutcome] = {}

    def _work() -> None:
        result["outcome"] = runner.generate(llm_id, request, sink)

    worker = threading.Thread(target=_work, name="crux-stream-run", daemon=True)
    worker.start()
    while worker.is_alive():
        try:
            worker.join(_JOIN_POLL_S)
        except KeyboardInterrupt:
            runner.cancel("interrupted")
    return result.get("outcome")


def handle_chat(args: argparse.Namespace, out: Optional[TextIO] = None) -> int:
    """Handle the ``chat`` subcommand; return the process exit code."""
    out = out or sys.stdout
    if args.log_level:
        configure_logger(level=args.log_level)
    transport: StreamTransport = build_mock_transport(args.prompt) if args.mock else HttpStreamTransport()
    runner = ConversationRunner(transport, conversation_id="cli", throttle_units=args.panes)
    printer = TerminalPrinter(out)
    try:
        request = build_request(args)
    except ValueError as exc:
        print(json.dumps({"error": "invalid request", "detail": str(exc)}), file=sys.stderr)
        return 2
    outcome = run_with_interrupt(runner, args.llm, request, printer)
    if outcome is None:
        return 1
    if args.json:
        summary = outcome.to_dict()
        summary["sink_updates"] = printer.updates
        out.write(json.dumps(summary, ensure_ascii=False, default=str) + "\n")
    return EXIT_CODES[outcome.status]


__all__ = [
    "EXIT_CODES",
    "build_request",
    "build_mock_transport",
    "TerminalPrinter",
    "run_with_interrupt",
    "handle_chat",
]
