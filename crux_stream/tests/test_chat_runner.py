"""Conversation runner: in-flight handle management and post-completion hooks."""
from __future__ import annotations

import pytest

from crux_stream.base.cancellation import CancellationToken
from crux_stream.base.streaming import OutcomeStatus
from crux_stream.config import StreamConfig
from crux_stream.mock import MockScript, MockTransport, openai_text_script
from crux_stream.service import ConversationRunner, PostCompletionHook

REQUEST = {"messages": [{"role": "user", "content": "hi"}]}


def _runner(script=None, **kwargs) -> ConversationRunner:
    transport = MockTransport({"*": script if script is not None else openai_text_script(["Hello"])})
    return ConversationRunner(transport, conversation_id="conv-1", config=StreamConfig(throttle_units=0), **kwargs)


def test_generate_runs_hooks_in_order_after_success():
    order = []
    runner = _runner(
        hooks=[
            PostCompletionHook("title", lambda outcome, snap: order.append(("title", snap.text))),
            PostCompletionHook("speech", lambda outcome, snap: order.append(("speech", outcome.status))),
        ]
    )
    outcome = runner.generate("openai/gpt-x", REQUEST, lambda s, d: None)
    assert outcome.ok and runner.last_outcome is outcome  # nosec B101
    assert order == [("title", "Hello"), ("speech", OutcomeStatus.SUCCESS)]  # nosec B101
    assert runner.busy is False  # nosec B101


def test_hooks_filtered_by_status():
    ran = []
    token = CancellationToken()
    token.cancel("early")
    runner = _runner()
    runner.add_hook(PostCompletionHook("default", lambda o, s: ran.append("default")))
    runner.add_hook(PostCompletionHook("persist", lambda o, s: ran.append("persist"), run_when_aborted=True))
    outcome = runner.generate("openai/gpt-x", REQUEST, lambda s, d: None, token=token)
    assert outcome.status is OutcomeStatus.ABORTED  # nosec B101
    assert ran == ["persist"]  # nosec B101

    errored = _runner(MockScript(events=[], fail_after=0, error=ConnectionError("down")))
    errored.add_hook(PostCompletionHook("default", lambda o, s: ran.append("errored-default")))
    errored.add_hook(PostCompletionHook("report", lambda o, s: ran.append("report"), run_when_errored=True))
    assert errored.generate("openai/gpt-x", REQUEST, lambda s, d: None).status is OutcomeStatus.ERRORED  # nosec B101
    assert ran[-1] == "report" and "errored-default" not in ran  # nosec B101


def test_failing_hook_is_logged_and_later_hooks_run(log_capture):
    ran = []

    def explode(outcome, snapshot):
        raise RuntimeError("title service down")

    runner = _runner(
        hooks=[PostCompletionHook("title", explode), PostCompletionHook("suggest", lambda o, s: ran.append("suggest"))]
    )
    outcome = runner.generate("openai/gpt-x", REQUEST, lambda s, d: None)
    assert outcome.ok and ran == ["suggest"]  # nosec B101
    errors = log_capture.named("stream.hook.error")
    assert errors[0]["hook"] == "title" and errors[0]["conversation_id"] == "conv-1"  # nosec B101


def test_busy_conversation_policy():
    runner = _runner()
    stale = CancellationToken()
    runner.context.install(stale)
    with pytest.raises(RuntimeError):
        runner.generate("openai/gpt-x", REQUEST, lambda s, d: None, cancel_previous=False)

    outcome = runner.generate("openai/gpt-x", REQUEST, lambda s, d: None)
    assert stale.cancelled and stale.reason == "superseded by a new generation"  # nosec B101
    assert outcome.ok  # nosec B101


def test_cancel_without_active_run():
    assert _runner().cancel() is False  # nosec B101
