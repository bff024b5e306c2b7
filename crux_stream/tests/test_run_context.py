"""Run-scoped ownership of the per-conversation cancellation handle."""
from __future__ import annotations

from crux_stream.base.cancellation import CancellationToken, ConversationRunContext


def test_release_only_by_owning_ticket():
    print("TEST: a stale run cannot clear the handle installed by a newer run")
    context = ConversationRunContext("conv-1")
    old_token, new_token = CancellationToken(), CancellationToken()
    old_ticket = context.install(old_token)
    new_ticket = context.install(new_token)

    assert context.release(old_ticket) is False  # nosec B101
    assert context.is_busy is True  # nosec B101
    assert context.active_token is new_token  # nosec B101

    assert context.release(new_ticket) is True  # nosec B101
    assert context.is_busy is False  # nosec B101
    assert context.release(new_ticket) is False  # nosec B101


def test_cancel_active_targets_current_run_only():
    context = ConversationRunContext()
    assert context.cancel_active("nothing running") is False  # nosec B101
    old_token, new_token = CancellationToken(), CancellationToken()
    context.install(old_token)
    context.install(new_token)
    assert context.cancel_active("stop") is True  # nosec B101
    assert new_token.cancelled and new_token.reason == "stop"  # nosec B101
    assert old_token.cancelled is False  # nosec B101


def test_tickets_are_unique_per_install():
    context = ConversationRunContext()
    token = CancellationToken()
    first = context.install(token)
    second = context.install(token)
    assert first.run_id != second.run_id  # nosec B101
    assert context.release(first) is False  # nosec B101
