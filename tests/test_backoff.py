from __future__ import annotations

from motorsync.backoff import BackoffState


def test_backoff_doubles_from_floor_and_caps() -> None:
    backoff = BackoffState(initial=1.0, maximum=30.0)
    delays = [backoff.record_failure() for _ in range(8)]
    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0, 30.0]


def test_backoff_matches_closed_form_after_n_failures() -> None:
    for n in range(1, 12):
        backoff = BackoffState()
        for _ in range(n):
            backoff.record_failure()
        assert backoff.delay == min(1.0 * 2 ** (n - 1), 30.0)
        assert backoff.failures == n


def test_reset_returns_to_base_interval() -> None:
    backoff = BackoffState()
    backoff.record_failure()
    backoff.record_failure()
    assert backoff.next_delay(3.0) == 2.0

    backoff.reset()
    assert backoff.delay == 0.0
    assert backoff.failures == 0
    assert backoff.next_delay(3.0) == 3.0
    assert backoff.record_failure() == 1.0
