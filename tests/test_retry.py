"""
Tests for the retry policy and state machine.
"""

import pytest

from concept_cache.services import RetryPhase, RetryPolicy, RetryState


def test_delays_double():
    policy = RetryPolicy(max_attempts=4, base_delay=0.5)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.0, 2.0]


@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"base_delay": -1}])
def test_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_fail_fail_succeed():
    state = RetryState(RetryPolicy(max_attempts=3, base_delay=1.0))

    assert state.begin_attempt() == 1
    assert state.record_failure("boom") == 1.0
    assert state.phase is RetryPhase.BACKOFF

    assert state.begin_attempt() == 2
    assert state.record_failure("boom") == 2.0

    assert state.begin_attempt() == 3
    state.record_success()

    assert state.phase is RetryPhase.SUCCEEDED
    assert state.total_delay == 3.0


def test_no_delay_after_last_attempt():
    state = RetryState(RetryPolicy(max_attempts=2, base_delay=1.0))
    state.begin_attempt()
    state.record_failure("one")
    state.begin_attempt()
    assert state.record_failure("two") is None
    assert state.exhausted
    assert state.delays == [1.0]
    assert state.last_error == "two"


def test_non_retryable_failure_exhausts_immediately():
    state = RetryState(RetryPolicy(max_attempts=3))
    state.begin_attempt()
    assert state.record_failure("bad schema", retryable=False) is None
    assert state.exhausted
    assert state.attempts == 1


def test_illegal_transitions():
    state = RetryState(RetryPolicy())
    with pytest.raises(RuntimeError):
        state.record_success()

    state.begin_attempt()
    with pytest.raises(RuntimeError):
        state.begin_attempt()

    state.record_success()
    with pytest.raises(RuntimeError):
        state.record_failure("late")
