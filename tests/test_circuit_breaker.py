"""
Tests for the durable tier circuit breaker.
"""

from concept_cache.services import TierCircuitBreaker


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_opens_after_threshold():
    breaker = TierCircuitBreaker("durable", failure_threshold=3, timeout=10)
    for _ in range(2):
        breaker.on_failure()
    assert breaker.can_attempt()

    breaker.on_failure()
    assert breaker.state == "open"
    assert not breaker.can_attempt()


def test_half_open_after_timeout_then_recovers():
    clock = FakeClock()
    breaker = TierCircuitBreaker("durable", failure_threshold=1, timeout=10, clock=clock)
    breaker.on_failure()

    clock.now = 5
    assert not breaker.can_attempt()
    clock.now = 11
    assert breaker.can_attempt()
    assert breaker.state == "half_open"

    breaker.on_success()
    assert breaker.state == "closed"
    assert breaker.failure_count == 0


def test_half_open_failure_reopens():
    clock = FakeClock()
    breaker = TierCircuitBreaker("durable", failure_threshold=5, timeout=10, clock=clock)
    for _ in range(5):
        breaker.on_failure()

    clock.now = 20
    assert breaker.can_attempt()
    breaker.on_failure()

    assert breaker.state == "open"
    assert not breaker.can_attempt()


def test_reset():
    breaker = TierCircuitBreaker("durable", failure_threshold=1)
    breaker.on_failure()
    breaker.reset()
    assert breaker.state == "closed"
    assert breaker.can_attempt()
