"""Tests for exponential backoff delays."""

from ticketcal.backoff import ExponentialBackoff


class TestExponentialBackoff:

    def test_delays_double_without_jitter(self):
        backoff = ExponentialBackoff(base_delay=1.0, max_delay=60.0, jitter_range=0.0)
        assert [backoff.next_delay() for _ in range(3)] == [1.0, 2.0, 4.0]

    def test_caps_at_max_delay(self):
        backoff = ExponentialBackoff(base_delay=10.0, max_delay=30.0, jitter_range=0.0)
        backoff.next_delay()
        backoff.next_delay()
        assert backoff.next_delay() == 30.0

    def test_jitter_stays_non_negative(self):
        backoff = ExponentialBackoff(base_delay=0.5, jitter_range=0.5)
        assert all(backoff.next_delay() >= 0 for _ in range(50))

    def test_reset(self):
        backoff = ExponentialBackoff(jitter_range=0.0)
        backoff.next_delay()
        backoff.next_delay()
        assert backoff.attempt == 2
        backoff.reset()
        assert backoff.attempt == 0
        assert backoff.next_delay() == 1.0
