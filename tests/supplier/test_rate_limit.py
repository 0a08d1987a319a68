"""Tests for the shared supplier token bucket."""

import pytest
from supplier.rate_limit import TokenBucket


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


class TestTokenBucket:
    def test_first_call_is_free(self, clock):
        bucket = TokenBucket.every(3.0, clock=clock, sleep=clock.sleep)
        assert bucket.acquire() == 0.0

    def test_second_call_waits_for_interval(self, clock):
        bucket = TokenBucket.every(3.0, clock=clock, sleep=clock.sleep)
        bucket.acquire()

        waited = bucket.acquire()

        assert waited == pytest.approx(3.0)
        assert clock.now == pytest.approx(3.0)

    def test_elapsed_time_refills(self, clock):
        bucket = TokenBucket.every(3.0, clock=clock, sleep=clock.sleep)
        bucket.acquire()
        clock.now += 5.0

        assert bucket.acquire() == 0.0

    def test_no_burst_beyond_capacity(self, clock):
        bucket = TokenBucket.every(1.0, clock=clock, sleep=clock.sleep)
        clock.now += 100.0
        bucket.acquire()
        assert bucket.acquire() == pytest.approx(1.0)

    def test_rate_must_be_positive(self):
        with pytest.raises(ValueError):
            TokenBucket(rate_per_second=0)
