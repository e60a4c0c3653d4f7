"""Shared pytest fixtures for the shutterprobe test suite."""

import pytest

from shutterprobe.ptp.canon import CanonShutterStrategy
from shutterprobe.ptp.retry import RetryPolicy


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture()
def sleeps():
    return SleepRecorder()


@pytest.fixture()
def header_retry(sleeps):
    return RetryPolicy(max_attempts=3, interval=0.010, sleep=sleeps)


@pytest.fixture()
def canon_strategy(sleeps):
    return CanonShutterStrategy(
        drain_policy=RetryPolicy(max_attempts=5, sleep=sleeps),
        poll_policy=RetryPolicy(max_attempts=5, interval=0.200, sleep=sleeps),
    )
