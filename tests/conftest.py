import threading
from typing import List, Optional, Tuple

import pytest

from swapquote.models import Quote, TokenAmount


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_quote(
    input_token: str = "usdc",
    output_token: str = "eth",
    input_amount: float = 1.0,
    output_amount: float = 0.00025,
) -> Quote:
    return Quote(
        input=TokenAmount(amount=input_amount, token=input_token),
        output=TokenAmount(amount=output_amount, token=output_token),
        exchange_rate=output_amount / input_amount,
        timestamp="2026-10-18T12:00:00+00:00",
    )


class StubFetcher:
    """Records fetch calls and returns a canned quote or raises."""

    def __init__(self, error: Optional[Exception] = None, delay: Optional[threading.Event] = None):
        self.error = error
        self.delay = delay
        self.calls: List[Tuple[str, str, str, str]] = []
        self._lock = threading.Lock()

    def fetch(self, input_token: str, output_token: str, amount: str, target_url: str) -> Quote:
        with self._lock:
            self.calls.append((input_token, output_token, amount, target_url))
        if self.delay is not None:
            self.delay.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return make_quote(input_token, output_token, float(amount), float(amount) * 2)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()
