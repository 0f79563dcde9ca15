import random
from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class ExponentialBackoff:
    """
    Bounded exponential backoff schedule for connect retries.

    The n-th delay (0-based) is:

        min(initial * factor ** n, maximum) + uniform(0, jitter)

    The schedule is finite: `delays(retries)` yields exactly `retries`
    values, so a caller can never retry forever.
    """

    initial: float = 0.5
    """Delay (in seconds) before the first retry."""

    maximum: float = 10.0
    """Upper bound of the delay, jitter excluded."""

    factor: float = 2.0
    """Multiplicative factor applied after each retry."""

    jitter: float = 0.0
    """Maximum random jitter added to each delay."""

    def __post_init__(self) -> None:
        if self.initial < 0 or self.maximum < 0 or self.jitter < 0:
            raise ValueError("Backoff delays must be non-negative")
        if self.factor < 1:
            raise ValueError("Backoff factor must be >= 1")

    def delay(self, attempt: int) -> float:
        base = min(self.initial * self.factor ** attempt, self.maximum)
        if self.jitter > 0:
            base += random.uniform(0, self.jitter)
        return base

    def delays(self, retries: int) -> Iterator[float]:
        for attempt in range(retries):
            yield self.delay(attempt)
