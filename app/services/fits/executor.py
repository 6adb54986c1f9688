from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, Sequence, TypeVar

from app.services.fits.errors import TiersExhausted

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")


class Tier(Protocol):
    name: str
    # False for in-process tiers (local cache, synthesizer) that must run to completion
    bounded: bool

    async def attempt(self, payload: Any) -> Any:
        ...


@dataclass(frozen=True)
class TierOutcome(Generic[T]):
    value: T
    tier: str
    latency_ms: int


class TieredExecutor:
    """Runs an operation against an ordered list of tiers and returns the first success.

    Tiers are tried strictly in order, one at a time, on every call. Any exception
    raised by a tier counts as a failure of that tier only, and so does exceeding
    ``timeout_s`` for tiers that are bounded. The caller sees ``TiersExhausted``
    once nothing is left to try.
    """

    def __init__(self, timeout_s: Optional[float] = None):
        self.timeout_s = timeout_s

    async def run(self, op: str, tiers: Sequence[Tier], payload: Any) -> TierOutcome[Any]:
        failures: list[tuple[str, str]] = []
        for tier in tiers:
            start = time.perf_counter()
            try:
                if self.timeout_s and getattr(tier, "bounded", True):
                    value = await asyncio.wait_for(tier.attempt(payload), timeout=self.timeout_s)
                else:
                    value = await tier.attempt(payload)
            except asyncio.TimeoutError:
                logger.warning("fits:%s tier=%s timeout_s=%s", op, tier.name, self.timeout_s)
                failures.append((tier.name, "timeout"))
                continue
            except Exception as e:
                logger.warning("fits:%s tier=%s failed reason=%s", op, tier.name, e)
                failures.append((tier.name, str(e) or type(e).__name__))
                continue
            latency_ms = int((time.perf_counter() - start) * 1000)
            logger.info("fits:%s served tier=%s latency_ms=%s", op, tier.name, latency_ms)
            return TierOutcome(value=value, tier=tier.name, latency_ms=latency_ms)
        raise TiersExhausted(op, failures)
