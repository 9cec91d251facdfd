import asyncio
import logging
import math
import random
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence

from .base import PriceEstimator, EstimateInput, EstimateOutput
from ..core.errors import PredictionFailedError
from ..core.utils import is_market_hours

logger = logging.getLogger(__name__)

# Only the six most recent period-over-period changes feed the estimate
WINDOW = 7
CHANGE_COUNT = WINDOW - 1

class SimulatedEstimator(PriceEstimator):
    """
    Placeholder estimator standing in for a real model.

    It averages the last six fractional changes, jitters the result by up to
    ±1% and applies it to the latest close. The latency a hosted model would
    add is simulated with a sleep; it never affects the returned value.

    `rng`, `clock` and `sleep` are injectable so tests can pin randomness and
    skip the wait.
    """
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        simulate_latency: bool = True,
    ):
        self.rng = rng or random.Random()
        self.clock = clock
        self.sleep = sleep
        self.simulate_latency = simulate_latency

    def inference_delay_ms(self, data: EstimateInput) -> float:
        base = 2000.0
        data_factor = min(len(data.historical_prices) / 10, 3)
        market_factor = 1.5 if is_market_hours(self.clock()) else 1.0
        jitter = self.rng.random() * 1000 - 500
        return max(0.0, (base + data_factor * 1000) * market_factor + jitter)

    def average_change(self, prices: Sequence[float]) -> float:
        window = list(prices[:WINDOW])
        total = 0.0
        for i in range(1, len(window)):
            total += (window[i] - window[i - 1]) / window[i - 1]
        # Fixed divisor, even when fewer than seven closes are available
        return total / CHANGE_COUNT

    async def estimate(self, data: EstimateInput) -> EstimateOutput:
        # The delay draw happens either way, so the market factor always takes the next one
        delay_ms = self.inference_delay_ms(data)
        if self.simulate_latency:
            await self.sleep(delay_ms / 1000.0)

        prices = data.historical_prices
        if not prices:
            logger.error("Estimate requested for %s with an empty price series", data.symbol)
            raise PredictionFailedError("empty price series")
        try:
            last_price = float(prices[0])
            avg = self.average_change(prices)
        except (ZeroDivisionError, TypeError, ValueError) as exc:
            logger.error("Estimate failed for %s: %s", data.symbol, exc)
            raise PredictionFailedError(str(exc)) from exc

        market_factor = 1 + (self.rng.random() * 0.02 - 0.01)
        predicted_change = avg * market_factor
        predicted_price = last_price * (1 + predicted_change)
        if not math.isfinite(predicted_price):
            raise PredictionFailedError("non-finite estimate")
        return EstimateOutput(predicted_price=predicted_price, last_price=last_price)
