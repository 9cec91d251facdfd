from dataclasses import dataclass
from typing import Protocol, Sequence

@dataclass
class EstimateInput:
    historical_prices: Sequence[float]  # most recent first
    symbol: str
    interval: str

@dataclass
class EstimateOutput:
    predicted_price: float
    last_price: float

class PriceEstimator(Protocol):
    async def estimate(self, data: EstimateInput) -> EstimateOutput:
        """
        Forecast the next price from a close series (index 0 = latest).
        Raises PredictionFailedError when no estimate can be produced.
        """
        ...
