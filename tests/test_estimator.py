"""Tests for the simulated price estimator."""

from __future__ import annotations

from datetime import datetime

import pytest

from app.core.errors import PredictionFailedError
from app.models.base import EstimateInput
from app.models.simulated_estimator import SimulatedEstimator


class FixedRandom:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class SequenceRandom:
    def __init__(self, draws: list[float]) -> None:
        self.draws = list(draws)

    def random(self) -> float:
        return self.draws.pop(0)


class SleepRecorder:
    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def _input(prices, symbol="AAPL", interval="1day") -> EstimateInput:
    return EstimateInput(historical_prices=prices, symbol=symbol, interval=interval)


class TestFormula:
    @pytest.mark.asyncio
    async def test_last_price_is_most_recent_close(self, estimator) -> None:
        prices = [187.4, 185.0, 190.2, 188.8, 186.1, 184.9, 183.3, 180.0]
        out = await estimator.estimate(_input(prices))
        assert out.last_price == prices[0]

    @pytest.mark.asyncio
    async def test_constant_series_stays_within_jitter(self) -> None:
        for draw in (0.0, 0.25, 0.5, 0.999):
            est = SimulatedEstimator(rng=FixedRandom(draw), simulate_latency=False)
            out = await est.estimate(_input([50.0] * 10))
            assert 50.0 * 0.99 <= out.predicted_price <= 50.0 * 1.01

    @pytest.mark.asyncio
    async def test_average_of_six_changes_applied_to_last_price(self, estimator) -> None:
        prices = [100.0, 101.0, 102.0, 103.0, 104.0, 105.0, 106.0, 500.0]
        expected_avg = sum((prices[i] - prices[i - 1]) / prices[i - 1] for i in range(1, 7)) / 6
        out = await estimator.estimate(_input(prices))
        # FixedRandom(0.5) gives a market factor of exactly 1
        assert out.predicted_price == pytest.approx(100.0 * (1 + expected_avg))

    @pytest.mark.asyncio
    async def test_market_factor_scales_change(self) -> None:
        prices = [100.0, 110.0, 110.0, 110.0, 110.0, 110.0, 110.0]
        est = SimulatedEstimator(rng=FixedRandom(1.0), simulate_latency=False)
        out = await est.estimate(_input(prices))
        avg = 0.1 / 6
        assert out.predicted_price == pytest.approx(100.0 * (1 + avg * 1.01))

    @pytest.mark.asyncio
    async def test_short_series_still_divides_by_six(self, estimator) -> None:
        out = await estimator.estimate(_input([100.0, 110.0]))
        assert out.predicted_price == pytest.approx(100.0 * (1 + 0.1 / 6))

    @pytest.mark.asyncio
    async def test_single_close_predicts_same_price(self, estimator) -> None:
        out = await estimator.estimate(_input([42.0]))
        assert out.predicted_price == pytest.approx(42.0)

    @pytest.mark.asyncio
    async def test_empty_series_fails(self, estimator) -> None:
        with pytest.raises(PredictionFailedError):
            await estimator.estimate(_input([]))

    @pytest.mark.asyncio
    async def test_zero_price_in_window_fails(self, estimator) -> None:
        with pytest.raises(PredictionFailedError):
            await estimator.estimate(_input([10.0, 0.0, 5.0]))


class TestLatency:
    def test_delay_during_market_hours(self) -> None:
        monday_morning = datetime(2026, 10, 19, 10, 30)
        est = SimulatedEstimator(rng=FixedRandom(0.5), clock=lambda: monday_morning)
        # 30 closes → data factor capped at 3
        assert est.inference_delay_ms(_input([1.0] * 30)) == pytest.approx(7500.0)

    def test_delay_outside_market_hours(self) -> None:
        saturday = datetime(2026, 10, 17, 10, 30)
        est = SimulatedEstimator(rng=FixedRandom(0.5), clock=lambda: saturday)
        assert est.inference_delay_ms(_input([1.0] * 10)) == pytest.approx(3000.0)

    def test_delay_jitter_bounds(self) -> None:
        evening = datetime(2026, 10, 19, 20, 0)
        low = SimulatedEstimator(rng=FixedRandom(0.0), clock=lambda: evening)
        high = SimulatedEstimator(rng=FixedRandom(1.0), clock=lambda: evening)
        assert low.inference_delay_ms(_input([1.0] * 30)) == pytest.approx(4500.0)
        assert high.inference_delay_ms(_input([1.0] * 30)) == pytest.approx(5500.0)

    @pytest.mark.asyncio
    async def test_delay_is_awaited_before_returning(self) -> None:
        sleep = SleepRecorder()
        sunday = datetime(2026, 10, 18, 12, 0)
        est = SimulatedEstimator(rng=FixedRandom(0.5), clock=lambda: sunday, sleep=sleep)
        out = await est.estimate(_input([10.0] * 20))
        assert sleep.waits == [pytest.approx(4.0)]
        assert out.last_price == 10.0

    @pytest.mark.asyncio
    async def test_latency_can_be_disabled(self) -> None:
        sleep = SleepRecorder()
        est = SimulatedEstimator(rng=FixedRandom(0.5), sleep=sleep, simulate_latency=False)
        await est.estimate(_input([10.0] * 20))
        assert sleep.waits == []

    @pytest.mark.asyncio
    async def test_latency_setting_does_not_shift_market_factor(self) -> None:
        prices = [100.0, 110.0, 110.0, 110.0, 110.0, 110.0, 110.0]
        results = []
        for simulate in (True, False):
            est = SimulatedEstimator(
                rng=SequenceRandom([0.0, 1.0]), sleep=SleepRecorder(), simulate_latency=simulate
            )
            results.append((await est.estimate(_input(prices))).predicted_price)
        # second draw of 1.0 is the +1% market factor in both runs
        assert results[0] == results[1] == pytest.approx(100.0 * (1 + 0.1 / 6 * 1.01))
