import unittest
from core.indicators import (
    mean,
    std_dev,
    z_score,
    ema,
    trend_slope,
    rsi,
    atr,
    vwap,
    average_range,
    true_ranges,
    compute_indicators,
)
from core.errors import InsufficientData, ConfigurationError
from models.types import Candle, ScoringConfig
from tests.sim_market import rising_candles, random_walk_candles


class TestMathHelpers(unittest.TestCase):
    def test_mean_and_population_std(self):
        xs = [2, 4, 4, 4, 5, 5, 7, 9]
        self.assertEqual(mean(xs), 5.0)
        self.assertEqual(std_dev(xs), 2.0)

    def test_empty_sequences_fail_explicitly(self):
        with self.assertRaises(InsufficientData):
            mean([])
        with self.assertRaises(InsufficientData):
            std_dev([])
        with self.assertRaises(InsufficientData):
            ema([], 5)

    def test_z_score_zero_variance(self):
        with self.assertRaises(InsufficientData):
            z_score(100.0, [100.0] * 20)

    def test_z_score_value(self):
        self.assertAlmostEqual(z_score(9.0, [2, 4, 4, 4, 5, 5, 7, 9]), 2.0)

    def test_trend_slope(self):
        xs = [1.0, 2.0, 4.0, 7.0, 11.0]
        self.assertEqual(trend_slope(xs, 1), 4.0)
        self.assertEqual(trend_slope(xs, 4), 10.0)
        with self.assertRaises(InsufficientData):
            trend_slope(xs, 5)
        with self.assertRaises(ConfigurationError):
            trend_slope(xs, 0)


class TestEMA(unittest.TestCase):
    def test_constant_sequence_is_exact(self):
        for v in (0.1, 3.0, 21975.37):
            for p in (1, 5, 15, 50):
                self.assertEqual(ema([v] * 20, p), v)

    def test_recurrence(self):
        # k = 2 / (3 + 1) = 0.5
        self.assertAlmostEqual(ema([10.0, 20.0, 30.0], 3), 22.5)

    def test_shorter_than_period_is_allowed(self):
        self.assertAlmostEqual(ema([10.0, 20.0], 15), 10.0 + (2 / 16) * 10.0)

    def test_single_value(self):
        self.assertEqual(ema([42.0], 5), 42.0)

    def test_invalid_period(self):
        with self.assertRaises(ConfigurationError):
            ema([1.0, 2.0], 0)
        with self.assertRaises(ConfigurationError):
            ema([1.0, 2.0], -3)

    def test_order_sensitive(self):
        xs = [float(x) for x in range(1, 21)]
        self.assertNotAlmostEqual(ema(xs, 5), ema(list(reversed(xs)), 5))


class TestRSI(unittest.TestCase):
    def test_monotonic_rise_saturates(self):
        self.assertEqual(rsi([float(x) for x in range(100, 120)], 14), 100.0)

    def test_monotonic_fall_is_zero(self):
        self.assertEqual(rsi([float(x) for x in range(120, 100, -1)], 14), 0.0)

    def test_balanced_moves(self):
        self.assertAlmostEqual(rsi([1.0, 2.0, 1.0, 2.0, 1.0], 14), 50.0)

    def test_only_last_period_deltas_count(self):
        # Early losses fall outside the 3-delta window
        xs = [10.0, 5.0, 1.0, 2.0, 3.0, 4.0]
        self.assertEqual(rsi(xs, 3), 100.0)

    def test_bounds_on_random_walk(self):
        closes = [c.close for c in random_walk_candles(60, seed=7)]
        value = rsi(closes, 14)
        self.assertGreaterEqual(value, 0.0)
        self.assertLessEqual(value, 100.0)

    def test_needs_two_values(self):
        with self.assertRaises(InsufficientData):
            rsi([100.0], 14)


class TestCandleIndicators(unittest.TestCase):
    def setUp(self):
        self.candles = [
            Candle(high=10, low=8, close=9),
            Candle(high=11, low=9, close=10),
            Candle(high=12, low=9, close=11),
        ]

    def test_true_range_uses_previous_close(self):
        self.assertEqual(list(true_ranges(self.candles)), [2.0, 3.0])

    def test_atr_mean_of_last_period(self):
        self.assertAlmostEqual(atr(self.candles, 14), 2.5)
        self.assertAlmostEqual(atr(self.candles, 1), 3.0)

    def test_atr_needs_two_candles(self):
        with self.assertRaises(InsufficientData):
            atr(self.candles[:1])

    def test_atr_is_order_sensitive(self):
        # Rising bars closing at their highs: every TR is 1 forward, 2 reversed
        candles = [Candle(high=i + 1.0, low=float(i), close=i + 1.0) for i in range(20)]
        self.assertAlmostEqual(atr(candles, 14), 1.0)
        self.assertAlmostEqual(atr(list(reversed(candles)), 14), 2.0)

    def test_vwap_weights_typical_price(self):
        candles = [
            Candle(high=3, low=1, close=2, volume=1),
            Candle(high=6, low=4, close=5, volume=3),
        ]
        self.assertAlmostEqual(vwap(candles), 4.25)

    def test_vwap_default_volume(self):
        candles = [Candle(high=3, low=1, close=2), Candle(high=6, low=4, close=5)]
        self.assertAlmostEqual(vwap(candles), 3.5)

    def test_vwap_ignores_order(self):
        candles = random_walk_candles(25, seed=3)
        self.assertAlmostEqual(vwap(candles), vwap(list(reversed(candles))), places=6)

    def test_vwap_zero_volume(self):
        with self.assertRaises(InsufficientData):
            vwap([Candle(high=3, low=1, close=2, volume=0.0)])
        with self.assertRaises(InsufficientData):
            vwap([])

    def test_average_range(self):
        self.assertAlmostEqual(average_range(self.candles), (2 + 2 + 3) / 3)


class TestComputeIndicators(unittest.TestCase):
    def test_rising_window(self):
        ind = compute_indicators(rising_candles(20), ScoringConfig())
        self.assertEqual(ind.price, 119.0)
        self.assertEqual(ind.prev_close, 118.0)
        self.assertAlmostEqual(ind.atr, 1.5)
        self.assertAlmostEqual(ind.avg_range, 1.0)
        self.assertAlmostEqual(ind.volatility_ratio, 1.5)
        self.assertGreater(ind.slope, 0)
        self.assertGreater(ind.z_score, 0.8)
        self.assertAlmostEqual(ind.vwap, 109.5)
        self.assertAlmostEqual(ind.vwap_deviation, 9.5 / 1.5)
        self.assertEqual(ind.rsi, 100.0)
        self.assertEqual(ind.trend_slope, 5.0)

    def test_input_not_mutated(self):
        candles = random_walk_candles(30, seed=11)
        snapshot = list(candles)
        compute_indicators(candles[-20:], ScoringConfig())
        self.assertEqual(candles, snapshot)

    def test_flat_window_is_degenerate(self):
        flat = [Candle(high=100, low=100, close=100) for _ in range(20)]
        with self.assertRaises(InsufficientData):
            compute_indicators(flat, ScoringConfig())


if __name__ == '__main__':
    unittest.main()
