"""Tests for the delay and per-packet delay trace models."""

import pytest

from netem_trace import (
    ConfigError,
    Delay,
    Duration,
    NormalizedDelayConfig,
    NormalizedDelayPerPacketConfig,
    RepeatedDelayPatternConfig,
    RepeatedDelayPerPacketPatternConfig,
    StaticDelayConfig,
    StaticDelayPerPacketConfig,
)


class TestStaticDelay:
    """Tests for StaticDelay."""

    def test_single_segment(self):
        """Test that the delay is emitted once, then the trace ends."""
        trace = StaticDelayConfig(delay=Delay.from_millis(20), duration=Duration.from_secs(2)).build()

        assert trace.delay == Delay.from_millis(20)
        assert trace.next_delay() == (Delay.from_millis(20), Duration.from_secs(2))
        assert trace.next_delay() is None

    def test_defaults(self):
        """Test that unset fields fall back to 10ms for 1s."""
        assert StaticDelayConfig().build().next_delay() == (
            Delay.from_millis(10),
            Duration.from_secs(1),
        )


class TestNormalizedDelay:
    """Tests for NormalizedDelay."""

    def test_bounds(self):
        """Test that samples lie within the bounds."""
        config = NormalizedDelayConfig(
            mean=Delay.from_millis(12),
            std_dev=Delay.from_millis(5),
            lower_bound=Delay.from_millis(8),
            upper_bound=Delay.from_millis(16),
            duration=Duration.from_millis(500),
        )
        samples = [delay for delay, _ in config.build()]

        assert len(samples) == 500
        assert all(Delay.from_millis(8) <= delay <= Delay.from_millis(16) for delay in samples)

    def test_deterministic(self):
        """Test that equal seeds give equal traces."""
        config = NormalizedDelayConfig(
            mean=Delay.from_millis(12),
            std_dev=Delay.from_millis(1),
            duration=Duration.from_millis(50),
            seed=3,
        )
        assert list(config.build()) == list(config.build())

    def test_never_negative(self):
        """Test that draws below zero become a zero delay."""
        config = NormalizedDelayConfig(
            mean=Delay.from_micros(1),
            std_dev=Delay.from_millis(10),
            duration=Duration.from_millis(100),
        )
        assert Delay.ZERO in [delay for delay, _ in config.build()]

    def test_zero_step_rejected(self):
        """Test that a zero step raises ConfigError."""
        with pytest.raises(ConfigError):
            NormalizedDelayConfig(step=Duration.ZERO).build()

    def test_truncated_mean(self):
        """Test that build_truncated() keeps the realized mean near the target."""
        config = NormalizedDelayConfig(
            mean=Delay.from_millis(10),
            std_dev=Delay.from_millis(4),
            lower_bound=Delay.from_millis(9),
            duration=Duration.from_secs(20),
        )
        samples = [delay.as_secs_f64() for delay, _ in config.build_truncated()]
        assert sum(samples) / len(samples) == pytest.approx(0.010, rel=0.01)


class TestRepeatedDelayPattern:
    """Tests for RepeatedDelayPattern."""

    def test_sequence(self):
        """Test that the pattern plays its entries in order, count times."""
        config = RepeatedDelayPatternConfig(
            pattern=[
                StaticDelayConfig(delay=Delay.from_millis(10), duration=Duration.from_secs(1)),
                StaticDelayConfig(delay=Delay.from_millis(20), duration=Duration.from_secs(1)),
            ],
            count=2,
        )
        delays = [delay.as_millis() for delay, _ in config.build()]
        assert delays == [10, 20, 10, 20]


class TestDelayPerPacket:
    """Tests for the per-packet delay models."""

    def test_static_count(self):
        """Test that a static per-packet delay ends after count packets."""
        trace = StaticDelayPerPacketConfig(delay=Delay.from_millis(5), count=3).build()

        assert list(trace) == [Delay.from_millis(5)] * 3
        assert trace.next_delay() is None

    def test_static_forever(self):
        """Test that count 0 never ends."""
        trace = StaticDelayPerPacketConfig(delay=Delay.from_millis(5)).build()
        assert all(trace.next_delay() == Delay.from_millis(5) for _ in range(10_000))

    def test_normalized_lower_bound_default(self):
        """Test that per-packet delays are never below zero by default."""
        config = NormalizedDelayPerPacketConfig(
            mean=Delay.from_micros(1),
            std_dev=Delay.from_millis(10),
            count=200,
        )
        samples = list(config.build())

        assert len(samples) == 200
        assert min(samples) == Delay.ZERO

    def test_normalized_bounds(self):
        """Test that per-packet delays are clamped to the bounds."""
        config = NormalizedDelayPerPacketConfig(
            mean=Delay.from_millis(12),
            std_dev=Delay.from_millis(5),
            lower_bound=Delay.from_millis(10),
            upper_bound=Delay.from_millis(14),
            count=300,
        )
        assert all(Delay.from_millis(10) <= d <= Delay.from_millis(14) for d in config.build())

    def test_normalized_bounds_inverted(self):
        """Test that a lower bound above the upper bound raises ConfigError."""
        config = NormalizedDelayPerPacketConfig(
            lower_bound=Delay.from_millis(14),
            upper_bound=Delay.from_millis(10),
        )
        with pytest.raises(ConfigError):
            config.build()

    def test_normalized_truncated(self):
        """Test that build_truncated() lowers the center for a raised lower bound."""
        config = NormalizedDelayPerPacketConfig(
            mean=Delay.from_millis(10),
            std_dev=Delay.from_millis(4),
            lower_bound=Delay.from_millis(9),
            count=20_000,
        )
        trace = config.build_truncated()
        samples = [delay.as_secs_f64() for delay in trace]

        assert trace.mean < Delay.from_millis(10)
        assert sum(samples) / len(samples) == pytest.approx(0.010, rel=0.01)

    def test_repeated(self):
        """Test that a repeated per-packet pattern interleaves by count."""
        config = RepeatedDelayPerPacketPatternConfig(
            pattern=[
                StaticDelayPerPacketConfig(delay=Delay.from_millis(1), count=2),
                StaticDelayPerPacketConfig(delay=Delay.from_millis(2), count=1),
            ],
            count=2,
        )
        assert [delay.as_millis() for delay in config.build()] == [1, 1, 2, 1, 1, 2]
