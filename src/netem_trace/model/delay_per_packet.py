"""
Predefined per-packet delay trace models.

Unlike the other traces, these produce one delay per packet rather than
``(value, duration)`` segments, and are bounded by a packet count instead of
a duration. A count of 0 means the model never ends.

Models:
    - StaticDelayPerPacket: the same delay for every packet.
    - NormalizedDelayPerPacket: delays drawn from a normal distribution.
    - RepeatedDelayPerPacketPattern: plays a list of configurations in a loop.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..exceptions import ConfigError
from ..units import Delay
from .base import (
    DEFAULT_RNG_SEED,
    DURATION,
    INT,
    DelayPerPacketTrace,
    PatternFields,
    RepeatedPattern,
    SeededConfig,
    TraceConfig,
    clamp,
    count_field,
    option,
    pattern_field,
    register_config,
)
from .solve_truncate import solve

logger = logging.getLogger(__name__)


class DelayPerPacketTraceConfig(TraceConfig):
    """Configuration of a per-packet delay model; ``build()`` returns a DelayPerPacketTrace."""


class StaticDelayPerPacket(DelayPerPacketTrace):
    """Emits ``delay`` for ``count`` packets (forever if ``count`` is 0)."""

    def __init__(self, delay: Delay, count: int = 0):
        self.delay = delay
        self.count = count
        self.current_count = 0

    def next_segment(self):
        if self.count != 0 and self.current_count >= self.count:
            return None
        self.current_count += 1
        return self.delay


class NormalizedDelayPerPacket(DelayPerPacketTrace):
    """
    Per-packet delay subject to N(mean, std_dev).

    Negative draws become zero, then the delay is clamped to
    [lower_bound, upper_bound].
    """

    def __init__(
        self,
        mean: Delay,
        std_dev: Delay,
        lower_bound: Delay = Delay.ZERO,
        upper_bound: Optional[Delay] = None,
        count: int = 0,
        seed: int = DEFAULT_RNG_SEED,
        rng: Optional[np.random.Generator] = None,
    ):
        if upper_bound is not None and lower_bound > upper_bound:
            raise ConfigError(type(self).__name__, "lower_bound is above upper_bound")
        self.mean = mean
        self.std_dev = std_dev
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.count = count
        self.current_count = 0
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def sample(self) -> float:
        return float(self.rng.normal(self.mean.as_secs_f64(), self.std_dev.as_secs_f64()))

    def next_segment(self):
        if self.count != 0 and self.current_count >= self.count:
            return None
        self.current_count += 1
        delay = Delay.from_secs_f64(max(self.sample(), 0.0))
        return clamp(delay, self.lower_bound, self.upper_bound)


class RepeatedDelayPerPacketPattern(RepeatedPattern, DelayPerPacketTrace):
    """
    Combines per-packet delay configurations into one repeated pattern.

    If ``count`` is 0 the pattern repeats forever.
    """


@register_config
@dataclass(frozen=True)
class StaticDelayPerPacketConfig(DelayPerPacketTraceConfig):
    """Configuration of StaticDelayPerPacket (defaults: 10ms, count 0)."""

    delay: Optional[Delay] = option(DURATION, Delay.from_millis(10))
    count: int = count_field()

    def build(self) -> StaticDelayPerPacket:
        return StaticDelayPerPacket(self.resolve("delay"), self.count)


@register_config
@dataclass(frozen=True)
class NormalizedDelayPerPacketConfig(SeededConfig, DelayPerPacketTraceConfig):
    """
    Configuration of NormalizedDelayPerPacket.

    Defaults: mean 10ms, std_dev 0, lower bound 0, no upper bound, count 0,
    seed 42.

    Example:
        >>> config = NormalizedDelayPerPacketConfig(
        ...     mean=Delay.from_millis(12),
        ...     std_dev=Delay.from_millis(1),
        ...     count=3,
        ...     seed=42,
        ... )
        >>> len(list(config.build()))
        3
    """

    mean: Optional[Delay] = option(DURATION, Delay.from_millis(10))
    std_dev: Optional[Delay] = option(DURATION, Delay.ZERO)
    upper_bound: Optional[Delay] = option(DURATION)
    lower_bound: Optional[Delay] = option(DURATION, Delay.ZERO)
    count: int = count_field()
    seed: Optional[int] = option(INT, DEFAULT_RNG_SEED)

    def build(self, rng: Optional[np.random.Generator] = None) -> NormalizedDelayPerPacket:
        return NormalizedDelayPerPacket(
            mean=self.resolve("mean"),
            std_dev=self.resolve("std_dev"),
            lower_bound=self.resolve("lower_bound"),
            upper_bound=self.upper_bound,
            count=self.count,
            seed=self.resolve("seed"),
            rng=self.make_rng(rng),
        )

    def build_truncated(
        self, rng: Optional[np.random.Generator] = None
    ) -> NormalizedDelayPerPacket:
        """Build with the mean shifted so that the clamped samples average ``mean``."""
        mean = self.resolve("mean").as_secs_f64()
        if mean == 0.0:
            return self.build(rng)
        sigma = self.resolve("std_dev").as_secs_f64() / mean
        lower = self.resolve("lower_bound").as_secs_f64() / mean
        upper = self.upper_bound.as_secs_f64() / mean if self.upper_bound is not None else None
        factor = solve(1.0, sigma, lower, upper)
        if factor is None:
            factor = 1.0
        new_mean = Delay.from_secs_f64(max(mean * factor, 0.0))
        logger.debug(f"Truncated normal mean corrected from {self.resolve('mean')} to {new_mean}")
        return self.set(mean=new_mean).build(rng)


@register_config
@dataclass(frozen=True)
class RepeatedDelayPerPacketPatternConfig(PatternFields, DelayPerPacketTraceConfig):
    """Configuration of RepeatedDelayPerPacketPattern."""

    pattern: tuple = pattern_field()
    count: int = count_field()

    def build(self) -> RepeatedDelayPerPacketPattern:
        return RepeatedDelayPerPacketPattern(self.pattern, self.count)


DelayPerPacketTraceConfig.pattern_config = RepeatedDelayPerPacketPatternConfig
