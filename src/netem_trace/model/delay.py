"""
Predefined delay trace models.

Models:
    - StaticDelay: a fixed delay for a fixed duration.
    - NormalizedDelay: delay drawn from a normal distribution every ``step``.
    - RepeatedDelayPattern: plays a list of delay configurations in a loop.

Example:
    >>> config = RepeatedDelayPatternConfig(
    ...     pattern=[
    ...         StaticDelayConfig(delay=Delay.from_millis(10), duration=Duration.from_secs(1)),
    ...         StaticDelayConfig(delay=Delay.from_millis(20), duration=Duration.from_secs(1)),
    ...     ],
    ...     count=2,
    ... )
    >>> config.to_json(human=True)
    '{"RepeatedDelayPatternConfig":{"pattern":[{"StaticDelayConfig":{"delay":"10ms","duration":"1s"}},{"StaticDelayConfig":{"delay":"20ms","duration":"1s"}}],"count":2}}'
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..exceptions import ConfigError
from ..units import Delay, Duration
from .base import (
    DEFAULT_RNG_SEED,
    DURATION,
    INT,
    DelayTrace,
    PatternFields,
    RepeatedPattern,
    SeededConfig,
    StaticTrace,
    TraceConfig,
    clamp,
    count_field,
    option,
    pattern_field,
    register_config,
)
from .solve_truncate import solve

logger = logging.getLogger(__name__)


class DelayTraceConfig(TraceConfig):
    """Configuration of a delay trace model; ``build()`` returns a DelayTrace."""


class StaticDelay(StaticTrace, DelayTrace):
    """A fixed delay lasting ``duration``, emitted as a single segment."""

    def __init__(self, delay: Delay, duration: Optional[Duration]):
        super().__init__(delay, duration)

    @property
    def delay(self) -> Delay:
        return self.value


class NormalizedDelay(DelayTrace):
    """
    Delay subject to N(mean, std_dev), resampled every ``step``.

    Negative draws become zero, then the delay is clamped to
    [lower_bound, upper_bound] when the bounds are set.
    """

    def __init__(
        self,
        mean: Delay,
        std_dev: Delay,
        duration: Duration,
        step: Duration,
        lower_bound: Optional[Delay] = None,
        upper_bound: Optional[Delay] = None,
        seed: int = DEFAULT_RNG_SEED,
        rng: Optional[np.random.Generator] = None,
    ):
        if step.is_zero():
            raise ConfigError(type(self).__name__, "step must be nonzero")
        if lower_bound is not None and upper_bound is not None and lower_bound > upper_bound:
            raise ConfigError(type(self).__name__, "lower_bound is above upper_bound")
        self.mean = mean
        self.std_dev = std_dev
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.duration = duration
        self.step = step
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def sample(self) -> float:
        return float(self.rng.normal(self.mean.as_secs_f64(), self.std_dev.as_secs_f64()))

    def next_segment(self):
        if self.duration.is_zero():
            return None
        delay = Delay.from_secs_f64(max(self.sample(), 0.0))
        delay = clamp(delay, self.lower_bound, self.upper_bound)
        duration = min(self.step, self.duration)
        self.duration -= duration
        return delay, duration


class RepeatedDelayPattern(RepeatedPattern, DelayTrace):
    """
    Combines delay configurations into one pattern repeated ``count`` times.

    If ``count`` is 0 the pattern repeats forever.
    """


@register_config
@dataclass(frozen=True)
class StaticDelayConfig(DelayTraceConfig):
    """Configuration of StaticDelay (defaults: 10ms for 1s)."""

    delay: Optional[Delay] = option(DURATION, Delay.from_millis(10))
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))

    def build(self) -> StaticDelay:
        return StaticDelay(self.resolve("delay"), self.resolve("duration"))


@register_config
@dataclass(frozen=True)
class NormalizedDelayConfig(SeededConfig, DelayTraceConfig):
    """
    Configuration of NormalizedDelay.

    Defaults: mean 10ms, std_dev 0, no bounds, duration 1s, step 1ms,
    seed 42.
    """

    mean: Optional[Delay] = option(DURATION, Delay.from_millis(10))
    std_dev: Optional[Delay] = option(DURATION, Delay.ZERO)
    upper_bound: Optional[Delay] = option(DURATION)
    lower_bound: Optional[Delay] = option(DURATION)
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))
    step: Optional[Duration] = option(DURATION, Duration.from_millis(1))
    seed: Optional[int] = option(INT, DEFAULT_RNG_SEED)

    def build(self, rng: Optional[np.random.Generator] = None) -> NormalizedDelay:
        return NormalizedDelay(
            mean=self.resolve("mean"),
            std_dev=self.resolve("std_dev"),
            duration=self.resolve("duration"),
            step=self.resolve("step"),
            lower_bound=self.lower_bound,
            upper_bound=self.upper_bound,
            seed=self.resolve("seed"),
            rng=self.make_rng(rng),
        )

    def build_truncated(self, rng: Optional[np.random.Generator] = None) -> NormalizedDelay:
        """Build with the mean shifted so that the clamped samples average ``mean``."""
        mean = self.resolve("mean").as_secs_f64()
        if mean == 0.0:
            return self.build(rng)
        sigma = self.resolve("std_dev").as_secs_f64() / mean
        lower = self.lower_bound.as_secs_f64() / mean if self.lower_bound is not None else 0.0
        upper = self.upper_bound.as_secs_f64() / mean if self.upper_bound is not None else None
        factor = solve(1.0, sigma, lower, upper)
        if factor is None:
            factor = 1.0
        return self.set(mean=Delay.from_secs_f64(max(mean * factor, 0.0))).build(rng)


@register_config
@dataclass(frozen=True)
class RepeatedDelayPatternConfig(PatternFields, DelayTraceConfig):
    """Configuration of RepeatedDelayPattern."""

    pattern: tuple = pattern_field()
    count: int = count_field()

    def build(self) -> RepeatedDelayPattern:
        return RepeatedDelayPattern(self.pattern, self.count)


DelayTraceConfig.pattern_config = RepeatedDelayPatternConfig
