"""
Predefined bandwidth trace models.

Models:
    - StaticBw: a fixed bandwidth for a fixed duration.
    - NormalizedBw: bandwidth drawn from a normal distribution, optionally
      bounded; ``NormalizedBwConfig.build_truncated()`` corrects the mean for
      the bounds.
    - LogNormalizedBw: bandwidth drawn from a log-normal distribution.
    - SawtoothBw: a sawtooth waveform with optional Gaussian noise.
    - TraceBw: replays a compactly encoded, irregularly sampled trace.
    - RepeatedBwPattern: plays a list of bandwidth configurations in a loop.

Example:
    >>> bw = StaticBwConfig(bw=Bandwidth.from_mbps(24), duration=Duration.from_secs(1)).build()
    >>> bw.next_bw()
    (Bandwidth(bps=24000000), Duration(nanos=1000000000))
    >>> bw.next_bw() is None
    True
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from ..exceptions import ConfigDecodeError, ConfigError
from ..units import Bandwidth, Duration
from .base import (
    BANDWIDTH,
    DEFAULT_RNG_SEED,
    DURATION,
    FLOAT,
    INT,
    BwTrace,
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


class BwTraceConfig(TraceConfig):
    """Configuration of a bandwidth trace model; ``build()`` returns a BwTrace."""


# --------------------------------------------------------------------------
# Models
# --------------------------------------------------------------------------


class StaticBw(StaticTrace, BwTrace):
    """A fixed bandwidth lasting ``duration``, emitted as a single segment."""

    def __init__(self, bw: Bandwidth, duration: Optional[Duration]):
        super().__init__(bw, duration)

    @property
    def bw(self) -> Bandwidth:
        return self.value


class NormalizedBw(BwTrace):
    """
    Bandwidth subject to N(mean, std_dev), resampled every ``step``.

    Draws are truncated to whole bps, negative draws become zero, and the
    result is clamped to [lower_bound, upper_bound] when the bounds are set.
    The final segment is shortened so that the durations add up to
    ``duration`` exactly.
    """

    def __init__(
        self,
        mean: Bandwidth,
        std_dev: Bandwidth,
        duration: Duration,
        step: Duration,
        lower_bound: Optional[Bandwidth] = None,
        upper_bound: Optional[Bandwidth] = None,
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
        return float(self.rng.normal(self.mean.as_bps(), self.std_dev.as_bps()))

    def next_segment(self):
        if self.duration.is_zero():
            return None
        bw = Bandwidth.from_bps(int(max(self.sample(), 0.0)))
        bw = clamp(bw, self.lower_bound, self.upper_bound)
        duration = min(self.step, self.duration)
        self.duration -= duration
        return bw, duration


class LogNormalizedBw(NormalizedBw):
    """
    Bandwidth subject to a log-normal distribution.

    ``mean`` and ``std_dev`` are those of the log-normal variable itself. The
    underlying normal distribution uses
    sigma = sqrt(ln(1 + std_dev^2 / mean^2)) and mu = ln(mean) - sigma^2 / 2.
    """

    def __init__(self, mean: Bandwidth, std_dev: Bandwidth, *args, **kwargs):
        if mean.is_zero():
            raise ConfigError(type(self).__name__, "mean must be nonzero")
        super().__init__(mean, std_dev, *args, **kwargs)
        mean_bps = float(mean.as_bps())
        std_dev_bps = float(std_dev.as_bps())
        self.sigma = math.sqrt(math.log1p((std_dev_bps / mean_bps) ** 2))
        self.mu = math.log(mean_bps) - self.sigma**2 / 2.0

    def sample(self) -> float:
        return float(self.rng.lognormal(self.mu, self.sigma))


class SawtoothBw(BwTrace):
    """
    A sawtooth bandwidth waveform.

    Within each ``interval`` the bandwidth rises linearly from ``bottom`` to
    ``top`` for the first ``interval * duty_ratio``, then falls back to
    ``bottom`` for the rest. Gaussian noise N(0, std_dev) is added to every
    sample; ``upper_noise_bound`` caps the noise above the waveform and
    ``lower_noise_bound`` caps it below.

    Example:
        With bottom=12Mbps, top=16Mbps, interval=500ms, duty_ratio=0.8 and
        step=100ms the samples are 12, 13, 14, 15, 16, 12, 13, ... Mbps.
    """

    def __init__(
        self,
        bottom: Bandwidth,
        top: Bandwidth,
        interval: Duration,
        duty_ratio: float,
        duration: Duration,
        step: Duration,
        std_dev: Bandwidth = Bandwidth.ZERO,
        upper_noise_bound: Optional[Bandwidth] = None,
        lower_noise_bound: Optional[Bandwidth] = None,
        seed: int = DEFAULT_RNG_SEED,
        rng: Optional[np.random.Generator] = None,
    ):
        name = type(self).__name__
        if bottom > top:
            raise ConfigError(name, f"bottom ({bottom}) is above top ({top})")
        if not 0.0 < duty_ratio <= 1.0:
            raise ConfigError(name, f"duty_ratio must be in (0, 1], got {duty_ratio}")
        if interval.is_zero():
            raise ConfigError(name, "interval must be nonzero")
        if step.is_zero():
            raise ConfigError(name, "step must be nonzero")
        self.bottom = bottom
        self.top = top
        self.interval = interval
        self.duty_ratio = duty_ratio
        self.duration = duration
        self.step = step
        self.std_dev = std_dev
        self.upper_noise_bound = upper_noise_bound
        self.lower_noise_bound = lower_noise_bound
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.current = Duration.ZERO

    def sample_noise(self) -> float:
        offset = float(self.rng.normal(0.0, self.std_dev.as_bps()))
        if self.upper_noise_bound is not None:
            offset = min(offset, float(self.upper_noise_bound.as_bps()))
        if self.lower_noise_bound is not None:
            offset = max(offset, -float(self.lower_noise_bound.as_bps()))
        return offset

    def base_bw(self) -> int:
        """Waveform value in bps at the current position, without noise."""
        current = self.current.as_nanos()
        interval = self.interval.as_nanos()
        change_point = interval * self.duty_ratio
        span = self.top.as_bps() - self.bottom.as_bps()
        if current < change_point:
            return self.bottom.as_bps() + round(span * (current / change_point))
        ratio = (current - change_point) / (interval - change_point)
        return self.top.as_bps() - round(span * ratio)

    def next_segment(self):
        if self.duration.is_zero():
            return None
        bw = Bandwidth.from_bps(int(max(self.base_bw() + self.sample_noise(), 0.0)))
        duration = min(self.step, self.duration)
        self.duration -= duration
        self.current = Duration(
            (self.current + duration).as_nanos() % self.interval.as_nanos()
        )
        return bw, duration


class TraceBw(BwTrace):
    """
    Replays ``(duration, [bw, bw, ...])`` groups.

    Each bandwidth of a group lasts the group's duration, so a measured trace
    sampled at an irregular rate can be stored without repeating the
    duration for every sample. Groups without bandwidths or with a zero
    duration are dropped.
    """

    def __init__(self, pattern):
        self.pattern = [
            (duration, list(bws)) for duration, bws in pattern if bws and not duration.is_zero()
        ]
        self.outer = 0
        self.inner = 0

    def next_segment(self):
        if self.outer >= len(self.pattern):
            return None
        duration, bws = self.pattern[self.outer]
        segment = (bws[self.inner], duration)
        self.inner += 1
        if self.inner >= len(bws):
            self.inner = 0
            self.outer += 1
        return segment


class RepeatedBwPattern(RepeatedPattern, BwTrace):
    """
    Combines bandwidth configurations into one pattern repeated ``count`` times.

    If ``count`` is 0 the pattern repeats forever.
    """


# --------------------------------------------------------------------------
# Configurations
# --------------------------------------------------------------------------


@register_config
@dataclass(frozen=True)
class StaticBwConfig(BwTraceConfig):
    """Configuration of StaticBw (defaults: 12Mbps for 1s)."""

    bw: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.from_mbps(12))
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))

    def build(self) -> StaticBw:
        return StaticBw(self.resolve("bw"), self.resolve("duration"))


@register_config
@dataclass(frozen=True)
class NormalizedBwConfig(SeededConfig, BwTraceConfig):
    """
    Configuration of NormalizedBw.

    Defaults: mean 12Mbps, std_dev 0, no bounds, duration 1s, step 1ms,
    seed 42.

    Example:
        >>> config = NormalizedBwConfig(
        ...     mean=Bandwidth.from_mbps(12),
        ...     std_dev=Bandwidth.from_mbps(1),
        ...     lower_bound=Bandwidth.from_mbps(10),
        ...     upper_bound=Bandwidth.from_mbps(14),
        ...     duration=Duration.from_secs(1),
        ...     step=Duration.from_millis(100),
        ... )
        >>> trace = config.build_truncated()
    """

    mean: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.from_mbps(12))
    std_dev: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.ZERO)
    upper_bound: Optional[Bandwidth] = option(BANDWIDTH)
    lower_bound: Optional[Bandwidth] = option(BANDWIDTH)
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))
    step: Optional[Duration] = option(DURATION, Duration.from_millis(1))
    seed: Optional[int] = option(INT, DEFAULT_RNG_SEED)

    def build(self, rng: Optional[np.random.Generator] = None) -> NormalizedBw:
        return NormalizedBw(
            mean=self.resolve("mean"),
            std_dev=self.resolve("std_dev"),
            duration=self.resolve("duration"),
            step=self.resolve("step"),
            lower_bound=self.lower_bound,
            upper_bound=self.upper_bound,
            seed=self.resolve("seed"),
            rng=self.make_rng(rng),
        )

    def build_truncated(self, rng: Optional[np.random.Generator] = None) -> NormalizedBw:
        """
        Build with the mean shifted so that the clamped samples average ``mean``.

        Clamping piles the probability mass beyond each bound onto the bound,
        which moves the realized mean. The center of the distribution is
        solved for on values normalized by the mean; a missing lower bound
        counts as 0 and a missing upper bound as +inf.
        """
        mean = self.resolve("mean").as_bps()
        if mean == 0:
            return self.build(rng)
        sigma = self.resolve("std_dev").as_bps() / mean
        lower = self.lower_bound.as_bps() / mean if self.lower_bound is not None else 0.0
        upper = self.upper_bound.as_bps() / mean if self.upper_bound is not None else None
        factor = solve(1.0, sigma, lower, upper)
        if factor is None:
            factor = 1.0
        new_mean = Bandwidth.from_bps(round(max(mean * factor, 0.0)))
        logger.debug(f"Truncated normal mean corrected from {mean}bps to {new_mean.as_bps()}bps")
        return self.set(mean=new_mean).build(rng)


@register_config
@dataclass(frozen=True)
class LogNormalizedBwConfig(SeededConfig, BwTraceConfig):
    """
    Configuration of LogNormalizedBw.

    Defaults: mean 12Mbps, std_dev 0, no bounds, duration 1s, step 1ms,
    seed 42.
    """

    mean: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.from_mbps(12))
    std_dev: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.ZERO)
    upper_bound: Optional[Bandwidth] = option(BANDWIDTH)
    lower_bound: Optional[Bandwidth] = option(BANDWIDTH)
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))
    step: Optional[Duration] = option(DURATION, Duration.from_millis(1))
    seed: Optional[int] = option(INT, DEFAULT_RNG_SEED)

    def build(self, rng: Optional[np.random.Generator] = None) -> LogNormalizedBw:
        return LogNormalizedBw(
            self.resolve("mean"),
            self.resolve("std_dev"),
            duration=self.resolve("duration"),
            step=self.resolve("step"),
            lower_bound=self.lower_bound,
            upper_bound=self.upper_bound,
            seed=self.resolve("seed"),
            rng=self.make_rng(rng),
        )


@register_config
@dataclass(frozen=True)
class SawtoothBwConfig(SeededConfig, BwTraceConfig):
    """
    Configuration of SawtoothBw.

    Defaults: bottom 0, top 12Mbps, interval 1s, duty_ratio 0.5, duration
    1s, step 1ms, seed 42, no noise.
    """

    bottom: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.ZERO)
    top: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.from_mbps(12))
    interval: Optional[Duration] = option(DURATION, Duration.from_secs(1))
    duty_ratio: Optional[float] = option(FLOAT, 0.5)
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))
    step: Optional[Duration] = option(DURATION, Duration.from_millis(1))
    seed: Optional[int] = option(INT, DEFAULT_RNG_SEED)
    std_dev: Optional[Bandwidth] = option(BANDWIDTH, Bandwidth.ZERO)
    upper_noise_bound: Optional[Bandwidth] = option(BANDWIDTH)
    lower_noise_bound: Optional[Bandwidth] = option(BANDWIDTH)

    def build(self, rng: Optional[np.random.Generator] = None) -> SawtoothBw:
        return SawtoothBw(
            bottom=self.resolve("bottom"),
            top=self.resolve("top"),
            interval=self.resolve("interval"),
            duty_ratio=self.resolve("duty_ratio"),
            duration=self.resolve("duration"),
            step=self.resolve("step"),
            std_dev=self.resolve("std_dev"),
            upper_noise_bound=self.upper_noise_bound,
            lower_noise_bound=self.lower_noise_bound,
            seed=self.resolve("seed"),
            rng=self.make_rng(rng),
        )


@register_config
@dataclass(frozen=True)
class TraceBwConfig(BwTraceConfig):
    """
    Configuration of TraceBw.

    Serialized compactly as a list of ``[duration_ms, [bw_mbps, ...]]``
    regardless of the scalar encoding, e.g.
    ``{"TraceBwConfig": [[1.0, [12.0, 24.0]], [2.5, [6.0]]]}``.
    """

    pattern: tuple = field(default=())

    def __post_init__(self):
        groups = []
        for group in self.pattern:
            duration, bws = group
            groups.append((duration, tuple(bws)))
        object.__setattr__(self, "pattern", tuple(groups))

    def build(self) -> TraceBw:
        return TraceBw(self.pattern)

    def _encode_body(self, human: bool) -> Any:
        return [
            [duration.as_secs_f64() * 1000.0, [bw.as_mbps_f64() for bw in bws]]
            for duration, bws in self.pattern
        ]

    @classmethod
    def _decode_body(cls, body: Any, human: bool) -> "TraceBwConfig":
        if not isinstance(body, list):
            raise ConfigDecodeError(
                "TraceBwConfig expects a list of [duration_ms, [bw_mbps, ...]]", body
            )
        groups = []
        for item in body:
            if (
                not isinstance(item, list)
                or len(item) != 2
                or not isinstance(item[1], list)
            ):
                raise ConfigDecodeError(
                    "TraceBwConfig entries must be [duration_ms, [bw_mbps, ...]]", item
                )
            try:
                duration = Duration.from_secs_f64(float(item[0]) / 1000.0)
                bws = tuple(Bandwidth.from_mbps_f64(float(bw)) for bw in item[1])
            except (TypeError, ValueError) as e:
                raise ConfigDecodeError(f"TraceBwConfig entry is invalid: {e}", item) from e
            groups.append((duration, bws))
        return cls(pattern=tuple(groups))


@register_config
@dataclass(frozen=True)
class RepeatedBwPatternConfig(PatternFields, BwTraceConfig):
    """
    Configuration of RepeatedBwPattern.

    Example:
        >>> text = (
        ...     '{"RepeatedBwPatternConfig":{"pattern":['
        ...     '{"StaticBwConfig":{"bw":{"gbps":0,"bps":12000000},"duration":{"secs":1,"nanos":0}}},'
        ...     '{"StaticBwConfig":{"bw":{"gbps":0,"bps":24000000},"duration":{"secs":1,"nanos":0}}}'
        ...     '],"count":2}}'
        ... )
        >>> model = BwTraceConfig.from_json(text).build()
        >>> [bw.as_bps() for bw, _ in model]
        [12000000, 24000000, 12000000, 24000000]
    """

    pattern: tuple = pattern_field()
    count: int = count_field()

    def build(self) -> RepeatedBwPattern:
        return RepeatedBwPattern(self.pattern, self.count)


BwTraceConfig.pattern_config = RepeatedBwPatternConfig
