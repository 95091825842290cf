"""
Predefined loss trace models.

Models:
    - StaticLoss: a fixed loss pattern for a fixed duration.
    - RepeatedLossPattern: plays a list of loss configurations in a loop.

Example:
    >>> loss = StaticLossConfig(loss=[0.1, 0.2], duration=Duration.from_secs(1)).build()
    >>> loss.next_loss()
    ([0.1, 0.2], Duration(nanos=1000000000))
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..exceptions import ConfigError
from ..units import Duration
from .base import (
    DURATION,
    FLOATS,
    LossPattern,
    LossTrace,
    PatternFields,
    RepeatedPattern,
    StaticTrace,
    TraceConfig,
    count_field,
    option,
    pattern_field,
    register_config,
)


def check_probabilities(name: str, pattern: Sequence[float]) -> tuple:
    """Return ``pattern`` as a tuple, rejecting probabilities outside [0, 1]."""
    pattern = tuple(pattern)
    for probability in pattern:
        if not 0.0 <= probability <= 1.0:
            raise ConfigError(name, f"probability {probability} is outside [0, 1]")
    return pattern


class LossTraceConfig(TraceConfig):
    """Configuration of a loss trace model; ``build()`` returns a LossTrace."""


class StaticLoss(StaticTrace, LossTrace):
    """A fixed loss pattern lasting ``duration``, emitted as a single segment."""

    def __init__(self, loss: Sequence[float], duration: Optional[Duration]):
        super().__init__(check_probabilities(type(self).__name__, loss), duration)

    @property
    def loss(self) -> LossPattern:
        return list(self.value)


class RepeatedLossPattern(RepeatedPattern, LossTrace):
    """
    Combines loss configurations into one pattern repeated ``count`` times.

    If ``count`` is 0 the pattern repeats forever.
    """


@register_config
@dataclass(frozen=True)
class StaticLossConfig(LossTraceConfig):
    """Configuration of StaticLoss (defaults: [0.1, 0.2] for 1s)."""

    loss: Optional[tuple] = option(FLOATS, (0.1, 0.2))
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))

    def build(self) -> StaticLoss:
        return StaticLoss(self.resolve("loss"), self.resolve("duration"))


@register_config
@dataclass(frozen=True)
class RepeatedLossPatternConfig(PatternFields, LossTraceConfig):
    """Configuration of RepeatedLossPattern."""

    pattern: tuple = pattern_field()
    count: int = count_field()

    def build(self) -> RepeatedLossPattern:
        return RepeatedLossPattern(self.pattern, self.count)


LossTraceConfig.pattern_config = RepeatedLossPatternConfig
