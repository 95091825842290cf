"""
Predefined duplicate trace models.

Models:
    - StaticDuplicate: a fixed duplicate pattern for a fixed duration.
    - RepeatedDuplicatePattern: plays a list of duplicate configurations in a loop.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..units import Duration
from .base import (
    DURATION,
    FLOATS,
    DuplicatePattern,
    DuplicateTrace,
    PatternFields,
    RepeatedPattern,
    StaticTrace,
    TraceConfig,
    count_field,
    option,
    pattern_field,
    register_config,
)
from .loss import check_probabilities


class DuplicateTraceConfig(TraceConfig):
    """Configuration of a duplicate trace model; ``build()`` returns a DuplicateTrace."""


class StaticDuplicate(StaticTrace, DuplicateTrace):
    """A fixed duplicate pattern lasting ``duration``, emitted as a single segment."""

    def __init__(self, duplicate: Sequence[float], duration: Optional[Duration]):
        super().__init__(check_probabilities(type(self).__name__, duplicate), duration)

    @property
    def duplicate(self) -> DuplicatePattern:
        return list(self.value)


class RepeatedDuplicatePattern(RepeatedPattern, DuplicateTrace):
    """
    Combines duplicate configurations into one pattern repeated ``count`` times.

    If ``count`` is 0 the pattern repeats forever.
    """


@register_config
@dataclass(frozen=True)
class StaticDuplicateConfig(DuplicateTraceConfig):
    """Configuration of StaticDuplicate (defaults: [0.1, 0.2] for 1s)."""

    duplicate: Optional[tuple] = option(FLOATS, (0.1, 0.2))
    duration: Optional[Duration] = option(DURATION, Duration.from_secs(1))

    def build(self) -> StaticDuplicate:
        return StaticDuplicate(self.resolve("duplicate"), self.resolve("duration"))


@register_config
@dataclass(frozen=True)
class RepeatedDuplicatePatternConfig(PatternFields, DuplicateTraceConfig):
    """Configuration of RepeatedDuplicatePattern."""

    pattern: tuple = pattern_field()
    count: int = count_field()

    def build(self) -> RepeatedDuplicatePattern:
        return RepeatedDuplicatePattern(self.pattern, self.count)


DuplicateTraceConfig.pattern_config = RepeatedDuplicatePatternConfig
