"""
Shared building blocks for trace models.

A model has two parts: a configuration dataclass and a model class. The
configuration is plain data, used for serialization, and resolves into a
model with ``build()``. The model keeps the inner state and produces the
trace one ``(value, duration)`` segment at a time.

Every concrete configuration registers its class name as a type tag, so a
serialized configuration ``{"StaticBwConfig": {...}}`` can be decoded without
knowing its type in advance.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, ClassVar, Optional

import numpy as np

from ..exceptions import ConfigDecodeError
from ..units import (
    Bandwidth,
    Duration,
    decode_bandwidth,
    decode_duration,
    encode_bandwidth,
    encode_duration,
)

logger = logging.getLogger(__name__)

DEFAULT_RNG_SEED = 42

_CONFIG_REGISTRY: dict[str, type] = {}

# Conditional probabilities, see LossTrace.
LossPattern = list[float]
DuplicatePattern = list[float]


# --------------------------------------------------------------------------
# Models
# --------------------------------------------------------------------------


class Trace(ABC):
    """
    A stateful generator of trace segments.

    ``next_segment()`` returns the next segment, or None once the trace has
    ended. After the first None every later call returns None as well.
    Iterating over a trace drives it until it ends.
    """

    @abstractmethod
    def next_segment(self) -> Optional[Any]:
        """Return the next segment, or None if the trace has ended."""

    def __iter__(self):
        while True:
            segment = self.next_segment()
            if segment is None:
                return
            yield segment


class BwTrace(Trace):
    """
    A trace of ``(bandwidth, duration)`` pairs.

    For example, [(1Mbps, 1s), (2Mbps, 2s)] means 1Mbps for 1s, then 2Mbps
    for 2s.
    """

    def next_bw(self) -> Optional[tuple[Bandwidth, Duration]]:
        return self.next_segment()


class DelayTrace(Trace):
    """A trace of ``(delay, duration)`` pairs."""

    def next_delay(self) -> Optional[tuple[Duration, Duration]]:
        return self.next_segment()


class LossTrace(Trace):
    """
    A trace of ``(loss_pattern, duration)`` pairs.

    A loss pattern is a list of conditional drop probabilities: index 0 is
    the probability of dropping a packet if the previous one was not lost,
    index 1 if the previous packet was lost, index 2 if the previous two were
    lost, and so on.
    """

    def next_loss(self) -> Optional[tuple[LossPattern, Duration]]:
        return self.next_segment()


class DuplicateTrace(Trace):
    """
    A trace of ``(duplicate_pattern, duration)`` pairs.

    A duplicate pattern has the same shape as a loss pattern, with
    duplication in place of loss.
    """

    def next_duplicate(self) -> Optional[tuple[DuplicatePattern, Duration]]:
        return self.next_segment()


class DelayPerPacketTrace(Trace):
    """A trace of per-packet delays; each segment is a single delay."""

    def next_delay(self) -> Optional[Duration]:
        return self.next_segment()


class StaticTrace(Trace):
    """Emits one value for the whole duration, then ends."""

    def __init__(self, value: Any, duration: Optional[Duration]):
        self.value = value
        self.duration = duration

    def next_segment(self):
        duration, self.duration = self.duration, None
        if duration is None or duration.is_zero():
            return None
        if isinstance(self.value, tuple):
            return list(self.value), duration
        return self.value, duration


class RepeatedPattern(Trace):
    """
    Plays a list of configurations in order, ``count`` times.

    A model is only built from a configuration when it is reached, and is
    dropped once it ends. If ``count`` is 0 the pattern repeats forever.
    """

    def __init__(self, pattern, count: int = 0):
        self.pattern = list(pattern)
        self.count = count
        self.current_model: Optional[Trace] = None
        self.current_cycle = 0
        self.current_pattern = 0
        self._cycle_emitted = False

    def _exhausted(self) -> bool:
        return not self.pattern or (
            self.count != 0 and self.current_cycle >= self.count
        )

    def next_segment(self):
        while not self._exhausted():
            if self.current_model is None:
                self.current_model = self.pattern[self.current_pattern].build()

            segment = self.current_model.next_segment()
            if segment is not None:
                self._cycle_emitted = True
                return segment

            self.current_model = None
            self.current_pattern += 1
            if self.current_pattern >= len(self.pattern):
                self.current_pattern = 0
                self.current_cycle += 1
                logger.debug(
                    f"{type(self).__name__} finished cycle {self.current_cycle}"
                )
                if self.count == 0 and not self._cycle_emitted:
                    # An endless pattern that produced nothing in a whole cycle
                    # never will.
                    logger.warning(
                        f"{type(self).__name__} pattern produced no segments, "
                        f"ending the trace"
                    )
                    self.pattern = []
                    return None
                self._cycle_emitted = False
        return None


def clamp(value, lower=None, upper=None):
    """Clamp ``value`` into [lower, upper]; a missing bound is not applied."""
    if lower is not None and value < lower:
        value = lower
    if upper is not None and value > upper:
        value = upper
    return value


# --------------------------------------------------------------------------
# Configuration fields
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldKind:
    """How a configuration field is encoded and decoded."""

    name: str
    encode: Callable[[Any, bool], Any]
    decode: Callable[[Any, bool], Any]


def _decode_int(raw: Any, human: bool) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise ConfigDecodeError("expected a non-negative integer", raw)
    return raw


def _decode_float(raw: Any, human: bool) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ConfigDecodeError("expected a number", raw)
    return float(raw)


def _decode_floats(raw: Any, human: bool) -> tuple:
    if not isinstance(raw, list):
        raise ConfigDecodeError("expected a list of numbers", raw)
    return tuple(_decode_float(item, human) for item in raw)


BANDWIDTH = FieldKind("bandwidth", encode_bandwidth, decode_bandwidth)
DURATION = FieldKind("duration", encode_duration, decode_duration)
INT = FieldKind("int", lambda value, human: value, _decode_int)
FLOAT = FieldKind("float", lambda value, human: value, _decode_float)
FLOATS = FieldKind("floats", lambda value, human: list(value), _decode_floats)
# Encoded through the owning configuration's signal kind.
PATTERN = FieldKind("pattern", None, None)


def option(kind: FieldKind, default: Any = None):
    """
    Declare an optional configuration field.

    The field itself defaults to None; ``default`` is the value substituted
    by ``TraceConfig.resolve()`` when a model is built.
    """
    return field(default=None, metadata={"kind": kind, "default": default})


def count_field():
    """Declare a repetition/sample count where 0 means forever."""
    return field(default=0, metadata={"kind": INT})


def pattern_field():
    """Declare the list of child configurations of a repeated pattern."""
    return field(default=(), metadata={"kind": PATTERN})


def register_config(cls):
    """Class decorator registering a configuration under its class name."""
    tag = cls.__name__
    if tag in _CONFIG_REGISTRY:
        raise ValueError(f"Configuration type already registered: {tag}")
    _CONFIG_REGISTRY[tag] = cls
    return cls


def registered_configs() -> dict[str, type]:
    """Return a copy of the type tag to configuration class registry."""
    return dict(_CONFIG_REGISTRY)


# --------------------------------------------------------------------------
# Configurations
# --------------------------------------------------------------------------


class TraceConfig(ABC):
    """
    Base class of every trace configuration.

    Concrete configurations are frozen dataclasses. Tunables are declared
    with ``option()`` so that they can be left unset; the documented default
    is filled in by ``build()``. Use ``set()`` to derive a modified copy.
    """

    # Repeated-pattern configuration of the same signal kind, see forever().
    pattern_config: ClassVar[Optional[type]] = None

    def __post_init__(self):
        for f in fields(self):
            kind = f.metadata.get("kind")
            value = getattr(self, f.name)
            if value is None:
                continue
            if kind is FLOATS:
                object.__setattr__(self, f.name, tuple(float(v) for v in value))
            elif kind is PATTERN:
                family = type(self).family()
                value = tuple(value)
                for config in value:
                    if not isinstance(config, family):
                        raise TypeError(
                            f"{type(self).__name__}.{f.name} only accepts "
                            f"{family.__name__} items, got {type(config).__name__}"
                        )
                object.__setattr__(self, f.name, value)

    @classmethod
    def family(cls) -> type:
        """Return the signal-kind base class (e.g. BwTraceConfig)."""
        for klass in cls.__mro__:
            if TraceConfig in klass.__bases__:
                return klass
        return TraceConfig

    def resolve(self, name: str) -> Any:
        """Return the field value, or its documented default if unset."""
        value = getattr(self, name)
        if value is None:
            for f in fields(self):
                if f.name == name:
                    return f.metadata.get("default")
        return value

    def set(self, **changes) -> "TraceConfig":
        """Return a copy of this configuration with the given fields replaced."""
        return replace(self, **changes)

    @abstractmethod
    def build(self) -> Trace:
        """Create a fresh model from this configuration."""

    def into_model(self) -> Trace:
        return self.build()

    def forever(self) -> "TraceConfig":
        """Wrap this configuration in a pattern that repeats forever."""
        return self.pattern_config(pattern=(self,), count=0)

    # -- serialization -----------------------------------------------------

    def to_dict(self, human: bool = False) -> dict:
        """
        Encode as ``{"<TypeTag>": {...}}``.

        Args:
            human: Encode bandwidths and durations as human-readable strings
                ("12Mbps", "1s") instead of structured mappings.

        Returns:
            A JSON-compatible dict. Unset fields are omitted.
        """
        return {type(self).__name__: self._encode_body(human)}

    def to_json(self, human: bool = False) -> str:
        return json.dumps(self.to_dict(human), separators=(",", ":"))

    def _encode_body(self, human: bool) -> Any:
        body = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            kind = f.metadata["kind"]
            if kind is PATTERN:
                body[f.name] = [config.to_dict(human) for config in value]
            else:
                body[f.name] = kind.encode(value, human)
        return body

    @classmethod
    def from_dict(cls, data: Any, human: bool = False) -> "TraceConfig":
        """
        Decode a tagged configuration.

        Args:
            data: A ``{"<TypeTag>": {...}}`` mapping.
            human: Whether bandwidths and durations are encoded as strings.

        Returns:
            The decoded configuration, an instance of ``cls``.

        Raises:
            ConfigDecodeError: If the tag is unknown, belongs to another
                signal kind, or a field is malformed.
        """
        if not isinstance(data, dict) or len(data) != 1:
            raise ConfigDecodeError(
                "expected a mapping with a single configuration type tag", data
            )
        ((tag, body),) = data.items()
        config_cls = _CONFIG_REGISTRY.get(tag)
        if config_cls is None:
            raise ConfigDecodeError(f"unknown configuration type {tag!r}", data)
        if not issubclass(config_cls, cls):
            raise ConfigDecodeError(f"{tag} is not a {cls.__name__}", data)
        return config_cls._decode_body(body, human)

    @classmethod
    def from_json(cls, text: str, human: bool = False) -> "TraceConfig":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigDecodeError(f"invalid JSON: {e}", text) from e
        return cls.from_dict(data, human)

    @classmethod
    def _decode_body(cls, body: Any, human: bool) -> "TraceConfig":
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise ConfigDecodeError(f"expected a mapping of {cls.__name__} fields", body)

        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(body) - set(known))
        if unknown:
            raise ConfigDecodeError(f"unknown {cls.__name__} fields {unknown}", body)

        kwargs = {}
        for name, raw in body.items():
            if raw is None:
                continue
            kind = known[name].metadata["kind"]
            try:
                if kind is PATTERN:
                    if not isinstance(raw, list):
                        raise ConfigDecodeError("expected a list of configurations", raw)
                    family = cls.family()
                    kwargs[name] = tuple(family.from_dict(item, human) for item in raw)
                else:
                    kwargs[name] = kind.decode(raw, human)
            except ConfigDecodeError as e:
                error = ConfigDecodeError(f"{cls.__name__}.{name} ({kind.name}): {e}")
                error.raw = e.raw
                raise error from e
        return cls(**kwargs)


class PatternFields:
    """Mixin for repeated-pattern configurations."""

    def forever(self):
        return self.set(count=0)


class SeededConfig:
    """Mixin for configurations of models that draw random numbers."""

    def random_seed(self):
        """Return a copy with a seed drawn from operating system entropy."""
        return self.set(seed=int(np.random.SeedSequence().entropy % 2**64))

    def make_rng(self, rng: Optional[np.random.Generator] = None) -> np.random.Generator:
        """Return ``rng`` if given, else a generator seeded from the config."""
        if rng is not None:
            return rng
        return np.random.default_rng(self.resolve("seed"))
