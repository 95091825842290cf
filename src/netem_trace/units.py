"""
Quantity types used by the trace models.

Provides the Duration and Bandwidth value types, their saturating arithmetic,
and the two serialized encodings of each: a structured mapping
(``{"secs": 1, "nanos": 0}``, ``{"gbps": 0, "bps": 12000000}``) and a
human-readable string (``"1s"``, ``"12Mbps"``).
"""

import math
import operator
import re
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Union

from .exceptions import ConfigDecodeError

U64_MAX = 2**64 - 1
NANOS_PER_SEC = 1_000_000_000
NANOS_PER_MILLI = 1_000_000
BPS_PER_GBPS = 1_000_000_000

_DURATION_UNITS = {
    "nsec": 1,
    "ns": 1,
    "usec": 1_000,
    "us": 1_000,
    "µs": 1_000,
    "msec": NANOS_PER_MILLI,
    "ms": NANOS_PER_MILLI,
    "seconds": NANOS_PER_SEC,
    "second": NANOS_PER_SEC,
    "sec": NANOS_PER_SEC,
    "s": NANOS_PER_SEC,
    "minutes": 60 * NANOS_PER_SEC,
    "minute": 60 * NANOS_PER_SEC,
    "min": 60 * NANOS_PER_SEC,
    "m": 60 * NANOS_PER_SEC,
    "hours": 3_600 * NANOS_PER_SEC,
    "hour": 3_600 * NANOS_PER_SEC,
    "hr": 3_600 * NANOS_PER_SEC,
    "h": 3_600 * NANOS_PER_SEC,
    "days": 86_400 * NANOS_PER_SEC,
    "day": 86_400 * NANOS_PER_SEC,
    "d": 86_400 * NANOS_PER_SEC,
}

# Largest unit first, used when formatting.
_DURATION_FORMAT = [
    ("d", 86_400 * NANOS_PER_SEC),
    ("h", 3_600 * NANOS_PER_SEC),
    ("m", 60 * NANOS_PER_SEC),
    ("s", NANOS_PER_SEC),
    ("ms", NANOS_PER_MILLI),
    ("us", 1_000),
    ("ns", 1),
]

_BANDWIDTH_UNITS = {
    "bps": 1,
    "kbps": 1_000,
    "Kbps": 1_000,
    "mbps": 1_000_000,
    "Mbps": 1_000_000,
    "gbps": BPS_PER_GBPS,
    "Gbps": BPS_PER_GBPS,
    "tbps": 1_000 * BPS_PER_GBPS,
    "Tbps": 1_000 * BPS_PER_GBPS,
}

_BANDWIDTH_FORMAT = [
    ("Tbps", 1_000 * BPS_PER_GBPS),
    ("Gbps", BPS_PER_GBPS),
    ("Mbps", 1_000_000),
    ("kbps", 1_000),
    ("bps", 1),
]

_TERM = re.compile(r"\s*(\d+(?:\.\d*)?|\.\d+)\s*([A-Za-zµ]+)")


def _saturate(value: int, upper: int) -> int:
    return max(0, min(value, upper))


def _parse_terms(text: str, units: dict, kind: str) -> int:
    """Sum whitespace-separated ``<number><unit>`` terms into base units."""
    if not isinstance(text, str):
        raise ConfigDecodeError(f"expected a {kind} string", text)

    stripped = text.strip()
    if not stripped:
        raise ConfigDecodeError(f"empty {kind} string", text)

    total = Fraction(0)
    pos = 0
    while pos < len(stripped):
        match = _TERM.match(stripped, pos)
        if not match:
            raise ConfigDecodeError(
                f"invalid {kind} string at {stripped[pos:]!r}", text
            )
        unit = units.get(match.group(2))
        if unit is None:
            raise ConfigDecodeError(f"unknown {kind} unit {match.group(2)!r}", text)
        total += Fraction(match.group(1)) * unit
        pos = match.end()
        while pos < len(stripped) and stripped[pos].isspace():
            pos += 1

    return round(total)


def _format_terms(value: int, units: list, zero: str) -> str:
    if value == 0:
        return zero
    parts = []
    for suffix, size in units:
        amount, value = divmod(value, size)
        if amount:
            parts.append(f"{amount}{suffix}")
    return " ".join(parts)


@dataclass(frozen=True, order=True)
class Duration:
    """
    A span of time with nanosecond resolution.

    Values are never negative: subtraction saturates at zero and addition
    saturates at ``Duration.MAX``.

    Example:
        >>> Duration.from_millis(1500).as_secs_f64()
        1.5
        >>> str(Duration.from_millis(1500))
        '1s 500ms'
    """

    nanos: int = 0

    def __post_init__(self):
        if isinstance(self.nanos, bool):
            raise TypeError(f"Duration nanos must be an int, got {self.nanos!r}")
        try:
            object.__setattr__(self, "nanos", operator.index(self.nanos))
        except TypeError:
            raise TypeError(f"Duration nanos must be an int, got {self.nanos!r}") from None
        if self.nanos < 0:
            raise ValueError(f"Duration cannot be negative: {self.nanos}ns")

    @classmethod
    def from_secs(cls, secs: int) -> "Duration":
        return cls(_saturate(secs * NANOS_PER_SEC, _MAX_DURATION_NANOS))

    @classmethod
    def from_millis(cls, millis: int) -> "Duration":
        return cls(_saturate(millis * NANOS_PER_MILLI, _MAX_DURATION_NANOS))

    @classmethod
    def from_micros(cls, micros: int) -> "Duration":
        return cls(_saturate(micros * 1_000, _MAX_DURATION_NANOS))

    @classmethod
    def from_nanos(cls, nanos: int) -> "Duration":
        return cls(_saturate(nanos, _MAX_DURATION_NANOS))

    @classmethod
    def from_secs_f64(cls, secs: float) -> "Duration":
        """Create a Duration from fractional seconds, rounded to the nanosecond."""
        if not math.isfinite(secs) or secs < 0:
            raise ValueError(f"Duration must be finite and non-negative: {secs}")
        return cls(_saturate(round(secs * NANOS_PER_SEC), _MAX_DURATION_NANOS))

    def as_nanos(self) -> int:
        return self.nanos

    def as_secs_f64(self) -> float:
        return self.nanos / NANOS_PER_SEC

    def as_millis(self) -> int:
        """Whole milliseconds, saturating at the u64 maximum."""
        return min(self.nanos // NANOS_PER_MILLI, U64_MAX)

    @property
    def secs(self) -> int:
        return self.nanos // NANOS_PER_SEC

    @property
    def subsec_nanos(self) -> int:
        return self.nanos % NANOS_PER_SEC

    def is_zero(self) -> bool:
        return self.nanos == 0

    def __add__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(_saturate(self.nanos + other.nanos, _MAX_DURATION_NANOS))

    def __sub__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(_saturate(self.nanos - other.nanos, _MAX_DURATION_NANOS))

    def __mul__(self, factor: int) -> "Duration":
        try:
            factor = operator.index(factor)
        except TypeError:
            return NotImplemented
        return Duration(_saturate(self.nanos * factor, _MAX_DURATION_NANOS))

    __rmul__ = __mul__

    def __str__(self) -> str:
        return _format_terms(self.nanos, _DURATION_FORMAT, "0s")

    def to_struct(self) -> dict:
        return {"secs": self.secs, "nanos": self.subsec_nanos}

    @classmethod
    def from_struct(cls, data: Any) -> "Duration":
        secs, nanos = _struct_fields(data, ("secs", "nanos"), "duration")
        if nanos >= NANOS_PER_SEC:
            raise ConfigDecodeError("duration nanos must be below one second", data)
        return cls.from_nanos(secs * NANOS_PER_SEC + nanos)

    @classmethod
    def parse(cls, text: str) -> "Duration":
        """Parse a human-readable duration such as ``"1s 500ms"``."""
        return cls.from_nanos(_parse_terms(text, _DURATION_UNITS, "duration"))


_MAX_DURATION_NANOS = U64_MAX * NANOS_PER_SEC + (NANOS_PER_SEC - 1)

Duration.ZERO = Duration(0)
Duration.MAX = Duration(_MAX_DURATION_NANOS)

# A delay is the time a packet is held back when going through.
Delay = Duration


@dataclass(frozen=True, order=True)
class Bandwidth:
    """
    A transmission rate in bits per second.

    Values are never negative: subtraction saturates at zero and addition
    saturates at ``Bandwidth.MAX`` (the u64 maximum in bps).

    Example:
        >>> Bandwidth.from_mbps(12).as_bps()
        12000000
        >>> str(Bandwidth.from_kbps(12500))
        '12Mbps 500kbps'
    """

    bps: int = 0

    def __post_init__(self):
        if isinstance(self.bps, bool):
            raise TypeError(f"Bandwidth bps must be an int, got {self.bps!r}")
        try:
            object.__setattr__(self, "bps", operator.index(self.bps))
        except TypeError:
            raise TypeError(f"Bandwidth bps must be an int, got {self.bps!r}") from None
        if self.bps < 0:
            raise ValueError(f"Bandwidth cannot be negative: {self.bps}bps")

    @classmethod
    def from_bps(cls, bps: int) -> "Bandwidth":
        return cls(_saturate(bps, U64_MAX))

    @classmethod
    def from_kbps(cls, kbps: int) -> "Bandwidth":
        return cls(_saturate(kbps * 1_000, U64_MAX))

    @classmethod
    def from_mbps(cls, mbps: int) -> "Bandwidth":
        return cls(_saturate(mbps * 1_000_000, U64_MAX))

    @classmethod
    def from_gbps(cls, gbps: int) -> "Bandwidth":
        return cls(_saturate(gbps * BPS_PER_GBPS, U64_MAX))

    @classmethod
    def from_mbps_f64(cls, mbps: float) -> "Bandwidth":
        """Create a Bandwidth from fractional Mbps, rounded to the bit."""
        if not math.isfinite(mbps) or mbps < 0:
            raise ValueError(f"Bandwidth must be finite and non-negative: {mbps}")
        return cls(_saturate(round(mbps * 1_000_000), U64_MAX))

    def as_bps(self) -> int:
        return self.bps

    def as_mbps_f64(self) -> float:
        return self.bps / 1_000_000

    @property
    def gbps(self) -> int:
        return self.bps // BPS_PER_GBPS

    @property
    def subgbps_bps(self) -> int:
        return self.bps % BPS_PER_GBPS

    def is_zero(self) -> bool:
        return self.bps == 0

    def __add__(self, other: "Bandwidth") -> "Bandwidth":
        if not isinstance(other, Bandwidth):
            return NotImplemented
        return Bandwidth(_saturate(self.bps + other.bps, U64_MAX))

    def __sub__(self, other: "Bandwidth") -> "Bandwidth":
        if not isinstance(other, Bandwidth):
            return NotImplemented
        return Bandwidth(_saturate(self.bps - other.bps, U64_MAX))

    def __mul__(self, factor: int) -> "Bandwidth":
        try:
            factor = operator.index(factor)
        except TypeError:
            return NotImplemented
        return Bandwidth(_saturate(self.bps * factor, U64_MAX))

    __rmul__ = __mul__

    def __str__(self) -> str:
        return _format_terms(self.bps, _BANDWIDTH_FORMAT, "0bps")

    def to_struct(self) -> dict:
        return {"gbps": self.gbps, "bps": self.subgbps_bps}

    @classmethod
    def from_struct(cls, data: Any) -> "Bandwidth":
        gbps, bps = _struct_fields(data, ("gbps", "bps"), "bandwidth")
        if bps >= BPS_PER_GBPS:
            raise ConfigDecodeError("bandwidth bps must be below one Gbps", data)
        return cls.from_bps(gbps * BPS_PER_GBPS + bps)

    @classmethod
    def parse(cls, text: str) -> "Bandwidth":
        """Parse a human-readable bandwidth such as ``"12Mbps"``."""
        return cls.from_bps(_parse_terms(text, _BANDWIDTH_UNITS, "bandwidth"))


Bandwidth.ZERO = Bandwidth(0)
Bandwidth.MAX = Bandwidth(U64_MAX)


def _struct_fields(data: Any, keys: tuple, kind: str) -> list:
    if not isinstance(data, dict):
        raise ConfigDecodeError(f"expected a structured {kind} mapping", data)
    unknown = set(data) - set(keys)
    if unknown:
        raise ConfigDecodeError(f"unknown {kind} fields {sorted(unknown)}", data)
    values = []
    for key in keys:
        value = data.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigDecodeError(
                f"{kind} field {key!r} must be a non-negative integer", data
            )
        values.append(value)
    return values


def encode_duration(value: Duration, human: bool = False) -> Union[dict, str]:
    return str(value) if human else value.to_struct()


def decode_duration(raw: Any, human: bool = False) -> Duration:
    return Duration.parse(raw) if human else Duration.from_struct(raw)


def encode_bandwidth(value: Bandwidth, human: bool = False) -> Union[dict, str]:
    return str(value) if human else value.to_struct()


def decode_bandwidth(raw: Any, human: bool = False) -> Bandwidth:
    return Bandwidth.parse(raw) if human else Bandwidth.from_struct(raw)
