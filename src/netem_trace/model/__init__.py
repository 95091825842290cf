"""
Predefined trace models and their configurations.

Importing this package registers every configuration type, so tagged
configurations of any kind can be decoded.
"""

from .base import (
    DEFAULT_RNG_SEED,
    BwTrace,
    DelayPerPacketTrace,
    DelayTrace,
    DuplicateTrace,
    DuplicatePattern,
    LossPattern,
    LossTrace,
    Trace,
    TraceConfig,
    registered_configs,
)
from .bw import (
    BwTraceConfig,
    LogNormalizedBw,
    LogNormalizedBwConfig,
    NormalizedBw,
    NormalizedBwConfig,
    RepeatedBwPattern,
    RepeatedBwPatternConfig,
    SawtoothBw,
    SawtoothBwConfig,
    StaticBw,
    StaticBwConfig,
    TraceBw,
    TraceBwConfig,
)
from .delay import (
    DelayTraceConfig,
    NormalizedDelay,
    NormalizedDelayConfig,
    RepeatedDelayPattern,
    RepeatedDelayPatternConfig,
    StaticDelay,
    StaticDelayConfig,
)
from .delay_per_packet import (
    DelayPerPacketTraceConfig,
    NormalizedDelayPerPacket,
    NormalizedDelayPerPacketConfig,
    RepeatedDelayPerPacketPattern,
    RepeatedDelayPerPacketPatternConfig,
    StaticDelayPerPacket,
    StaticDelayPerPacketConfig,
)
from .duplicate import (
    DuplicateTraceConfig,
    RepeatedDuplicatePattern,
    RepeatedDuplicatePatternConfig,
    StaticDuplicate,
    StaticDuplicateConfig,
)
from .loss import (
    LossTraceConfig,
    RepeatedLossPattern,
    RepeatedLossPatternConfig,
    StaticLoss,
    StaticLossConfig,
)
from .solve_truncate import solve

__all__ = [
    # Model interfaces
    "Trace",
    "BwTrace",
    "DelayTrace",
    "DelayPerPacketTrace",
    "LossTrace",
    "DuplicateTrace",
    "LossPattern",
    "DuplicatePattern",
    # Configuration interfaces
    "TraceConfig",
    "BwTraceConfig",
    "DelayTraceConfig",
    "DelayPerPacketTraceConfig",
    "LossTraceConfig",
    "DuplicateTraceConfig",
    "registered_configs",
    "DEFAULT_RNG_SEED",
    # Bandwidth
    "StaticBw",
    "StaticBwConfig",
    "NormalizedBw",
    "NormalizedBwConfig",
    "LogNormalizedBw",
    "LogNormalizedBwConfig",
    "SawtoothBw",
    "SawtoothBwConfig",
    "TraceBw",
    "TraceBwConfig",
    "RepeatedBwPattern",
    "RepeatedBwPatternConfig",
    # Delay
    "StaticDelay",
    "StaticDelayConfig",
    "NormalizedDelay",
    "NormalizedDelayConfig",
    "RepeatedDelayPattern",
    "RepeatedDelayPatternConfig",
    # Per-packet delay
    "StaticDelayPerPacket",
    "StaticDelayPerPacketConfig",
    "NormalizedDelayPerPacket",
    "NormalizedDelayPerPacketConfig",
    "RepeatedDelayPerPacketPattern",
    "RepeatedDelayPerPacketPatternConfig",
    # Loss
    "StaticLoss",
    "StaticLossConfig",
    "RepeatedLossPattern",
    "RepeatedLossPatternConfig",
    # Duplicate
    "StaticDuplicate",
    "StaticDuplicateConfig",
    "RepeatedDuplicatePattern",
    "RepeatedDuplicatePatternConfig",
    # Truncated normal
    "solve",
]
