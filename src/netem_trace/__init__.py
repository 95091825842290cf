"""
netem_trace - network emulation trace generation for Python.

This package generates synthetic network condition traces (bandwidth, delay,
per-packet delay, loss and duplication) as sequences of ``(value, duration)``
segments, built from serializable configurations, and converts bandwidth
traces to and from the mahimahi trace format.

Example:
    >>> from netem_trace import Bandwidth, Duration, StaticBwConfig
    >>> trace = StaticBwConfig(bw=Bandwidth.from_mbps(24), duration=Duration.from_secs(1)).build()
    >>> trace.next_bw()
    (Bandwidth(bps=24000000), Duration(nanos=1000000000))
    >>> trace.next_bw() is None
    True

Using configuration files:
    >>> from netem_trace import load_config, mahimahi
    >>> config = load_config("bw.json")
    >>> timestamps = mahimahi(config.build(), Duration.from_secs(10))
"""

from .exceptions import (
    ConfigDecodeError,
    ConfigError,
    ConfigLoadError,
    NetemTraceError,
    TraceFormatError,
)
from .loader import dump_config, load_config
from .mahimahi import (
    load_mahimahi_file,
    load_mahimahi_trace,
    mahimahi,
    mahimahi_to_file,
    mahimahi_to_string,
    parse_mahimahi_string,
)
from .model import (
    BwTrace,
    BwTraceConfig,
    DelayPerPacketTrace,
    DelayPerPacketTraceConfig,
    DelayTrace,
    DelayTraceConfig,
    DuplicateTrace,
    DuplicateTraceConfig,
    LogNormalizedBwConfig,
    LossTrace,
    LossTraceConfig,
    NormalizedBwConfig,
    NormalizedDelayConfig,
    NormalizedDelayPerPacketConfig,
    RepeatedBwPatternConfig,
    RepeatedDelayPatternConfig,
    RepeatedDelayPerPacketPatternConfig,
    RepeatedDuplicatePatternConfig,
    RepeatedLossPatternConfig,
    SawtoothBwConfig,
    StaticBwConfig,
    StaticDelayConfig,
    StaticDelayPerPacketConfig,
    StaticDuplicateConfig,
    StaticLossConfig,
    Trace,
    TraceBwConfig,
    TraceConfig,
)
from .units import Bandwidth, Delay, Duration

__version__ = "0.1.0"

__all__ = [
    # Quantities
    "Bandwidth",
    "Duration",
    "Delay",
    # Model interfaces
    "Trace",
    "BwTrace",
    "DelayTrace",
    "DelayPerPacketTrace",
    "LossTrace",
    "DuplicateTrace",
    # Configurations
    "TraceConfig",
    "BwTraceConfig",
    "StaticBwConfig",
    "NormalizedBwConfig",
    "LogNormalizedBwConfig",
    "SawtoothBwConfig",
    "TraceBwConfig",
    "RepeatedBwPatternConfig",
    "DelayTraceConfig",
    "StaticDelayConfig",
    "NormalizedDelayConfig",
    "RepeatedDelayPatternConfig",
    "DelayPerPacketTraceConfig",
    "StaticDelayPerPacketConfig",
    "NormalizedDelayPerPacketConfig",
    "RepeatedDelayPerPacketPatternConfig",
    "LossTraceConfig",
    "StaticLossConfig",
    "RepeatedLossPatternConfig",
    "DuplicateTraceConfig",
    "StaticDuplicateConfig",
    "RepeatedDuplicatePatternConfig",
    # Mahimahi
    "mahimahi",
    "mahimahi_to_string",
    "mahimahi_to_file",
    "load_mahimahi_trace",
    "load_mahimahi_file",
    "parse_mahimahi_string",
    # Files
    "load_config",
    "dump_config",
    # Exceptions
    "NetemTraceError",
    "ConfigError",
    "ConfigDecodeError",
    "ConfigLoadError",
    "TraceFormatError",
    # Version
    "__version__",
]
