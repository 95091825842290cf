"""
Conversion between bandwidth traces and the mahimahi trace format.

A mahimahi trace is a list of millisecond timestamps, one per line. Each
timestamp is an opportunity to send one MTU-sized (1500 bytes) packet at that
millisecond, so a timestamp repeated k times means k packets in that
millisecond.

Example:
    >>> from netem_trace import Bandwidth, Duration, StaticBwConfig
    >>> bw = StaticBwConfig(bw=Bandwidth.from_mbps(24), duration=Duration.from_secs(1)).build()
    >>> mahimahi(bw, Duration.from_millis(5))
    [1, 1, 2, 2, 3, 3, 4, 4, 5, 5]
    >>> bw = StaticBwConfig(bw=Bandwidth.from_mbps(12), duration=Duration.from_secs(1)).build()
    >>> mahimahi_to_string(bw, Duration.from_millis(5))
    '1\\n2\\n3\\n4\\n5'
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from .exceptions import ConfigLoadError, TraceFormatError
from .model.base import BwTrace
from .model.bw import RepeatedBwPatternConfig, StaticBwConfig
from .units import NANOS_PER_SEC, Bandwidth, Duration

logger = logging.getLogger(__name__)

MTU_IN_BYTES = 1500
MTU_IN_BITS = MTU_IN_BYTES * 8
# One MTU per millisecond.
MTU_PER_MILLIS = Bandwidth.from_kbps(MTU_IN_BITS)
MAHIMAHI_TS_BIN = Duration.from_millis(1)

# Transfer credit is counted in bit-nanoseconds (bps * ns) to stay exact.
_MTU_CREDIT = MTU_IN_BITS * NANOS_PER_SEC


def mahimahi(trace: BwTrace, total_dur: Duration) -> list[int]:
    """
    Generate the mahimahi timestamps of a bandwidth trace.

    Time is cut into 1ms bins. The bandwidth available in each bin is added
    to a transfer credit, and every time the credit covers one MTU the bin's
    timestamp is emitted. A bin is labelled by the millisecond at which it
    closes, so the first bin is timestamp 1. Conversion stops when the trace
    ends or the current bin starts after ``total_dur``.

    For example, at 12Mbps (one packet per millisecond) the sequence is
    [1, 2, 3, 4, 5].

    Args:
        trace: The bandwidth trace to drive. It is consumed.
        total_dur: Length of the generated trace.

    Returns:
        Monotonically nondecreasing timestamps in milliseconds.
    """
    timestamp = MAHIMAHI_TS_BIN
    bin_rem = MAHIMAHI_TS_BIN
    credit = 0
    timestamps: list[int] = []

    while True:
        segment = trace.next_bw()
        if segment is None or timestamp > total_dur:
            break
        bw, dur = segment
        while timestamp <= total_dur and not dur.is_zero():
            part = min(bin_rem, dur)
            bin_rem -= part
            dur -= part
            credit += bw.as_bps() * part.as_nanos()
            while credit >= _MTU_CREDIT:
                timestamps.append(timestamp.as_millis())
                credit -= _MTU_CREDIT
            if bin_rem.is_zero():
                bin_rem = MAHIMAHI_TS_BIN
                timestamp += MAHIMAHI_TS_BIN

    logger.debug(f"Generated {len(timestamps)} mahimahi timestamps")
    return timestamps


def mahimahi_to_string(trace: BwTrace, total_dur: Duration) -> str:
    """Join the mahimahi timestamps of ``trace`` with newlines."""
    return "\n".join(str(ts) for ts in mahimahi(trace, total_dur))


def mahimahi_to_file(
    trace: BwTrace, total_dur: Duration, path: Union[str, Path]
) -> None:
    """Write the mahimahi timestamps of ``trace`` to ``path``."""
    content = mahimahi_to_string(trace, total_dur)
    Path(path).write_text(content)
    logger.info(f"Wrote mahimahi trace ({total_dur}) to {path}")


def load_mahimahi_trace(
    trace: Iterable[int], count: Optional[int] = None
) -> RepeatedBwPatternConfig:
    """
    Convert a mahimahi trace into a RepeatedBwPatternConfig.

    Each timestamp becomes 12Mbps (one MTU per millisecond) lasting 1ms, and
    timestamps of the same millisecond add up. For example, with count 1 the
    trace [1, 1, 5, 6] becomes [24Mbps for 1ms, 0Mbps for 3ms, 12Mbps for
    2ms].

    Zero timestamps carry no position inside the trace; they are added to the
    final millisecond of the pattern. Because of this the pattern may deviate
    slightly from how mahimahi itself replays the trace.

    Args:
        trace: Millisecond timestamps.
        count: How many times the pattern repeats; None or 0 means forever.

    Returns:
        A repeated pattern of StaticBwConfig entries.

    Raises:
        TraceFormatError: If the timestamps decrease or none is nonzero.
    """
    pattern: list[StaticBwConfig] = []

    def insert(bw: Bandwidth, duration: Duration) -> None:
        # Adjacent entries with the same bandwidth are merged.
        if pattern and pattern[-1].bw == bw:
            pattern[-1] = pattern[-1].set(duration=pattern[-1].duration + duration)
        else:
            pattern.append(StaticBwConfig(bw=bw, duration=duration))

    zero_ts_cnt = 0
    last_ts = 0
    last_cnt = 0
    for ts in trace:
        if ts < 0:
            raise TraceFormatError(f"timestamps must be non-negative, got {ts}")
        if ts == 0:
            if last_ts > 0:
                raise TraceFormatError("timestamps must be monotonically nondecreasing")
            zero_ts_cnt += 1
            continue
        if ts < last_ts:
            raise TraceFormatError("timestamps must be monotonically nondecreasing")
        if ts == last_ts:
            last_cnt += 1
            continue
        if last_ts > 0:
            insert(MTU_PER_MILLIS * last_cnt, MAHIMAHI_TS_BIN)
        if ts - last_ts > 1:
            insert(Bandwidth.ZERO, MAHIMAHI_TS_BIN * (ts - last_ts - 1))
        last_cnt = 1
        last_ts = ts

    if last_cnt == 0:
        raise TraceFormatError("trace must last for a nonzero amount of time")
    insert(MTU_PER_MILLIS * (last_cnt + zero_ts_cnt), MAHIMAHI_TS_BIN)

    logger.debug(f"Loaded mahimahi trace of {last_ts}ms into {len(pattern)} entries")
    return RepeatedBwPatternConfig(pattern=pattern, count=count or 0)


def parse_mahimahi_string(text: str) -> list[int]:
    """
    Parse newline-separated mahimahi timestamps.

    Blank lines are ignored.

    Raises:
        TraceFormatError: If a line is not a non-negative integer.
    """
    timestamps = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            ts = int(line)
        except ValueError:
            raise TraceFormatError(f"line {lineno}: invalid timestamp {line!r}")
        if ts < 0:
            raise TraceFormatError(f"line {lineno}: negative timestamp {line!r}")
        timestamps.append(ts)
    return timestamps


def load_mahimahi_file(
    path: Union[str, Path], count: Optional[int] = None
) -> RepeatedBwPatternConfig:
    """
    Load a mahimahi trace file into a RepeatedBwPatternConfig.

    Raises:
        ConfigLoadError: If the file cannot be read or is empty.
        TraceFormatError: If the content is not a valid mahimahi trace.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except FileNotFoundError:
        raise ConfigLoadError(str(path), "file not found")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(str(path), str(e))

    timestamps = parse_mahimahi_string(content)
    if not timestamps:
        raise ConfigLoadError(str(path), "empty file")

    config = load_mahimahi_trace(timestamps, count)
    logger.info(f"Loaded mahimahi trace with {len(timestamps)} timestamps from {path}")
    return config
