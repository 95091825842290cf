"""Pytest configuration and fixtures for netem_trace tests."""

import json

import pytest

from netem_trace import Bandwidth, Duration, RepeatedBwPatternConfig, StaticBwConfig


@pytest.fixture
def static_bw_config():
    """12Mbps for 1s."""
    return StaticBwConfig(bw=Bandwidth.from_mbps(12), duration=Duration.from_secs(1))


@pytest.fixture
def repeated_bw_config():
    """[12Mbps 2ms, 24Mbps 2ms] played twice."""
    return RepeatedBwPatternConfig(
        pattern=[
            StaticBwConfig(bw=Bandwidth.from_mbps(12), duration=Duration.from_millis(2)),
            StaticBwConfig(bw=Bandwidth.from_mbps(24), duration=Duration.from_millis(2)),
        ],
        count=2,
    )


@pytest.fixture
def bw_config_json(tmp_path):
    """Create a temporary bandwidth configuration JSON file."""
    data = {
        "RepeatedBwPatternConfig": {
            "pattern": [
                {"StaticBwConfig": {"bw": {"gbps": 0, "bps": 12000000}, "duration": {"secs": 1, "nanos": 0}}},
                {"StaticBwConfig": {"bw": {"gbps": 0, "bps": 24000000}, "duration": {"secs": 1, "nanos": 0}}},
            ],
            "count": 2,
        }
    }
    config_file = tmp_path / "bw.json"
    config_file.write_text(json.dumps(data, indent=2))
    return str(config_file)


@pytest.fixture
def delay_config_yaml(tmp_path):
    """Create a temporary human-readable delay configuration YAML file."""
    content = """
RepeatedDelayPatternConfig:
  pattern:
    - StaticDelayConfig:
        delay: 10ms
        duration: 1s
    - StaticDelayConfig:
        delay: 20ms
        duration: 1s 500ms
  count: 1
"""
    config_file = tmp_path / "delay.yaml"
    config_file.write_text(content)
    return str(config_file)


@pytest.fixture
def mahimahi_file(tmp_path):
    """Create a temporary mahimahi trace file."""
    trace_file = tmp_path / "trace.mahi"
    trace_file.write_text("1\n1\n5\n6\n")
    return str(trace_file)
