"""Tests for loading and saving configuration files."""

import pytest

from netem_trace import (
    BwTraceConfig,
    ConfigDecodeError,
    ConfigLoadError,
    Delay,
    DelayTraceConfig,
    Duration,
    RepeatedBwPatternConfig,
    RepeatedDelayPatternConfig,
    SawtoothBwConfig,
    StaticLossConfig,
    TraceConfig,
    dump_config,
    load_config,
)


def test_load_json(bw_config_json):
    """Test loading a structured JSON configuration."""
    config = load_config(bw_config_json)

    assert isinstance(config, RepeatedBwPatternConfig)
    assert config.count == 2
    assert [bw.as_bps() for bw, _ in config.build()] == [12_000_000, 24_000_000] * 2


def test_load_human_yaml(delay_config_yaml):
    """Test loading a human-readable YAML configuration."""
    config = load_config(delay_config_yaml, kind=DelayTraceConfig, human=True)

    assert isinstance(config, RepeatedDelayPatternConfig)
    assert list(config.build()) == [
        (Delay.from_millis(10), Duration.from_secs(1)),
        (Delay.from_millis(20), Duration.from_millis(1500)),
    ]


def test_load_wrong_kind(delay_config_yaml):
    """Test that the expected kind is enforced."""
    with pytest.raises(ConfigDecodeError):
        load_config(delay_config_yaml, kind=BwTraceConfig, human=True)


def test_load_any_kind(delay_config_yaml):
    """Test that TraceConfig accepts every kind."""
    config = load_config(delay_config_yaml, kind=TraceConfig, human=True)
    assert isinstance(config, RepeatedDelayPatternConfig)


def test_load_file_not_found(tmp_path):
    """Test that a missing file raises ConfigLoadError."""
    with pytest.raises(ConfigLoadError) as exc_info:
        load_config(tmp_path / "missing.json")

    assert "file not found" in str(exc_info.value)


def test_load_invalid_yaml(tmp_path):
    """Test that unparsable content raises ConfigLoadError."""
    path = tmp_path / "invalid.yaml"
    path.write_text("StaticBwConfig: {bw: [unclosed\n")

    with pytest.raises(ConfigLoadError) as exc_info:
        load_config(path)

    assert "invalid YAML/JSON" in str(exc_info.value)


def test_load_empty_file(tmp_path):
    """Test that an empty file raises ConfigLoadError."""
    path = tmp_path / "empty.json"
    path.write_text("")

    with pytest.raises(ConfigLoadError) as exc_info:
        load_config(path)

    assert "empty file" in str(exc_info.value)


def test_dump_and_load(tmp_path, repeated_bw_config):
    """Test that a dumped configuration loads back unchanged."""
    path = tmp_path / "bw.json"
    dump_config(repeated_bw_config, path)

    assert path.read_text() == repeated_bw_config.to_json()
    assert load_config(path) == repeated_bw_config


def test_dump_human(tmp_path, repeated_bw_config):
    """Test the human-readable file form."""
    path = tmp_path / "bw.json"
    dump_config(repeated_bw_config, path, human=True)

    assert '"bw":"12Mbps"' in path.read_text()
    assert load_config(path, human=True) == repeated_bw_config


@pytest.mark.parametrize(
    "config",
    [
        StaticLossConfig(loss=[1e-5, 0.5]),
        SawtoothBwConfig(duty_ratio=1e-5),
    ],
)
def test_dump_and_load_exponent_floats(tmp_path, config):
    """Test that floats written in exponent form load back unchanged."""
    path = tmp_path / "config.json"
    dump_config(config, path)

    assert "e-05" in path.read_text()
    assert load_config(path, kind=TraceConfig) == config


def test_load_invalid_utf8(tmp_path):
    """Test that undecodable bytes raise ConfigLoadError."""
    path = tmp_path / "binary.json"
    path.write_bytes(b"\xff\xfe{}")

    with pytest.raises(ConfigLoadError):
        load_config(path)
