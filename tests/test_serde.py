"""Tests for configuration serialization."""

import json

import pytest

from netem_trace import (
    Bandwidth,
    BwTraceConfig,
    ConfigDecodeError,
    Delay,
    DelayTraceConfig,
    Duration,
    LossTraceConfig,
    NormalizedBwConfig,
    NormalizedDelayPerPacketConfig,
    RepeatedBwPatternConfig,
    RepeatedDelayPatternConfig,
    RepeatedLossPatternConfig,
    SawtoothBwConfig,
    StaticBwConfig,
    StaticDelayConfig,
    StaticLossConfig,
    TraceBwConfig,
    TraceConfig,
)
from netem_trace.model import registered_configs

REPEATED_BW_JSON = (
    '{"RepeatedBwPatternConfig":{"pattern":['
    '{"StaticBwConfig":{"bw":{"gbps":0,"bps":12000000},"duration":{"secs":1,"nanos":0}}},'
    '{"StaticBwConfig":{"bw":{"gbps":0,"bps":24000000},"duration":{"secs":1,"nanos":0}}}'
    '],"count":2}}'
)

REPEATED_DELAY_HUMAN_JSON = (
    '{"RepeatedDelayPatternConfig":{"pattern":['
    '{"StaticDelayConfig":{"delay":"10ms","duration":"1s"}},'
    '{"StaticDelayConfig":{"delay":"20ms","duration":"1s"}}'
    '],"count":2}}'
)


class TestEncode:
    """Tests for to_dict() and to_json()."""

    def test_structured_json(self, static_bw_config):
        """Test the exact structured encoding of a repeated pattern."""
        config = RepeatedBwPatternConfig(
            pattern=[static_bw_config, static_bw_config.set(bw=Bandwidth.from_mbps(24))],
            count=2,
        )
        assert config.to_json() == REPEATED_BW_JSON

    def test_human_json(self):
        """Test the exact human-readable encoding of a repeated pattern."""
        config = RepeatedDelayPatternConfig(
            pattern=[
                StaticDelayConfig(delay=Delay.from_millis(10), duration=Duration.from_secs(1)),
                StaticDelayConfig(delay=Delay.from_millis(20), duration=Duration.from_secs(1)),
            ],
            count=2,
        )
        assert config.to_json(human=True) == REPEATED_DELAY_HUMAN_JSON

    def test_unset_fields_omitted(self):
        """Test that fields left unset are not written."""
        assert StaticBwConfig().to_dict() == {"StaticBwConfig": {}}
        assert NormalizedBwConfig(mean=Bandwidth.from_mbps(6)).to_dict(human=True) == {
            "NormalizedBwConfig": {"mean": "6Mbps"}
        }

    def test_trace_bw_list_form(self):
        """Test that TraceBwConfig is written as [duration_ms, [mbps, ...]] groups."""
        config = TraceBwConfig(
            pattern=[(Duration.from_millis(1), [Bandwidth.from_mbps(12), Bandwidth.from_mbps(24)])]
        )
        assert config.to_json() == '{"TraceBwConfig":[[1.0,[12.0,24.0]]]}'
        assert config.to_json(human=True) == config.to_json()

    def test_floats(self):
        """Test that loss patterns are written as plain lists."""
        config = StaticLossConfig(loss=[0.1, 0.2], duration=Duration.from_secs(1))
        assert config.to_dict(human=True) == {
            "StaticLossConfig": {"loss": [0.1, 0.2], "duration": "1s"}
        }


class TestDecode:
    """Tests for from_dict() and from_json()."""

    def test_structured_json(self):
        """Test decoding the structured encoding into a working model."""
        config = BwTraceConfig.from_json(REPEATED_BW_JSON)

        assert isinstance(config, RepeatedBwPatternConfig)
        assert config.count == 2
        assert [bw.as_bps() for bw, _ in config.build()] == [12_000_000, 24_000_000] * 2

    def test_human_json(self):
        """Test decoding the human-readable encoding."""
        config = DelayTraceConfig.from_json(REPEATED_DELAY_HUMAN_JSON, human=True)
        assert [delay.as_millis() for delay, _ in config.build()] == [10, 20, 10, 20]

    def test_defaults_after_decode(self):
        """Test that an empty body decodes to the documented defaults."""
        config = BwTraceConfig.from_dict({"SawtoothBwConfig": {}})

        assert config == SawtoothBwConfig()
        assert config.resolve("top") == Bandwidth.from_mbps(12)
        assert config.resolve("duty_ratio") == 0.5

    def test_trace_bw(self):
        """Test decoding the TraceBwConfig list form."""
        config = BwTraceConfig.from_json('{"TraceBwConfig":[[2.5,[6.0,0.5]],[1,[12]]]}')

        assert list(config.build()) == [
            (Bandwidth.from_mbps(6), Duration.from_micros(2500)),
            (Bandwidth.from_kbps(500), Duration.from_micros(2500)),
            (Bandwidth.from_mbps(12), Duration.from_millis(1)),
        ]

    def test_any_kind(self):
        """Test that TraceConfig decodes configurations of any kind."""
        config = TraceConfig.from_dict({"StaticLossConfig": {"loss": [0.5]}})
        assert isinstance(config, StaticLossConfig)
        assert config.loss == (0.5,)

    def test_unknown_tag(self):
        """Test that an unknown type tag raises ConfigDecodeError."""
        with pytest.raises(ConfigDecodeError) as exc_info:
            BwTraceConfig.from_dict({"SquareBwConfig": {}})

        assert "SquareBwConfig" in str(exc_info.value)

    def test_wrong_kind(self):
        """Test that a delay configuration is not accepted as a bandwidth one."""
        with pytest.raises(ConfigDecodeError) as exc_info:
            BwTraceConfig.from_dict({"StaticDelayConfig": {}})

        assert "BwTraceConfig" in str(exc_info.value)

    def test_wrong_kind_in_pattern(self):
        """Test that pattern entries must be of the pattern's kind."""
        data = {"RepeatedLossPatternConfig": {"pattern": [{"StaticBwConfig": {}}], "count": 1}}
        with pytest.raises(ConfigDecodeError):
            LossTraceConfig.from_dict(data)

    def test_unknown_field(self):
        """Test that unknown fields are rejected."""
        with pytest.raises(ConfigDecodeError) as exc_info:
            BwTraceConfig.from_dict({"StaticBwConfig": {"bandwidth": "12Mbps"}}, human=True)

        assert "bandwidth" in str(exc_info.value)

    def test_malformed_unit(self):
        """Test that a bad unit string names the field."""
        with pytest.raises(ConfigDecodeError) as exc_info:
            BwTraceConfig.from_dict({"StaticBwConfig": {"bw": "12 parsecs"}}, human=True)

        assert "StaticBwConfig.bw (bandwidth)" in str(exc_info.value)
        assert exc_info.value.raw == "12 parsecs"

    def test_field_kind_in_message(self):
        """Test that a malformed number names the expected kind."""
        with pytest.raises(ConfigDecodeError) as exc_info:
            BwTraceConfig.from_dict({"SawtoothBwConfig": {"duty_ratio": "half"}})

        assert "SawtoothBwConfig.duty_ratio (float)" in str(exc_info.value)

    def test_structured_expected(self):
        """Test that a human string is refused in structured mode."""
        with pytest.raises(ConfigDecodeError):
            BwTraceConfig.from_dict({"StaticBwConfig": {"bw": "12Mbps"}})

    def test_not_a_mapping(self):
        """Test that documents without a single tag are refused."""
        with pytest.raises(ConfigDecodeError):
            BwTraceConfig.from_dict([])
        with pytest.raises(ConfigDecodeError):
            BwTraceConfig.from_dict({"StaticBwConfig": {}, "TraceBwConfig": []})

    def test_invalid_json(self):
        """Test that malformed JSON raises ConfigDecodeError."""
        with pytest.raises(ConfigDecodeError):
            BwTraceConfig.from_json("{not json")

    def test_negative_count(self):
        """Test that a negative count is refused."""
        with pytest.raises(ConfigDecodeError):
            BwTraceConfig.from_dict({"RepeatedBwPatternConfig": {"pattern": [], "count": -1}})


class TestRoundTrip:
    """Tests that encoding then decoding gives back the configuration."""

    @pytest.mark.parametrize("human", [False, True])
    def test_nested_pattern(self, human):
        config = RepeatedBwPatternConfig(
            pattern=[
                StaticBwConfig(bw=Bandwidth.from_kbps(12500), duration=Duration.from_millis(1500)),
                NormalizedBwConfig(
                    mean=Bandwidth.from_mbps(12),
                    std_dev=Bandwidth.from_mbps(1),
                    upper_bound=Bandwidth.from_gbps(3),
                    seed=7,
                ),
                RepeatedBwPatternConfig(pattern=[SawtoothBwConfig(duty_ratio=0.25)], count=3),
            ],
            count=0,
        )
        assert BwTraceConfig.from_json(config.to_json(human), human) == config

    @pytest.mark.parametrize("human", [False, True])
    def test_per_packet(self, human):
        config = NormalizedDelayPerPacketConfig(
            mean=Delay.from_millis(12),
            std_dev=Delay.from_micros(1500),
            count=10,
        )
        encoded = json.loads(config.to_json(human))
        assert TraceConfig.from_dict(encoded, human) == config

    def test_loss_pattern(self):
        config = RepeatedLossPatternConfig(
            pattern=[StaticLossConfig(loss=[0.0, 1.0], duration=Duration.from_millis(3))],
            count=4,
        )
        assert LossTraceConfig.from_dict(config.to_dict()) == config


def test_registry_covers_all_configs():
    """Test that every configuration type is registered under its class name."""
    registry = registered_configs()

    assert registry["StaticBwConfig"] is StaticBwConfig
    assert registry["RepeatedDelayPatternConfig"] is RepeatedDelayPatternConfig
    assert len(registry) == 16
