"""Tests for bridge configuration."""

from __future__ import annotations

import pytest

from pc321mqtt.transports.config import (
    DEFAULT_BROKER,
    DEFAULT_CLIENT_ID,
    BridgeConfig,
    BrokerScheme,
    parse_broker_uri,
)


class TestBrokerScheme:
    """Tests for BrokerScheme enum."""

    def test_values(self) -> None:
        """Test scheme string values."""
        assert BrokerScheme.TCP == "tcp"
        assert BrokerScheme.MQTTS.value == "mqtts"

    @pytest.mark.parametrize(
        ("scheme", "port", "tls", "ws"),
        [
            (BrokerScheme.TCP, 1883, False, False),
            (BrokerScheme.MQTT, 1883, False, False),
            (BrokerScheme.SSL, 8883, True, False),
            (BrokerScheme.MQTTS, 8883, True, False),
            (BrokerScheme.WS, 80, False, True),
            (BrokerScheme.WSS, 443, True, True),
        ],
    )
    def test_properties(self, scheme: BrokerScheme, port: int, tls: bool, ws: bool) -> None:
        """Test default port and transport flags per scheme."""
        assert scheme.default_port == port
        assert scheme.uses_tls is tls
        assert scheme.uses_websockets is ws


class TestParseBrokerUri:
    """Tests for parse_broker_uri()."""

    def test_full_uri(self) -> None:
        """Test scheme, host and port are split out."""
        address = parse_broker_uri("tcp://10.10.1.1:1883")

        assert address.scheme == BrokerScheme.TCP
        assert address.host == "10.10.1.1"
        assert address.port == 1883

    def test_default_port(self) -> None:
        """Test the scheme's port is used when none is given."""
        assert parse_broker_uri("ssl://broker.local").port == 8883

    def test_bare_host(self) -> None:
        """Test a bare host:port is treated as tcp."""
        address = parse_broker_uri("broker.local:1884")

        assert address.scheme == BrokerScheme.TCP
        assert address.port == 1884

    def test_websocket_path(self) -> None:
        """Test the websocket path is kept."""
        assert parse_broker_uri("wss://broker.local/mqtt").path == "/mqtt"

    def test_scheme_case_insensitive(self) -> None:
        """Test uppercase schemes are accepted."""
        assert parse_broker_uri("TCP://broker.local").scheme == BrokerScheme.TCP

    @pytest.mark.parametrize(
        ("uri", "match"),
        [
            ("http://broker.local", "Unsupported broker scheme"),
            ("tcp://", "has no host"),
            ("tcp://broker.local:notaport", "invalid port"),
            ("tcp://broker.local:99999", "invalid port"),
        ],
    )
    def test_invalid(self, uri: str, match: str) -> None:
        """Test invalid URIs raise ValueError."""
        with pytest.raises(ValueError, match=match):
            parse_broker_uri(uri)


class TestBridgeConfig:
    """Tests for BridgeConfig dataclass."""

    def test_minimal(self) -> None:
        """Test defaults with only a topic."""
        config = BridgeConfig(topic="pc321/raw")

        assert config.broker == DEFAULT_BROKER
        assert config.username is None
        assert config.password is None
        assert config.client_id == DEFAULT_CLIENT_ID
        assert config.clean_session is False
        assert config.timeout == 5.0
        assert config.queue_size == 16
        assert config.publish_discovery is True

    def test_validate_ok(self) -> None:
        """Test a valid configuration passes."""
        BridgeConfig(topic="pc321/raw", username="u", password="p").validate()

    @pytest.mark.parametrize(
        ("kwargs", "match"),
        [
            ({"topic": ""}, "topic must not be empty"),
            ({"topic": "a\x00b"}, "NUL"),
            ({"topic": "t", "broker": "ftp://x"}, "Unsupported broker scheme"),
            ({"topic": "t", "timeout": 0}, "timeout must be positive"),
            ({"topic": "t", "queue_size": 0}, "queue_size"),
            ({"topic": "t", "password": "p"}, "password requires a username"),
        ],
    )
    def test_validate_errors(self, kwargs: dict[str, object], match: str) -> None:
        """Test invalid configurations raise ValueError."""
        config = BridgeConfig(**kwargs)  # type: ignore[arg-type]

        with pytest.raises(ValueError, match=match):
            config.validate()

    def test_broker_address(self) -> None:
        """Test the parsed broker address property."""
        config = BridgeConfig(topic="t", broker="mqtts://broker.local")

        assert config.broker_address.port == 8883

    def test_dict_round_trip(self) -> None:
        """Test to_dict/from_dict preserve every field."""
        config = BridgeConfig(
            topic="pc321/raw",
            broker="tcp://10.10.1.1:1883",
            username="meter",
            password="secret",
            client_id="bridge-2",
            clean_session=True,
            timeout=3.0,
            queue_size=8,
            publish_discovery=False,
        )

        assert BridgeConfig.from_dict(config.to_dict()) == config

    def test_from_dict_defaults(self) -> None:
        """Test from_dict fills missing keys with defaults."""
        config = BridgeConfig.from_dict({"topic": "pc321/raw"})

        assert config == BridgeConfig(topic="pc321/raw")

    def test_from_dict_requires_topic(self) -> None:
        """Test from_dict needs the topic key."""
        with pytest.raises(KeyError):
            BridgeConfig.from_dict({})


class TestBridgeConfigFromEnv:
    """Tests for BridgeConfig.from_env()."""

    def test_empty_environment(self) -> None:
        """Test defaults when nothing is set."""
        config = BridgeConfig.from_env({})

        assert config.topic == ""
        assert config.broker == DEFAULT_BROKER
        assert config.client_id == DEFAULT_CLIENT_ID

    def test_all_variables(self) -> None:
        """Test every supported variable is read."""
        config = BridgeConfig.from_env(
            {
                "PC321_TOPIC": "pc321/raw",
                "PC321_BROKER": "tcp://10.10.1.1:1883",
                "PC321_USER": "meter",
                "PC321_PASSWORD": "secret",
                "PC321_CLIENT_ID": "bridge-3",
                "PC321_CLEAN_SESSION": "true",
                "PC321_TIMEOUT": "2.5",
                "PC321_QUEUE_SIZE": "4",
            }
        )

        assert config.topic == "pc321/raw"
        assert config.broker == "tcp://10.10.1.1:1883"
        assert config.username == "meter"
        assert config.password == "secret"
        assert config.client_id == "bridge-3"
        assert config.clean_session is True
        assert config.timeout == 2.5
        assert config.queue_size == 4

    @pytest.mark.parametrize(("value", "expected"), [("1", True), ("off", False), ("", False)])
    def test_clean_session_values(self, value: str, expected: bool) -> None:
        """Test boolean parsing for the clean session flag."""
        config = BridgeConfig.from_env({"PC321_CLEAN_SESSION": value})

        assert config.clean_session is expected

    def test_invalid_boolean(self) -> None:
        """Test unparseable booleans raise ValueError."""
        with pytest.raises(ValueError, match="PC321_CLEAN_SESSION"):
            BridgeConfig.from_env({"PC321_CLEAN_SESSION": "maybe"})

    def test_invalid_timeout(self) -> None:
        """Test unparseable numbers raise ValueError."""
        with pytest.raises(ValueError):
            BridgeConfig.from_env({"PC321_TIMEOUT": "soon"})

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test os.environ is used by default."""
        monkeypatch.setenv("PC321_TOPIC", "from/env")

        assert BridgeConfig.from_env().topic == "from/env"
