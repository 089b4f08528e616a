"""
Tests for ServerConfig and Passthrough.
"""

import pytest

from netcatd.config import DEFAULT_BACKLOG, DEFAULT_PORT, Passthrough, ServerConfig
from netcatd.exceptions import ConfigError

# =============================================================================
# Test Passthrough
# =============================================================================


@pytest.mark.unit
class TestPassthrough:
    def test_defaults_select_nothing(self):
        assert list(Passthrough().streams()) == []
        assert str(Passthrough()) == "none"

    def test_streams_in_descriptor_order(self):
        passthrough = Passthrough(stdin=True, stderr=True)

        assert list(passthrough.streams()) == [0, 2]
        assert str(passthrough) == "stdin,stderr"

    def test_all_streams(self):
        assert list(Passthrough(True, True, True).streams()) == [0, 1, 2]


# =============================================================================
# Test ServerConfig.from_config
# =============================================================================


@pytest.mark.unit
class TestServerConfigFromConfig:
    def test_defaults(self):
        config = ServerConfig.from_config({"server": {"exec": "cat"}})

        assert config.exec == "cat"
        assert config.bind is None
        assert config.port == DEFAULT_PORT == 7994
        assert config.ipv6 is False
        assert config.systemd is False
        assert config.passthrough == Passthrough()
        assert config.backlog == DEFAULT_BACKLOG == 5

    def test_reads_section(self, sample_config_dict):
        config = ServerConfig.from_config(sample_config_dict)

        assert config.exec == "/bin/echo hello %a"
        assert config.bind == "127.0.0.1"
        assert config.passthrough == Passthrough(stdout=True)

    def test_overrides_win(self, sample_config_dict):
        config = ServerConfig.from_config(
            sample_config_dict,
            overrides={"port": 8000, "stdin": True, "exec": "cat"},
        )

        assert config.port == 8000
        assert config.exec == "cat"
        assert config.passthrough == Passthrough(stdin=True, stdout=True)

    def test_none_overrides_ignored(self, sample_config_dict):
        config = ServerConfig.from_config(
            sample_config_dict, overrides={"port": None, "bind": None, "stdout": None}
        )

        assert config.port == 7994
        assert config.bind == "127.0.0.1"
        assert config.passthrough.stdout is True

    def test_exec_only_from_overrides(self):
        config = ServerConfig.from_config({}, overrides={"exec": "cat"})
        assert config.exec == "cat"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_exec(self, value):
        with pytest.raises(ConfigError, match="missing required value"):
            ServerConfig.from_config({"server": {"exec": value}})

    def test_blank_bind_means_wildcard(self):
        config = ServerConfig.from_config({"server": {"exec": "cat", "bind": " "}})
        assert config.bind is None

    @pytest.mark.parametrize("value,expected", [("yes", True), ("off", False), (1, True)])
    def test_boolean_strings(self, value, expected):
        config = ServerConfig.from_config({"server": {"exec": "cat", "ipv6": value}})
        assert config.ipv6 is expected

    def test_invalid_boolean(self):
        with pytest.raises(ConfigError, match="expected a boolean"):
            ServerConfig.from_config({"server": {"exec": "cat", "systemd": "maybe"}})

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_out_of_range(self, port):
        with pytest.raises(ConfigError, match="between 0 and 65535"):
            ServerConfig.from_config({"server": {"exec": "cat", "port": port}})

    def test_port_not_a_number(self):
        with pytest.raises(ConfigError, match="expected an integer"):
            ServerConfig.from_config({"server": {"exec": "cat", "port": "http"}})

    def test_port_rejects_bool(self):
        with pytest.raises(ConfigError, match="expected an integer"):
            ServerConfig.from_config({"server": {"exec": "cat", "port": True}})

    def test_backlog_must_be_positive(self):
        with pytest.raises(ConfigError):
            ServerConfig.from_config({"server": {"exec": "cat", "backlog": 0}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            ServerConfig.from_config({"server": ["cat"]})

    def test_frozen(self):
        config = ServerConfig(exec="cat")

        with pytest.raises(AttributeError):
            config.port = 1  # type: ignore[misc]
