import pytest

from linux_ha_bridge import config as config_module
from linux_ha_bridge.config import (
    ConfigError,
    default_config_path,
    load_config,
    parse_config,
)


@pytest.fixture(autouse=True)
def fixed_hostname(monkeypatch):
    monkeypatch.setattr(config_module, "local_hostname", lambda: "workstation")


def test_minimal_config_defaults():
    config = parse_config({"mqtt": {"host": "broker.lan"}})

    assert config.hostname == "workstation"
    assert config.discovery_prefix == "homeassistant"
    assert config.log_level == "INFO"
    assert config.scripts == {}
    assert config.docker is None
    assert config.mqtt.host == "broker.lan"
    assert config.mqtt.port == 1883
    assert config.mqtt.keepalive == 60
    assert config.mqtt.auto_reconnect is True
    assert config.mqtt.reconnect_interval == 5.0
    assert config.mqtt.client_id == "linux_ha_bridge_workstation"


def test_full_config():
    config = parse_config(
        {
            "mqtt": {
                "host": "broker.lan",
                "port": "8883",
                "username": "me",
                "password": 1234,
                "auto_reconnect": "no",
                "reconnect_interval": 2,
            },
            "hostname": "Laptop",
            "discovery_prefix": "ha",
            "log_level": "debug",
            "scripts": {
                "backup": {"exec": "rsync -a ~/ /backup"},
                "say": {"exec": "espeak {arg}", "name": "Say", "icon": "mdi:voice"},
            },
            "docker": {"containers": ["db"]},
        }
    )

    assert config.hostname == "laptop"
    assert config.discovery_prefix == "ha"
    assert config.log_level == "DEBUG"
    assert config.mqtt.port == 8883
    assert config.mqtt.password == "1234"
    assert config.mqtt.auto_reconnect is False
    assert config.mqtt.client_id == "linux_ha_bridge_laptop"
    assert config.scripts["backup"].name == "backup"
    assert config.scripts["backup"].icon == "mdi:script-text"
    assert config.scripts["say"].name == "Say"
    assert config.docker.socket == "/var/run/docker.sock"
    assert config.docker.containers == ("db",)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        {},
        {"mqtt": {}},
        {"mqtt": {"host": "b", "port": 70000}},
        {"mqtt": {"host": "b", "reconnect_interval": 0}},
        {"mqtt": {"host": "b"}, "hostname": "my/host"},
        {"mqtt": {"host": "b"}, "log_level": "chatty"},
        {"mqtt": {"host": "b"}, "scripts": {"x": {}}},
        {"mqtt": {"host": "b"}, "scripts": {"connected": {"exec": "true"}}},
        {"mqtt": {"host": "b"}, "scripts": {"scripts_arguments": {"exec": "echo {arg}"}}},
        {"mqtt": {"host": "b"}, "unknown": 1},
    ],
)
def test_invalid_config(raw):
    with pytest.raises(ConfigError):
        parse_config(raw)


def test_load_config_from_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("mqtt:\n  host: broker.lan\nhostname: desk\n", encoding="utf-8")

    config = load_config(path)

    assert config.hostname == "desk"
    assert config.mqtt.host == "broker.lan"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.yaml")


def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("mqtt: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)


def test_default_config_path_honours_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_config_path() == tmp_path / "linux-ha-bridge" / "config.yaml"
