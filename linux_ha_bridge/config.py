"""Configuration loading for the Linux Home Assistant bridge."""

from __future__ import annotations

import logging
import os
import re
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import voluptuous as vol
import yaml
from voluptuous.humanize import humanize_error

from .const import (
    CONF_AUTO_RECONNECT,
    CONF_CLIENT_ID,
    CONF_CONTAINERS,
    CONF_DISCOVERY_PREFIX,
    CONF_DOCKER,
    CONF_EXEC,
    CONF_HOST,
    CONF_HOSTNAME,
    CONF_ICON,
    CONF_KEEPALIVE,
    CONF_LOG_LEVEL,
    CONF_MQTT,
    CONF_NAME,
    CONF_PASSWORD,
    CONF_PORT,
    CONF_RECONNECT_INTERVAL,
    CONF_SCRIPTS,
    CONF_SOCKET,
    CONF_USERNAME,
    CONNECTED_ID,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_DOCKER_SOCKET,
    DEFAULT_KEEPALIVE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MQTT_PORT,
    DEFAULT_RECONNECT_INTERVAL,
    DEFAULT_SCRIPT_ICON,
    DOMAIN,
    LOG_LEVELS,
    SCRIPTS_ARGUMENTS_ID,
)

_LOGGER = logging.getLogger(__name__)

# Characters that would break the {hostname}/{id} topic layout
_TOPIC_UNSAFE = re.compile(r"[/+#\s]")

# Entity ids the bridge creates itself
RESERVED_IDS = (CONNECTED_ID, SCRIPTS_ARGUMENTS_ID)


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""
    pass


def default_config_path() -> Path:
    """Return $XDG_CONFIG_HOME/linux-ha-bridge/config.yaml."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return Path(base) / "linux-ha-bridge" / "config.yaml"


def local_hostname() -> str:
    return socket.gethostname().lower()


def topic_segment(value: Any) -> str:
    """Validate a string usable as a single MQTT topic level."""
    value = str(value).strip()
    if not value:
        raise vol.Invalid("must not be empty")
    if _TOPIC_UNSAFE.search(value):
        raise vol.Invalid(f"'{value}' must not contain '/', '+', '#' or whitespace")
    return value


MQTT_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): vol.All(str, vol.Length(min=1)),
        vol.Optional(CONF_PORT, default=DEFAULT_MQTT_PORT): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=65535)
        ),
        vol.Optional(CONF_USERNAME): vol.Any(None, str),
        vol.Optional(CONF_PASSWORD): vol.Any(None, vol.Coerce(str)),
        vol.Optional(CONF_CLIENT_ID): vol.Any(None, str),
        vol.Optional(CONF_KEEPALIVE, default=DEFAULT_KEEPALIVE): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
        vol.Optional(CONF_AUTO_RECONNECT, default=True): vol.Boolean(),
        vol.Optional(CONF_RECONNECT_INTERVAL, default=DEFAULT_RECONNECT_INTERVAL): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
    }
)

SCRIPT_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_EXEC): vol.All(str, vol.Length(min=1)),
        vol.Optional(CONF_NAME): str,
        vol.Optional(CONF_ICON, default=DEFAULT_SCRIPT_ICON): str,
    }
)

DOCKER_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_SOCKET, default=DEFAULT_DOCKER_SOCKET): str,
        vol.Optional(CONF_CONTAINERS, default=list): [vol.All(str, vol.Length(min=1))],
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_MQTT): MQTT_SCHEMA,
        vol.Optional(CONF_HOSTNAME): vol.All(topic_segment, vol.Lower),
        vol.Optional(CONF_DISCOVERY_PREFIX, default=DEFAULT_DISCOVERY_PREFIX): topic_segment,
        vol.Optional(CONF_LOG_LEVEL, default=DEFAULT_LOG_LEVEL): vol.All(
            str, vol.Upper, vol.In(LOG_LEVELS)
        ),
        vol.Optional(CONF_SCRIPTS, default=dict): vol.Any(
            None, {
                vol.All(
                    vol.Coerce(str),
                    topic_segment,
                    vol.NotIn(RESERVED_IDS, msg="reserved entity id"),
                ): SCRIPT_SCHEMA
            }
        ),
        vol.Optional(CONF_DOCKER): vol.Any(None, DOCKER_SCHEMA),
    }
)


@dataclass(frozen=True)
class MqttSettings:
    """Broker connection settings."""

    host: str
    port: int = DEFAULT_MQTT_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: Optional[str] = None
    keepalive: int = DEFAULT_KEEPALIVE
    auto_reconnect: bool = True
    reconnect_interval: float = DEFAULT_RECONNECT_INTERVAL


@dataclass(frozen=True)
class ScriptConfig:
    exec: str
    name: str
    icon: str = DEFAULT_SCRIPT_ICON


@dataclass(frozen=True)
class DockerConfig:
    socket: str = DEFAULT_DOCKER_SOCKET
    containers: tuple = ()


@dataclass(frozen=True)
class BridgeConfig:
    """Validated bridge configuration."""

    mqtt: MqttSettings
    hostname: str
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX
    log_level: str = DEFAULT_LOG_LEVEL
    scripts: Dict[str, ScriptConfig] = field(default_factory=dict)
    docker: Optional[DockerConfig] = None


def parse_config(raw: Any) -> BridgeConfig:
    """Validate a raw mapping (as read from YAML) into a BridgeConfig."""
    if raw is None:
        raise ConfigError("Configuration is empty")
    try:
        data = CONFIG_SCHEMA(raw)
    except vol.Invalid as err:
        raise ConfigError(humanize_error(raw, err)) from err

    hostname = data.get(CONF_HOSTNAME) or local_hostname()
    mqtt = data[CONF_MQTT]
    settings = MqttSettings(
        host=mqtt[CONF_HOST],
        port=mqtt[CONF_PORT],
        username=mqtt.get(CONF_USERNAME),
        password=mqtt.get(CONF_PASSWORD),
        client_id=mqtt.get(CONF_CLIENT_ID) or f"{DOMAIN}_{hostname}",
        keepalive=mqtt[CONF_KEEPALIVE],
        auto_reconnect=mqtt[CONF_AUTO_RECONNECT],
        reconnect_interval=mqtt[CONF_RECONNECT_INTERVAL],
    )

    scripts = {
        script_id: ScriptConfig(
            exec=script[CONF_EXEC],
            name=script.get(CONF_NAME) or script_id,
            icon=script[CONF_ICON],
        )
        for script_id, script in (data.get(CONF_SCRIPTS) or {}).items()
    }

    docker = None
    if data.get(CONF_DOCKER) is not None:
        docker_data = data[CONF_DOCKER]
        docker = DockerConfig(
            socket=docker_data[CONF_SOCKET],
            containers=tuple(docker_data[CONF_CONTAINERS]),
        )

    return BridgeConfig(
        mqtt=settings,
        hostname=hostname,
        discovery_prefix=data[CONF_DISCOVERY_PREFIX],
        log_level=data[CONF_LOG_LEVEL],
        scripts=scripts,
        docker=docker,
    )


def load_config(path: Optional[Path] = None) -> BridgeConfig:
    """Read and validate the YAML configuration file."""
    path = Path(path) if path is not None else default_config_path()
    _LOGGER.debug("Loading configuration from %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError as err:
        raise ConfigError(f"Configuration file not found: {path}") from err
    except OSError as err:
        raise ConfigError(f"Cannot read {path}: {err}") from err
    except yaml.YAMLError as err:
        raise ConfigError(f"Invalid YAML in {path}: {err}") from err
    return parse_config(raw)
