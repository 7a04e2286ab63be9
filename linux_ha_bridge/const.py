"""Constants for the Linux Home Assistant bridge."""

DOMAIN = "linux_ha_bridge"

# Discovery
DEFAULT_DISCOVERY_PREFIX = "homeassistant"
DEVICE_IDENTIFIER_PREFIX = "linux_ha_bridge_"
UNIQUE_ID_PREFIX = "linux_ha_control_"

# Reserved id of the host availability entity. Its state topic doubles as the
# availability topic of every other entity on the host.
CONNECTED_ID = "connected"

# Availability payloads
PAYLOAD_AVAILABLE = "on"
PAYLOAD_NOT_AVAILABLE = "off"

# Topic suffixes below {hostname}/{id}
TOPIC_SET = "set"
TOPIC_ATTRIBUTES = "attributes"
TOPIC_NOTIFICATIONS = "notifications"
TOPIC_COMMAND = "command"
TOPIC_CONFIG = "config"

# MQTT defaults
DEFAULT_MQTT_PORT = 1883
DEFAULT_KEEPALIVE = 60
DEFAULT_RECONNECT_INTERVAL = 5.0
MQTT_QOS = 0

# Configuration keys
CONF_MQTT = "mqtt"
CONF_HOST = "host"
CONF_PORT = "port"
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_CLIENT_ID = "client_id"
CONF_KEEPALIVE = "keepalive"
CONF_AUTO_RECONNECT = "auto_reconnect"
CONF_RECONNECT_INTERVAL = "reconnect_interval"
CONF_HOSTNAME = "hostname"
CONF_DISCOVERY_PREFIX = "discovery_prefix"
CONF_LOG_LEVEL = "log_level"
CONF_SCRIPTS = "scripts"
CONF_EXEC = "exec"
CONF_NAME = "name"
CONF_ICON = "icon"
CONF_DOCKER = "docker"
CONF_SOCKET = "socket"
CONF_CONTAINERS = "containers"

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Scripts integration
SCRIPT_ARGUMENT_PLACEHOLDER = "{arg}"
SCRIPTS_ARGUMENTS_ID = "scripts_arguments"
DEFAULT_SCRIPT_ICON = "mdi:script-text"

# Docker integration
DEFAULT_DOCKER_SOCKET = "/var/run/docker.sock"
DOCKER_API_BASE_URL = "http://localhost"
DOCKER_ICON = "mdi:docker"
