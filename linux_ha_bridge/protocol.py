"""
Home Assistant MQTT discovery protocol helpers.

This module builds the topics, discovery payloads and attribute documents
exchanged with Home Assistant.

Topics:
- {prefix}/{ha_type}/{hostname}/{id}/config  - Discovery config (retained)
- {hostname}/{id}                            - Entity state
- {hostname}/{id}/set                        - Commands from Home Assistant
- {hostname}/{id}/attributes                 - JSON attributes (retained)
- {hostname}/connected                       - Host availability ("on"/"off")
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .const import (
    CONNECTED_ID,
    DEVICE_IDENTIFIER_PREFIX,
    PAYLOAD_AVAILABLE,
    PAYLOAD_NOT_AVAILABLE,
    TOPIC_ATTRIBUTES,
    TOPIC_CONFIG,
    UNIQUE_ID_PREFIX,
)

# =============================================================================
# DISCOVERY CATEGORIES
# =============================================================================

HA_TYPES = frozenset(
    {
        "sensor",
        "binary_sensor",
        "switch",
        "button",
        "number",
        "select",
        "lock",
        "event",
        "camera",
        "notify",
        "media_player",
        "text",
    }
)

# Keys every discovery payload may carry.
COMMON_KEYS = frozenset(
    {
        "name",
        "icon",
        "device",
        "device_class",
        "entity_category",
        "enabled_by_default",
        "object_id",
        "unique_id",
        "availability_topic",
        "payload_available",
        "payload_not_available",
        "json_attributes_topic",
        "json_attributes_template",
        "qos",
        "retain",
    }
)

# Keys recognized per discovery category, beyond COMMON_KEYS. Anything else
# is passed through as a vendor extension.
PLATFORM_KEYS: Dict[str, frozenset] = {
    "sensor": frozenset(
        {
            "state_topic",
            "unit_of_measurement",
            "state_class",
            "value_template",
            "expire_after",
            "force_update",
            "suggested_display_precision",
        }
    ),
    "binary_sensor": frozenset(
        {"state_topic", "payload_on", "payload_off", "off_delay", "expire_after", "value_template"}
    ),
    "switch": frozenset(
        {"state_topic", "command_topic", "payload_on", "payload_off", "state_on", "state_off", "optimistic"}
    ),
    "button": frozenset({"command_topic", "payload_press"}),
    "number": frozenset(
        {"state_topic", "command_topic", "min", "max", "step", "mode", "unit_of_measurement"}
    ),
    "select": frozenset({"state_topic", "command_topic", "options"}),
    "lock": frozenset(
        {
            "state_topic",
            "command_topic",
            "payload_lock",
            "payload_unlock",
            "state_locked",
            "state_unlocked",
            "payload_open",
        }
    ),
    "event": frozenset({"state_topic", "event_types", "value_template"}),
    # command_topic on a camera is a bridge extension used to request a fresh image
    "camera": frozenset({"topic", "image_encoding", "command_topic"}),
    "notify": frozenset({"state_topic", "command_topic"}),
    "media_player": frozenset(
        {
            "state_topic",
            "command_play_topic",
            "command_pause_topic",
            "command_playpause_topic",
            "command_stop_topic",
            "command_next_topic",
            "command_previous_topic",
            "command_volume_topic",
            "command_playmedia_topic",
        }
    ),
    "text": frozenset({"state_topic", "command_topic", "min", "max", "mode", "pattern"}),
}


def is_recognized_key(ha_type: str, key: str) -> bool:
    """Return True if key is a documented discovery field for ha_type."""
    return key in COMMON_KEYS or key in PLATFORM_KEYS.get(ha_type, frozenset())


# =============================================================================
# TOPICS
# =============================================================================


def base_topic(hostname: str, entity_id: str) -> str:
    """Root of an entity's topic namespace."""
    return f"{hostname}/{entity_id}"


def sub_topic(hostname: str, entity_id: str, suffix: str) -> str:
    return f"{base_topic(hostname, entity_id)}/{suffix}"


def availability_topic(hostname: str) -> str:
    """Per-host availability topic."""
    return base_topic(hostname, CONNECTED_ID)


def discovery_topic(prefix: str, ha_type: str, hostname: str, entity_id: str) -> str:
    return f"{prefix}/{ha_type}/{hostname}/{entity_id}/{TOPIC_CONFIG}"


def device_identifier(hostname: str) -> str:
    return f"{DEVICE_IDENTIFIER_PREFIX}{hostname}"


def unique_id(hostname: str, entity_id: str) -> str:
    return f"{UNIQUE_ID_PREFIX}{hostname}_{entity_id}"


# =============================================================================
# DISCOVERY PAYLOAD
# =============================================================================


def build_discovery_config(
    discovery_config: Mapping[str, Any],
    *,
    hostname: str,
    entity_id: str,
    name: str,
    icon: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge an entity's discovery config with the computed fields.

    Computed fields win on key collision, except ``device`` which is only
    filled in when the entity did not provide one.
    """
    config: Dict[str, Any] = dict(discovery_config)
    config["name"] = name

    if entity_id != CONNECTED_ID:
        config["availability_topic"] = availability_topic(hostname)
        config["payload_available"] = PAYLOAD_AVAILABLE
        config["payload_not_available"] = PAYLOAD_NOT_AVAILABLE
        if icon:
            config["icon"] = icon

    # Every MQTT entity type accepts an attributes topic
    config["json_attributes_topic"] = sub_topic(hostname, entity_id, TOPIC_ATTRIBUTES)
    if "device" not in config:
        config["device"] = {"identifiers": device_identifier(hostname)}
    config["unique_id"] = unique_id(hostname, entity_id)
    return config


def _json_default(value: Any) -> Any:
    """Fallback for values plain JSON cannot hold."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def encode_json(document: Mapping[str, Any]) -> str:
    """Compact JSON with sorted keys so equal documents encode identically.

    Dates become ISO-8601 strings and anything else JSON cannot hold is
    stringified, so encoding never fails.
    """
    return json.dumps(
        document,
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    )


# =============================================================================
# ATTRIBUTES
# =============================================================================


def convert_for_home_assistant(value: Any) -> Any:
    """Convert an attribute value into something automations handle reliably.

    Booleans become the strings "true"/"false", datetimes become ISO-8601
    strings, lists and mappings are converted element by element. Anything
    else passes through unchanged.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): convert_for_home_assistant(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [convert_for_home_assistant(item) for item in value]
    return value


def encode_attributes(attributes: Mapping[str, Any]) -> str:
    """Encode an attribute mapping as the JSON document for /attributes."""
    return encode_json(
        {str(key): convert_for_home_assistant(value) for key, value in attributes.items()}
    )
