"""Expose a Linux desktop to Home Assistant through MQTT discovery."""

from .binary_sensor import BinarySensor
from .button import Button
from .camera import Camera
from .entity import Entity, EntityContext
from .event import Event
from .lock import Lock
from .media_player import MediaPlayer
from .notify import Notify
from .number import Number
from .select import Select
from .sensor import Sensor
from .switch import Switch
from .text import Text
from .transport import ConnectionState, Message, MqttTransport

__all__ = [
    "BinarySensor",
    "Button",
    "Camera",
    "ConnectionState",
    "Entity",
    "EntityContext",
    "Event",
    "Lock",
    "MediaPlayer",
    "Message",
    "MqttTransport",
    "Notify",
    "Number",
    "Select",
    "Sensor",
    "Switch",
    "Text",
]
