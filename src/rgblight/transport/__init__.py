"""
Light Controller Transports

- MQTT (aiomqtt) for production
- Loopback with a simulated echoing light for testing
"""

from rgblight.transport.base import Publisher
from rgblight.transport.codec import decode_payload, deliver
from rgblight.transport.loopback import LoopbackTransport
from rgblight.transport.mqtt import MqttTransport

__all__ = [
    "Publisher",
    "decode_payload",
    "deliver",
    "LoopbackTransport",
    "MqttTransport",
]
