"""
MQTT Transport - aiomqtt connection driving the light controller

Subscribes to the controller's topics, feeds every received message to it
one at a time, and publishes set-requests at QoS 0. Losing the broker
connection is fatal: it surfaces as TransportError.
"""
from typing import TYPE_CHECKING, Optional

import aiomqtt
import structlog

from rgblight.config import MqttSettings
from rgblight.errors import TransportError
from rgblight.transport.base import Publisher
from rgblight.transport.codec import deliver

if TYPE_CHECKING:
    from rgblight.logic.controller import LightController

logger = structlog.get_logger(__name__)

DEFAULT_PORT = 1883


class MqttTransport(Publisher):
    """Broker connection for one controller"""

    def __init__(self, settings: MqttSettings, client_id: str):
        """
        Initialize the transport (does not connect)

        Args:
            settings: Broker connection settings
            client_id: MQTT client identifier
        """
        super().__init__("MQTT")
        self.settings = settings
        self.client_id = client_id
        self.client: Optional[aiomqtt.Client] = None
        self.received_count = 0

    def is_connected(self) -> bool:
        return self.client is not None

    async def publish(self, topic: str, payload: str) -> None:
        if self.client is None:
            logger.error("mqtt_not_connected", operation="publish", topic=topic)
            raise TransportError("MQTT not connected")

        logger.debug("mqtt_publish", topic=topic, payload=payload)
        try:
            await self.client.publish(topic, payload, qos=0)
        except aiomqtt.MqttError as e:
            raise TransportError(f"Publish to {topic} failed: {e}") from e
        self.publish_count += 1

    async def run(self, controller: "LightController") -> None:
        """
        Connect, subscribe and dispatch messages until the connection drops

        Raises:
            TransportError: When the connection fails or is lost
        """
        port = self.settings.port or DEFAULT_PORT
        try:
            async with aiomqtt.Client(
                hostname=self.settings.host,
                port=port,
                username=self.settings.username or None,
                password=self.settings.password,
                identifier=self.client_id,
                clean_session=True,
            ) as client:
                self.client = client
                logger.info(
                    "mqtt_connected",
                    host=self.settings.host,
                    port=port,
                    client_id=self.client_id,
                )

                for topic in controller.topics:
                    await client.subscribe(topic)
                    logger.debug("mqtt_subscribed", topic=topic)

                async for message in client.messages:
                    self.received_count += 1
                    await deliver(controller, str(message.topic), message.payload)

        except aiomqtt.MqttError as e:
            logger.error("mqtt_connection_failed", host=self.settings.host, error=str(e))
            raise TransportError(f"Connection to {self.settings.host} failed: {e}") from e
        finally:
            self.client = None

        raise TransportError("MQTT message stream ended")
