"""
Transport Base Classes - Abstract publish interface

The controller only needs to publish payloads; incoming messages are pushed
into the controller by whichever transport drives it.
"""
from abc import ABC, abstractmethod

# Set-requests go to this subtopic of the state topic
SET_TOPIC_SUFFIX = "/set"


class Publisher(ABC):
    """Base class for anything the controller can publish through"""

    def __init__(self, name: str):
        """
        Initialize publisher

        Args:
            name: Human-readable transport name
        """
        self.name = name
        self.publish_count = 0

    @abstractmethod
    async def publish(self, topic: str, payload: str) -> None:
        """
        Publish a payload with at-most-once delivery

        Args:
            topic: Destination topic
            payload: Message body

        Raises:
            TransportError: If the transport is not connected
        """
        pass
