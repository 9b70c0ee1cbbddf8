"""
Loopback Transport - Simulated light and broker for testing

Behaves like a device that applies every set-request and echoes the applied
color on the plain color topic, optionally after a delay. Messages are
delivered to the controller one at a time, as a broker client would.
"""
import asyncio
from typing import TYPE_CHECKING, Any, List, Optional, Tuple
import structlog

from rgblight.transport.base import SET_TOPIC_SUFFIX, Publisher
from rgblight.transport.codec import deliver, encode_payload

if TYPE_CHECKING:
    from rgblight.logic.controller import LightController

logger = structlog.get_logger(__name__)


class LoopbackTransport(Publisher):
    """
    In-process transport with an echoing simulated light

    Attributes:
        published: Every (topic, payload) published, in order
        applied_color: Last color the simulated light applied
        echo: If False, set-requests are applied but never echoed
        echo_delay: Seconds between a set-request and its echo
    """

    def __init__(self, echo: bool = True, echo_delay: float = 0.0):
        super().__init__("Loopback")
        self.echo = echo
        self.echo_delay = echo_delay
        self.published: List[Tuple[str, str]] = []
        self.applied_color: Optional[str] = None
        self.queue: "asyncio.Queue[Tuple[str, str]]" = asyncio.Queue()

    async def publish(self, topic: str, payload: str) -> None:
        self.published.append((topic, payload))
        self.publish_count += 1

        if not topic.endswith(SET_TOPIC_SUFFIX):
            return

        self.applied_color = payload
        if self.echo:
            state_topic = topic[: -len(SET_TOPIC_SUFFIX)]
            self._schedule(state_topic, encode_payload(payload), self.echo_delay)

    def inject(self, topic: str, value: Any, delay: float = 0.0) -> None:
        """Queue a sensor or device update for delivery to the controller"""
        self._schedule(topic, encode_payload(value), delay)

    def inject_raw(self, topic: str, payload: str) -> None:
        """Queue a raw payload, bypassing envelope encoding"""
        self.queue.put_nowait((topic, payload))

    def _schedule(self, topic: str, payload: str, delay: float) -> None:
        if delay > 0:
            asyncio.get_running_loop().call_later(
                delay, self.queue.put_nowait, (topic, payload)
            )
        else:
            self.queue.put_nowait((topic, payload))

    def published_colors(self) -> List[str]:
        """Payloads of all set-requests, in order"""
        return [p for t, p in self.published if t.endswith(SET_TOPIC_SUFFIX)]

    async def run(self, controller: "LightController") -> None:
        """Deliver queued messages to the controller until cancelled"""
        logger.debug("loopback_started", topics=controller.topics)
        while True:
            topic, payload = await self.queue.get()
            try:
                await deliver(controller, topic, payload)
            finally:
                self.queue.task_done()
