"""
Color Bridge - Synchronous set-and-wait on top of the asynchronous transport

Animations are written as straight-line code: publish a color, wait until the
device echoes it back (or a timeout passes), dwell, repeat. The echo arrives
through the event dispatcher, which resolves the request in the correlation
registry and wakes the waiting animation.
"""
import asyncio
from typing import Optional
import structlog

from rgblight.control.correlation import CorrelationRegistry
from rgblight.models.color import ColorValue
from rgblight.transport.base import SET_TOPIC_SUFFIX, Publisher

logger = structlog.get_logger(__name__)

ACK_TIMEOUT_SECONDS = 3.0


async def wait_event(event: asyncio.Event, timeout: float) -> bool:
    """
    Wait for an event with a timeout

    Returns:
        True if the event is set, False if the timeout passed first
    """
    if event.is_set():
        return True
    try:
        await asyncio.wait_for(event.wait(), timeout)
    except asyncio.TimeoutError:
        return event.is_set()
    return True


async def _wait_gate(
    gate: asyncio.Event, cancel: Optional[asyncio.Event], timeout: float
) -> bool:
    """Wait until the gate is set, the cancel signal is set, or the timeout passes"""
    if cancel is None:
        return await wait_event(gate, timeout)

    waiters = [
        asyncio.ensure_future(gate.wait()),
        asyncio.ensure_future(cancel.wait()),
    ]
    try:
        await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
    return gate.is_set()


class ColorBridge:
    """
    Publishes color set-requests and waits for their confirmation

    The device is expected to echo every applied color on the plain color
    topic; requests go to ``<color-topic>/set``.
    """

    def __init__(
        self,
        publisher: Publisher,
        color_topic: str,
        registry: CorrelationRegistry,
        ack_timeout: float = ACK_TIMEOUT_SECONDS,
    ):
        """
        Initialize the bridge

        Args:
            publisher: Transport used to send set-requests
            color_topic: Topic the light reports its color on
            registry: Registry shared with the event dispatcher
            ack_timeout: Default confirmation wait in seconds
        """
        self.publisher = publisher
        self.color_topic = color_topic
        self.registry = registry
        self.ack_timeout = ack_timeout

        # Statistics
        self.ack_count = 0
        self.timeout_count = 0
        self.total_rtt = 0.0

    @property
    def set_topic(self) -> str:
        return self.color_topic + SET_TOPIC_SUFFIX

    async def publish_color(self, color: ColorValue) -> None:
        """
        Send a set-request without waiting for its echo

        The request is still registered so that its echo is not mistaken
        for an external color change.
        """
        self.registry.register(str(color))
        await self._publish(color)

    async def _publish(self, color: ColorValue) -> None:
        payload = str(color)
        logger.debug("color_set_request", topic=self.set_topic, color=payload)
        await self.publisher.publish(self.set_topic, payload)

    async def set_color_sync(
        self,
        color: ColorValue,
        timeout: Optional[float] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> bool:
        """
        Set a color and wait for the device to confirm it

        Args:
            color: Target color (also the correlation key)
            timeout: Seconds to wait for the echo (default ack_timeout)
            cancel: Optional cancel signal that ends the wait early

        Returns:
            True if the echo for this color arrived before the timeout
        """
        if timeout is None:
            timeout = self.ack_timeout

        key = str(color)
        loop = asyncio.get_running_loop()

        gate = self.registry.register(key)
        await self._publish(color)
        started = loop.time()

        if await _wait_gate(gate, cancel, timeout):
            rtt = loop.time() - started
            self.ack_count += 1
            self.total_rtt += rtt
            logger.debug("color_ack_received", color=key, rtt_ms=round(rtt * 1000))
            return True

        if cancel is not None and cancel.is_set():
            logger.debug("color_ack_wait_cancelled", color=key)
        else:
            self.timeout_count += 1
            logger.error("color_ack_timeout", color=key, timeout_s=timeout)
        return False

    async def set_color_for_duration(
        self, cancel: asyncio.Event, color: ColorValue, duration: float
    ) -> bool:
        """
        Show a color for a duration, counting the confirmation round-trip

        Args:
            cancel: Animation cancel signal
            color: Color to show
            duration: Total seconds the color should be held

        Returns:
            True if the color was confirmed and held for the full duration,
            False on timeout or cancellation
        """
        if cancel.is_set():
            return False

        loop = asyncio.get_running_loop()
        started = loop.time()

        if not await self.set_color_sync(color, self.ack_timeout, cancel):
            return False

        remaining = duration - (loop.time() - started)
        if remaining > 0 and await wait_event(cancel, remaining):
            return False
        return True

    def get_statistics(self) -> dict:
        """
        Get bridge statistics

        Returns:
            Dictionary with bridge statistics
        """
        avg_rtt = self.total_rtt / self.ack_count if self.ack_count > 0 else 0

        return {
            "set_topic": self.set_topic,
            "ack_timeout_s": self.ack_timeout,
            "acks": self.ack_count,
            "timeouts": self.timeout_count,
            "avg_rtt_ms": round(avg_rtt * 1000, 3),
        }
