"""
Light Controller - Single entry point for decoded topic updates

Routes each update to the color, motion or door logic. Repeated values on a
topic are ignored. Color updates that match an outstanding set-request are
echoes of our own requests and only wake the waiting animation; any other
color update is an external override and becomes the new idle color.
"""
import json
import random
from typing import Any, Awaitable, Callable, Dict, List, Optional
import structlog

from rgblight.config import Settings
from rgblight.control.animation import AnimationScheduler
from rgblight.control.bridge import ColorBridge
from rgblight.control.correlation import CorrelationRegistry
from rgblight.errors import MessageDecodeError
from rgblight.logic.door import DoorStateMachine
from rgblight.logic.motion import MotionAnimation
from rgblight.models.color import ColorValue
from rgblight.models.state import LightState
from rgblight.transport.base import Publisher

logger = structlog.get_logger(__name__)

TopicHandler = Callable[[Any], Awaitable[None]]


def decode_color(topic: str, value: Any) -> ColorValue:
    if not isinstance(value, str):
        raise MessageDecodeError(f"Expected color token, got {value!r}", topic)
    try:
        return ColorValue.parse(value)
    except ValueError as e:
        raise MessageDecodeError(str(e), topic) from e


def decode_bool(topic: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise MessageDecodeError(f"Expected boolean, got {value!r}", topic)
    return value


class LightController:
    """
    Event dispatcher and owner of all controller state

    Owns the idle color state, the correlation registry, the animation slot
    and both state machines, and hands them to each other explicitly.
    """

    def __init__(
        self,
        settings: Settings,
        publisher: Publisher,
        registry: Optional[CorrelationRegistry] = None,
        scheduler: Optional[AnimationScheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the controller

        Args:
            settings: Application settings
            publisher: Transport for set-requests
            registry: Correlation registry (or None to create default)
            scheduler: Animation scheduler (or None to create default)
            rng: Random source for motion colors
        """
        self.settings = settings
        self.state = LightState()
        self.registry = registry or CorrelationRegistry()
        self.scheduler = scheduler or AnimationScheduler()
        self.bridge = ColorBridge(publisher, settings.topics.color, self.registry)

        self.motion = MotionAnimation(
            self.bridge, self.scheduler, self.state, settings.motion_animation, rng=rng
        )
        self.door = DoorStateMachine(
            self.bridge, self.scheduler, self.state, settings.door_animation
        )

        # Last value seen per topic, as its JSON text
        self.last_values: Dict[str, str] = {}

        self._handlers: Dict[str, TopicHandler] = {}
        for topic, handler in (
            (settings.topics.color, self._handle_color),
            (settings.topics.motion, self._handle_motion),
            (settings.topics.door, self._handle_door),
        ):
            if topic:
                self._handlers[topic] = handler

        logger.info("light_controller_initialized", topics=self.topics)

    @property
    def topics(self) -> List[str]:
        """Topics the transport should subscribe to"""
        return list(self._handlers)

    async def handle_message(self, topic: str, value: Any) -> bool:
        """
        Process one decoded topic update

        Args:
            topic: Topic the update arrived on
            value: Decoded ``value`` field of the message

        Returns:
            True if the update was handled, False if ignored

        Raises:
            MessageDecodeError: If the value has the wrong type for its topic
        """
        handler = self._handlers.get(topic)
        if handler is None:
            logger.warning("unexpected_topic", topic=topic)
            return False

        new_value = json.dumps(value)
        old_value = self.last_values.get(topic)
        logger.debug("message_received", topic=topic, old_value=old_value, new_value=new_value)

        if old_value == new_value:
            return False

        await handler(value)
        self.last_values[topic] = new_value
        return True

    async def _handle_color(self, value: Any) -> None:
        color = decode_color(self.settings.topics.color, value)

        if self.registry.resolve(str(color)):
            return

        self.state.adopt(color)
        await self.scheduler.stop_animation()
        logger.info("idle_color_changed", idle_color=str(color))

    async def _handle_motion(self, value: Any) -> None:
        await self.motion.handle(decode_bool(self.settings.topics.motion, value))

    async def _handle_door(self, value: Any) -> None:
        await self.door.handle(decode_bool(self.settings.topics.door, value))

    async def shutdown(self) -> None:
        """Stop any running animation"""
        await self.scheduler.stop_animation()

    def get_statistics(self) -> dict:
        """
        Get controller statistics

        Returns:
            Dictionary with state and component statistics
        """
        return {
            "state": self.state.to_dict(),
            "door": self.door.door_state.value if self.door.door_state else None,
            "registry": self.registry.get_statistics(),
            "bridge": self.bridge.get_statistics(),
            "scheduler": self.scheduler.get_statistics(),
        }
