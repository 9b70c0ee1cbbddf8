"""
Door State Machine - Closed holds a fixed color, opening plays a greeting

Closing the door stashes the idle color and replaces it with the closed
color. Opening restores the stash (if any), shows the opened color for a
while, then returns to the idle color.
"""
import asyncio
from enum import Enum
from typing import Optional
import structlog

from rgblight.config import DoorAnimationSettings
from rgblight.control.animation import AnimationScheduler
from rgblight.control.bridge import ColorBridge
from rgblight.models.color import ColorValue
from rgblight.models.state import LightState

logger = structlog.get_logger(__name__)


class DoorState(Enum):
    OPEN = "open"
    CLOSED = "closed"


class DoorStateMachine:
    """Drives the light from door sensor updates"""

    def __init__(
        self,
        bridge: ColorBridge,
        scheduler: AnimationScheduler,
        state: LightState,
        settings: DoorAnimationSettings,
    ):
        self.bridge = bridge
        self.scheduler = scheduler
        self.state = state
        self.opened_color = ColorValue.parse(settings.opened_color)
        self.closed_color = ColorValue.parse(settings.closed_color)
        self.opened_color_duration = settings.opened_color_duration_ms / 1000.0
        self.door_state: Optional[DoorState] = None

    async def handle(self, opened: bool) -> None:
        """Handle a door sensor update"""
        if opened:
            await self.on_opened()
        else:
            await self.on_closed()

    async def on_closed(self) -> None:
        self.door_state = DoorState.CLOSED
        await self.scheduler.stop_animation()

        logger.info(
            "door_closed",
            idle_color=str(self.state.idle_color),
            closed_color=str(self.closed_color),
        )
        self.state.stash_and_override(self.closed_color)
        await self.bridge.publish_color(self.closed_color)

    async def on_opened(self) -> None:
        self.door_state = DoorState.OPEN
        source = "stashed" if self.state.restore_stash() else "idle"

        await self.scheduler.start_new_animation(
            lambda cancel: self.play_opened(cancel, source), "door open animation"
        )

    async def play_opened(self, cancel: asyncio.Event, source: str = "idle") -> bool:
        """
        Animation body: opened color for a while, then back to idle

        Args:
            cancel: Animation cancel signal
            source: Where the idle color came from, for logging

        Returns:
            True if the opened color was confirmed and held
        """
        logger.info(
            "door_opened",
            opened_color=str(self.opened_color),
            idle_color=str(self.state.idle_color),
            idle_source=source,
        )
        success = await self.bridge.set_color_for_duration(
            cancel, self.opened_color, self.opened_color_duration
        )

        if not cancel.is_set():
            await self.bridge.set_color_sync(self.state.idle_color, cancel=cancel)
            logger.debug("door_open_finished" if success else "door_open_failed")
        return success
