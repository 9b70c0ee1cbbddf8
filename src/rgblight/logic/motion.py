"""
Motion Animation - Color cycle played when the motion sensor fires

Each trigger picks one fully saturated channel and one dimmer channel, shows
each on its own, blanks the light, then holds the mix of both until the
animation's time budget is used up and returns to the idle color.

Which channels are used rotates through a fixed table of orderings so that
consecutive triggers never look the same.
"""
import asyncio
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import structlog

from rgblight.config import MotionAnimationSettings
from rgblight.control.animation import AnimationScheduler
from rgblight.control.bridge import ColorBridge, wait_event
from rgblight.models.color import CHANNEL_COUNT, ColorValue, OFF
from rgblight.models.state import LightState

logger = structlog.get_logger(__name__)

MAX_INTENSITY = 255
MIN_SECONDARY_INTENSITY = 20

# Delay before the first color, lets the sensor's own retriggers settle
SETTLE_DELAY_SECONDS = 0.6
# Hold time for the mixed color when the cycle overran the total budget
FALLBACK_HOLD_SECONDS = 3.0

# Channel orderings, cycled one step per trigger
PERMUTATIONS: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (1, 2, 0),
    (2, 0, 1),
    (2, 1, 0),
    (1, 0, 2),
    (0, 2, 1),
)


class PermutationCursor:
    """Round-robin position in the ordering table"""

    def __init__(self, table: Sequence[Tuple[int, ...]] = PERMUTATIONS):
        self.table = table
        self.index = -1

    def advance(self) -> Tuple[int, ...]:
        """Step to the next ordering and return it"""
        self.index = (self.index + 1) % len(self.table)
        return self.table[self.index]


@dataclass(frozen=True)
class MotionSequence:
    """
    Colors of one motion animation

    Attributes:
        steps: Colors shown for one dwell period each, in order
        mixed: Final color held for the rest of the animation
    """

    steps: Tuple[ColorValue, ...]
    mixed: ColorValue

    def describe(self, idle: ColorValue) -> str:
        return "->".join(str(c) for c in (*self.steps, self.mixed, idle))


def pick_intensities(rng: random.Random) -> Tuple[int, int]:
    """Return (dim, max) intensities; one channel is always fully saturated"""
    dim, bright = sorted([rng.randrange(MIN_SECONDARY_INTENSITY, MAX_INTENSITY), MAX_INTENSITY])
    return dim, bright


def build_motion_sequence(ordering: Sequence[int], intensities: Sequence[int]) -> MotionSequence:
    """
    Build the color sequence for one trigger

    Args:
        ordering: Channel indices; the first len(intensities) are used
        intensities: Channel values in ascending order

    Returns:
        Single-channel colors for each intensity, then off, then the mix
    """
    steps = []
    mixed = [0] * CHANNEL_COUNT
    for channel, value in zip(ordering, intensities):
        clean = [0] * CHANNEL_COUNT
        clean[channel] = value
        steps.append(ColorValue.from_bytes(clean))
        mixed[channel] = value

    # Blanking before the mix makes it stand out
    steps.append(OFF)
    return MotionSequence(tuple(steps), ColorValue.from_bytes(mixed))


class MotionAnimation:
    """Starts a color cycle on every transition of the sensor to active"""

    def __init__(
        self,
        bridge: ColorBridge,
        scheduler: AnimationScheduler,
        state: LightState,
        settings: MotionAnimationSettings,
        rng: Optional[random.Random] = None,
        settle_delay: float = SETTLE_DELAY_SECONDS,
    ):
        self.bridge = bridge
        self.scheduler = scheduler
        self.state = state
        self.settings = settings
        self.rng = rng or random.Random()
        self.settle_delay = settle_delay
        self.cursor = PermutationCursor()

    @property
    def single_color_length(self) -> float:
        return self.settings.single_color_length_ms / 1000.0

    @property
    def total_animation_length(self) -> float:
        return self.settings.total_animation_length_ms / 1000.0

    def next_sequence(self) -> MotionSequence:
        return build_motion_sequence(self.cursor.advance(), pick_intensities(self.rng))

    async def handle(self, active: bool) -> None:
        """Handle a motion sensor update; only transitions to active matter"""
        if not active:
            return

        sequence = self.next_sequence()
        await self.scheduler.start_new_animation(
            lambda cancel: self.play(sequence, cancel), "motion animation"
        )

    async def play(self, sequence: MotionSequence, cancel: asyncio.Event) -> bool:
        """
        Animation body

        Returns:
            True if every color was confirmed and held, False otherwise
        """
        logger.info("motion_animation_started", sequence=sequence.describe(self.state.idle_color))

        if await wait_event(cancel, self.settle_delay):
            return False

        success = await self._cycle(sequence, cancel)

        # The canceller decides what comes next
        if not cancel.is_set():
            await self.bridge.set_color_sync(self.state.idle_color, cancel=cancel)
            logger.debug("motion_animation_finished" if success else "motion_animation_failed")
        return success

    async def _cycle(self, sequence: MotionSequence, cancel: asyncio.Event) -> bool:
        loop = asyncio.get_running_loop()
        started = loop.time()

        for color in sequence.steps:
            if not await self.bridge.set_color_for_duration(cancel, color, self.single_color_length):
                return False

        remaining = self.total_animation_length - (loop.time() - started)
        if remaining < 0:
            remaining = FALLBACK_HOLD_SECONDS

        return await self.bridge.set_color_for_duration(cancel, sequence.mixed, remaining)
