"""
Animation Scheduler - Runs at most one cancellable animation at a time

Starting a new animation cancels the running one and waits for it to exit
before the new body is scheduled. Cancellation is cooperative: each body
receives an ``asyncio.Event`` and must check it at every wait.
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
import structlog

logger = structlog.get_logger(__name__)

AnimationBody = Callable[[asyncio.Event], Awaitable[object]]


@dataclass
class AnimationHandle:
    """The currently active animation"""

    description: str
    cancel: asyncio.Event
    task: asyncio.Task

    @property
    def running(self) -> bool:
        return not self.task.done()


class AnimationScheduler:
    """
    Single-slot animation runner

    The lock is held only across the cancel-and-join handshake, never across
    an animation body, so a new animation may be requested at any time.
    """

    def __init__(self):
        """Initialize the scheduler in the idle state"""
        self._lock = asyncio.Lock()
        self.current: Optional[AnimationHandle] = None

        # Statistics
        self.started_count = 0
        self.cancelled_count = 0
        self.failed_count = 0

        logger.debug("animation_scheduler_initialized")

    @property
    def is_running(self) -> bool:
        return self.current is not None and self.current.running

    @property
    def current_description(self) -> Optional[str]:
        if self.is_running:
            return self.current.description
        return None

    async def start_new_animation(
        self, body: AnimationBody, description: str
    ) -> AnimationHandle:
        """
        Cancel any running animation, then start a new one

        Args:
            body: Coroutine function taking the cancel signal
            description: Human-readable name used in logs

        Returns:
            Handle of the newly started animation
        """
        async with self._lock:
            await self._cancel_and_wait()

            cancel = asyncio.Event()
            task = asyncio.create_task(self._run(body, cancel, description))
            self.current = AnimationHandle(description, cancel, task)
            self.started_count += 1

            logger.debug("animation_started", animation=description)
            return self.current

    async def stop_animation(self) -> None:
        """Cancel any running animation, wait for it to exit, and go idle"""
        async with self._lock:
            await self._cancel_and_wait()
            self.current = None

    async def _cancel_and_wait(self) -> None:
        """Signal cancellation and join the running body (lock must be held)"""
        current = self.current
        if current is None or not current.running:
            return

        logger.debug("animation_stopping", animation=current.description)
        current.cancel.set()
        self.cancelled_count += 1
        await asyncio.wait([current.task])

    async def _run(
        self, body: AnimationBody, cancel: asyncio.Event, description: str
    ) -> None:
        """Run an animation body, logging anything it fails to handle"""
        try:
            await body(cancel)
        except asyncio.CancelledError:
            logger.info("animation_task_cancelled", animation=description)
            raise
        except Exception as e:
            self.failed_count += 1
            logger.error(
                "animation_error",
                animation=description,
                error=str(e),
                exc_info=True,
            )

    def get_statistics(self) -> dict:
        """
        Get scheduler statistics

        Returns:
            Dictionary with scheduler statistics
        """
        return {
            "running": self.current_description,
            "started": self.started_count,
            "cancelled": self.cancelled_count,
            "failed": self.failed_count,
        }
