"""
Tests for the door state machine.
"""
import asyncio

import pytest

from rgblight.logic.door import DoorState
from rgblight.models.color import ColorValue, OFF

from conftest import DOOR_TOPIC

OPENED = "#00FF000000"
CLOSED = "#FF00000000"
BLUE = ColorValue.parse("#0000FF0000")


class TestDoorClosed:
    """Tests for the closed transition."""

    @pytest.mark.asyncio
    async def test_close_stashes_and_publishes(self, controller, loopback):
        """Closing stashes the idle color and sends the closed color."""
        controller.state.idle_color = BLUE

        await controller.door.handle(False)

        assert controller.door.door_state == DoorState.CLOSED
        assert controller.state.idle_color == ColorValue.parse(CLOSED)
        assert controller.state.stashed_idle_color == BLUE
        assert loopback.published == [("test/bulb/set", CLOSED)]
        assert controller.scheduler.is_running is False

    @pytest.mark.asyncio
    async def test_close_twice_keeps_first_stash(self, controller):
        """A second close does not stash the closed color over the original."""
        controller.state.idle_color = BLUE

        await controller.door.handle(False)
        await controller.door.handle(False)

        assert controller.state.stashed_idle_color == BLUE

    @pytest.mark.asyncio
    async def test_close_stops_running_animation(self, controller, loopback, running, wait_until):
        """Closing cancels an animation in progress."""
        controller.settings.motion_animation.single_color_length_ms = 1000

        async with running(loopback, controller):
            await controller.motion.handle(True)
            handle = controller.scheduler.current
            assert await wait_until(lambda: len(loopback.published_colors()) == 1)

            await controller.door.handle(False)

            assert handle.cancel.is_set()
            assert handle.task.done()
            assert loopback.published_colors()[-1] == CLOSED


class TestDoorOpened:
    """Tests for the opened transition."""

    @pytest.mark.asyncio
    async def test_close_then_open_restores_idle(self, controller, loopback, running, wait_until):
        """After close and open the idle color is what it was before."""
        controller.state.idle_color = BLUE

        async with running(loopback, controller):
            await controller.door.handle(False)
            await controller.door.handle(True)
            assert await wait_until(lambda: not controller.scheduler.is_running)

        assert controller.door.door_state == DoorState.OPEN
        assert controller.state.idle_color == BLUE
        assert controller.state.has_stash is False
        assert loopback.published_colors() == [CLOSED, OPENED, str(BLUE)]

    @pytest.mark.asyncio
    async def test_open_without_stash_keeps_idle(self, controller, loopback, running, wait_until):
        """Opening with nothing stashed plays the greeting and returns to idle."""
        async with running(loopback, controller):
            await controller.door.handle(True)
            assert await wait_until(lambda: not controller.scheduler.is_running)

        assert controller.state.idle_color == OFF
        assert loopback.published_colors() == [OPENED, str(OFF)]

    @pytest.mark.asyncio
    async def test_open_animation_holds_color(self, controller, loopback, running):
        """The opened color is held for the configured duration."""
        async with running(loopback, controller):
            result = await controller.door.play_opened(asyncio.Event())

        assert result is True
        assert loopback.published_colors() == [OPENED, str(OFF)]

    @pytest.mark.asyncio
    async def test_close_during_open_animation(self, controller, loopback, running, wait_until):
        """Closing mid-greeting cancels it without restoring the idle color."""
        controller.door.opened_color_duration = 5.0

        async with running(loopback, controller):
            await controller.door.handle(True)
            assert await wait_until(lambda: len(loopback.published_colors()) == 1)

            await controller.door.handle(False)

        assert loopback.published_colors() == [OPENED, CLOSED]
        assert controller.state.idle_color == ColorValue.parse(CLOSED)

    @pytest.mark.asyncio
    async def test_missed_ack_still_restores(self, controller, loopback, running):
        """A missing echo fails the greeting but still requests the idle color."""
        loopback.echo = False
        controller.bridge.ack_timeout = 0.02

        async with running(loopback, controller):
            result = await controller.door.play_opened(asyncio.Event())

        assert result is False
        assert loopback.published_colors() == [OPENED, str(OFF)]

    @pytest.mark.asyncio
    async def test_door_events_via_topic(self, controller, loopback, running, wait_until):
        """Door updates arriving on the topic drive the state machine."""
        controller.state.idle_color = BLUE

        async with running(loopback, controller):
            loopback.inject(DOOR_TOPIC, False)
            assert await wait_until(lambda: controller.door.door_state == DoorState.CLOSED)
            loopback.inject(DOOR_TOPIC, True)
            assert await wait_until(lambda: controller.door.door_state == DoorState.OPEN)
            assert await wait_until(lambda: loopback.applied_color == str(BLUE))
