"""
Tests for the light controller (event dispatcher).

Tests cover:
- Topic table and duplicate suppression
- Echo suppression vs. external color overrides
- Decode failures
"""
import pytest

from rgblight.config import Settings
from rgblight.errors import MessageDecodeError
from rgblight.logic.controller import LightController
from rgblight.models.color import ColorValue, OFF
from rgblight.transport.loopback import LoopbackTransport

from conftest import COLOR_TOPIC, DOOR_TOPIC, MOTION_TOPIC

BLUE = "#0000FF0000"


class TestTopics:
    """Tests for the topic table."""

    def test_topics(self, controller):
        assert controller.topics == [COLOR_TOPIC, MOTION_TOPIC, DOOR_TOPIC]

    def test_empty_topic_is_disabled(self):
        """A topic configured as an empty string is not subscribed."""
        settings = Settings(topics={"color": "bulb", "motion": "", "door": "door"})

        ctrl = LightController(settings, LoopbackTransport())

        assert ctrl.topics == ["bulb", "door"]

    @pytest.mark.asyncio
    async def test_unknown_topic_ignored(self, controller):
        assert await controller.handle_message("other/topic", True) is False


class TestDuplicateSuppression:
    """Tests for ignoring unchanged values."""

    @pytest.mark.asyncio
    async def test_unchanged_value_ignored(self, controller):
        """The same value twice on a topic is handled once."""
        assert await controller.handle_message(MOTION_TOPIC, False) is True
        assert await controller.handle_message(MOTION_TOPIC, False) is False
        assert controller.last_values[MOTION_TOPIC] == "false"

    @pytest.mark.asyncio
    async def test_values_tracked_per_topic(self, controller):
        """The same value on different topics is handled on each."""
        assert await controller.handle_message(MOTION_TOPIC, False) is True
        assert await controller.handle_message(DOOR_TOPIC, True) is True

        await controller.shutdown()


class TestColorUpdates:
    """Tests for color topic handling."""

    @pytest.mark.asyncio
    async def test_unsolicited_color_becomes_idle(self, controller):
        """An external color is adopted as the idle color and drops the stash."""
        controller.state.stash_and_override(ColorValue.parse("#FF00000000"))

        assert await controller.handle_message(COLOR_TOPIC, BLUE) is True

        assert controller.state.idle_color == ColorValue.parse(BLUE)
        assert controller.state.has_stash is False

    @pytest.mark.asyncio
    async def test_unsolicited_off_cancels_animation(self, controller, loopback, running, wait_until):
        """An unsolicited off report cancels the running animation."""
        controller.door.opened_color_duration = 5.0

        async with running(loopback, controller):
            await controller.door.handle(True)
            handle = controller.scheduler.current
            assert await wait_until(lambda: len(loopback.published_colors()) == 1)

            await controller.handle_message(COLOR_TOPIC, "#0000000000")

            assert handle.cancel.is_set()
            assert controller.scheduler.is_running is False
            assert controller.state.idle_color == OFF

    @pytest.mark.asyncio
    async def test_echo_is_suppressed(self, controller):
        """An echo of an outstanding request resolves it and leaves idle alone."""
        gate = controller.registry.register(BLUE)

        assert await controller.handle_message(COLOR_TOPIC, BLUE) is True

        assert gate.is_set()
        assert controller.state.idle_color == OFF

    @pytest.mark.asyncio
    async def test_echo_match_is_case_insensitive(self, controller):
        """Echo tokens are normalized before matching."""
        gate = controller.registry.register(BLUE)

        await controller.handle_message(COLOR_TOPIC, BLUE.lower())

        assert gate.is_set()

    @pytest.mark.asyncio
    async def test_echo_does_not_cancel_animation(self, controller, loopback, running, wait_until):
        """Animations keep running while their own echoes come back."""
        async with running(loopback, controller):
            await controller.door.handle(True)
            handle = controller.scheduler.current
            assert await wait_until(lambda: controller.bridge.ack_count == 1)

            assert handle.cancel.is_set() is False


class TestDecodeFailures:
    """Tests for values of the wrong type."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("topic, value", [
        (COLOR_TOPIC, 123),
        (COLOR_TOPIC, "red"),
        (MOTION_TOPIC, "true"),
        (DOOR_TOPIC, None),
    ])
    async def test_wrong_type_raises(self, controller, topic, value):
        """A malformed value raises and is not remembered."""
        with pytest.raises(MessageDecodeError):
            await controller.handle_message(topic, value)

        assert topic not in controller.last_values

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_other_topics(self, controller):
        with pytest.raises(MessageDecodeError):
            await controller.handle_message(MOTION_TOPIC, "yes")

        assert await controller.handle_message(COLOR_TOPIC, BLUE) is True


class TestStatistics:
    """Tests for controller statistics."""

    @pytest.mark.asyncio
    async def test_get_statistics(self, controller):
        await controller.handle_message(COLOR_TOPIC, BLUE)

        stats = controller.get_statistics()

        assert stats["state"]["idle_color"] == BLUE
        assert stats["door"] is None
        assert set(stats) == {"state", "door", "registry", "bridge", "scheduler"}

    @pytest.mark.asyncio
    async def test_shutdown_stops_animation(self, controller):
        controller.door.opened_color_duration = 5.0
        await controller.door.handle(True)

        await controller.shutdown()

        assert controller.scheduler.is_running is False
