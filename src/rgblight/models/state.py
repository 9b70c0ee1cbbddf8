"""
Idle color state shared between the event dispatcher and the animations
"""
from dataclasses import dataclass
from typing import Optional

from rgblight.models.color import ColorValue, OFF


@dataclass
class LightState:
    """
    Color the light returns to when no animation is running

    Attributes:
        idle_color: Current idle color
        stashed_idle_color: Idle color set aside while the door is closed
    """

    idle_color: ColorValue = OFF
    stashed_idle_color: Optional[ColorValue] = None

    @property
    def has_stash(self) -> bool:
        return self.stashed_idle_color is not None

    def adopt(self, color: ColorValue) -> None:
        """Take an externally applied color as the new idle color and drop any stash"""
        self.idle_color = color
        self.stashed_idle_color = None

    def stash_and_override(self, color: ColorValue) -> None:
        """
        Set the idle color aside (unless already stashed) and replace it

        Args:
            color: Temporary idle color
        """
        if self.stashed_idle_color is None:
            self.stashed_idle_color = self.idle_color
        self.idle_color = color

    def restore_stash(self) -> bool:
        """
        Restore the stashed idle color, if any

        Returns:
            True if a stashed color was restored, False if the idle color was kept
        """
        if self.stashed_idle_color is None:
            return False
        self.idle_color = self.stashed_idle_color
        self.stashed_idle_color = None
        return True

    def to_dict(self) -> dict:
        return {
            "idle_color": str(self.idle_color),
            "stashed_idle_color": (
                str(self.stashed_idle_color) if self.stashed_idle_color else None
            ),
        }
