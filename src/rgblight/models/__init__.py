"""
Light Controller Data Models
"""

from rgblight.models.color import ColorValue, OFF
from rgblight.models.state import LightState

__all__ = [
    "ColorValue",
    "OFF",
    "LightState",
]
