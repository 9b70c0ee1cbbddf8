"""
Light Control Core - Request correlation, set-and-wait bridge, animation slot
"""

from rgblight.control.correlation import CorrelationRegistry
from rgblight.control.bridge import ColorBridge
from rgblight.control.animation import AnimationScheduler

__all__ = [
    "CorrelationRegistry",
    "ColorBridge",
    "AnimationScheduler",
]
