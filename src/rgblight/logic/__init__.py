"""
Light Control Logic

- Motion animation: rotating color cycle on motion
- Door state machine: closed color with idle stash, greeting on open
- Light controller: event dispatcher tying everything together
"""

from rgblight.logic.motion import MotionAnimation
from rgblight.logic.door import DoorStateMachine
from rgblight.logic.controller import LightController

__all__ = [
    "MotionAnimation",
    "DoorStateMachine",
    "LightController",
]
