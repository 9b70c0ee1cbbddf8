"""
Error types raised by the light controller
"""


class RgbLightError(Exception):
    """Base exception for all controller errors"""

    pass


class ConfigError(RgbLightError):
    """Configuration file missing or invalid"""

    pass


class MessageDecodeError(RgbLightError):
    """Incoming message payload could not be decoded"""

    def __init__(self, message: str, topic: str = ""):
        super().__init__(message)
        self.topic = topic


class TransportError(RgbLightError):
    """Connection to the message broker was lost or refused"""

    pass
