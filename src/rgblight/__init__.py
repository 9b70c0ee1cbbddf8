"""
RGB Light Controller

Drives a single five-channel color light from motion and door sensor events
delivered over MQTT.
"""

__version__ = "0.1.0"
