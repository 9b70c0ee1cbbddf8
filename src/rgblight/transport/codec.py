"""
Message envelope decoding and delivery

Every update arrives as a JSON object with at least a ``value`` field.
"""
import json
from typing import TYPE_CHECKING, Any, Union
import structlog

from rgblight.errors import MessageDecodeError

if TYPE_CHECKING:
    from rgblight.logic.controller import LightController

logger = structlog.get_logger(__name__)

VALUE_FIELD = "value"


def decode_payload(payload: Union[bytes, bytearray, str], topic: str = "") -> Any:
    """
    Extract the ``value`` field from a message envelope

    Raises:
        MessageDecodeError: If the payload is not a JSON object with a value
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageDecodeError(f"Payload is not UTF-8: {e}", topic) from e

    try:
        envelope = json.loads(payload)
    except ValueError as e:
        raise MessageDecodeError(f"Payload is not JSON: {e}", topic) from e

    if not isinstance(envelope, dict) or VALUE_FIELD not in envelope:
        raise MessageDecodeError(f"Payload has no '{VALUE_FIELD}' field", topic)
    return envelope[VALUE_FIELD]


def encode_payload(value: Any) -> str:
    """Wrap a value in a message envelope"""
    return json.dumps({VALUE_FIELD: value})


async def deliver(
    controller: "LightController", topic: str, payload: Union[bytes, bytearray, str]
) -> bool:
    """
    Decode a raw message and hand it to the controller

    Malformed messages are logged and dropped; they do not affect other topics.

    Returns:
        True if the controller handled the update
    """
    try:
        value = decode_payload(payload, topic)
        return await controller.handle_message(topic, value)
    except MessageDecodeError as e:
        logger.error("malformed_message", topic=topic, error=str(e))
        return False
