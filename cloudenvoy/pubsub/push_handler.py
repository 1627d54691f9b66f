"""
Utilities for handling Google Cloud Pub/Sub push subscription requests.
"""

import base64
import binascii
import json
from typing import Any, Dict, Optional

from cloudenvoy.authenticator import Authenticator
from cloudenvoy.config import Config
from cloudenvoy.logging import get_logger
from cloudenvoy.models import Message

logger = get_logger(__name__)


def parse_push_message(request_data: Dict[str, Any], topic: Optional[str] = None) -> Message:
    """
    Parse a Pub/Sub push subscription message from the request body.

    Expected format:
       {
           "message": {
               "data": "base64-encoded-json-string",
               "messageId": "message-id",
               "publishTime": "2023-01-01T00:00:00.000Z",
               "attributes": {...}
           },
           "subscription": "projects/.../subscriptions/..."
       }

    Args:
        request_data: The request body from Pub/Sub push
        topic: Topic the subscription is attached to, when known

    Returns:
        The received Message

    Raises:
        ValueError: If message format is invalid
    """
    message = request_data.get("message")
    if not message:
        raise ValueError("Missing 'message' field in Pub/Sub push request")

    message_id = message.get("messageId") or message.get("message_id")
    if not message_id:
        raise ValueError("Missing 'messageId' field in Pub/Sub message")

    encoded_data = message.get("data")
    if not encoded_data:
        raise ValueError("Missing 'data' field in Pub/Sub message")

    try:
        decoded_bytes = base64.b64decode(encoded_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Failed to decode base64 data: {e}") from e

    try:
        payload = json.loads(decoded_bytes.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError(f"Failed to parse JSON from message data: {e}") from e

    attributes = message.get("attributes") or {}
    logger.debug(
        f"Parsed Pub/Sub message: message_id={message_id}, "
        f"publish_time={message.get('publishTime')}, attributes={attributes}"
    )

    return Message(
        id=message_id,
        topic=topic,
        payload=payload,
        metadata=attributes,
        sub_uri=request_data.get("subscription"),
    )


def authenticate_push_request(token: Optional[str], config: Optional[Config] = None) -> bool:
    """
    Check the verification token of a push request before dispatching it.

    Args:
        token: Value of the `token` query parameter
        config: cloudenvoy configuration. If None, uses the default Config.

    Returns:
        True when the token is valid

    Raises:
        AuthenticationError: If the token is missing or invalid
    """
    return Authenticator(config).verify_or_raise(token)
