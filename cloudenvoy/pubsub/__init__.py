"""
Google Cloud Pub/Sub backend and push subscription handling.
"""

from cloudenvoy.pubsub.google_pub_sub import GooglePubSub, PubSubProject
from cloudenvoy.pubsub.push_handler import (
    authenticate_push_request,
    parse_push_message,
)

__all__ = [
    "GooglePubSub",
    "PubSubProject",
    "authenticate_push_request",
    "parse_push_message",
]
