"""
Value objects returned by the Pub/Sub backend.
"""

from .message import Message, Topic, Subscription

__all__ = [
    "Message",
    "Topic",
    "Subscription",
]
