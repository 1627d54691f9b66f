"""
Message, topic and subscription models.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """A published (or received) Pub/Sub message."""

    model_config = ConfigDict(frozen=True)

    id: str
    topic: Optional[str] = None
    payload: Any = None
    metadata: Dict[Any, Any] = Field(default_factory=dict)
    sub_uri: Optional[str] = None  # Only set on messages received through a push subscription


class Topic(BaseModel):
    """A Pub/Sub topic."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    original: Any = None  # google.cloud.pubsub_v1.types.Topic


class Subscription(BaseModel):
    """A push subscription delivering a topic's messages to the webhook URL."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    original: Any = None  # google.cloud.pubsub_v1.types.Subscription
