"""
Google Cloud Pub/Sub backend.
Supports both Pub/Sub (production) and the Pub/Sub emulator (local development).
"""

import json
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import grpc
from google.api_core import exceptions
from google.cloud import pubsub_v1
from google.pubsub_v1.services.publisher.transports import PublisherGrpcTransport
from google.pubsub_v1.services.subscriber.transports import SubscriberGrpcTransport
from pydantic import BaseModel, ConfigDict

from cloudenvoy.authenticator import Authenticator
from cloudenvoy.config import Config, Mode, get_config
from cloudenvoy.logging import log_debug, log_info, setup_logger
from cloudenvoy.models import Message, Subscription, Topic

# Shorthand subscription options mapped to Subscription resource fields
SUBSCRIPTION_OPTION_ALIASES = {
    "retain_acked": "retain_acked_messages",
    "deadline": "ack_deadline_seconds",
    "retention": "message_retention_duration",
}


def _resource_name(path: str) -> str:
    """Return the last segment of a resource path (projects/p/topics/<name>)."""
    return path.rsplit("/", 1)[-1]


def build_subscription_fields(opts: Dict[str, Any]) -> Dict[str, Any]:
    """Translate subscription options into Subscription resource fields.

    `endpoint` becomes the push endpoint; aliases listed in
    SUBSCRIPTION_OPTION_ALIASES are renamed; other keys are used as is.
    """
    fields: Dict[str, Any] = {}
    for key, value in opts.items():
        if key == "endpoint":
            fields["push_config"] = {"push_endpoint": value}
            continue

        field = SUBSCRIPTION_OPTION_ALIASES.get(key, key)
        if field == "message_retention_duration" and isinstance(value, (int, float)):
            value = {"seconds": int(value)}
        fields[field] = value
    return fields


class CreateResult(BaseModel):
    """Outcome of a create call: either the new resource or an existing-resource conflict."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    resource: Any = None
    already_exists: bool = False

    @classmethod
    def attempt(cls, create: Callable[..., Any], request: Dict[str, Any]) -> "CreateResult":
        """Run a create call, turning AlreadyExists into a result.

        Every other API error propagates.
        """
        try:
            return cls(resource=create(request=request))
        except exceptions.AlreadyExists:
            return cls(already_exists=True)


class PubSubProject:
    """Publisher and subscriber clients bound to one GCP project."""

    def __init__(self, project_id: str, emulator_host: Optional[str] = None):
        self.project_id = project_id
        self.emulator_host = emulator_host

        if emulator_host:
            # The emulator speaks plain gRPC and needs no credentials
            self.publisher = pubsub_v1.PublisherClient(
                transport=PublisherGrpcTransport(channel=grpc.insecure_channel(emulator_host))
            )
            self.subscriber = pubsub_v1.SubscriberClient(
                transport=SubscriberGrpcTransport(channel=grpc.insecure_channel(emulator_host))
            )
        else:
            self.publisher = pubsub_v1.PublisherClient()
            self.subscriber = pubsub_v1.SubscriberClient()

    def topic_path(self, topic: str) -> str:
        return self.publisher.topic_path(self.project_id, topic)

    def subscription_path(self, name: str) -> str:
        return self.subscriber.subscription_path(self.project_id, name)


class GooglePubSub:
    """Interface to Google Cloud Pub/Sub."""

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the backend.

        Args:
            config: cloudenvoy configuration. If None, uses the default Config.
        """
        self._config = config or get_config()
        setup_logger(log_level=self._config.log_level)
        self._backend: Optional[PubSubProject] = None
        self._backend_lock = threading.Lock()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def development(self) -> bool:
        """True when messages go to the local Pub/Sub emulator."""
        return self.config.mode is Mode.DEVELOPMENT

    @property
    def backend(self) -> PubSubProject:
        """Return the memoized Pub/Sub project handle."""
        if self._backend is None:
            with self._backend_lock:
                if self._backend is None:
                    self._backend = self._build_backend()
        return self._backend

    def _build_backend(self) -> PubSubProject:
        if self.development:
            log_info(f"Created Pub/Sub backend (emulator mode: {self.config.emulator_host})")
            return PubSubProject(
                project_id=self.config.gcp_project_id,
                emulator_host=self.config.emulator_host,
            )

        log_info("Created Pub/Sub backend (production mode)")
        return PubSubProject(project_id=self.config.gcp_project_id)

    @property
    def webhook_url(self) -> str:
        """Processor URL carrying a verification token."""
        token = Authenticator(self.config).verification_token()
        return f"{self.config.processor_url}?token={token}"

    def subscription_name(self, name: str) -> str:
        """Return the prefixed subscription name for a subscriber."""
        return f"{self.config.gcp_sub_prefix}.{name}"

    def _serialize(self, payload: Union[Dict[str, Any], BaseModel, Any]) -> bytes:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        return json.dumps(payload).encode("utf-8")

    def _attributes(self, metadata: Optional[Dict[str, Any]]) -> Dict[str, str]:
        # Pub/Sub attribute keys and values must be strings
        return {str(k): str(v) for k, v in (metadata or {}).items()}

    def publish(
        self,
        topic: str,
        payload: Union[Dict[str, Any], BaseModel, Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        """
        Publish a message to a topic.

        The topic is not looked up beforehand. Errors raised by Pub/Sub
        propagate to the caller.

        Args:
            topic: Name of the topic
            payload: Message payload, serialized to JSON
            metadata: Message attributes

        Returns:
            The published Message
        """
        metadata = metadata or {}
        future = self.backend.publisher.publish(
            self.backend.topic_path(topic),
            self._serialize(payload),
            **self._attributes(metadata),
        )
        message_id = future.result()
        log_debug(f"Published message {message_id}", topic=topic)

        return Message(id=message_id, topic=topic, payload=payload, metadata=metadata)

    def publish_all(
        self,
        topic: str,
        payloads: Iterable[Tuple[Any, Optional[Dict[str, Any]]]],
    ) -> List[Message]:
        """
        Publish a batch of messages to a topic.

        Args:
            topic: Name of the topic
            payloads: (payload, metadata) pairs

        Returns:
            One Message per pair, in input order
        """
        publisher = self.backend.publisher
        topic_path = self.backend.topic_path(topic)

        # The publisher batches queued messages; resolve futures in input order
        pending = []
        for payload, metadata in payloads:
            metadata = metadata or {}
            future = publisher.publish(
                topic_path, self._serialize(payload), **self._attributes(metadata)
            )
            pending.append((future, payload, metadata))

        messages = [
            Message(id=future.result(), topic=topic, payload=payload, metadata=metadata)
            for future, payload, metadata in pending
        ]
        log_debug(f"Published {len(messages)} messages", topic=topic)
        return messages

    def upsert_topic(self, topic: str) -> Topic:
        """
        Create or get a topic.

        Args:
            topic: Name of the topic

        Returns:
            The Topic
        """
        publisher = self.backend.publisher
        topic_path = self.backend.topic_path(topic)

        result = CreateResult.attempt(publisher.create_topic, {"name": topic_path})
        if result.already_exists:
            gcp_topic = publisher.get_topic(request={"topic": topic_path})
            log_debug("Topic already exists", topic=topic)
        else:
            gcp_topic = result.resource
            log_info("Created topic", topic=topic)

        return Topic(name=_resource_name(gcp_topic.name), original=gcp_topic)

    def upsert_subscription(
        self, topic: str, name: str, opts: Optional[Dict[str, Any]] = None
    ) -> Subscription:
        """
        Create or update a push subscription delivering to the webhook URL.

        In development mode the topic is created first, since the emulator
        starts empty.

        Args:
            topic: Name of the topic
            name: Name of the subscription
            opts: Subscription options (retain_acked, deadline, retention or
                  Subscription field names)

        Returns:
            The Subscription
        """
        if self.development:
            self.upsert_topic(topic)

        subscriber = self.backend.subscriber
        sub_path = self.backend.subscription_path(name)
        sub_opts = {**(opts or {}), "endpoint": self.webhook_url}
        fields = build_subscription_fields(sub_opts)

        result = CreateResult.attempt(
            subscriber.create_subscription,
            {"name": sub_path, "topic": self.backend.topic_path(topic), **fields},
        )
        if result.already_exists:
            existing = subscriber.get_subscription(request={"subscription": sub_path})
            gcp_sub = subscriber.update_subscription(
                request={
                    "subscription": {"name": existing.name, **fields},
                    "update_mask": {"paths": list(fields)},
                }
            )
            log_info("Updated subscription", topic=topic, subscription=name)
        else:
            gcp_sub = result.resource
            log_info("Created subscription", topic=topic, subscription=name)

        return Subscription(name=_resource_name(gcp_sub.name), original=gcp_sub)
