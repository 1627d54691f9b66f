"""
Publish messages to Google Cloud Pub/Sub and receive them back through push subscriptions.
"""

from cloudenvoy.authenticator import Authenticator
from cloudenvoy.config import Config, ConfigValidation, Mode, configure, get_config
from cloudenvoy.errors import AuthenticationError, CloudenvoyError, ConfigError
from cloudenvoy.models import Message, Subscription, Topic

__all__ = [
    "Authenticator",
    "Config",
    "ConfigValidation",
    "Mode",
    "configure",
    "get_config",
    "AuthenticationError",
    "CloudenvoyError",
    "ConfigError",
    "Message",
    "Subscription",
    "Topic",
]
