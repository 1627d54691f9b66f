"""
Exceptions raised by cloudenvoy.
"""


class CloudenvoyError(Exception):
    """Base class for all cloudenvoy errors."""


class ConfigError(CloudenvoyError):
    """Raised when a required setting is accessed before being configured."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class AuthenticationError(CloudenvoyError):
    """Raised when an inbound push request carries a missing or invalid token."""
