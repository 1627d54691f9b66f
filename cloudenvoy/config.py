"""
Configuration management for cloudenvoy.
"""

import os
import re
import threading
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from cloudenvoy.errors import ConfigError


class Mode(str, Enum):
    """Operating mode.

    - production: messages are sent to GCP Pub/Sub
    - development: messages are sent to the gcloud Pub/Sub emulator
    """

    PRODUCTION = "production"
    DEVELOPMENT = "development"


PROCESSOR_HOST_MISSING = (
    "Missing host for processing.\n"
    "Please specify a processor hostname in form of "
    "`https://some-public-dns.example.com`"
)
SUB_PREFIX_MISSING_ERROR = (
    "Missing GCP subscription prefix.\n"
    "Please specify a subscription prefix in the form of `my-app`."
)
PROJECT_ID_MISSING_ERROR = (
    "Missing GCP project ID.\n"
    "Please specify a project ID in the cloudenvoy configuration "
    "or set GCP_PROJECT_ID."
)
SECRET_MISSING_ERROR = (
    "Missing cloudenvoy secret.\n"
    "Please specify a secret in the cloudenvoy configuration "
    "or set the SECRET_KEY credential in your environment."
)


class ConfigValidation(BaseModel):
    """Outcome of Config.validate()."""

    errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class Config:
    """Holds cloudenvoy settings.

    Required settings (processor host, secret, project ID and subscription
    prefix) raise a ConfigError describing how to supply them when accessed
    before being set.
    """

    # Default application path used for processing messages
    DEFAULT_PROCESSOR_PATH: str = "/cloudenvoy/receive"
    DEFAULT_EMULATOR_HOST: str = "localhost:8085"

    # Checked in order, first non-empty value wins
    ENVIRONMENT_VARIABLES = ("CLOUDENVOY_ENV", "RAILS_ENV", "RACK_ENV")

    # Environment variable holding the host framework secret
    CREDENTIAL_SECRET_VARIABLE: str = "SECRET_KEY"

    def __init__(
        self,
        processor_host: Optional[str] = None,
        processor_path: Optional[str] = None,
        secret: Optional[str] = None,
        gcp_project_id: Optional[str] = None,
        gcp_sub_prefix: Optional[str] = None,
        emulator_host: Optional[str] = None,
        mode: Optional[Mode] = None,
        allowed_hosts: Optional[List[str]] = None,
        log_level: Optional[str] = None,
    ):
        self.allowed_hosts = allowed_hosts
        self.processor_path = processor_path
        self.secret = secret
        self.gcp_project_id = gcp_project_id
        self.gcp_sub_prefix = gcp_sub_prefix
        self.emulator_host = emulator_host
        self.log_level = log_level or "INFO"
        self._mode: Optional[Mode] = Mode(mode) if mode else None
        self._processor_host: Optional[str] = None
        self.processor_host = processor_host

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """Build a Config from environment variables.

        Keyword overrides take precedence over the environment.
        """
        settings = {
            "processor_host": os.getenv("CLOUDENVOY_PROCESSOR_HOST"),
            "processor_path": os.getenv("CLOUDENVOY_PROCESSOR_PATH"),
            "secret": os.getenv("CLOUDENVOY_SECRET"),
            "gcp_project_id": os.getenv("GCP_PROJECT_ID"),
            "gcp_sub_prefix": os.getenv("CLOUDENVOY_SUB_PREFIX"),
            "emulator_host": os.getenv("PUBSUB_EMULATOR_HOST"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
        settings.update(overrides)
        return cls(**settings)

    @property
    def mode(self) -> Mode:
        """The operating mode, derived from the environment on first access."""
        if self._mode is None:
            self._mode = (
                Mode.DEVELOPMENT
                if self.environment() == "development"
                else Mode.PRODUCTION
            )
        return self._mode

    @mode.setter
    def mode(self, value: Mode) -> None:
        self._mode = Mode(value)

    def environment(self) -> str:
        """Return the current environment name."""
        for name in self.ENVIRONMENT_VARIABLES:
            value = os.getenv(name)
            if value:
                return value
        return "development"

    @property
    def processor_host(self) -> str:
        """The hostname of the application processing the messages.

        The host must be reachable from Cloud Pub/Sub.
        """
        if not self._processor_host:
            raise ConfigError("processor_host", PROCESSOR_HOST_MISSING)
        return self._processor_host

    @processor_host.setter
    def processor_host(self, value: Optional[str]) -> None:
        self._processor_host = value

        # Register the bare hostname with the host allowlist, if one is in use
        if value and self.allowed_hosts:
            self.allowed_hosts.append(re.sub(r"^https?://", "", value))

    @property
    def processor_path(self) -> str:
        return self._processor_path or self.DEFAULT_PROCESSOR_PATH

    @processor_path.setter
    def processor_path(self, value: Optional[str]) -> None:
        self._processor_path = value

    @property
    def processor_url(self) -> str:
        """Full URL of the processor. Pub/Sub pushes messages to this URL."""
        return f"{self.processor_host.rstrip('/')}/{self.processor_path.lstrip('/')}"

    @property
    def secret(self) -> str:
        """Secret used to sign the verification tokens attached to the webhook URL."""
        value = self._secret or os.getenv(self.CREDENTIAL_SECRET_VARIABLE)
        if not value:
            raise ConfigError("secret", SECRET_MISSING_ERROR)
        return value

    @secret.setter
    def secret(self, value: Optional[str]) -> None:
        self._secret = value

    @property
    def gcp_project_id(self) -> str:
        """The ID of the project where Pub/Sub messages are hosted."""
        if not self._gcp_project_id:
            raise ConfigError("gcp_project_id", PROJECT_ID_MISSING_ERROR)
        return self._gcp_project_id

    @gcp_project_id.setter
    def gcp_project_id(self, value: Optional[str]) -> None:
        self._gcp_project_id = value

    @property
    def gcp_sub_prefix(self) -> str:
        """The prefix used when creating subscriptions."""
        if not self._gcp_sub_prefix:
            raise ConfigError("gcp_sub_prefix", SUB_PREFIX_MISSING_ERROR)
        return self._gcp_sub_prefix

    @gcp_sub_prefix.setter
    def gcp_sub_prefix(self, value: Optional[str]) -> None:
        self._gcp_sub_prefix = value

    @property
    def emulator_host(self) -> str:
        return self._emulator_host or self.DEFAULT_EMULATOR_HOST

    @emulator_host.setter
    def emulator_host(self, value: Optional[str]) -> None:
        self._emulator_host = value

    def validate(self, strict: bool = False) -> ConfigValidation:
        """Check every required setting at once.

        Args:
            strict: Raise the first ConfigError instead of returning it

        Returns:
            ConfigValidation listing the missing settings by field name
        """
        errors: Dict[str, str] = {}
        for field in ("processor_host", "secret", "gcp_project_id", "gcp_sub_prefix"):
            try:
                getattr(self, field)
            except ConfigError as e:
                if strict:
                    raise
                errors[e.field] = str(e)
        return ConfigValidation(errors=errors)


# Process-wide default configuration (singleton)
_config: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get the default Config, built from the environment on first use."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = Config.from_env()
    return _config


def configure(**settings) -> Config:
    """Replace the default Config with one built from the environment and settings."""
    # Imported here, the logging package reads its defaults from this module
    from cloudenvoy.logging import setup_logger

    global _config
    with _config_lock:
        _config = Config.from_env(**settings)
        config = _config
    setup_logger(log_level=config.log_level)
    return config


def reset_config() -> None:
    """Drop the default Config so the next get_config() rebuilds it."""
    global _config
    with _config_lock:
        _config = None
