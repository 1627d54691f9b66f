"""Shared fixtures for the cloudenvoy test suite."""

import pytest

from cloudenvoy.config import Config, reset_config

ENVIRONMENT_VARIABLES = (
    "CLOUDENVOY_ENV",
    "RAILS_ENV",
    "RACK_ENV",
    "SECRET_KEY",
    "PUBSUB_EMULATOR_HOST",
    "GCP_PROJECT_ID",
    "CLOUDENVOY_PROCESSOR_HOST",
    "CLOUDENVOY_PROCESSOR_PATH",
    "CLOUDENVOY_SECRET",
    "CLOUDENVOY_SUB_PREFIX",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Run every test without ambient cloudenvoy settings."""
    for name in ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    return Config(
        processor_host="https://app.example.com",
        secret="my-secret-key-for-signing-verification-tokens",
        gcp_project_id="my-project",
        gcp_sub_prefix="my-app",
        mode="production",
    )
