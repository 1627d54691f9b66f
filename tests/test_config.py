"""Tests for the configuration holder."""

import pytest

from cloudenvoy.config import (
    PROCESSOR_HOST_MISSING,
    PROJECT_ID_MISSING_ERROR,
    SECRET_MISSING_ERROR,
    SUB_PREFIX_MISSING_ERROR,
    Config,
    Mode,
    configure,
    get_config,
)
from cloudenvoy.errors import ConfigError


class TestEnvironment:
    """Tests for environment and mode resolution."""

    def test_defaults_to_development(self):
        assert Config().environment() == "development"
        assert Config().mode is Mode.DEVELOPMENT

    def test_cloudenvoy_env_wins(self, monkeypatch):
        monkeypatch.setenv("CLOUDENVOY_ENV", "staging")
        monkeypatch.setenv("RAILS_ENV", "development")
        monkeypatch.setenv("RACK_ENV", "development")
        assert Config().environment() == "staging"

    def test_falls_back_in_order(self, monkeypatch):
        monkeypatch.setenv("RACK_ENV", "test")
        assert Config().environment() == "test"

        monkeypatch.setenv("RAILS_ENV", "production")
        assert Config().environment() == "production"

    def test_empty_values_are_skipped(self, monkeypatch):
        monkeypatch.setenv("CLOUDENVOY_ENV", "")
        monkeypatch.setenv("RACK_ENV", "production")
        assert Config().environment() == "production"

    def test_production_mode_for_other_environments(self, monkeypatch):
        monkeypatch.setenv("CLOUDENVOY_ENV", "test")
        assert Config().mode is Mode.PRODUCTION

    def test_mode_is_memoized(self, monkeypatch):
        config = Config()
        assert config.mode is Mode.DEVELOPMENT

        monkeypatch.setenv("CLOUDENVOY_ENV", "production")
        assert config.mode is Mode.DEVELOPMENT

    def test_explicit_mode(self):
        config = Config(mode="production")
        assert config.mode is Mode.PRODUCTION

        config.mode = Mode.DEVELOPMENT
        assert config.mode is Mode.DEVELOPMENT


class TestRequiredSettings:
    """Tests for fail-fast accessors."""

    @pytest.mark.parametrize(
        "field,message",
        [
            ("processor_host", PROCESSOR_HOST_MISSING),
            ("secret", SECRET_MISSING_ERROR),
            ("gcp_project_id", PROJECT_ID_MISSING_ERROR),
            ("gcp_sub_prefix", SUB_PREFIX_MISSING_ERROR),
        ],
    )
    def test_missing_setting_raises(self, field, message):
        with pytest.raises(ConfigError) as exc_info:
            getattr(Config(), field)

        assert str(exc_info.value) == message
        assert exc_info.value.field == field

    def test_error_messages_are_distinct(self):
        messages = {
            PROCESSOR_HOST_MISSING,
            SECRET_MISSING_ERROR,
            PROJECT_ID_MISSING_ERROR,
            SUB_PREFIX_MISSING_ERROR,
        }
        assert len(messages) == 4

    def test_configured_values_are_returned(self, config):
        assert config.processor_host == "https://app.example.com"
        assert config.secret == "my-secret-key-for-signing-verification-tokens"
        assert config.gcp_project_id == "my-project"
        assert config.gcp_sub_prefix == "my-app"

    def test_secret_falls_back_to_credential(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "framework-secret")
        assert Config().secret == "framework-secret"
        assert Config(secret="explicit").secret == "explicit"


class TestProcessor:
    """Tests for processor host, path and URL."""

    def test_default_path(self):
        assert Config().processor_path == "/cloudenvoy/receive"

    def test_processor_url(self, config):
        assert config.processor_url == "https://app.example.com/cloudenvoy/receive"

    def test_processor_url_joins_slashes(self):
        config = Config(processor_host="https://app.example.com/", processor_path="hooks/pubsub")
        assert config.processor_url == "https://app.example.com/hooks/pubsub"

    def test_processor_url_requires_host(self):
        with pytest.raises(ConfigError):
            Config().processor_url

    def test_host_is_added_to_allowlist(self):
        hosts = ["localhost"]
        config = Config(allowed_hosts=hosts)
        config.processor_host = "https://app.example.com"

        assert hosts == ["localhost", "app.example.com"]

    def test_http_scheme_is_stripped(self):
        hosts = ["localhost"]
        Config(processor_host="http://app.example.com", allowed_hosts=hosts)

        assert hosts == ["localhost", "app.example.com"]

    def test_empty_allowlist_is_left_alone(self):
        hosts = []
        Config(processor_host="https://app.example.com", allowed_hosts=hosts)
        assert hosts == []


class TestEmulatorHost:
    def test_default(self):
        assert Config().emulator_host == "localhost:8085"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PUBSUB_EMULATOR_HOST", "pubsub:8681")
        assert Config.from_env().emulator_host == "pubsub:8681"


class TestValidate:
    def test_valid_config(self, config):
        result = config.validate()
        assert result.ok
        assert result.errors == {}

    def test_reports_every_missing_field(self):
        result = Config(secret="s").validate()

        assert not result.ok
        assert result.errors == {
            "processor_host": PROCESSOR_HOST_MISSING,
            "gcp_project_id": PROJECT_ID_MISSING_ERROR,
            "gcp_sub_prefix": SUB_PREFIX_MISSING_ERROR,
        }

    def test_strict_raises(self):
        with pytest.raises(ConfigError) as exc_info:
            Config().validate(strict=True)
        assert exc_info.value.field == "processor_host"


class TestDefaultConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CLOUDENVOY_PROCESSOR_HOST", "https://env.example.com")
        monkeypatch.setenv("GCP_PROJECT_ID", "env-project")
        monkeypatch.setenv("CLOUDENVOY_SUB_PREFIX", "env-app")
        monkeypatch.setenv("CLOUDENVOY_SECRET", "env-secret")

        config = get_config()
        assert config.processor_host == "https://env.example.com"
        assert config.gcp_project_id == "env-project"
        assert config.gcp_sub_prefix == "env-app"
        assert config.secret == "env-secret"
        assert get_config() is config

    def test_configure_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("GCP_PROJECT_ID", "env-project")

        config = configure(gcp_project_id="explicit-project", gcp_sub_prefix="app")
        assert get_config() is config
        assert config.gcp_project_id == "explicit-project"
        assert config.gcp_sub_prefix == "app"
