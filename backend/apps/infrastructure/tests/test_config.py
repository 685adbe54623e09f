# apps/infrastructure/tests/test_config.py
"""
Tests for environment-keyed configuration
"""
import pytest

from apps.infrastructure.config import (
    get_config,
    get_environment,
    get_repository_config,
    get_templates_config,
    is_production,
    is_test,
)

BITBUCKET_ENV = {
    "BITBUCKET_WORKSPACE": "acme",
    "BITBUCKET_REPO_SLUG": "prompts",
    "BITBUCKET_USERNAME": "bot",
    "BITBUCKET_APP_PASSWORD": "secret",
}


class TestEnvironment:
    """Test environment detection"""

    def test_test_settings_select_test_environment(self):
        assert get_environment() == "test"
        assert is_test() is True
        assert is_production() is False

    def test_defaults_to_development(self, monkeypatch):
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        assert get_environment() == "development"


class TestGetConfig:
    """Test configuration per environment"""

    def test_test_environment_uses_fake_repository(self):
        config = get_config()

        assert config["environment"] == "test"
        assert config["repository"]["type"] == "fake"
        assert config["templates"]["require_approval"] is True
        assert config["templates"]["history_enabled"] is False

    def test_test_environment_ignores_flags(self, monkeypatch):
        monkeypatch.setenv("TEMPLATE_DELETE_REQUIRE_APPROVAL", "false")
        assert get_templates_config()["require_approval"] is True

    def test_development_without_workspace_falls_back_to_fake(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.delenv("BITBUCKET_WORKSPACE", raising=False)

        assert get_repository_config()["type"] == "fake"

    def test_development_with_workspace_uses_bitbucket(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        for key, value in BITBUCKET_ENV.items():
            monkeypatch.setenv(key, value)

        repository = get_repository_config()

        assert repository["type"] == "bitbucket"
        assert repository["workspace"] == "acme"

    def test_production_reads_bitbucket_env(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        for key, value in BITBUCKET_ENV.items():
            monkeypatch.setenv(key, value)
        monkeypatch.setenv("BITBUCKET_DEFAULT_BRANCH", "master")
        monkeypatch.setenv("BITBUCKET_TIMEOUT", "5")

        config = get_config()

        assert config["environment"] == "production"
        assert config["repository"] == {
            "type": "bitbucket",
            "workspace": "acme",
            "repo_slug": "prompts",
            "username": "bot",
            "app_password": "secret",
            "base_url": "https://api.bitbucket.org/2.0",
            "default_branch": "master",
            "index_path": "metadata.json",
            "timeout": 5.0,
        }

    def test_template_defaults(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")
        for key in (
            "TEMPLATE_DELETE_REQUIRE_APPROVAL",
            "TEMPLATE_DEFAULT_USER",
            "TEMPLATE_HISTORY_ENABLED",
        ):
            monkeypatch.delenv(key, raising=False)

        assert get_templates_config() == {
            "require_approval": True,
            "default_user": "System",
            "history_enabled": False,
        }

    @pytest.mark.parametrize(
        "value,expected",
        [("false", False), ("0", False), ("no", False), ("TRUE", True), ("on", True), ("", True)],
    )
    def test_require_approval_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("TEMPLATE_DELETE_REQUIRE_APPROVAL", value)

        assert get_templates_config()["require_approval"] is expected

    def test_history_and_default_user(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("TEMPLATE_HISTORY_ENABLED", "true")
        monkeypatch.setenv("TEMPLATE_DEFAULT_USER", "prompt-bot")

        templates = get_templates_config()

        assert templates["history_enabled"] is True
        assert templates["default_user"] == "prompt-bot"
