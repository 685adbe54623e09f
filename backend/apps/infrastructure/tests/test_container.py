# apps/infrastructure/tests/test_container.py
"""
Tests for the dependency injection container
"""
import pytest

from apps.adapters.bitbucket.client import BitbucketRepository
from apps.adapters.bitbucket.fake import FakeRemoteRepository
from apps.domain.services.template_store import TemplateStore
from apps.domain.services.webhooks import WebhookEventTranslator
from apps.infrastructure.container import (
    create_remote_repository,
    create_template_store,
    create_webhook_translator,
    get_service_info,
    reset_fake_repository,
    validate_config,
)

BITBUCKET_CONFIG = {
    "repository": {
        "type": "bitbucket",
        "workspace": "acme",
        "repo_slug": "prompts",
        "username": "bot",
        "app_password": "secret",
        "default_branch": "main",
        "index_path": "metadata.json",
        "timeout": 10.0,
    },
    "templates": {"require_approval": False, "default_user": "svc", "history_enabled": True},
    "environment": "production",
}


class TestCreateRemoteRepository:
    """Test adapter selection"""

    def test_fake_is_shared(self):
        first = create_remote_repository({"type": "fake"})
        second = create_remote_repository({"type": "fake"})

        assert isinstance(first, FakeRemoteRepository)
        assert first is second

    def test_reset_replaces_fake(self, fake_repository):
        assert reset_fake_repository() is not fake_repository

    def test_bitbucket(self):
        repo = create_remote_repository(BITBUCKET_CONFIG["repository"])

        assert isinstance(repo, BitbucketRepository)
        assert repo.repo_url == "https://api.bitbucket.org/2.0/repositories/acme/prompts"
        assert repo.timeout == 10.0

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown repository type"):
            create_remote_repository({"type": "gitlab"})


class TestCreateServices:
    """Test service wiring"""

    def test_store_from_environment(self, fake_repository, greeting_fields):
        store = create_template_store()

        assert isinstance(store, TemplateStore)
        assert store.require_approval is True
        created = store.create(greeting_fields)
        assert "CS/APP1/Greeting.json" in fake_repository.files()
        assert store.get(created.id).content.main_content == "Hello"

    def test_store_honours_templates_config(self):
        store = create_template_store(BITBUCKET_CONFIG)

        assert store.require_approval is False
        assert isinstance(store._repository, BitbucketRepository)

    def test_store_with_repository_override(self, greeting_fields):
        repo = FakeRemoteRepository()
        store = create_template_store(repository=repo)

        store.create(greeting_fields)

        assert "metadata.json" in repo.files()

    def test_webhook_translator(self):
        assert isinstance(create_webhook_translator(), WebhookEventTranslator)


class TestValidateConfig:
    """Test configuration validation"""

    def test_valid(self):
        assert validate_config(BITBUCKET_CONFIG) is True
        assert validate_config({"repository": {"type": "fake"}}) is True

    def test_missing_repository(self):
        with pytest.raises(ValueError, match="repository"):
            validate_config({"templates": {}})

    def test_missing_type(self):
        with pytest.raises(ValueError, match="type"):
            validate_config({"repository": {}})

    @pytest.mark.parametrize("key", ["workspace", "repo_slug", "username", "app_password"])
    def test_incomplete_bitbucket(self, key):
        repository = dict(BITBUCKET_CONFIG["repository"], **{key: ""})

        with pytest.raises(ValueError, match=key):
            validate_config({"repository": repository})

    def test_store_refuses_incomplete_bitbucket(self):
        repository = dict(BITBUCKET_CONFIG["repository"], app_password="")

        with pytest.raises(ValueError):
            create_template_store({"repository": repository})


class TestServiceInfo:
    """Test service info reporting"""

    def test_omits_credentials(self):
        info = get_service_info(BITBUCKET_CONFIG)

        assert info["environment"] == "production"
        assert info["repository"]["workspace"] == "acme"
        assert info["require_approval"] is False
        assert info["history_enabled"] is True
        assert "secret" not in str(info)
        assert "bot" not in str(info)
