# apps/infrastructure/container.py

"""
Dependency Injection Container

Simple factory functions for creating fully-wired services.
No magic, no framework - just explicit construction.
"""

from typing import Any, Dict, Optional
import logging

from apps.infrastructure.config import get_config

logger = logging.getLogger(__name__)

# The fake host lives for the whole process so that state survives
# between requests in the test and development environments.
_fake_repository = None


# ============================================================
# ADAPTER FACTORIES
# ============================================================

def create_remote_repository(config: Dict[str, Any]):
    """
    Factory for the remote repository adapter based on configuration

    Args:
        config: Repository configuration dict with 'type' key

    Returns:
        Implementation of IRemoteRepository

    Raises:
        ValueError: If repository type is unknown
    """
    global _fake_repository

    repository_type = config.get('type', 'fake')

    if repository_type == 'fake':
        from apps.adapters.bitbucket.fake import FakeRemoteRepository
        if _fake_repository is None:
            _fake_repository = FakeRemoteRepository(
                default_branch=config.get('default_branch', 'main')
            )
        return _fake_repository

    elif repository_type == 'bitbucket':
        from apps.adapters.bitbucket.client import BitbucketRepository
        return BitbucketRepository(
            workspace=config['workspace'],
            repo_slug=config['repo_slug'],
            username=config['username'],
            app_password=config['app_password'],
            base_url=config.get('base_url', 'https://api.bitbucket.org/2.0'),
            timeout=config.get('timeout', 30.0),
        )

    else:
        raise ValueError(f"Unknown repository type: {repository_type}")


def reset_fake_repository():
    """
    Drop the shared in-memory repository

    Returns:
        The fresh FakeRemoteRepository now handed out by the container
    """
    global _fake_repository
    _fake_repository = None
    return create_remote_repository({'type': 'fake'})


# ============================================================
# SERVICE FACTORIES
# ============================================================

def create_approval_workflow(config: Optional[Dict] = None, repository=None):
    """
    Create ApprovalWorkflow bound to the configured repository

    Args:
        config: Optional configuration dict. If None, uses environment config.
        repository: Optional adapter override

    Returns:
        ApprovalWorkflow instance
    """
    from apps.domain.services.approval import ApprovalWorkflow

    config = config or get_config()
    repo_config = config['repository']
    repository = repository or create_remote_repository(repo_config)

    return ApprovalWorkflow(
        repository,
        default_branch=repo_config.get('default_branch', 'main'),
        index_path=repo_config.get('index_path', 'metadata.json'),
    )


def create_template_store(config: Optional[Dict] = None, repository=None):
    """
    Create fully-wired TemplateStore with all dependencies

    This is the main entry point for the request-routing layer.

    Args:
        config: Optional configuration dict. If None, uses environment config.
        repository: Optional adapter override

    Returns:
        TemplateStore instance

    Example:
        >>> store = create_template_store()
        >>> store.list()
        []
    """
    from apps.domain.services.template_store import TemplateStore

    config = config or get_config()
    validate_config(config)

    repo_config = config['repository']
    templates_config = config.get('templates', {})
    repository = repository or create_remote_repository(repo_config)

    store = TemplateStore(
        repository,
        approval_workflow=create_approval_workflow(config, repository),
        default_branch=repo_config.get('default_branch', 'main'),
        index_path=repo_config.get('index_path', 'metadata.json'),
        require_approval=templates_config.get('require_approval', True),
        default_user=templates_config.get('default_user', 'System'),
        history_enabled=templates_config.get('history_enabled', False),
    )

    logger.debug(
        f"Created TemplateStore with repository={repo_config['type']}, "
        f"require_approval={store.require_approval}"
    )

    return store


def create_webhook_translator(config: Optional[Dict] = None, repository=None):
    """
    Create WebhookEventTranslator wired to the approval workflow

    Args:
        config: Optional configuration dict
        repository: Optional adapter override

    Returns:
        WebhookEventTranslator instance
    """
    from apps.domain.services.webhooks import WebhookEventTranslator

    config = config or get_config()
    validate_config(config)
    return WebhookEventTranslator(create_approval_workflow(config, repository))


# ============================================================
# VALIDATION
# ============================================================

def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if valid

    Raises:
        ValueError: If configuration is invalid
    """
    if 'repository' not in config:
        raise ValueError("Missing required config key: repository")

    repo_config = config['repository']
    if 'type' not in repo_config:
        raise ValueError("Repository config missing 'type' key")

    if repo_config['type'] == 'bitbucket':
        for key in ('workspace', 'repo_slug', 'username', 'app_password'):
            if not repo_config.get(key):
                raise ValueError(f"Bitbucket config requires '{key}'")

    return True


# ============================================================
# HELPER FUNCTIONS
# ============================================================

def get_service_info(config: Optional[Dict] = None) -> Dict[str, Any]:
    """
    Get information about configured services

    Args:
        config: Optional config dict, uses environment config if None

    Returns:
        Dict with service configuration info (no credentials)
    """
    config = config or get_config()
    repo_config = config['repository']
    templates_config = config.get('templates', {})

    return {
        'environment': config.get('environment', 'unknown'),
        'repository': {
            'type': repo_config.get('type'),
            'workspace': repo_config.get('workspace', 'N/A'),
            'repo_slug': repo_config.get('repo_slug', 'N/A'),
            'default_branch': repo_config.get('default_branch', 'main'),
        },
        'require_approval': templates_config.get('require_approval', True),
        'history_enabled': templates_config.get('history_enabled', False),
    }
