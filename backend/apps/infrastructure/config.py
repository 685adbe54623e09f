# apps/infrastructure/config.py

"""
Configuration Management

Environment-specific configurations for different deployment contexts.
"""

import os
from typing import Any, Dict


def get_environment() -> str:
    """
    Get current environment from environment variable

    Returns:
        Environment name: 'test', 'development', 'staging', or 'production'
    """
    return os.getenv("ENVIRONMENT", "development")


def _flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _bitbucket_repository() -> Dict[str, Any]:
    return {
        "type": "bitbucket",
        "workspace": os.getenv("BITBUCKET_WORKSPACE", ""),
        "repo_slug": os.getenv("BITBUCKET_REPO_SLUG", ""),
        "username": os.getenv("BITBUCKET_USERNAME", ""),
        "app_password": os.getenv("BITBUCKET_APP_PASSWORD", ""),
        "base_url": os.getenv("BITBUCKET_BASE_URL", "https://api.bitbucket.org/2.0"),
        "default_branch": os.getenv("BITBUCKET_DEFAULT_BRANCH", "main"),
        "index_path": "metadata.json",
        "timeout": float(os.getenv("BITBUCKET_TIMEOUT", "30")),
    }


def _templates() -> Dict[str, Any]:
    return {
        "require_approval": _flag("TEMPLATE_DELETE_REQUIRE_APPROVAL", True),
        "default_user": os.getenv("TEMPLATE_DEFAULT_USER", "System"),
        "history_enabled": _flag("TEMPLATE_HISTORY_ENABLED", False),
    }


def get_config() -> Dict[str, Any]:
    """
    Get configuration for current environment

    Built on each call so environment changes are picked up.

    Returns:
        Configuration dictionary for active environment
    """
    env = get_environment()

    builders = {
        "test": _test_config,
        "development": _development_config,
        "staging": _deployed_config,
        "production": _deployed_config,
    }

    config = builders.get(env, _development_config)()
    config["environment"] = env  # Add environment name to config

    return config


# ============================================================
# TEST CONFIGURATION
# ============================================================

def _test_config() -> Dict[str, Any]:
    return {
        "repository": {
            "type": "fake",
            "default_branch": "main",
            "index_path": "metadata.json",
        },
        "templates": {
            "require_approval": True,
            "default_user": "System",
            "history_enabled": False,
        },
    }


# ============================================================
# DEVELOPMENT CONFIGURATION
# ============================================================

def _development_config() -> Dict[str, Any]:
    repository = _bitbucket_repository()
    # Without a workspace configured, develop against the in-memory host
    if not repository["workspace"]:
        repository = {"type": "fake", "default_branch": "main", "index_path": "metadata.json"}
    return {"repository": repository, "templates": _templates()}


# ============================================================
# STAGING / PRODUCTION CONFIGURATION
# ============================================================

def _deployed_config() -> Dict[str, Any]:
    return {"repository": _bitbucket_repository(), "templates": _templates()}


# ============================================================
# CONFIGURATION HELPERS
# ============================================================


def get_repository_config() -> Dict[str, Any]:
    """Get remote repository configuration for current environment"""
    return get_config()["repository"]


def get_templates_config() -> Dict[str, Any]:
    """Get template store configuration for current environment"""
    return get_config()["templates"]


def is_production() -> bool:
    """Check if running in production environment"""
    return get_environment() == "production"


def is_test() -> bool:
    """Check if running in test environment"""
    return get_environment() == "test"
