"""
Configuration Package - Domain-Specific Configuration Modules

This package provides application configuration using a composition-based approach.

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── runtime_config.py        # Azure hosting flags
    ├── auth_config.py           # MSAuth.json sources
    ├── storage_config.py        # Run status container, run queue, reports
    ├── browser_config.py        # Browser selection, CDP, Workspaces, timeouts
    ├── env_validation.py        # Startup format checks
    └── defaults.py              # Default values

Usage:
    # Singleton pattern (preferred for request paths)
    from config import get_config
    config = get_config()
    container = config.storage.runs_container

    # Fresh read (auth chain, tests)
    from config import AuthStateConfig
    auth = AuthStateConfig.from_environment()

    # Debug output
    from config import debug_config
    info = debug_config()  # Secrets masked
"""

from typing import Optional

from .runtime_config import RuntimeConfig, parse_flag
from .auth_config import AuthStateConfig, safe_url
from .storage_config import StorageConfig
from .browser_config import BrowserConfig, resolve_channel
from .app_config import AppConfig


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get sanitized configuration for debugging (masks sensitive values).

    Returns:
        Dictionary with configuration values, secrets masked
    """
    try:
        config = get_config()
        return {
            'runtime': config.runtime.debug_dict(),
            'auth': config.auth.debug_dict(),
            'storage': config.storage.debug_dict(),
            'browser': config.browser.debug_dict(),

            'landing': {
                'base_url': config.landing_base_url,
                'endpoint': config.landing_endpoint,
                'incidents': config.landing_incidents,
            },

            'debug_mode': config.debug_mode,
            'environment': config.environment,
            'log_level': config.log_level,
        }
    except Exception as e:
        return {'error': f'Configuration validation failed: {e}'}


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    'AppConfig',
    'get_config',
    'reset_config',
    'debug_config',

    'RuntimeConfig',
    'parse_flag',
    'AuthStateConfig',
    'safe_url',
    'StorageConfig',
    'BrowserConfig',
    'resolve_channel',
]
