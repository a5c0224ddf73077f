"""
Config module - Connector settings and their defaults.
"""

from .settings import (
    CONNECTOR_NAME,
    DEFAULT_SETTINGS,
    PROXY_ENV_VARS,
    ConnectorSettings,
    get_api_key,
)

__all__ = [
    'CONNECTOR_NAME',
    'DEFAULT_SETTINGS',
    'PROXY_ENV_VARS',
    'ConnectorSettings',
    'get_api_key',
]
