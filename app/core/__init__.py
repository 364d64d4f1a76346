"""
Core module initialization.
Exports configuration, error and token utilities.
"""

from app.core.config import get_settings, Settings, EnvironmentMode
from app.core.security import Identity, TokenService, get_token_service

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "Identity",
    "TokenService",
    "get_token_service",
]
