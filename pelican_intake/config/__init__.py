"""Pelican intake configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from pelican_intake.config.settings import settings, Settings
from pelican_intake.config.errors import (
    ErrorCode,
    IntakeError,
    CatalogError,
    ResearchProviderError,
    TaskAssemblyError,
)

__all__ = [
    "settings",
    "Settings",
    "ErrorCode",
    "IntakeError",
    "CatalogError",
    "ResearchProviderError",
    "TaskAssemblyError",
]
