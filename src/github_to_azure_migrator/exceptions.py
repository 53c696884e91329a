"""
Custom exception classes for the GitHub to Azure DevOps migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when required configuration is missing or invalid."""


class AzureDevOpsError(MigrationError):
    """Raised when an Azure DevOps API call fails."""

    status: int | None

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
