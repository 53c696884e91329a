"""
GitHub to Azure DevOps Migration Tool

Migrates GitHub milestones, issues and pull requests to Azure DevOps epics,
work items and pull requests, rewriting issue references to the migrated
work items.
"""

from __future__ import annotations

from .cli import main
from .exceptions import AzureDevOpsError, ConfigurationError, MigrationError
from .orchestrator import MigrationReport, MigrationStats, Migrator
from .references import rewrite_references
from .users import UserCache, UserResolver, load_user_map
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AzureDevOpsError",
    "ConfigurationError",
    "MigrationError",
    "MigrationReport",
    "MigrationStats",
    "Migrator",
    "UserCache",
    "UserResolver",
    "load_user_map",
    "main",
    "rewrite_references",
    "setup_logging",
]
