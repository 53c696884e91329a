"""Environment-based configuration for a migration run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

_REQUIRED_ENV_VARS: Final[tuple[str, ...]] = (
    "GITHUB_TOKEN",
    "GITHUB_ORG",
    "GITHUB_REPO",
    "AZURE_ORG",
    "AZURE_REPO",
    "AZURE_TOKEN",
)


@dataclass(frozen=True)
class MigrationConfig:
    """Source and target coordinates and credentials."""

    github_token: str
    github_org: str
    github_repo: str
    azure_org: str
    azure_project: str
    azure_repo: str
    azure_user: str
    azure_token: str
    github_host: str | None = None

    @property
    def github_repo_path(self) -> str:
        return f"{self.github_org}/{self.github_repo}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MigrationConfig:
        """Read the configuration from environment variables.

        ``AZURE_PROJECT`` defaults to ``AZURE_REPO`` (the common setup of a
        project holding a repository of the same name). ``AZURE_USER`` may be
        empty when authenticating with a personal access token.

        Raises:
            ConfigurationError: If a required variable is missing or empty
        """
        env = os.environ if environ is None else environ
        missing = [name for name in _REQUIRED_ENV_VARS if not env.get(name, "").strip()]
        if missing:
            msg = f"Missing required environment variables: {', '.join(missing)}"
            raise ConfigurationError(msg)

        azure_repo = env["AZURE_REPO"].strip()
        return cls(
            github_token=env["GITHUB_TOKEN"].strip(),
            github_org=env["GITHUB_ORG"].strip(),
            github_repo=env["GITHUB_REPO"].strip(),
            azure_org=env["AZURE_ORG"].strip(),
            azure_project=env.get("AZURE_PROJECT", "").strip() or azure_repo,
            azure_repo=azure_repo,
            azure_user=env.get("AZURE_USER", "").strip(),
            azure_token=env["AZURE_TOKEN"].strip(),
            github_host=env.get("GITHUB_HOST", "").strip() or None,
        )
