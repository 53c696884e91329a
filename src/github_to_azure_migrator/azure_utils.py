"""Azure DevOps REST client for the parts of Boards and Repos the migration writes to."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import quote

import requests

from .exceptions import AzureDevOpsError
from .models import MappedEntity

if TYPE_CHECKING:
    from .protocols import JsonPatch

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

BASE_URL: Final[str] = "https://dev.azure.com"
API_VERSION: Final[str] = "6.0"
JSON_PATCH: Final[str] = "application/json-patch+json"
REQUEST_TIMEOUT: Final[int] = 60

# Creation dates and authors can only be backfilled with rules bypassed
_WORK_ITEM_PARAMS: Final[dict[str, str]] = {
    "api-version": API_VERSION,
    "validateOnly": "false",
    "bypassRules": "true",
    "suppressNotifications": "true",
}


class AzureDevOpsTarget:
    """Writes work items, pull requests and pull request threads to Azure DevOps.

    Args:
        organization: Azure DevOps organization name
        project: Project holding the work items and the repository
        repository: Git repository pull requests are created in
        user: User name for basic authentication (may be empty with a PAT)
        token: Personal access token
        session: Session to use, mainly for tests
    """

    def __init__(
        self,
        organization: str,
        project: str,
        repository: str,
        user: str,
        token: str,
        *,
        base_url: str = BASE_URL,
        session: requests.Session | None = None,
    ) -> None:
        self.organization: str = organization
        self.project: str = project
        self.repository: str = repository
        self._api: str = f"{base_url.rstrip('/')}/{quote(organization)}/{quote(project)}/_apis"
        self._session: requests.Session = session or requests.Session()
        self._session.auth = (user, token)

    def create_work_item(self, work_item_type: str, operations: JsonPatch) -> MappedEntity:
        url = f"{self._api}/wit/workitems/${quote(work_item_type)}"
        data = self._request("POST", url, params=_WORK_ITEM_PARAMS, json=operations, content_type=JSON_PATCH)
        return MappedEntity(target_id=int(data["id"]), target_url=data["url"])

    def update_work_item(self, work_item_id: int, operations: JsonPatch) -> None:
        url = f"{self._api}/wit/workitems/{work_item_id}"
        self._request("PATCH", url, params=_WORK_ITEM_PARAMS, json=operations, content_type=JSON_PATCH)

    def create_pull_request(self, pull_request: dict[str, Any]) -> MappedEntity:
        url = f"{self._repository_api}/pullrequests"
        params = {"api-version": API_VERSION, "supportsIterations": "true"}
        data = self._request("POST", url, params=params, json=pull_request)
        return MappedEntity(target_id=int(data["pullRequestId"]), target_url=data["url"])

    def create_thread(self, pull_request_id: int, thread: dict[str, Any]) -> None:
        url = f"{self._repository_api}/pullRequests/{pull_request_id}/threads"
        self._request("POST", url, params={"api-version": API_VERSION}, json=thread)

    def get_commit_url(self, commit_id: str) -> str | None:
        url = f"{self._repository_api}/commits/{quote(commit_id)}"
        try:
            data = self._request("GET", url, params={"api-version": API_VERSION})
        except AzureDevOpsError as e:
            if e.status == 404:
                return None
            raise
        return data["url"]

    @property
    def _repository_api(self) -> str:
        return f"{self._api}/git/repositories/{quote(self.repository)}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str],
        json: Any = None,  # noqa: ANN401
        content_type: str = "application/json",
    ) -> dict[str, Any]:
        headers = {"Content-Type": content_type, "Accept": "application/json"}
        try:
            response = self._session.request(
                method, url, params=params, json=json, headers=headers, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            msg = f"{method} {url} failed: {e}"
            raise AzureDevOpsError(msg) from e

        if not response.ok:
            msg = f"{method} {url} failed with {response.status_code}: {_error_message(response)}"
            raise AzureDevOpsError(msg, status=response.status_code)

        logger.debug(f"{method} {url} -> {response.status_code}")
        if not response.content:
            return {}
        return response.json()


def _error_message(response: requests.Response) -> str:
    """Azure DevOps reports errors as JSON with a "message" field; fall back to the raw body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text
