from __future__ import annotations

import io
import json
import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

import requests
from jira import JIRA, JIRAError

from . import utils
from .exceptions import (
    AttachmentError,
    ConfigError,
    CreateError,
    FieldMetadataError,
    IssueLookupError,
    LinkError,
    LinkTypeNotFoundError,
    UpdateError,
)
from .models import ClonedIssueRef, SourceAttachment, SourceTicket

if TYPE_CHECKING:
    from requests import Session

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_SERVER_ENV_VAR: Final[str] = "JIRA_BASE"
_USER_ENV_VAR: Final[str] = "JIRA_USER"
_TOKEN_ENV_VAR: Final[str] = "JIRA_TOKEN"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "jira/cli/token"  # noqa: S105

DOWNLOAD_TIMEOUT_SECONDS: Final[int] = 60
CREATEMETA_PAGE_SIZE: Final[int] = 200

# Raw fields modelled explicitly on SourceTicket, or never copied to a clone
_MODELLED_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "summary",
        "description",
        "issuetype",
        "assignee",
        "reporter",
        "priority",
        "labels",
        "components",
        "attachment",
        "project",
        "versions",
        "fixVersions",
    }
)


@dataclass(frozen=True)
class JiraSettings:
    """Connection settings for Jira Cloud."""

    server: str
    email: str
    token: str = ""

    def __repr__(self) -> str:
        return f"JiraSettings(server={self.server!r}, email={self.email!r}, token='***')"


def get_token(pass_path: str | None = None) -> str | None:
    """Get Jira API token from pass path, env var JIRA_TOKEN, or default pass location."""
    # Try pass path first
    if pass_path:
        return utils.get_pass_value(pass_path)

    # Try environment variable
    token: str | None = os.environ.get(_TOKEN_ENV_VAR)
    if token:
        return token

    # Try default pass path
    try:
        return utils.get_pass_value(_DEFAULT_TOKEN_PASS_PATH)
    except (ValueError, utils.PassError):
        logger.warning("No Jira token specified nor found")
        return None


def get_connection_settings(pass_path: str | None = None) -> JiraSettings:
    """Read the Jira connection settings.

    Raises:
        ConfigError: If the server, user or token is missing
    """
    server = os.environ.get(_SERVER_ENV_VAR, "").strip()
    email = os.environ.get(_USER_ENV_VAR, "").strip()

    try:
        token = get_token(pass_path)
    except (ValueError, utils.PassError) as e:
        msg = f"Could not read Jira token from pass: {e}"
        raise ConfigError(msg) from e

    missing = [
        name
        for name, value in ((_SERVER_ENV_VAR, server), (_USER_ENV_VAR, email), (_TOKEN_ENV_VAR, token))
        if not value
    ]
    if missing:
        msg = f"Missing Jira connection settings: {', '.join(missing)}"
        raise ConfigError(msg)

    return JiraSettings(server=server.rstrip("/"), email=email, token=token or "")


def get_client(settings: JiraSettings) -> JIRA:
    """Get a Jira client using basic auth (e-mail + API token) on REST API v3.

    The client sends every request once, without retries.

    Raises:
        ConfigError: If the server cannot be reached with these settings
    """
    try:
        return JIRA(
            basic_auth=(settings.email, settings.token),
            options={"server": settings.server, "rest_api_version": "3"},
            max_retries=0,
        )
    except (JIRAError, requests.RequestException) as e:
        msg = f"Cannot connect to {settings.server} as {settings.email}: {_error_text(e)}"
        raise ConfigError(msg) from e


def _error_text(error: Exception) -> str:
    """Remote status and payload of a failed call, when there is one."""
    if isinstance(error, JIRAError):
        return f"HTTP {error.status_code}: {error.text}"
    if isinstance(error, requests.HTTPError) and error.response is not None:
        return f"HTTP {error.response.status_code}: {error.response.text}"
    return str(error)


def _account_id(value: Any) -> str | None:  # noqa: ANN401 - raw JSON
    if isinstance(value, dict):
        return value.get("accountId") or None
    return None


def parse_source_ticket(raw: dict[str, Any]) -> SourceTicket:
    """Build a SourceTicket from a raw REST v3 issue payload.

    Missing or null fields give empty values; nothing here raises on an
    unexpected shape.
    """
    fields: dict[str, Any] = raw.get("fields") or {}

    issue_type = fields.get("issuetype") or {}
    priority = fields.get("priority") or {}
    description = fields.get("description")

    attachments = tuple(
        SourceAttachment(
            filename=item["filename"],
            content_url=item["content"],
            size=int(item.get("size") or 0),
        )
        for item in fields.get("attachment") or []
        if isinstance(item, dict) and item.get("filename") and item.get("content")
    )

    return SourceTicket(
        key=raw.get("key", ""),
        summary=fields.get("summary") or "",
        issue_type_id=str(issue_type.get("id", "")),
        description=description if isinstance(description, dict) else None,
        assignee_id=_account_id(fields.get("assignee")),
        reporter_id=_account_id(fields.get("reporter")),
        priority_id=priority.get("id") if isinstance(priority, dict) else None,
        labels=tuple(label for label in fields.get("labels") or [] if isinstance(label, str)),
        components=tuple(
            component["name"]
            for component in fields.get("components") or []
            if isinstance(component, dict) and component.get("name")
        ),
        attachments=attachments,
        custom_fields={key: value for key, value in fields.items() if key not in _MODELLED_FIELDS},
    )


def parse_create_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """Map field id to metadata from one createmeta page.

    Jira Cloud returns the fields under "fields", older deployments under "values".
    """
    entries = payload.get("fields") or payload.get("values") or []
    result: dict[str, Any] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        field_id = entry.get("fieldId") or entry.get("key")
        if field_id:
            result[field_id] = entry
    return result


class JiraTracker:
    """IssueTracker implementation for Jira Cloud."""

    _client: JIRA
    _server: str

    def __init__(self, client: JIRA, server: str) -> None:
        self._client = client
        self._server = server.rstrip("/")

    @property
    def _session(self) -> Session:
        return self._client._session  # noqa: SLF001 - authenticated session of the client

    def _api_url(self, path: str) -> str:
        return f"{self._server}/rest/api/3/{path}"

    def get_issue(self, key: str) -> SourceTicket:
        try:
            issue = self._client.issue(key)
        except (JIRAError, requests.RequestException) as e:
            msg = f"Failed to read issue {key}: {_error_text(e)}"
            raise IssueLookupError(msg) from e
        return parse_source_ticket(issue.raw)

    def create_issue(self, fields: dict[str, Any]) -> ClonedIssueRef:
        try:
            issue = self._client.create_issue(fields=fields, prefetch=False)
        except (JIRAError, requests.RequestException) as e:
            project = fields.get("project", {}).get("key", "?")
            msg = f"Failed to create issue in {project}: {_error_text(e)}"
            raise CreateError(msg) from e
        return ClonedIssueRef(key=issue.key)

    def update_issue(self, key: str, fields: dict[str, Any]) -> None:
        try:
            response = self._session.put(self._api_url(f"issue/{key}"), data=json.dumps({"fields": fields}))
            response.raise_for_status()
        except (JIRAError, requests.RequestException) as e:
            msg = f"Failed to update issue {key}: {_error_text(e)}"
            raise UpdateError(msg) from e

    def _link_type_names(self) -> set[str]:
        names: set[str] = set()
        for link_type in self._client.issue_link_types():
            for name in (link_type.name, getattr(link_type, "inward", None), getattr(link_type, "outward", None)):
                if name:
                    names.add(name)
        return names

    def create_link(self, link_type: str, from_key: str, to_key: str) -> None:
        try:
            known = self._link_type_names()
        except (JIRAError, requests.RequestException) as e:
            msg = f"Failed to read issue link types: {_error_text(e)}"
            raise LinkError(msg) from e

        if link_type not in known:
            msg = f"Issue link type '{link_type}' not found"
            raise LinkTypeNotFoundError(msg)

        try:
            self._client.create_issue_link(link_type, inwardIssue=from_key, outwardIssue=to_key)
        except JIRAError as e:
            if e.status_code == 404 and "link type" in (e.text or "").lower():
                msg = f"Issue link type '{link_type}' not found: {e.text}"
                raise LinkTypeNotFoundError(msg) from e
            msg = f"Failed to link {from_key} to {to_key}: {_error_text(e)}"
            raise LinkError(msg) from e
        except requests.RequestException as e:
            msg = f"Failed to link {from_key} to {to_key}: {e}"
            raise LinkError(msg) from e

    def get_create_fields(self, project_key: str, issue_type_id: str) -> dict[str, Any]:
        url = self._api_url(f"issue/createmeta/{project_key}/issuetypes/{issue_type_id}")
        fields: dict[str, Any] = {}
        start_at = 0

        try:
            while True:
                response = self._session.get(url, params={"startAt": start_at, "maxResults": CREATEMETA_PAGE_SIZE})
                response.raise_for_status()
                payload: dict[str, Any] = response.json()

                page = parse_create_fields(payload)
                fields.update(page)
                start_at += len(payload.get("fields") or payload.get("values") or [])

                total = payload.get("total")
                if not page or payload.get("isLast") is True or (total is not None and start_at >= total):
                    break
        except (JIRAError, requests.RequestException, ValueError) as e:
            msg = f"Failed to get create fields for {project_key} (issue type {issue_type_id}): {_error_text(e)}"
            raise FieldMetadataError(msg) from e

        return fields

    def download(self, url: str) -> bytes:
        try:
            response = self._session.get(url, timeout=DOWNLOAD_TIMEOUT_SECONDS)
            response.raise_for_status()
        except (JIRAError, requests.RequestException) as e:
            msg = f"Failed to download {url}: {_error_text(e)}"
            raise AttachmentError(msg) from e
        return response.content

    def upload(self, issue_key: str, filename: str, content: bytes) -> None:
        try:
            self._client.add_attachment(issue=issue_key, attachment=io.BytesIO(content), filename=filename)
        except (JIRAError, requests.RequestException, OSError) as e:
            msg = f"Failed to upload {filename} to {issue_key}: {_error_text(e)}"
            raise AttachmentError(msg) from e
