"""
Pytest configuration and fixtures.

- FakeTracker: in-memory IssueTracker recording every call, for unit tests
- Integration tests: skipped without a Jira instance, failed on any logged warning
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from typing_extensions import override

import pytest

from jira_ticket_cloner.exceptions import (
    AttachmentError,
    CreateError,
    FieldMetadataError,
    IssueLookupError,
    LinkError,
    UpdateError,
)
from jira_ticket_cloner.models import ClonedIssueRef, SourceAttachment, SourceTicket

if TYPE_CHECKING:
    from collections.abc import Generator

INTEGRATION_ENV_VARS = ("JIRA_BASE", "JIRA_USER", "JIRA_TOKEN", "JIRA_TEST_SOURCE_ISSUE", "JIRA_TEST_TARGET_PROJECT")

ALL_FIELDS: dict[str, Any] = {
    key: {"fieldId": key, "required": False}
    for key in ("summary", "issuetype", "project", "assignee", "reporter", "priority", "labels", "components", "versions")
}


class FakeTracker:
    """IssueTracker keeping everything in memory.

    Failures are configured through the public attributes before a run.
    """

    def __init__(self, source: SourceTicket, create_fields: dict[str, Any] | None = None) -> None:
        self.source = source
        self.create_fields: dict[str, Any] = dict(ALL_FIELDS) if create_fields is None else create_fields
        self.files: dict[str, bytes] = {}
        self.calls: list[tuple[str, Any]] = []
        self.created: list[dict[str, Any]] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.uploads: list[tuple[str, str, bytes]] = []
        self.links: list[tuple[str, str, str]] = []

        self.lookup_error: bool = False
        self.metadata_error: bool = False
        self.fail_create_for: set[str] = set()
        self.fail_update: bool = False
        self.fail_upload_for: set[str] = set()
        self.link_error: LinkError | None = None

    def get_issue(self, key: str) -> SourceTicket:
        self.calls.append(("get_issue", key))
        if self.lookup_error:
            msg = f"Failed to read issue {key}: HTTP 404: Issue does not exist"
            raise IssueLookupError(msg)
        return self.source

    def create_issue(self, fields: dict[str, Any]) -> ClonedIssueRef:
        project = fields["project"]["key"]
        self.calls.append(("create_issue", project))
        if project in self.fail_create_for:
            msg = f"Failed to create issue in {project}: HTTP 400: Field 'summary' is required"
            raise CreateError(msg)
        self.created.append(fields)
        return ClonedIssueRef(key=f"{project}-{len(self.created)}")

    def update_issue(self, key: str, fields: dict[str, Any]) -> None:
        self.calls.append(("update_issue", key))
        if self.fail_update:
            msg = f"Failed to update issue {key}: HTTP 400: INVALID_INPUT"
            raise UpdateError(msg)
        self.updates.append((key, fields))

    def create_link(self, link_type: str, from_key: str, to_key: str) -> None:
        self.calls.append(("create_link", to_key))
        if self.link_error is not None:
            raise self.link_error
        self.links.append((link_type, from_key, to_key))

    def get_create_fields(self, project_key: str, issue_type_id: str) -> dict[str, Any]:
        self.calls.append(("get_create_fields", (project_key, issue_type_id)))
        if self.metadata_error:
            msg = f"Failed to get create fields for {project_key}: HTTP 403: Forbidden"
            raise FieldMetadataError(msg)
        return self.create_fields

    def download(self, url: str) -> bytes:
        self.calls.append(("download", url))
        if url not in self.files:
            msg = f"Failed to download {url}: HTTP 404: Not Found"
            raise AttachmentError(msg)
        return self.files[url]

    def upload(self, issue_key: str, filename: str, content: bytes) -> None:
        self.calls.append(("upload", (issue_key, filename)))
        if filename in self.fail_upload_for:
            msg = f"Failed to upload {filename} to {issue_key}: HTTP 413: Request Entity Too Large"
            raise AttachmentError(msg)
        self.uploads.append((issue_key, filename, content))

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


def make_source(**overrides: Any) -> SourceTicket:  # noqa: ANN401
    """A typical source issue, with any field replaced through overrides."""
    values: dict[str, Any] = {
        "key": "CORE-1445",
        "summary": "[QA] Fix login bug",
        "issue_type_id": "10004",
        "description": {
            "type": "doc",
            "version": 1,
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": "Steps to reproduce"}]},
                {"type": "paragraph", "content": [{"type": "mention", "attrs": {"id": "abc"}}]},
            ],
        },
        "assignee_id": "acc-assignee",
        "reporter_id": "acc-reporter",
        "priority_id": "2",
        "labels": ("login", "web"),
        "components": ("Frontend",),
        "attachments": (
            SourceAttachment("screenshot.png", "https://jira.test/attachment/content/1", 2048),
            SourceAttachment("report.pdf", "https://jira.test/attachment/content/2", 4096),
        ),
        "custom_fields": {"customfield_10020": "Sprint 7"},
    }
    values.update(overrides)
    return SourceTicket(**values)


@pytest.fixture
def source() -> SourceTicket:
    return make_source()


@pytest.fixture
def tracker(source: SourceTicket) -> FakeTracker:
    fake = FakeTracker(source)
    fake.files["https://jira.test/attachment/content/2"] = b"%PDF-1.7 report"
    return fake


@pytest.fixture(autouse=True)
def check_integration_test_env_vars(request: pytest.FixtureRequest) -> None:
    """Skip integration tests when no Jira instance is configured."""
    if request.node.get_closest_marker("integration") is None:
        return
    missing = [name for name in INTEGRATION_ENV_VARS if not os.environ.get(name)]
    if missing:
        pytest.skip(f"Integration tests require environment variables: {', '.join(missing)}")


# Store warning records during test execution
_integration_test_warnings: dict[str, list[logging.LogRecord]] = {}


class IntegrationTestWarningHandler(logging.Handler):
    """Custom logging handler to capture warnings during integration tests."""

    test_nodeid: str

    def __init__(self, test_nodeid: str) -> None:
        super().__init__()
        self.test_nodeid = test_nodeid
        self.setLevel(logging.WARNING)

    @override
    def emit(self, record: logging.LogRecord) -> None:
        _integration_test_warnings.setdefault(self.test_nodeid, []).append(record)


@pytest.fixture(autouse=True)
def fail_on_log_warnings_for_integration_tests(request: pytest.FixtureRequest) -> Generator[None]:
    """Capture WARNING and above logged by the cloner during integration tests.

    A dry run against a correctly configured instance should not log any.
    """
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    test_nodeid = request.node.nodeid
    _integration_test_warnings[test_nodeid] = []

    handler = IntegrationTestWarningHandler(test_nodeid)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)

    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Generator[None]:  # type: ignore[misc]
    """Mark a passed integration test as failed if it logged warnings."""
    outcome = yield
    report = outcome.get_result()

    if call.when == "call" and report.outcome == "passed":
        warning_records = _integration_test_warnings.pop(item.nodeid, [])
        if warning_records:
            warning_messages = [
                f"{record.levelname}: {record.getMessage()} (in {record.name}:{record.lineno})"
                for record in warning_records
            ]
            report.outcome = "failed"
            report.longrepr = f"Integration test failed: {len(warning_records)} warning(s) detected:\n" + "\n".join(
                f"  - {msg}" for msg in warning_messages
            )
