"""Protocol defining the contract of the issue tracker used by the cloner.

The clone pipeline (field resolution, sanitizing, attachment replication and
orchestration) only talks to the tracker through this protocol. This allows:
- Testing the pipeline in isolation with mock implementations
- Keeping Jira REST specifics (URLs, payload shapes, error codes) in one place
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .models import ClonedIssueRef, SourceTicket


class IssueTracker(Protocol):
    """Protocol for reading and writing issues in the tracker.

    Every method is a single blocking call. Implementations translate their
    transport errors into the exceptions from exceptions.py and include the
    remote error payload in the message when there is one.

    Example implementations:
        - JiraTracker: Jira Cloud REST API v3 through the `jira` library
    """

    def get_issue(self, key: str) -> SourceTicket:
        """Read an issue.

        Raises:
            IssueLookupError: If the issue cannot be read
        """
        ...

    def create_issue(self, fields: dict[str, Any]) -> ClonedIssueRef:
        """Create an issue from a complete field set.

        Raises:
            CreateError: If the tracker rejects the issue
        """
        ...

    def update_issue(self, key: str, fields: dict[str, Any]) -> None:
        """Set some fields of an existing issue.

        Raises:
            UpdateError: If the update is rejected
        """
        ...

    def create_link(self, link_type: str, from_key: str, to_key: str) -> None:
        """Link two issues.

        Args:
            link_type: Link type name (or its inward/outward description)
            from_key: Issue the link starts from (the source)
            to_key: Issue the link points to (the clone)

        Raises:
            LinkTypeNotFoundError: If the tracker has no such link type
            LinkError: For any other failure
        """
        ...

    def get_create_fields(self, project_key: str, issue_type_id: str) -> dict[str, Any]:
        """Return the fields accepted when creating this issue type in this project.

        Returns:
            Mapping from field id to its create metadata

        Raises:
            FieldMetadataError: If the metadata cannot be fetched
        """
        ...

    def download(self, url: str) -> bytes:
        """Download an attachment's content.

        Raises:
            AttachmentError: If the download fails
        """
        ...

    def upload(self, issue_key: str, filename: str, content: bytes) -> None:
        """Attach a file to an issue.

        Raises:
            AttachmentError: If the upload fails
        """
        ...
