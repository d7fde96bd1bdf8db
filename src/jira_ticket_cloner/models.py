"""Data models exchanged between the tracker, the resolver and the orchestrator.

The source ticket and the target definitions are read-only for the whole run.
Result types collect what happened per target so the CLI can report it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .exceptions import CloneError

# Jira's built-in "is cloned by" / "clones" link type
DEFAULT_LINK_TYPE = "Cloners"

Step = Literal["create", "description", "attachments", "link"]


@dataclass(frozen=True)
class SourceAttachment:
    """An attachment of the source issue."""

    filename: str
    content_url: str
    size: int = 0


@dataclass(frozen=True)
class SourceTicket:
    """The issue being cloned.

    Known fields are modelled explicitly. Every other raw field, except the
    project and the version fields, ends up in ``custom_fields`` untouched.
    """

    key: str
    summary: str
    issue_type_id: str
    description: dict[str, Any] | None = None
    assignee_id: str | None = None
    reporter_id: str | None = None
    priority_id: str | None = None
    labels: tuple[str, ...] = ()
    components: tuple[str, ...] = ()  # component names
    attachments: tuple[SourceAttachment, ...] = ()
    custom_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TargetSpec:
    """One destination for a clone.

    naming:
    - prefix: drop a leading [...] group and prefix the client tag, if any
    - strip: drop every [...] group
    """

    project: str
    naming: Literal["prefix", "strip"] = "prefix"
    client: str | Sequence[str] | None = None
    labels: tuple[str, ...] = ()
    components: tuple[str, ...] = ()
    affects_versions: tuple[str, ...] = ()
    link_type: str | None = None

    @property
    def client_tag(self) -> str | None:
        """The client tag, taking the first entry when several are given."""
        if self.client is None:
            return None
        if isinstance(self.client, str):
            return self.client or None
        return self.client[0] if self.client else None

    @property
    def effective_link_type(self) -> str:
        return self.link_type or DEFAULT_LINK_TYPE


@dataclass(frozen=True)
class ClonedIssueRef:
    """Reference to an issue created in a target project."""

    key: str


@dataclass
class StepFailure:
    """A failed step of a target's clone."""

    step: Step
    error: CloneError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class AttachmentReport:
    """Outcome of replicating the attachments to one clone."""

    uploaded: list[str] = field(default_factory=list)  # names as uploaded
    skipped: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)  # (filename, error)


@dataclass
class TargetResult:
    """What happened for one target."""

    target: TargetSpec
    status: Literal["done", "create_failed", "planned"]
    issue_key: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)
    failures: list[StepFailure] = field(default_factory=list)
    attachments: AttachmentReport | None = None

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def failed_steps(self) -> list[Step]:
        return [f.step for f in self.failures]


@dataclass
class CloneReport:
    """Result of a clone run."""

    source_key: str
    results: list[TargetResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def created_keys(self) -> list[str]:
        return [r.issue_key for r in self.results if r.issue_key]
