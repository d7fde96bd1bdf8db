"""Decide which fields a clone is created with.

A clone's field set is merged from three places, in this order:

1. Mandatory fields: summary, issue type and project. Always set.
2. Source fields worth keeping (assignee, labels, components, priority,
   reporter), copied only when the target project accepts them.
3. Target overrides: versions, labels and components forced by the target
   definition. These replace what step 2 copied.

Any other source field is passed through as-is when the target accepts it
and the value is a plain scalar or a list of strings. Object values (users,
options, ADF text...) depend too much on the target's configuration.

What "accepted" means comes from the create metadata of the target project
and issue type. When that lookup fails the clone is still created, with the
mandatory fields only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

from .exceptions import CloneError
from .summary import transform_summary

if TYPE_CHECKING:
    from collections.abc import Callable

    from .models import SourceTicket, TargetSpec
    from .protocols import IssueTracker

logger: logging.Logger = logging.getLogger(__name__)

# Fields set explicitly by the resolver, never passed through from the source
RESERVED_FIELDS: Final[frozenset[str]] = frozenset(
    {"summary", "issuetype", "project", "assignee", "labels", "components", "versions", "fixVersions"}
)

# Preferred first
VERSION_FIELDS: Final[tuple[str, ...]] = ("versions", "fixVersions")


def available_fields(tracker: IssueTracker, project_key: str, issue_type_id: str) -> dict[str, Any]:
    """Return the fields accepted by a project for an issue type, or {} if the lookup fails."""
    try:
        fields = tracker.get_create_fields(project_key, issue_type_id)
    except CloneError as e:
        logger.warning(f"Could not get create fields for {project_key} (issue type {issue_type_id}): {e}")
        return {}

    logger.debug(f"{project_key} accepts {len(fields)} fields for issue type {issue_type_id}")
    return fields


def _accepts(available: dict[str, Any], key: str) -> bool:
    return bool(available.get(key))


def _name_refs(names: tuple[str, ...] | list[str]) -> list[dict[str, str]]:
    return [{"name": name} for name in names]


def is_passthrough_value(value: Any) -> bool:  # noqa: ANN401 - raw JSON value
    """Check that a custom field value is non-empty and simple enough to copy verbatim."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (bool, int, float)):
        return True
    if isinstance(value, (list, tuple)):
        return len(value) > 0 and all(isinstance(item, str) for item in value)
    return False


def _preserved_fields(source: SourceTicket) -> dict[str, Callable[[], Any]]:
    """Source values to keep, computed only for the fields the target accepts."""
    return {
        "assignee": lambda: {"id": source.assignee_id} if source.assignee_id else None,
        "labels": lambda: list(source.labels) if source.labels else None,
        "components": lambda: _name_refs(source.components) if source.components else None,
        "priority": lambda: {"id": source.priority_id} if source.priority_id else None,
        "reporter": lambda: {"id": source.reporter_id} if source.reporter_id else None,
    }


def resolve_fields(source: SourceTicket, target: TargetSpec, available: dict[str, Any]) -> dict[str, Any]:
    """Merge the field set to create a clone of source in target.

    Args:
        source: Issue being cloned
        target: Destination definition
        available: Fields accepted by the target (see available_fields)

    Returns:
        Fields for issue creation, without the description
    """
    fields: dict[str, Any] = {
        "summary": transform_summary(target, source.summary),
        "issuetype": {"id": source.issue_type_id},
        "project": {"key": target.project},
    }

    for key, compute in _preserved_fields(source).items():
        if not _accepts(available, key):
            continue
        value = compute()
        if value:
            fields[key] = value

    if target.affects_versions:
        version_key = next((key for key in VERSION_FIELDS if _accepts(available, key)), None)
        if version_key:
            fields[version_key] = _name_refs(target.affects_versions)
        else:
            logger.warning(f"{target.project} accepts neither versions nor fixVersions, skipping versions")

    if target.labels and _accepts(available, "labels"):
        fields["labels"] = list(target.labels)

    if target.components and _accepts(available, "components"):
        fields["components"] = _name_refs(target.components)

    for key, value in source.custom_fields.items():
        if key in RESERVED_FIELDS or key == "description" or key in fields:
            continue
        if _accepts(available, key) and is_passthrough_value(value):
            fields[key] = list(value) if isinstance(value, tuple) else value

    return fields


class FieldResolver:
    """Resolves clone fields against the live create metadata of each target."""

    _tracker: IssueTracker

    def __init__(self, tracker: IssueTracker) -> None:
        self._tracker = tracker

    def resolve(self, source: SourceTicket, target: TargetSpec) -> dict[str, Any]:
        available = available_fields(self._tracker, target.project, source.issue_type_id)
        return resolve_fields(source, target, available)
