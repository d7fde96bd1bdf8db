"""Clone orchestrator that fans one source issue out to several targets.

The source issue is read once. Then, for each target, in the given order:

    resolve fields ──► create issue ──► set description ──► copy attachments ──► link ──► pause
                           │
                           └─ failed: record it, go to the next target

The issue is created without its description: the description may reference
media by attachment, and those only exist once the issue does. The
description is then written separately, after sanitizing.

Error Handling
--------------
- Reading the source issue: fatal, IssueLookupError propagates
- Creating a clone: the target is abandoned, the next one is processed
- Description, attachments, link: recorded, the remaining steps still run

Nothing is retried. The pause between targets only spreads the load on the
tracker; it is skipped after a failed creation and after the last target.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from .adf import UNSUPPORTED_NODE_TYPES, contains_node_type, sanitize_document
from .attachments import AttachmentReplicator
from .exceptions import AttachmentError, CreateError, LinkError, UpdateError
from .fields import FieldResolver
from .models import CloneReport, StepFailure, TargetResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from .models import SourceTicket, TargetSpec
    from .protocols import IssueTracker

logger = logging.getLogger(__name__)

DEFAULT_PACING_SECONDS = 1.0


class CloneOrchestrator:
    """Clones a source issue into each target.

    Usage:
        tracker = JiraTracker(get_client(settings), settings.server)
        orchestrator = CloneOrchestrator(tracker)
        report = orchestrator.run("ABC-123", targets)

    The orchestrator keeps no state between runs - everything that happened
    is returned in the CloneReport.
    """

    _tracker: IssueTracker
    _resolver: FieldResolver
    _replicator: AttachmentReplicator
    _pacing_seconds: float
    _sleep: Callable[[float], None]
    _dry_run: bool

    def __init__(
        self,
        tracker: IssueTracker,
        *,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        dry_run: bool = False,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            tracker: Issue tracker holding the source and the targets
            pacing_seconds: Pause between two targets
            sleep: Function used to pause (replaced in tests)
            dry_run: Only resolve the fields, create nothing
        """
        self._tracker = tracker
        self._resolver = FieldResolver(tracker)
        self._replicator = AttachmentReplicator(tracker)
        self._pacing_seconds = pacing_seconds
        self._sleep = sleep
        self._dry_run = dry_run

    def run(self, source_key: str, targets: Sequence[TargetSpec]) -> CloneReport:
        """Clone source_key into every target.

        Returns:
            CloneReport with one TargetResult per target, in target order

        Raises:
            IssueLookupError: If the source issue cannot be read
        """
        source = self._tracker.get_issue(source_key)
        logger.info(f"Cloning {source.key} '{source.summary}' into {len(targets)} target(s)")

        report = CloneReport(source_key=source.key)
        for index, target in enumerate(targets):
            result = self._plan_target(source, target) if self._dry_run else self._clone_to_target(source, target)
            report.results.append(result)

            is_last = index == len(targets) - 1
            if result.issue_key and not is_last and self._pacing_seconds > 0:
                self._sleep(self._pacing_seconds)

        logger.info(
            f"Finished {source.key}: {sum(r.success for r in report.results)}/{len(report.results)} target(s) "
            f"without errors"
        )
        return report

    def _plan_target(self, source: SourceTicket, target: TargetSpec) -> TargetResult:
        fields = self._resolver.resolve(source, target)
        logger.info(f"[dry run] Would create in {target.project}: {fields}")
        return TargetResult(target=target, status="planned", fields=fields)

    def _clone_to_target(self, source: SourceTicket, target: TargetSpec) -> TargetResult:
        fields = self._resolver.resolve(source, target)

        try:
            created = self._tracker.create_issue(fields)
        except CreateError as e:
            logger.error(f"Failed to create clone in {target.project}: {e}")  # noqa: TRY400
            return TargetResult(
                target=target,
                status="create_failed",
                fields=fields,
                failures=[StepFailure(step="create", error=e)],
            )

        logger.info(f"Created clone {created.key} in {target.project}")
        result = TargetResult(target=target, status="done", issue_key=created.key, fields=fields)

        self._update_description(source, created.key, result)

        attachments = self._replicator.replicate(source.attachments, created.key)
        result.attachments = attachments
        if attachments.failed:
            names = ", ".join(filename for filename, _ in attachments.failed)
            result.failures.append(StepFailure(step="attachments", error=AttachmentError(f"Failed: {names}")))

        self._link(source, target, created.key, result)
        return result

    def _update_description(self, source: SourceTicket, issue_key: str, result: TargetResult) -> None:
        if source.description is None:
            logger.debug(f"{source.key} has no description, nothing to copy to {issue_key}")
            return

        if contains_node_type(source.description, UNSUPPORTED_NODE_TYPES):
            logger.debug(f"Removing smart links and mentions from the description of {issue_key}")

        try:
            self._tracker.update_issue(issue_key, {"description": sanitize_document(source.description)})
        except UpdateError as e:
            logger.error(f"Failed to set description of {issue_key}: {e}")  # noqa: TRY400
            result.failures.append(StepFailure(step="description", error=e))
        else:
            logger.debug(f"Description copied to {issue_key}")

    def _link(self, source: SourceTicket, target: TargetSpec, issue_key: str, result: TargetResult) -> None:
        link_type = target.effective_link_type
        try:
            self._tracker.create_link(link_type, source.key, issue_key)
        except LinkError as e:
            logger.error(f"Failed to link {source.key} to {issue_key} ({link_type}): {e}")  # noqa: TRY400
            result.failures.append(StepFailure(step="link", error=e))
        else:
            logger.info(f"Linked {source.key} to {issue_key} ({link_type})")
