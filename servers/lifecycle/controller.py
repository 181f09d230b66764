"""
Lifecycle transitions for applications and projects.

    pending -(submit)-> in_review -(approve)-> [project: approved]
    in_review -(reject)-> rejected
    approved -(start, requires readiness)-> in_progress
    in_progress -(rollback, creator only)-> approved
    in_progress -(complete, external)-> completed

Every transition is a single request to the backend. Failures are classified
and turned into a TransitionOutcome; nothing is retried.
"""

from contextlib import contextmanager
from typing import Dict, Optional

import structlog

from servers.lifecycle.deadlines import DateLike, format_calendar_date, parse_calendar_date
from servers.lifecycle.errors import (
    NOT_CREATOR_REASON, AuthorizationError, ErrorKind, LifecycleError, ValidationError, display_message
)
from servers.lifecycle.methods import ProjectLifecycleClient
from servers.lifecycle.models import ProjectDraft, TransitionKind, TransitionOutcome
from servers.lifecycle.notifications import (
    BUSY_MESSAGE, NOT_CREATOR_MESSAGE, NOT_CREATOR_TITLE,
    get_failure_title, get_success_notification
)

logger = structlog.get_logger(__name__)


class TransitionInProgress(Exception):
    pass


class LifecycleController:
    """Submits lifecycle transitions and reports their outcome for display."""

    def __init__(self, client: ProjectLifecycleClient):
        self.client = client
        # one flag per kind so unrelated actions do not block each other
        self._busy: Dict[TransitionKind, bool] = {kind: False for kind in TransitionKind}

    def is_busy(self, kind: TransitionKind) -> bool:
        return self._busy[kind]

    @contextmanager
    def _guard(self, kind: TransitionKind):
        if self._busy[kind]:
            raise TransitionInProgress(kind.value)
        self._busy[kind] = True
        try:
            yield
        finally:
            self._busy[kind] = False

    def _succeeded(self, kind: TransitionKind, project_uuid: Optional[str]) -> TransitionOutcome:
        title, message = get_success_notification(kind)
        logger.info(f"Transition {kind.value} succeeded", project_uuid=project_uuid)
        return TransitionOutcome(kind=kind, success=True, title=title, message=message,
                                 project_uuid=project_uuid)

    def _failed(self, kind: TransitionKind, project_uuid: Optional[str],
                error: LifecycleError) -> TransitionOutcome:
        logger.error(
            f"Transition {kind.value} failed: {error.message}",
            project_uuid=project_uuid,
            kind=error.kind.value,
            status=error.status,
            code=error.code,
        )
        field_errors = error.field_errors() if isinstance(error, ValidationError) else {}
        return TransitionOutcome(
            kind=kind,
            success=False,
            title=get_failure_title(kind),
            message=display_message(error),
            project_uuid=project_uuid,
            error_kind=error.kind.value,
            error_reason=error.reason,
            field_errors=field_errors,
        )

    def _busy_outcome(self, kind: TransitionKind, project_uuid: Optional[str]) -> TransitionOutcome:
        logger.warning(f"Transition {kind.value} ignored: already in progress", project_uuid=project_uuid)
        return TransitionOutcome(
            kind=kind,
            success=False,
            title=get_failure_title(kind),
            message=BUSY_MESSAGE,
            project_uuid=project_uuid,
            error_kind=ErrorKind.BUSY.value,
        )

    async def approve(self, application_uuid: str, draft: ProjectDraft) -> TransitionOutcome:
        """
        Approve an application into a new project.

        The draft must already carry resolved identifiers; unresolved ones are
        dropped, never defaulted. On success ``project_uuid`` holds the new project.
        """
        kind = TransitionKind.APPROVE
        try:
            with self._guard(kind):
                logger.info("Approving application", application_uuid=application_uuid)
                project = await self.client.approve_application(application_uuid, draft.to_payload())
        except TransitionInProgress:
            return self._busy_outcome(kind, None)
        except LifecycleError as e:
            return self._failed(kind, None, e)

        project_uuid = None
        if isinstance(project, dict):
            project_uuid = project.get("uuid") or project.get("uuid_project") or project.get("uuidProject")
        if project_uuid is not None:
            project_uuid = str(project_uuid)
        else:
            logger.warning("Approved application but no project uuid came back", application_uuid=application_uuid)
        return self._succeeded(kind, project_uuid)

    async def start(self, project_uuid: str) -> TransitionOutcome:
        """Start a project. Callers gate this on a positive readiness verdict."""
        kind = TransitionKind.START
        try:
            with self._guard(kind):
                await self.client.start_project(project_uuid)
        except TransitionInProgress:
            return self._busy_outcome(kind, project_uuid)
        except LifecycleError as e:
            return self._failed(kind, project_uuid, e)
        return self._succeeded(kind, project_uuid)

    async def rollback(self, project_uuid: str) -> TransitionOutcome:
        """Return an in-progress project to approved. Only its approver may do this."""
        kind = TransitionKind.ROLLBACK
        try:
            with self._guard(kind):
                await self.client.rollback_project(project_uuid)
        except TransitionInProgress:
            return self._busy_outcome(kind, project_uuid)
        except AuthorizationError as e:
            outcome = self._failed(kind, project_uuid, e)
            if e.is_not_creator:
                outcome.title = NOT_CREATOR_TITLE
                outcome.message = NOT_CREATOR_MESSAGE
                outcome.error_reason = NOT_CREATOR_REASON
            return outcome
        except LifecycleError as e:
            return self._failed(kind, project_uuid, e)
        return self._succeeded(kind, project_uuid)

    async def update_deadline(self, project_uuid: str, new_deadline: DateLike) -> TransitionOutcome:
        """
        Submit a new deadline for a project.

        Callers check the value against the commitment-relative window first;
        here it is only normalized to ``YYYY-MM-DD``.
        """
        kind = TransitionKind.UPDATE_DEADLINE
        parsed = parse_calendar_date(new_deadline)
        if parsed is None:
            error = ValidationError(
                "Deadline must be a valid date.",
                details=[{"field": "deadline", "rule": "invalid_format", "expected": "YYYY-MM-DD"}],
            )
            return self._failed(kind, project_uuid, error)

        try:
            with self._guard(kind):
                await self.client.update_project_deadline(project_uuid, format_calendar_date(parsed))
        except TransitionInProgress:
            return self._busy_outcome(kind, project_uuid)
        except LifecycleError as e:
            return self._failed(kind, project_uuid, e)
        return self._succeeded(kind, project_uuid)
