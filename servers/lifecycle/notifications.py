from typing import Dict, Tuple

from servers.lifecycle.models import TransitionKind

NOT_CREATOR_TITLE = "Action not allowed"
NOT_CREATOR_MESSAGE = "Only the professor who approved this project can roll it back"
BUSY_MESSAGE = "This action is already in progress"


def get_success_notification(kind: TransitionKind) -> Tuple[str, str]:
    """
    Return the (title, message) shown after a successful transition.

    Args:
        kind: Transition that completed

    Returns:
        Title and body for the success toast
    """
    templates: Dict[TransitionKind, Tuple[str, str]] = {
        TransitionKind.APPROVE: ("✓ Application approved", "The project has been created successfully"),
        TransitionKind.START: ("✓ Project started", "The project has been started successfully"),
        TransitionKind.ROLLBACK: ("✓ Project rolled back", "The project has been rolled back successfully"),
        TransitionKind.UPDATE_DEADLINE: ("✓ Deadline updated", "The deadline has been updated successfully"),
    }
    return templates.get(kind, ("✓ Done", "The project has been updated"))


def get_failure_title(kind: TransitionKind) -> str:
    titles = {
        TransitionKind.APPROVE: "Could not approve",
        TransitionKind.START: "Could not start",
        TransitionKind.ROLLBACK: "Could not roll back",
        TransitionKind.UPDATE_DEADLINE: "Could not update the deadline",
    }
    return titles.get(kind, "Something went wrong")
