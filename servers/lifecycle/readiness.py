from typing import Dict, Iterable, Optional

from servers.lifecycle.deadlines import retrospective_deadline_check
from servers.lifecycle.models import Project, ReadinessVerdict, RoleConstraint, TeamMember
from servers.lifecycle.team_validator import validate_team_composition


def evaluate_readiness(project: Optional[Project],
                       constraints: Optional[Dict[str, RoleConstraint]] = None,
                       team_members: Optional[Iterable[TeamMember]] = None) -> ReadinessVerdict:
    """
    Decide whether a project may be started.

    ``can_start`` requires both a valid team and a deadline that passes the
    retrospective whole-month check. ``team_members`` replaces the roster
    carried by the project snapshot when given (e.g. a freshly edited team).
    """
    if project is None:
        return ReadinessVerdict(can_start=False, team_valid=False, deadline_valid=False)

    roster = list(team_members) if team_members is not None else project.team_members
    team = validate_team_composition(roster, constraints or {})
    deadline = retrospective_deadline_check(
        project.created_at, project.estimated_date, project.project_type
    )

    errors = list(team.errors)
    if deadline.message:
        errors.append(deadline.message)

    return ReadinessVerdict(
        can_start=team.team_valid and deadline.valid,
        team_valid=team.team_valid,
        deadline_valid=deadline.valid,
        errors=errors,
        missing_roles=team.missing,
    )
