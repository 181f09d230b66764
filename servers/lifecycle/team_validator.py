from collections import Counter
from typing import Dict, Iterable, Optional

from servers.lifecycle.models import (
    DiagnosticKind, RoleConstraint, TeamDiagnostic, TeamMember, TeamVerdict
)

GENERIC_ROLE = "Member"


def count_roles(roster: Iterable[TeamMember]) -> Dict[str, int]:
    """Aggregate roster headcount per role name."""
    return dict(Counter(member.role for member in roster))


def validate_team_composition(roster: Iterable[TeamMember],
                              constraints: Optional[Dict[str, RoleConstraint]] = None) -> TeamVerdict:
    """
    Evaluate a roster against per-role minimum/maximum headcounts.

    Args:
        roster: Team members; several may share a role
        constraints: Role name -> RoleConstraint. May be empty when the
            project type metadata is unavailable.

    Returns:
        TeamVerdict with missing/excess diagnostics and human-readable errors
    """
    members = list(roster)
    constraints = constraints or {}

    if not constraints:
        # No metadata: a team only needs one member
        if members:
            return TeamVerdict(team_valid=True)
        diagnostic = TeamDiagnostic(
            kind=DiagnosticKind.MISSING,
            role=GENERIC_ROLE,
            current=0,
            min=1,
            max=None,
            needed=1,
            message="The project must have at least one team member",
        )
        return TeamVerdict(
            team_valid=False,
            missing=[diagnostic],
            errors=["The team must have at least one member"],
        )

    counts = count_roles(members)
    missing = []
    excess = []
    errors = []

    for role, constraint in constraints.items():
        current = counts.get(role, 0)

        if current < constraint.min:
            needed = constraint.min - current
            missing.append(TeamDiagnostic(
                kind=DiagnosticKind.MISSING,
                role=role,
                current=current,
                min=constraint.min,
                max=constraint.max,
                needed=needed,
                message=f"Missing {needed} {role}(s) (minimum: {constraint.min})",
            ))

        if constraint.is_bounded and current > constraint.max:
            excess.append(TeamDiagnostic(
                kind=DiagnosticKind.EXCESS,
                role=role,
                current=current,
                min=constraint.min,
                max=constraint.max,
                message=f"Too many {role} (maximum: {constraint.max}, current: {current})",
            ))
            errors.append(f"Too many {role} (maximum: {constraint.max}, current: {current})")

    if missing:
        errors.append("The team does not meet the project type constraints")

    return TeamVerdict(
        team_valid=not missing and not excess,
        missing=missing,
        excess=excess,
        errors=errors,
    )
