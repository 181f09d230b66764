from servers.lifecycle.models import DiagnosticKind, RoleConstraint, TeamMember
from servers.lifecycle.team_validator import count_roles, validate_team_composition


def roster(*roles):
    return [TeamMember(role=role) for role in roles]


def test_count_roles():
    assert count_roles(roster("Student", "Student", "Advisor")) == {"Student": 2, "Advisor": 1}


def test_missing_students():
    verdict = validate_team_composition(
        roster("Student", "Student"),
        {"Student": RoleConstraint(min=3, max=5)},
    )

    assert not verdict.team_valid
    assert len(verdict.missing) == 1
    diagnostic = verdict.missing[0]
    assert diagnostic.kind == DiagnosticKind.MISSING
    assert diagnostic.role == "Student"
    assert diagnostic.current == 2
    assert diagnostic.needed == 1
    assert diagnostic.message == "Missing 1 Student(s) (minimum: 3)"
    assert verdict.errors == ["The team does not meet the project type constraints"]


def test_role_absent_from_roster(student_constraints):
    verdict = validate_team_composition(roster("Student", "Student", "Student"), student_constraints)

    assert not verdict.team_valid
    assert [d.role for d in verdict.missing] == ["Advisor"]
    assert verdict.missing[0].current == 0


def test_excess_role():
    verdict = validate_team_composition(
        roster("Advisor", "Advisor", "Student"),
        {"Advisor": RoleConstraint(min=1, max=1), "Student": RoleConstraint(min=1, max=4)},
    )

    assert not verdict.team_valid
    assert not verdict.missing
    assert len(verdict.excess) == 1
    assert verdict.excess[0].kind == DiagnosticKind.EXCESS
    assert verdict.errors == ["Too many Advisor (maximum: 1, current: 2)"]


def test_unbounded_max_never_excess():
    verdict = validate_team_composition(
        roster(*["Student"] * 40),
        {"Student": RoleConstraint(min=1, max=None)},
    )
    assert verdict.team_valid
    assert verdict.errors == []


def test_roles_without_constraints_are_ignored(student_constraints):
    verdict = validate_team_composition(
        roster("Student", "Student", "Student", "Advisor", "Observer"),
        student_constraints,
    )
    assert verdict.team_valid


def test_no_constraints_non_empty_team():
    verdict = validate_team_composition(roster("Student"), {})
    assert verdict.team_valid
    assert verdict.missing == []


def test_no_constraints_empty_team():
    verdict = validate_team_composition([], None)

    assert not verdict.team_valid
    assert len(verdict.missing) == 1
    assert verdict.missing[0].role == "Member"
    assert verdict.missing[0].needed == 1
    assert verdict.errors == ["The team must have at least one member"]


def test_missing_and_excess_reported_together():
    verdict = validate_team_composition(
        roster("Advisor", "Advisor"),
        {"Advisor": RoleConstraint(min=0, max=1), "Student": RoleConstraint(min=2, max=3)},
    )
    assert not verdict.team_valid
    assert len(verdict.missing) == 1
    assert len(verdict.excess) == 1
    assert verdict.errors == [
        "Too many Advisor (maximum: 1, current: 2)",
        "The team does not meet the project type constraints",
    ]
