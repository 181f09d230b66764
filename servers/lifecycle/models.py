from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict, Any
from datetime import date, datetime
from enum import Enum


class WireModel(BaseModel):
    """Base for models exchanged with the backend (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProjectStatus(str, Enum):
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TransitionKind(str, Enum):
    APPROVE = "approve"
    START = "start"
    ROLLBACK = "rollback"
    UPDATE_DEADLINE = "update_deadline"


class DiagnosticKind(str, Enum):
    MISSING = "missing"
    EXCESS = "excess"


class ProjectType(WireModel):
    id: Optional[int] = None
    name: str
    min_estimated_months: int = Field(0, ge=0)
    max_estimated_months: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_month_range(self):
        if self.min_estimated_months > self.max_estimated_months:
            raise ValueError(
                f"minEstimatedMonths ({self.min_estimated_months}) must not exceed "
                f"maxEstimatedMonths ({self.max_estimated_months})"
            )
        return self


class RoleConstraint(BaseModel):
    """Headcount policy for one team role. ``max=None`` means no upper bound."""
    min: int = Field(0, ge=0)
    max: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self

    @property
    def is_bounded(self) -> bool:
        return self.max is not None

    def display_max(self) -> str:
        return str(self.max) if self.is_bounded else "∞"


class TeamMember(WireModel):
    role: str
    uuid_user: Optional[str] = None
    name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_role_name(cls, data: Any):
        # the backend sends either ``roleName`` or ``role``
        if isinstance(data, dict) and "role" not in data and "roleName" in data:
            data = {**data, "role": data["roleName"]}
        return data


class Application(WireModel):
    uuid: str
    title: str
    short_description: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    deadline: Optional[str] = None
    project_types: List[ProjectType] = []
    faculties: List[int] = []
    problem_types: List[int] = []
    attachments: List[Dict[str, Any]] = []
    status: ApplicationStatus = ApplicationStatus.PENDING


class Project(WireModel):
    uuid: str
    uuid_application: Optional[str] = None
    title: Optional[str] = None
    created_at: Optional[str] = None
    approved_at: Optional[str] = None
    estimated_date: Optional[str] = None
    status: ProjectStatus = ProjectStatus.APPROVED
    team_members: List[TeamMember] = []
    uuid_creator: Optional[str] = None
    project_types: List[ProjectType] = []

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any):
        # backend statuses arrive as {"name": "project_in_progress"} or plain strings
        if isinstance(value, dict):
            value = value.get("name") or value.get("code")
        if isinstance(value, str):
            value = value.strip().lower()
            if value.startswith("project_"):
                value = value[len("project_"):]
        return value

    @property
    def project_type(self) -> Optional[ProjectType]:
        """The governing project type: the first one listed."""
        return self.project_types[0] if self.project_types else None


class ProjectDraft(WireModel):
    """Approval payload built by the reviewer from an application."""
    title: str = Field(..., min_length=1)
    short_description: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    estimated_date: date
    estimated_effort_hours: Optional[float] = None
    project_type: List[Optional[int]]
    faculty: List[Optional[int]] = []
    problem_type: List[Optional[int]] = []
    problem_type_other: Optional[str] = None

    @field_validator("project_type")
    @classmethod
    def exactly_one_project_type(cls, value: List[Optional[int]]) -> List[Optional[int]]:
        resolved = [v for v in value if v is not None]
        if len(resolved) != 1:
            raise ValueError("A Project must have exactly one Project Type selected.")
        return resolved

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the backend, dropping unresolved identifiers."""
        payload = {
            "title": self.title,
            "shortDescription": self.short_description,
            "description": self.description,
            "estimatedDate": self.estimated_date.isoformat(),
            "projectType": [v for v in self.project_type if v is not None],
            "faculty": [v for v in self.faculty if v is not None],
            "problemType": [v for v in self.problem_type if v is not None],
        }
        if self.estimated_effort_hours is not None:
            payload["estimatedEffortHours"] = self.estimated_effort_hours
        if self.problem_type_other:
            payload["problemTypeOther"] = self.problem_type_other
        return payload


class DeadlineWindow(BaseModel):
    min_date: date
    max_date: date
    min_months: int
    max_months: int
    suggested_date: date
    project_type_name: Optional[str] = None


class DeadlineCheck(BaseModel):
    valid: bool
    message: Optional[str] = None
    months_diff: Optional[int] = None


class TeamDiagnostic(BaseModel):
    kind: DiagnosticKind
    role: str
    current: int
    min: int
    max: Optional[int] = None
    needed: Optional[int] = None
    message: str


class TeamVerdict(BaseModel):
    team_valid: bool
    missing: List[TeamDiagnostic] = []
    excess: List[TeamDiagnostic] = []
    errors: List[str] = []


class ReadinessVerdict(BaseModel):
    can_start: bool
    team_valid: bool
    deadline_valid: bool
    errors: List[str] = []
    missing_roles: List[TeamDiagnostic] = []


class TransitionOutcome(BaseModel):
    kind: TransitionKind
    success: bool
    title: str
    message: str
    project_uuid: Optional[str] = None
    error_kind: Optional[str] = None
    error_reason: Optional[str] = None
    field_errors: Dict[str, Dict[str, Any]] = {}
    finished_at: datetime = Field(default_factory=datetime.now)
