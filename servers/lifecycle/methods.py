import httpx
import structlog
from typing import Dict, List, Optional, Any
from pydantic import ValidationError as ModelValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from servers.lifecycle.errors import ApplicationError, LifecycleError, NetworkError, error_from_response
from servers.lifecycle.models import Project, ProjectType, RoleConstraint

logger = structlog.get_logger(__name__)


class ProjectLifecycleClient:
    """
    Client for the project-submission backend REST API.
    """

    def __init__(self,
                 base_url: str = "http://localhost:3000/api",
                 api_key: Optional[str] = None,
                 timeout: float = 30.0,
                 retry_attempts: int = 3,
                 http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the backend API
            api_key: Credential sent as ``X-API-Key``; the session store is external
            timeout: Transport timeout in seconds
            retry_attempts: Attempts for read-only metadata requests
            http_client: Pre-built client (tests inject one with a mock transport)
        """
        self.base_url = base_url.rstrip('/')
        self.headers = {"X-API-Key": api_key} if api_key else {}
        self.retry_attempts = max(1, retry_attempts)
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100)
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self.http_client.aclose()

    # =================
    # TRANSPORT
    # =================

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send one request and unwrap the ``data`` envelope; raise LifecycleError on failure."""
        url = f"{self.base_url}{path}"
        try:
            response = await self.http_client.request(method, url, headers=self.headers, **kwargs)
        except httpx.RequestError as e:
            logger.warning(f"Request to {url} failed: {e}", method=method)
            raise NetworkError(f"Could not connect to the project service at {self.base_url}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            error = error_from_response(response.status_code, body)
            logger.info(
                f"{method} {path} rejected",
                status=response.status_code,
                code=error.code,
                kind=error.kind.value,
            )
            raise error

        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    async def _read(self, path: str, **kwargs) -> Any:
        """GET with retries on transport failures; only used for idempotent reads."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            retry=retry_if_exception_type(NetworkError),
            reraise=True,
        ):
            with attempt:
                return await self._request("GET", path, **kwargs)

    # =================
    # METADATA
    # =================

    async def fetch_project_type_metadata(self) -> List[ProjectType]:
        """Project-type catalog with the estimated-duration range of each type."""
        data = await self._read("/application/metadata")
        raw_types = data.get("projectTypes", []) if isinstance(data, dict) else (data or [])
        try:
            return [ProjectType.model_validate(_normalize_project_type(item)) for item in raw_types]
        except (ModelValidationError, TypeError, ValueError) as e:
            raise ApplicationError("Unexpected project type metadata") from e

    async def fetch_team_role_constraints(self, project_uuid: str) -> Dict[str, RoleConstraint]:
        """Role headcount constraints of the project's governing type, keyed by role name."""
        data = await self._read(f"/project/{project_uuid}/team/metadata")
        if isinstance(data, dict) and isinstance(data.get("metadata"), dict):
            data = data["metadata"]
        if isinstance(data, dict):
            for key in ("allowedRoles", "constraints", "roleConstraints"):
                if key in data:
                    data = data[key]
                    break
        return normalize_role_constraints(data)

    async def fetch_project(self, project_uuid: str) -> Project:
        """Current snapshot of a project."""
        data = await self._read(f"/project/{project_uuid}")
        snapshot = _normalize_project(data, project_uuid)
        try:
            return Project.model_validate(snapshot)
        except ModelValidationError as e:
            logger.error(f"Unexpected project snapshot: {e}", project_uuid=project_uuid)
            raise ApplicationError(f"Unexpected project data for {project_uuid}") from e

    # =================
    # TRANSITIONS
    # =================

    async def approve_application(self, application_uuid: str, payload: Dict[str, Any]) -> Any:
        """Approve an application; the backend creates the project and returns it."""
        body = {"uuidApplication": application_uuid, "project": payload}
        data = await self._request("POST", "/project/create", json=body)
        if isinstance(data, dict) and "project" in data:
            return data["project"]
        return data or {}

    async def start_project(self, project_uuid: str) -> None:
        await self._request("POST", f"/project/{project_uuid}/start")

    async def rollback_project(self, project_uuid: str) -> None:
        await self._request("POST", f"/project/{project_uuid}/rollback")

    async def update_project_deadline(self, project_uuid: str, iso_date: str) -> None:
        """Submit a new deadline in ``YYYY-MM-DD`` form."""
        await self._request("PATCH", f"/project/{project_uuid}/deadline", json={"deadline": iso_date})


def _normalize_project(data: Any, project_uuid: str) -> Dict[str, Any]:
    """Flatten ``{project}`` or detail ``{author, details}`` responses into one snapshot."""
    if isinstance(data, dict) and isinstance(data.get("project"), dict):
        data = data["project"]
    elif isinstance(data, dict) and isinstance(data.get("details"), dict):
        data = data["details"]
    if not isinstance(data, dict):
        raise ApplicationError(f"Unexpected project data for {project_uuid}")

    snapshot = dict(data)
    snapshot.setdefault("uuid", project_uuid)
    # the detail view names the committed deadline ``deadline``
    if "estimatedDate" not in snapshot and "estimated_date" not in snapshot and "deadline" in snapshot:
        snapshot["estimatedDate"] = snapshot["deadline"]
    return snapshot


def _normalize_project_type(item: Dict[str, Any]) -> Dict[str, Any]:
    item = dict(item)
    if "id" not in item and "project_type_id" in item:
        item["id"] = item["project_type_id"]
    return item


def _role_constraint(role: str, min_count: Any, max_count: Any) -> RoleConstraint:
    try:
        return RoleConstraint(min=min_count or 0, max=max_count)
    except ModelValidationError as e:
        raise LifecycleError(f"Invalid constraint for role {role!r}: min={min_count}, max={max_count}") from e


_LIMIT_KEYS = {"min", "max", "minCount", "maxCount"}


def normalize_role_constraints(raw: Any) -> Dict[str, RoleConstraint]:
    """
    Convert backend constraint metadata into ``role name -> RoleConstraint``.

    Accepts a list of ``{roleName|name, minCount, maxCount|null}`` entries or an
    already keyed ``{role: {min|minCount, max|maxCount}}`` mapping. A null maximum
    means unbounded. Any other shape raises LifecycleError.
    """
    constraints: Dict[str, RoleConstraint] = {}
    if not raw:
        return constraints

    if isinstance(raw, dict):
        for role, limits in raw.items():
            if not isinstance(limits, dict) or not _LIMIT_KEYS.intersection(limits):
                raise LifecycleError(f"Unexpected constraint for role {role!r}: {limits}")
            constraints[role] = _role_constraint(
                role,
                limits.get("min", limits.get("minCount", 0)),
                limits.get("max", limits.get("maxCount")),
            )
        return constraints

    if not isinstance(raw, list):
        raise LifecycleError(f"Unexpected role constraint metadata: {raw}")

    for entry in raw:
        if not isinstance(entry, dict):
            raise LifecycleError(f"Unexpected role constraint entry: {entry}")
        role = entry.get("roleName") or entry.get("name") or entry.get("role")
        if isinstance(role, dict):
            role = role.get("name")
        if not role:
            raise LifecycleError(f"Role constraint without a role name: {entry}")
        constraints[role] = _role_constraint(
            role,
            entry.get("minCount", entry.get("min", 0)),
            entry.get("maxCount", entry.get("max")),
        )
    return constraints
