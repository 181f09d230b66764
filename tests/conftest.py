import httpx
import pytest

from servers.lifecycle.methods import ProjectLifecycleClient
from servers.lifecycle.models import ProjectType, RoleConstraint

from tests.helpers import BASE_URL


@pytest.fixture
def thesis_type():
    return ProjectType(id=1, name="Thesis", min_estimated_months=6, max_estimated_months=9)


@pytest.fixture
def student_constraints():
    return {
        "Student": RoleConstraint(min=3, max=5),
        "Advisor": RoleConstraint(min=1, max=None),
    }


@pytest.fixture
def make_client():
    """Build a client whose requests are answered by ``handler``."""
    def _make(handler, retry_attempts=1):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ProjectLifecycleClient(
            base_url=BASE_URL,
            api_key="test-key",
            retry_attempts=retry_attempts,
            http_client=http_client,
        )
    return _make
