import pytest

from servers.lifecycle.errors import (
    ApplicationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorKind,
    NetworkError,
    NotFoundError,
    ValidationError,
    display_message,
    error_from_response,
)


@pytest.mark.parametrize("code,expected", [
    ("INPUT_VALIDATION_FAILED", ValidationError),
    ("AUTHENTICATION_FAILED", AuthenticationError),
    ("AUTHENTICATION_FAILURE", AuthenticationError),
    ("AUTHORIZATION_FAILED", AuthorizationError),
    ("RESOURCE_NOT_FOUND", NotFoundError),
    ("RESOURCE_CONFLICT", ConflictError),
])
def test_error_code_decides_class(code, expected):
    # status deliberately disagrees with the code
    error = error_from_response(500, {"success": False, "error": {"code": code, "message": "x"}})
    assert type(error) is expected
    assert error.status == 500


@pytest.mark.parametrize("status,expected", [
    (400, ValidationError),
    (401, AuthenticationError),
    (403, AuthorizationError),
    (404, NotFoundError),
    (409, ConflictError),
    (500, ApplicationError),
    (502, ApplicationError),
])
def test_status_fallback(status, expected):
    assert type(error_from_response(status, {"error": {"message": "nope"}})) is expected


def test_non_json_body():
    error = error_from_response(503, None)
    assert isinstance(error, ApplicationError)
    assert error.kind == ErrorKind.APPLICATION
    assert error.message == "Application error"


def test_plain_message_body():
    error = error_from_response(404, {"message": "Project not found"})
    assert isinstance(error, NotFoundError)
    assert error.message == "Project not found"


class TestNotCreator:
    def test_structured_reason(self):
        error = error_from_response(403, {"error": {
            "code": "AUTHORIZATION_FAILED", "message": "Forbidden", "reason": "NOT_CREATOR",
        }})
        assert error.is_not_creator

    def test_reason_in_details(self):
        error = error_from_response(403, {"error": {
            "code": "AUTHORIZATION_FAILED", "message": "Forbidden", "details": {"reason": "not_creator"},
        }})
        assert error.is_not_creator

    @pytest.mark.parametrize("message", [
        "Only the project creator can roll back",
        "Solo el creador del proyecto puede revertirlo",
    ])
    def test_message_fallback(self, message):
        assert AuthorizationError(message).is_not_creator

    def test_other_denial(self):
        assert not AuthorizationError("Insufficient role").is_not_creator

    def test_reason_wins_over_message(self):
        assert not AuthorizationError("not the creator", reason="ROLE_REQUIRED").is_not_creator


def test_field_errors():
    error = error_from_response(400, {"error": {
        "code": "INPUT_VALIDATION_FAILED",
        "message": "Invalid input",
        "details": [
            {"field": "title", "rule": "min_length", "expected": 5},
            {"field": "projectType", "rule": "cardinality_violation", "allowed": "one project type"},
            {"rule": "required"},
        ],
    }})

    assert error.field_errors() == {
        "title": {"rule": "min_length", "expected": 5, "message": "Must be at least 5 characters long"},
        "projectType": {"rule": "cardinality_violation", "expected": None,
                        "message": "Select exactly one project type"},
    }


def test_field_errors_unknown_rule_uses_backend_message():
    error = ValidationError(details={"field": "deadline", "rule": "weird", "message": "Bad deadline"})
    assert error.field_errors()["deadline"]["message"] == "Bad deadline"


class TestDisplayMessage:
    def test_validation_uses_first_detail(self):
        error = ValidationError("Invalid input", details=[{"field": "email", "rule": "invalid_email"}])
        assert display_message(error) == "The email address format is invalid"

    def test_validation_without_details(self):
        assert display_message(ValidationError("Invalid input")) == "Invalid input"

    @pytest.mark.parametrize("error,fragment", [
        (AuthenticationError(), "sign in again"),
        (AuthorizationError(), "permission"),
        (NotFoundError(), "does not exist"),
        (ConflictError(), "already exists"),
        (NetworkError(), "connection"),
    ])
    def test_kind_messages(self, error, fragment):
        assert fragment in display_message(error)

    def test_application_error_passes_message_through(self):
        assert display_message(ApplicationError("Database unavailable")) == "Database unavailable"
