from enum import Enum
from typing import Any, Dict, Optional, Type


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    APPLICATION = "application"
    NETWORK = "network"
    BUSY = "busy"


NOT_CREATOR_REASON = "NOT_CREATOR"


class LifecycleError(Exception):
    """Base error raised by the backend client."""
    kind = ErrorKind.APPLICATION
    default_message = "Application error"
    default_status: Optional[int] = 500

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None,
                 status: Optional[int] = None, details: Any = None,
                 reason: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code
        self.status = status if status is not None else self.default_status
        self.details = details
        self.reason = reason

    def __repr__(self):
        return f"{type(self).__name__}(status={self.status}, code={self.code!r}, message={self.message!r})"


class ValidationError(LifecycleError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"
    default_status = 400

    def field_errors(self) -> Dict[str, Dict[str, Any]]:
        """Map field name -> {rule, expected, message} for inline form errors."""
        details = self.details
        if isinstance(details, dict):
            details = [details]
        if not isinstance(details, list):
            return {}

        result = {}
        for detail in details:
            if not isinstance(detail, dict) or not detail.get("field"):
                continue
            result[detail["field"]] = {
                "rule": detail.get("rule"),
                "expected": detail.get("expected"),
                "message": validation_message(detail),
            }
        return result


class AuthenticationError(LifecycleError):
    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication failed"
    default_status = 401


class AuthorizationError(LifecycleError):
    kind = ErrorKind.AUTHORIZATION
    default_message = "Authorization failed"
    default_status = 403

    @property
    def is_not_creator(self) -> bool:
        """True when the denial is because the caller did not approve the project."""
        if self.reason:
            return self.reason.upper() == NOT_CREATOR_REASON
        # Older backends only say so in the message text
        text = (self.message or "").lower()
        return "creator" in text or "creador" in text


class NotFoundError(LifecycleError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"
    default_status = 404


class ConflictError(LifecycleError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict error"
    default_status = 409


class ApplicationError(LifecycleError):
    pass


class NetworkError(LifecycleError):
    kind = ErrorKind.NETWORK
    default_message = "Could not reach the project service"
    default_status = None


ERROR_CODES: Dict[str, Type[LifecycleError]] = {
    "INPUT_VALIDATION_FAILED": ValidationError,
    "AUTHENTICATION_FAILED": AuthenticationError,
    "AUTHENTICATION_FAILURE": AuthenticationError,
    "AUTHORIZATION_FAILED": AuthorizationError,
    "RESOURCE_NOT_FOUND": NotFoundError,
    "RESOURCE_CONFLICT": ConflictError,
}

ERROR_STATUSES: Dict[int, Type[LifecycleError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
}

VALIDATION_MESSAGES = {
    "min_length": "Must be at least {expected} characters long",
    "max_length": "Must not exceed {expected} characters",
    "invalid_format": "Invalid format",
    "invalid_email": "The email address format is invalid",
    "required": "This field is required",
    "missing_or_empty": "This field is required",
    "unique": "This value is already registered",
    "email_exists": "This email address is already registered",
    "password_mismatch": "Passwords do not match",
    "passwords_do_not_match": "Passwords do not match",
    "cardinality_violation": "Select exactly {allowed}",
}


def validation_message(detail: Dict[str, Any]) -> str:
    rule = detail.get("rule")
    template = VALIDATION_MESSAGES.get(rule)
    if template:
        return template.format(expected=detail.get("expected"), allowed=detail.get("allowed"))
    return detail.get("message") or f"Error in field {detail.get('field')}"


def error_from_response(status: int, body: Any) -> LifecycleError:
    """
    Build the matching error from a failed backend response.

    The backend answers ``{"success": false, "error": {code, message, details, reason}}``.
    The error code decides the class; the HTTP status is used when the code is
    missing or unknown.
    """
    error: Dict[str, Any] = {}
    if isinstance(body, dict):
        raw = body.get("error")
        if isinstance(raw, dict):
            error = raw
        elif isinstance(raw, str):
            error = {"message": raw}
        elif "message" in body or "detail" in body:
            error = {"message": body.get("message") or body.get("detail")}

    code = error.get("code")
    error_cls = ERROR_CODES.get(code) or ERROR_STATUSES.get(status)
    if error_cls is None:
        error_cls = ApplicationError

    reason = error.get("reason")
    if reason is None and isinstance(error.get("details"), dict):
        reason = error["details"].get("reason")

    return error_cls(
        message=error.get("message"),
        code=code,
        status=status,
        details=error.get("details"),
        reason=reason,
    )


def display_message(err: Exception) -> str:
    """Human-readable message for a failed request."""
    if isinstance(err, ValidationError):
        details = err.details if isinstance(err.details, list) else [err.details]
        for detail in details:
            if isinstance(detail, dict):
                return validation_message(detail)
        return err.message
    if isinstance(err, AuthenticationError):
        return "Your session could not be verified. Please sign in again."
    if isinstance(err, AuthorizationError):
        return "You do not have permission to perform this action."
    if isinstance(err, NotFoundError):
        return "The requested resource does not exist or has been deleted."
    if isinstance(err, ConflictError):
        return "A resource with this data already exists. Please check the information."
    if isinstance(err, NetworkError):
        return "Could not reach the project service. Please check your connection."
    return str(err) or "Something went wrong. Please try again."
