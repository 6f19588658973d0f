"""Service error taxonomy shared by routers and application services."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional


class ServiceError(Exception):
    """Base error carrying an HTTP status and a short user-visible message."""

    status_code = 500
    kind = "internal"

    def __init__(self, message: str, *, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = dict(extra or {})

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message}
        payload.update(self.extra)
        return payload


class Unauthorized(ServiceError):
    status_code = 401
    kind = "unauthorized"


class PermissionDenied(ServiceError):
    status_code = 403
    kind = "permission_denied"


class InputValidationError(ServiceError):
    status_code = 400
    kind = "validation_error"


class NotFound(ServiceError):
    status_code = 404
    kind = "not_found"


class Conflict(ServiceError):
    status_code = 409
    kind = "conflict"


class AlreadyPublished(Conflict):
    # The publish endpoint reports this conflict as a bad request.
    status_code = 400
    kind = "already_published"


class DependencyFailure(ServiceError):
    status_code = 500
    kind = "dependency_failure"


class ServiceUnavailable(ServiceError):
    status_code = 503
    kind = "service_unavailable"


def summarize_validation_errors(errors: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce pydantic error entries to JSON-safe ``{loc, msg, type}`` items."""

    return [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": str(error.get("msg", "")),
            "type": str(error.get("type", "")),
        }
        for error in errors
    ]
