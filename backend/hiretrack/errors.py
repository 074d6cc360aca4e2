"""
Error taxonomy shared by the tenant, workflow and reporting services.

Services raise these; the app-level handler turns them into JSON responses
of the form ``{"error": ...}`` with the class's status code.
"""


class HireTrackError(Exception):
    status_code = 500
    detail = "Internal error"

    def __init__(self, detail: str | None = None, status_code: int | None = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict:
        return {"error": self.detail}


class Unauthorized(HireTrackError):
    status_code = 401
    detail = "Unauthorized"


class NotFound(HireTrackError):
    status_code = 404
    detail = "Not found"


class AccessDenied(HireTrackError):
    """Cross-tenant access. Record lookups surface it as a plain 404."""

    status_code = 403
    detail = "Access denied"


class ValidationError(HireTrackError):
    status_code = 400
    detail = "Invalid request"


class InvalidTransition(HireTrackError):
    status_code = 400

    def __init__(self, current: str, proposed: str, allowed: list[str]):
        self.current = current
        self.proposed = proposed
        self.allowed = list(allowed)
        super().__init__(f"Invalid status transition from {current} to {proposed}")

    def to_body(self) -> dict:
        return {"error": self.detail, "allowedTransitions": self.allowed}


class StaleStatus(HireTrackError):
    """The record's status changed between the guarded read and the write."""

    status_code = 409

    def __init__(self, expected: str):
        self.expected = expected
        super().__init__(f"Status is no longer {expected}; reload and retry")
