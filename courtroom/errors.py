"""Errors raised by the case-progression engine.

Client errors (4xx) mean the input was rejected and nothing was stored.
``UpstreamFailure`` (5xx) means the service could not finish the action.
"""


class CourtroomError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code

    @property
    def client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class NotFound(CourtroomError):
    status_code = 404
    code = "not_found"


class ValidationError(CourtroomError):
    status_code = 400
    code = "validation_failed"


class QuotaExceeded(CourtroomError):
    status_code = 409
    code = "quota_exceeded"


class CaseClosed(CourtroomError):
    status_code = 409
    code = "case_closed"


class UpstreamFailure(CourtroomError):
    status_code = 502
    code = "upstream_failure"
