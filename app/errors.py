class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.message}


class ValidationError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class HealthDataBatchError(ServiceError):
    """Raised when at least one entry of a health-data batch failed.

    Carries the entries that did go through alongside the per-entry errors so
    callers can report a partial result.
    """

    status_code = 400

    def __init__(self, message: str, processed: list[dict], errors: list[dict]):
        super().__init__(message)
        self.processed = processed
        self.errors = errors

    def to_dict(self) -> dict:
        return {
            "ok": False,
            "error": self.message,
            "processed": self.processed,
            "errors": self.errors,
        }


class UpstreamServiceError(ServiceError):
    status_code = 502
