from fastapi import Request
from fastapi.responses import JSONResponse


class PulseError(Exception):
    """Base exception for Pulse API errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status: int = 500,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
                "status": self.status,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class AuthenticationError(PulseError):
    def __init__(self, message: str = "Invalid or missing cron secret.", details: dict | None = None):
        super().__init__(code="authentication_required", message=message, status=401, details=details)


class NotFoundError(PulseError):
    def __init__(self, message: str = "Resource not found.", details: dict | None = None):
        super().__init__(code="not_found", message=message, status=404, details=details)


class StoreUnavailableError(PulseError):
    def __init__(self, message: str = "Monitor store is unavailable.", details: dict | None = None):
        super().__init__(
            code="store_unavailable",
            message=message,
            status=503,
            details=details or {"suggestion": "Check database connectivity and retry the scheduling pass."},
        )


async def pulse_error_handler(request: Request, exc: PulseError) -> JSONResponse:
    """Global exception handler for PulseError and subclasses."""
    return JSONResponse(status_code=exc.status, content=exc.to_dict())
