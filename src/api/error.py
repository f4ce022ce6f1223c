"""HTTP error mapping for use case results"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error
from src.app.use_cases.premium import error_codes

ERROR_STATUS_CODES = {
    error_codes.UNKNOWN_FEATURE: status.HTTP_404_NOT_FOUND,
    error_codes.INSUFFICIENT_CREDITS: status.HTTP_402_PAYMENT_REQUIRED,
    error_codes.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    error_codes.NOT_ACTIVE: status.HTTP_409_CONFLICT,
    error_codes.ALREADY_ACTIVE: status.HTTP_409_CONFLICT,
    error_codes.ACTIVATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    error_codes.CANCELLATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    error_codes.STATUS_LOOKUP_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ClientError(Exception):
    """Raised by routes to turn a use case Error into an HTTP response"""

    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code

    @classmethod
    def from_error(cls, error: Error) -> "ClientError":
        return cls(error, status_code=ERROR_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST))


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.error.code, "message": exc.error.message}},
    )
