"""Translation of allowance domain errors into HTTP responses."""

from fastapi import HTTPException, status

from allowance_server.modules.allowances.exceptions import (
    AllowanceError,
    ClaimNotFoundError,
    ImmutableClaimError,
    PayoutLockedError,
    StoreUnavailableError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[AllowanceError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (ClaimNotFoundError, status.HTTP_404_NOT_FOUND),
    (ImmutableClaimError, status.HTTP_409_CONFLICT),
    (PayoutLockedError, status.HTTP_409_CONFLICT),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_error(exc: AllowanceError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


__all__ = ["to_http_error"]
