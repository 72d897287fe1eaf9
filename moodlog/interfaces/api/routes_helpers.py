"""Helper functions shared by route modules."""

from fastapi import HTTPException, status

from moodlog.domain.errors import (
    ChannelError,
    InvalidPayload,
    InvalidSession,
    MoodlogError,
    NotFound,
    StorageError,
)


def http_error_for(exc: MoodlogError) -> HTTPException:
    """Translate a domain error into the matching :class:`HTTPException`."""

    if isinstance(exc, InvalidPayload):
        detail = {"message": str(exc), "field": exc.field}
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)
    if isinstance(exc, InvalidSession):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, StorageError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage temporarily unavailable",
        )
    if isinstance(exc, ChannelError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
