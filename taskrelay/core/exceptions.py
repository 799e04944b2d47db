"""Custom exceptions."""
from typing import Optional
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or "Resource not found",
        )


class ValidationError(HTTPException):
    """Validation exception."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail or "Validation error",
        )


class NoActiveSessionError(HTTPException):
    """Outbound message attempted for an address without an active chat session."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail or "No active session for this phone number",
        )


class UpstreamUnavailableError(HTTPException):
    """External agent or provider unreachable, timed out or answered badly."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail or "Upstream service unavailable",
        )

