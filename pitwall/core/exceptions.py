# pitwall/core/exceptions.py
"""Custom exceptions."""
from fastapi import HTTPException, status


class PitwallException(Exception):
    """Base exception for the Pitwall application."""
    pass


class ConfigurationError(PitwallException):
    """Raised when a race session is created with invalid configuration."""
    pass


class SessionNotFoundException(PitwallException):
    """Raised when a race session is not found."""
    pass


class LLMException(PitwallException):
    """Raised when LLM call fails."""
    pass


def session_not_found(session_id: str) -> HTTPException:
    """Create HTTPException for session not found."""
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Race session '{session_id}' not found"
    )