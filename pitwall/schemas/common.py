# pitwall/schemas/common.py
"""Common response schemas."""
from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str


class ControlResponse(BaseModel):
    """Acknowledgement for a control command."""
    status: str = "ok"
    message: str
    running: bool
