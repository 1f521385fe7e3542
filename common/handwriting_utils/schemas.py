from typing import Optional
from pydantic import BaseModel


class TextResponse(BaseModel):
    """
    Successful response of both /api/extract and /api/summarize.
    """
    text: str  # trimmed model output


class ErrorResponse(BaseModel):
    error: str


class TransformRequest(BaseModel):
    """
    Body of /api/summarize. Both fields are validated by the endpoint so that
    missing values are reported as 400 instead of a schema error.
    """
    text: Optional[str] = None
    mode: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    model: str
