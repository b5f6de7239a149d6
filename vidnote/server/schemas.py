from typing import Any, Optional

from pydantic import BaseModel


class Envelope(BaseModel):
    """Wrapper of every response of the annotation service."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None
    timestamp: Optional[str] = None


class BulkSaveRequest(BaseModel):
    # Left untyped so a non-list payload is answered with the envelope's 400
    annotations: Any = None
    videoId: Optional[str] = None
