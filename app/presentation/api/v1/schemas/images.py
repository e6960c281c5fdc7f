from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.core.pyd_schemas import ImageOut, SearchImagesRequest, SearchImagesResponse


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    processing_time_ms: Optional[int] = None
    timestamp: datetime


__all__ = [
    "ErrorResponse",
    "ImageOut",
    "SearchImagesRequest",
    "SearchImagesResponse",
]
