from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

MIN_COUNT = 1
MAX_COUNT = 10
DEFAULT_COUNT = 3


class SearchImagesRequest(BaseModel):
    keyword: str = Field(default=None, validate_default=True)
    count: int = DEFAULT_COUNT
    watermark_text: Optional[str] = None

    @field_validator("keyword", mode="before")
    @classmethod
    def keyword_is_string(cls, v: Any) -> str:
        if not v or not isinstance(v, str):
            raise PydanticCustomError(
                "invalid_keyword", "Keyword is required and must be a string"
            )
        return v

    @field_validator("keyword")
    @classmethod
    def keyword_min_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise PydanticCustomError(
                "keyword_too_short", "Keyword must be at least 2 characters long"
            )
        return v

    @field_validator("count", mode="before")
    @classmethod
    def clamp_count(cls, v: Any) -> int:
        """Coerce to int (unparseable -> default) and clamp to 1..10."""
        try:
            n = int(float(v))
        except (TypeError, ValueError, OverflowError):
            n = 0
        if n == 0:
            n = DEFAULT_COUNT
        return min(max(n, MIN_COUNT), MAX_COUNT)

    @field_validator("watermark_text")
    @classmethod
    def blank_watermark_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v


class ImageOut(BaseModel):
    url: str
    title: str = "Untitled"


class SearchImagesResponse(BaseModel):
    success: bool = True
    keyword: str
    requested_count: int
    found_count: int
    stored_count: int
    processing_time_ms: int
    timings: Dict[str, int] = Field(default_factory=dict)
    images: List[ImageOut]
    timestamp: datetime
