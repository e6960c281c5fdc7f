from __future__ import annotations

from typing import List
from pydantic import ValidationError

from app.application.pipeline.base import PipelineContext, BaseStep
from app.core.exceptions import InputError
from app.core.pyd_schemas import SearchImagesRequest


class ValidateInputStep(BaseStep):
    """Input:  context.input {keyword, count, watermark_text}
    Output: validated_data (normalized SearchImagesRequest dump)
    """

    name = "validate_input"

    def __init__(self, default_watermark_text: str | None = None):
        self.default_watermark_text = default_watermark_text or None

    async def run(self, context: PipelineContext) -> None:  # type: ignore[override]
        data = context.input or {}
        if not isinstance(data, dict):
            raise InputError("Request body must be a JSON object")

        try:
            payload = SearchImagesRequest.model_validate(data)
        except ValidationError as e:
            code = "INVALID_REQUEST"
            lines: List[str] = []
            for err in e.errors():
                loc = ".".join(str(p) for p in err.get("loc", []))
                lines.append(err.get("msg", "invalid input"))
                if loc == "keyword" and code == "INVALID_REQUEST":
                    code = (
                        "KEYWORD_TOO_SHORT"
                        if err.get("type") == "keyword_too_short"
                        else "INVALID_KEYWORD"
                    )
            raise InputError("; ".join(lines), code) from e

        validated = payload.model_dump()
        if validated["watermark_text"] is None:
            validated["watermark_text"] = self.default_watermark_text
        context.set("validated_data", validated)
