"""Generate request payload."""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

IMAGE_DATA_URL_PATTERN = re.compile(r"^data:image/(?:png|jpeg|jpg|webp|gif);base64,", re.IGNORECASE)
DEFAULT_MAX_IMAGE_LENGTH = 10_000_000


class GenerateRequest(BaseModel):
    """Validated body of ``POST /api/generate``.

    Pass ``context={"max_image_length": n}`` to ``model_validate`` to
    override the image size ceiling from config.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    prompt: str = Field(min_length=10, max_length=2000)
    model: str | None = Field(default=None, min_length=1, max_length=100)
    variant_count: Literal[1, 4] = 1
    image_data_url: str | None = None

    @field_validator("variant_count", mode="before")
    @classmethod
    def reject_non_numeric_count(cls, value: Any) -> Any:
        if isinstance(value, (bool, str)):
            raise ValueError("variantCount must be the number 1 or 4")
        return value

    @field_validator("image_data_url")
    @classmethod
    def validate_image_data_url(cls, value: str | None, info: ValidationInfo) -> str | None:
        if value is None:
            return None
        limit = (info.context or {}).get("max_image_length", DEFAULT_MAX_IMAGE_LENGTH)
        if len(value) > limit:
            raise ValueError(f"Image data URL exceeds {limit} characters")
        if not IMAGE_DATA_URL_PATTERN.match(value):
            raise ValueError("Image must be a base64 data URL of type png, jpeg, webp, or gif")
        return value
