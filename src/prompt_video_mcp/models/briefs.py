"""Style brief models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StyleBriefDraft(BaseModel):
    """One element of the model's ``styles`` array."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    style_name: str = Field(min_length=1, max_length=80)
    style_brief: str = Field(min_length=20, max_length=800)


class StyleBrief(BaseModel):
    """A creative direction bound to a variant slot for one request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    variant_id: str = Field(description="Positional id: style-1, style-2, ...")
    style_name: str = Field(description="Unique within the batch (case-insensitive)")
    style_brief: str

    @property
    def variant_number(self) -> str:
        """The numeric suffix of ``variant_id``, used in step names."""
        return self.variant_id.removeprefix("style-")
