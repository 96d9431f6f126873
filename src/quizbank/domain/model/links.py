"""Pydantic models describing resources attached to questions."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LinkType = Literal["video", "article", "website"]


def _none_to_blank(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


class ResourceLink(BaseModel):
    """A curated link (video, article, website) shown alongside a question."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    url: str
    title: str = ""
    description: str = ""
    image: str = ""
    type: LinkType | None = None
    site_name: str = Field(default="", alias="siteName")
    unfurled_at: str | None = Field(default=None, alias="unfurledAt")

    _normalize_text = field_validator(
        "url", "title", "description", "image", "site_name", mode="before"
    )(_none_to_blank)

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        if not value:
            raise ValueError("url must not be blank")
        return value

    def to_payload(self) -> dict[str, object]:
        """Serialise using the stored (camelCase) field names."""

        return self.model_dump(by_alias=True, exclude_none=True)
