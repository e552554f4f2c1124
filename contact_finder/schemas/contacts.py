from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class SocialPlatform(StrEnum):
    facebook = "facebook"
    instagram = "instagram"
    linkedin = "linkedin"


class RawExtraction(BaseModel):
    """Unvalidated candidates found on a single page."""

    emails: list[str] = []
    phones: list[str] = []
    social: dict[SocialPlatform, str] = {}

    def merge(self, other: RawExtraction) -> RawExtraction:
        """Concatenate candidates; ``other`` wins on social platform clashes."""
        return RawExtraction(
            emails=[*self.emails, *other.emails],
            phones=[*self.phones, *other.phones],
            social={**self.social, **other.social},
        )


class ContactData(BaseModel):
    model_config = ConfigDict(frozen=True)

    emails: list[str] = []  # primary email only
    phones: list[str] = []  # international format, primary only
    social: dict[SocialPlatform, str] = {}

    def is_empty(self) -> bool:
        return not (self.emails or self.phones or self.social)


class SiteResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    company_name: str | None = Field(default=None, alias="companyName")
    data: ContactData


class BatchProgress(BaseModel):
    total: int = 0
    processed: int = 0  # URLs finished, with or without a result
    fetched: int = 0  # SiteResults emitted so far
