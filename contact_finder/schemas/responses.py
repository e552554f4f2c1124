from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from contact_finder.schemas.contacts import BatchProgress, SiteResult


class ScrapeRequest(BaseModel):
    urls: list[str] = Field(min_length=1)

    @field_validator("urls")
    @classmethod
    def _strip_blank_urls(cls, urls: list[str]) -> list[str]:
        cleaned = [u.strip() for u in urls if u.strip()]
        if not cleaned:
            raise ValueError("URLs array is required")
        return cleaned


class ScrapeResponse(BaseModel):
    results: list[SiteResult]


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    created_at: datetime
    finished_at: datetime | None = None
    progress: BatchProgress
    results: list[SiteResult] = []
    error: str | None = None
