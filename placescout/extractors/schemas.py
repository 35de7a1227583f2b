"""Data validation schemas for jobs, requests and extracted records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from placescout.errors import BatchRequestError
from placescout.normalizers import NOT_AVAILABLE, is_plausible_website

SEARCH_URL_TEMPLATE = "https://www.google.com/maps/search/{query}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ExtractedRecord(BaseModel):
    """One place pulled from a detail page.

    Missing fields hold ``NOT_AVAILABLE`` rather than an empty string. On the wire the
    locality is called ``city`` and the source keyword ``keyword``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = NOT_AVAILABLE
    locality: str = Field(default=NOT_AVAILABLE, alias="city")
    category: str = NOT_AVAILABLE
    website: str = NOT_AVAILABLE
    source_keyword: str | None = Field(default=None, alias="keyword")
    scraped_at: str | None = Field(default=None, alias="scrapedAt")

    @property
    def is_complete(self) -> bool:
        return self.website != NOT_AVAILABLE and is_plausible_website(self.website)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DiscoveryJob(BaseModel):
    """One keyword searched against a location."""

    model_config = ConfigDict(frozen=True)

    search_term: str
    location_term: str = ""
    result_limit: int | None = Field(default=None, ge=0)

    @property
    def query(self) -> str:
        if self.location_term:
            return f"{self.search_term} in {self.location_term}"
        return self.search_term

    @property
    def search_url(self) -> str:
        return SEARCH_URL_TEMPLATE.format(query=quote(self.query, safe=""))


class BatchRequest(BaseModel):
    """Batch of keywords searched against one location."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    location: str
    keywords: list[str]
    max_results: int | None = Field(default=None, ge=0, alias="maxResults")
    headless: bool = True

    @field_validator("location", mode="before")
    @classmethod
    def _strip_location(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "BatchRequest":
        """Validate a raw request body, raising ``BatchRequestError`` on bad input."""

        if not isinstance(payload, dict):
            raise BatchRequestError("Request body must be a JSON object")
        location = payload.get("location")
        if not location or not isinstance(location, str) or not location.strip():
            raise BatchRequestError("Location is required")
        keywords = payload.get("keywords")
        if not isinstance(keywords, list) or not any(str(k).strip() for k in keywords):
            raise BatchRequestError("At least one keyword is required")
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise BatchRequestError(str(exc)) from exc

    def jobs(self) -> list[DiscoveryJob]:
        return [
            DiscoveryJob(
                search_term=keyword,
                location_term=self.location,
                result_limit=self.max_results,
            )
            for keyword in self.keywords
        ]
