"""Request/response Pydantic models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

UNKNOWN = "Unknown"


class _CamelModel(BaseModel):
    """Serialized with camelCase keys, the shape the report JSON and the LLM use."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractedEvent(_CamelModel):
    event_name: str = UNKNOWN
    date: str = UNKNOWN
    location: str = UNKNOWN
    general_area: str = UNKNOWN
    detailed_page_link: str = UNKNOWN
    image_url: str = UNKNOWN
    zip_code: str = UNKNOWN
    has_zip_code: bool = False
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ReportMetadata(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    total_events_scraped: int
    events_matching_filter: int
    scraped_at: datetime
    source_url: str
    target_zip_code: str = ""


class ScrapeReport(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    metadata: ReportMetadata
    events: tuple[ExtractedEvent, ...] = ()


class ScrapeRequest(BaseModel):
    mode: Literal["background", "stream"] = "background"
    webhook_url: str | None = None
    send_email: bool = False


JobStatus = Literal["processing", "completed", "failed"]


class JobRecord(BaseModel):
    job_id: str
    status: JobStatus = "processing"
    started_at: datetime
    completed_at: datetime | None = None
    failed_at: datetime | None = None
    error: str | None = None
    report: ScrapeReport | None = None
