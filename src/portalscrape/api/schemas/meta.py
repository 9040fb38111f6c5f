from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from portalscrape.gaps import GapEntry
from portalscrape.scrapers.base import ScraperMetadata


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthOut(_CamelModel):
    status: str
    service: str
    version: str
    timestamp: datetime


class StatusOut(_CamelModel):
    name: str
    version: str
    environment: str
    canonical_uri: str
    tier: str


class CapabilitiesOut(_CamelModel):
    service: str
    version: str
    scrapers: list[ScraperMetadata]


class GapsOut(_CamelModel):
    gaps: list[GapEntry]
    malformed_count: int | None = None  # only present when corrupt records exist
