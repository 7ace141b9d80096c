from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ListingItem:
    identifier: str
    title: str
    price: str


@dataclass(slots=True)
class CrawlCursor:
    url: str | None
    page: int = 0

    @property
    def done(self) -> bool:
        return self.url is None


@dataclass(frozen=True, slots=True)
class StoredProduct:
    identifier: str
    title: str
    price: float | None
    creation_timestamp: datetime


@dataclass(slots=True)
class CrawlStats:
    pages: int = 0
    extracted: int = 0
    inserted: int = 0
    duplicates: int = 0
    store_failures: int = 0
    elapsed_seconds: float = 0.0
