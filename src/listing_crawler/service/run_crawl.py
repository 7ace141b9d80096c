from __future__ import annotations

import logging
import time
from typing import Any, Protocol

from listing_crawler.config import Settings
from listing_crawler.domain.errors import StoreError
from listing_crawler.domain.models import CrawlCursor, CrawlStats
from listing_crawler.infrastructure.browser.driver_factory import DriverConfig
from listing_crawler.infrastructure.marketplace.extractor import ListingExtractor
from listing_crawler.infrastructure.marketplace.navigator import PageNavigator
from listing_crawler.infrastructure.storage.item_store import ItemStore

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    def navigate(self, url: str) -> Any: ...

    def close(self) -> None: ...


class CrawlController:
    """
    Drives the pagination loop: load page, persist its items, follow "next".

    Owns the navigator and the store for the whole run and closes both, in
    that order, on every exit path including a fatal navigation error.
    """

    def __init__(
        self,
        navigator: Navigator,
        store: ItemStore,
        extractor: ListingExtractor | None = None,
    ) -> None:
        self._navigator = navigator
        self._store = store
        self._extractor = extractor or ListingExtractor()

    def run(self, seed_url: str) -> CrawlStats:
        stats = CrawlStats()
        cursor = CrawlCursor(url=seed_url)
        started = time.monotonic()
        try:
            while not cursor.done:
                cursor.page += 1
                logger.info("Loading page | page=%s | url=%s", cursor.page, cursor.url)
                page = self._navigator.navigate(cursor.url)
                stats.pages = cursor.page

                self._persist_page(page, stats)
                cursor.url = self._next_url(page)
        finally:
            stats.elapsed_seconds = time.monotonic() - started
            self._close()

        logger.info(
            "Crawl finished | pages=%s | extracted=%s | inserted=%s | duplicates=%s | failures=%s | time=%.2fs",
            stats.pages,
            stats.extracted,
            stats.inserted,
            stats.duplicates,
            stats.store_failures,
            stats.elapsed_seconds,
        )
        return stats

    def _persist_page(self, page: Any, stats: CrawlStats) -> None:
        inserted_before = stats.inserted
        for item in self._extractor.extract(page):
            stats.extracted += 1
            try:
                inserted = self._store.upsert(item)
            except StoreError as exc:
                stats.store_failures += 1
                logger.warning("Item not stored | identifier=%s | error=%s", item.identifier, exc)
                continue
            if inserted:
                stats.inserted += 1
            else:
                stats.duplicates += 1
        logger.info("Page persisted | new_rows=%s", stats.inserted - inserted_before)

    def _next_url(self, page: Any) -> str | None:
        if self._extractor.is_last_page(page):
            logger.info("Next page disabled; stopping")
            return None
        url = self._extractor.next_page_url(page)
        if url is None:
            logger.warning("Next page link not found; stopping")
        return url

    def _close(self) -> None:
        try:
            self._navigator.close()
        finally:
            self._store.close()


def run_crawl(settings: Settings) -> CrawlStats:
    logger.info(
        "Starting crawler | seed=%s | database=%s",
        settings.seed_url,
        settings.database,
    )

    store = ItemStore(settings.database)
    try:
        store.ensure_schema()
        navigator = PageNavigator.open(
            DriverConfig(
                headless=settings.headless,
                page_load_timeout=settings.page_load_timeout,
                profile_dir=settings.profile_dir,
                viewport=settings.viewport,
                window_size=settings.window_size,
            ),
            artifacts_dir=settings.artifacts_dir,
        )
    except Exception:
        store.close()
        raise

    controller = CrawlController(navigator=navigator, store=store)
    return controller.run(settings.seed_url)
