from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Protocol

from listing_crawler.domain.errors import ExtractionFailure
from listing_crawler.domain.models import ListingItem
from listing_crawler.utils.money import strip_currency_symbol

logger = logging.getLogger(__name__)


class Page(Protocol):
    def query_all(self, selector: str) -> list[Any]: ...

    def query_one(self, selector: str) -> Any | None: ...

    def evaluate(self, element: Any, script: str) -> Any | None: ...


@dataclass(frozen=True)
class PageSelectors:
    item: str = "div[data-uuid].s-result-item"
    identifier_attribute: str = "data-uuid"
    title: str = "h2 > a > span"
    price: str = ".a-price > span"
    next_link: str = "a.s-pagination-next"
    next_disabled: str = ".s-pagination-next.s-pagination-disabled"


def attribute_script(name: str) -> str:
    return f"return arguments[0].getAttribute({json.dumps(name)});"


def nested_text_script(selector: str) -> str:
    return (
        f"const node = arguments[0].querySelector({json.dumps(selector)});"
        "return node ? node.textContent : null;"
    )


HREF_SCRIPT = "return arguments[0].href || null;"


def read_text(page: Page, element: Any, script: str) -> str | None:
    """Single fallible field read. Failures and blank values come back as None."""
    try:
        value = page.evaluate(element, script)
    except ExtractionFailure as exc:
        logger.debug("Field read failed | error=%s", exc)
        return None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class ListingExtractor:
    def __init__(self, selectors: PageSelectors | None = None) -> None:
        self.selectors = selectors or PageSelectors()
        self._identifier_script = attribute_script(self.selectors.identifier_attribute)
        self._title_script = nested_text_script(self.selectors.title)
        self._price_script = nested_text_script(self.selectors.price)

    def extract(self, page: Page) -> Iterator[ListingItem]:
        """
        Yields one ListingItem per listing element, in document order.

        Every element gets all three reads; an element missing any of them is
        skipped without affecting its siblings. Each call queries the page again.
        """
        elements = page.query_all(self.selectors.item)
        logger.debug("Listing elements found | total=%s", len(elements))
        for position, element in enumerate(elements, start=1):
            identifier = read_text(page, element, self._identifier_script)
            title = read_text(page, element, self._title_script)
            raw_price = read_text(page, element, self._price_script)

            if identifier is None or title is None or raw_price is None:
                logger.debug(
                    "Element skipped | position=%s | identifier=%s | title=%s | price=%s",
                    position,
                    identifier is not None,
                    title is not None,
                    raw_price is not None,
                )
                continue

            yield ListingItem(
                identifier=identifier,
                title=title,
                price=strip_currency_symbol(raw_price),
            )

    def is_last_page(self, page: Page) -> bool:
        return page.query_one(self.selectors.next_disabled) is not None

    def next_page_url(self, page: Page) -> str | None:
        link = page.query_one(self.selectors.next_link)
        if link is None:
            return None
        return read_text(page, link, HREF_SCRIPT)
