import logging
from pathlib import Path

import pytest

from listing_crawler.domain.errors import ExtractionFailure, NavigationError
from listing_crawler.infrastructure.marketplace.extractor import (
    HREF_SCRIPT,
    PageSelectors,
    attribute_script,
    nested_text_script,
)
from listing_crawler.infrastructure.storage.item_store import ItemStore
from listing_crawler.service.run_crawl import CrawlController

SELECTORS = PageSelectors()
SCRIPTS = {
    attribute_script(SELECTORS.identifier_attribute): "identifier",
    nested_text_script(SELECTORS.title): "title",
    nested_text_script(SELECTORS.price): "price",
    HREF_SCRIPT: "href",
}


class DummyElement:
    def __init__(self, fail: tuple[str, ...] = (), **fields) -> None:
        self.fields = fields
        self.fail = fail


class DummyPage:
    def __init__(
        self,
        items: list[DummyElement],
        next_url: str | None = None,
        last: bool = False,
    ) -> None:
        self.items = items
        self.next_url = next_url
        self.last = last

    def query_all(self, selector: str) -> list[DummyElement]:
        return list(self.items) if selector == SELECTORS.item else []

    def query_one(self, selector: str):
        if selector == SELECTORS.next_disabled:
            return DummyElement() if self.last else None
        if selector == SELECTORS.next_link and self.next_url is not None:
            return DummyElement(href=self.next_url)
        return None

    def evaluate(self, element: DummyElement, script: str):
        field = SCRIPTS[script]
        if field in element.fail:
            raise ExtractionFailure(field)
        return element.fields.get(field)


class DummyNavigator:
    def __init__(self, pages: dict[str, DummyPage], events: list[str]) -> None:
        self.pages = pages
        self.events = events
        self.visited: list[str] = []

    def navigate(self, url: str) -> DummyPage:
        self.visited.append(url)
        page = self.pages.get(url)
        if page is None:
            raise NavigationError(f"Failed to load {url}")
        return page

    def close(self) -> None:
        self.events.append("navigator.close")


class TrackingStore(ItemStore):
    def __init__(self, path: str, events: list[str]) -> None:
        super().__init__(path)
        self.events = events

    def close(self) -> None:
        self.events.append("store.close")
        super().close()


def _item(n: int, **overrides) -> DummyElement:
    fields = {"identifier": f"id-{n}", "title": f"Item {n}", "price": f"${n}.99"}
    fail = overrides.pop("fail", ())
    fields.update(overrides)
    return DummyElement(fail=fail, **fields)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "products.db")


def _run(pages: dict[str, DummyPage], db_path: str):
    events: list[str] = []
    navigator = DummyNavigator(pages, events)
    store = TrackingStore(db_path, events)
    store.ensure_schema()
    controller = CrawlController(navigator=navigator, store=store)
    return controller, navigator, events


def _stored(db_path: str) -> list[str]:
    store = ItemStore(db_path)
    try:
        return [row.identifier for row in store.fetch_all()]
    finally:
        store.close()


def test_follows_next_links_until_disabled(db_path: str) -> None:
    pages = {
        "p1": DummyPage([_item(1), _item(2)], next_url="p2"),
        "p2": DummyPage([_item(3)], next_url="p3", last=True),
    }
    controller, navigator, events = _run(pages, db_path)

    stats = controller.run("p1")

    assert navigator.visited == ["p1", "p2"]
    assert stats.pages == 2
    assert stats.inserted == 3
    assert _stored(db_path) == ["id-1", "id-2", "id-3"]
    assert events == ["navigator.close", "store.close"]


def test_disabled_next_stops_without_navigating_again(db_path: str) -> None:
    pages = {"p1": DummyPage([_item(1)], next_url="p2", last=True)}
    controller, navigator, _ = _run(pages, db_path)

    controller.run("p1")

    assert navigator.visited == ["p1"]
    assert _stored(db_path) == ["id-1"]


def test_missing_next_link_terminates(db_path: str, caplog) -> None:
    caplog.set_level(logging.INFO)
    pages = {"p1": DummyPage([_item(1)])}
    controller, navigator, events = _run(pages, db_path)

    controller.run("p1")

    assert navigator.visited == ["p1"]
    assert "Next page link not found" in caplog.text
    assert events == ["navigator.close", "store.close"]


def test_unreadable_next_href_terminates(db_path: str) -> None:
    page = DummyPage([_item(1)], next_url="p2")
    pages = {"p1": page, "p2": DummyPage([_item(2)])}
    original = page.query_one

    def failing_link(selector: str):
        found = original(selector)
        if found is not None and selector == SELECTORS.next_link:
            found.fail = ("href",)
        return found

    page.query_one = failing_link
    controller, navigator, _ = _run(pages, db_path)

    controller.run("p1")

    assert navigator.visited == ["p1"]


def test_element_failing_title_is_skipped_and_order_kept(db_path: str) -> None:
    items = [_item(n) for n in range(1, 6)]
    items[2] = _item(3, fail=("title",))
    pages = {"p1": DummyPage(items, last=True)}
    controller, _, _ = _run(pages, db_path)

    stats = controller.run("p1")

    assert stats.extracted == 4
    assert _stored(db_path) == ["id-1", "id-2", "id-4", "id-5"]


def test_navigation_failure_on_page_two_keeps_page_one(db_path: str) -> None:
    pages = {"p1": DummyPage([_item(1), _item(2)], next_url="p2")}
    controller, navigator, events = _run(pages, db_path)

    with pytest.raises(NavigationError):
        controller.run("p1")

    assert navigator.visited == ["p1", "p2"]
    assert _stored(db_path) == ["id-1", "id-2"]
    assert events == ["navigator.close", "store.close"]


def test_store_failure_does_not_stop_the_batch(db_path: str, caplog) -> None:
    caplog.set_level(logging.WARNING)
    items = [_item(1), _item(2, price="$abc"), _item(3)]
    pages = {"p1": DummyPage(items, last=True)}
    controller, _, _ = _run(pages, db_path)

    stats = controller.run("p1")

    assert stats.store_failures == 1
    assert stats.inserted == 2
    assert _stored(db_path) == ["id-1", "id-3"]
    assert "identifier=id-2" in caplog.text


def test_rerunning_the_crawl_adds_no_duplicates(db_path: str) -> None:
    pages = {
        "p1": DummyPage([_item(1), _item(2)], next_url="p2"),
        "p2": DummyPage([_item(2), _item(3)], last=True),
    }
    first, _, _ = _run(pages, db_path)
    first_stats = first.run("p1")
    second, _, _ = _run(pages, db_path)
    second_stats = second.run("p1")

    assert first_stats.inserted == 3
    assert first_stats.duplicates == 1
    assert second_stats.inserted == 0
    assert second_stats.duplicates == 4
    assert _stored(db_path) == ["id-1", "id-2", "id-3"]


def test_store_still_closed_when_navigator_close_fails(db_path: str) -> None:
    events: list[str] = []

    class BrokenNavigator(DummyNavigator):
        def close(self) -> None:
            raise RuntimeError("driver gone")

    navigator = BrokenNavigator({"p1": DummyPage([], last=True)}, events)
    store = TrackingStore(db_path, events)
    store.ensure_schema()

    with pytest.raises(RuntimeError):
        CrawlController(navigator=navigator, store=store).run("p1")

    assert events == ["store.close"]


def test_stored_price_has_symbol_removed(db_path: str) -> None:
    pages = {"p1": DummyPage([_item(7, price="$19.99")], last=True)}
    controller, _, _ = _run(pages, db_path)
    controller.run("p1")

    store = ItemStore(db_path)
    (row,) = store.fetch_all()
    store.close()
    assert row.identifier == "id-7"
    assert row.price == pytest.approx(19.99)
