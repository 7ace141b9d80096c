from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement

from listing_crawler.domain.errors import ExtractionFailure, NavigationError
from listing_crawler.infrastructure.browser.driver_factory import (
    DriverConfig,
    create_chrome_driver,
)
from listing_crawler.infrastructure.browser.waits import wait_until_loaded

logger = logging.getLogger(__name__)


def _save_artifacts(driver: WebDriver, out: Path, tag: str) -> None:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    try:
        out.mkdir(parents=True, exist_ok=True)
        (out / f"{tag}_{ts}.html").write_text(driver.page_source, encoding="utf-8")
        driver.save_screenshot(str(out / f"{tag}_{ts}.png"))
    except (WebDriverException, OSError):
        logger.exception("Failed to save debug artifacts | dir=%s", out)
        return
    logger.info("Debug artifacts saved | dir=%s | tag=%s_%s", out, tag, ts)


class PageHandle:
    """Read-only view over the document currently loaded in the driver."""

    def __init__(self, driver: WebDriver, url: str) -> None:
        self._driver = driver
        self.url = url

    def query_all(self, selector: str) -> list[WebElement]:
        try:
            return list(self._driver.find_elements(By.CSS_SELECTOR, selector))
        except WebDriverException as exc:
            raise NavigationError(f"Page became unusable while querying {selector!r}") from exc

    def query_one(self, selector: str) -> WebElement | None:
        elements = self.query_all(selector)
        return elements[0] if elements else None

    def evaluate(self, element: WebElement, script: str) -> Any | None:
        """
        Runs a read-only JavaScript accessor with the element as ``arguments[0]``.

        Only serializable values are meaningful: an accessor that hands back a
        DOM node is treated as a failure, not as a value.
        """
        try:
            value = self._driver.execute_script(script, element)
        except WebDriverException as exc:
            raise ExtractionFailure(f"Accessor failed: {exc.msg or exc}") from exc
        if isinstance(value, WebElement):
            raise ExtractionFailure("Accessor returned an element instead of a value")
        return value


class PageNavigator:
    def __init__(
        self,
        driver: WebDriver,
        timeout: int = 25,
        artifacts_dir: str | None = None,
    ) -> None:
        self._driver = driver
        self._timeout = timeout
        self._artifacts = Path(artifacts_dir) if artifacts_dir else None
        self._closed = False

    @classmethod
    def open(
        cls,
        cfg: DriverConfig,
        artifacts_dir: str | None = None,
    ) -> PageNavigator:
        logger.info(
            "Launching browser | headless=%s | viewport=%s | profile=%s",
            cfg.headless,
            cfg.viewport,
            cfg.profile_dir,
        )
        driver = create_chrome_driver(cfg)
        return cls(driver, timeout=cfg.page_load_timeout, artifacts_dir=artifacts_dir)

    def navigate(self, url: str) -> PageHandle:
        """Loads ``url`` and waits for the document to settle. No retry."""
        try:
            self._driver.get(url)
            wait_until_loaded(self._driver, self._timeout)
        except TimeoutException as exc:
            self._on_failure()
            raise NavigationError(f"Timed out loading {url}") from exc
        except WebDriverException as exc:
            self._on_failure()
            raise NavigationError(f"Failed to load {url}: {exc.msg or exc}") from exc
        return PageHandle(self._driver, self._driver.current_url)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._driver.quit()
        except WebDriverException:
            logger.exception("Failed to shut the driver down cleanly")

    def _on_failure(self) -> None:
        if self._artifacts is not None:
            _save_artifacts(self._driver, self._artifacts, "navigation_error")
