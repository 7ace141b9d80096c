from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options as ChromeOptions

from listing_crawler.domain.errors import LaunchError


@dataclass(frozen=True)
class DriverConfig:
    headless: bool = True
    page_load_timeout: int = 30
    # persistent profile keeps cookies between runs so challenges are not re-solved
    profile_dir: str | None = "./tmp"
    viewport: Literal["maximized", "fixed"] = "maximized"
    window_size: str = "1920,1080"


def build_chrome_options(cfg: DriverConfig) -> ChromeOptions:
    options = ChromeOptions()

    # modern headless (Chrome >= 109)
    if cfg.headless:
        options.add_argument("--headless=new")

    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")
    options.add_argument("--disable-gpu")

    if cfg.viewport == "maximized":
        options.add_argument("--start-maximized")
    else:
        options.add_argument(f"--window-size={cfg.window_size}")

    if cfg.profile_dir:
        profile = Path(cfg.profile_dir).resolve()
        profile.mkdir(parents=True, exist_ok=True)
        options.add_argument(f"--user-data-dir={profile}")

    return options


def create_chrome_driver(cfg: DriverConfig) -> webdriver.Chrome:
    options = build_chrome_options(cfg)
    try:
        driver = webdriver.Chrome(options=options)
    except WebDriverException as exc:
        raise LaunchError(f"Could not start Chrome: {exc.msg or exc}") from exc

    driver.set_page_load_timeout(cfg.page_load_timeout)
    return driver
