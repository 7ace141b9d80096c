from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_SEED_URL = "https://www.amazon.com/s?k=iphone"


class Settings(BaseModel):
    seed_url: str = Field(DEFAULT_SEED_URL, min_length=8)
    database: str = "products.db"
    profile_dir: str | None = "./tmp"
    viewport: Literal["maximized", "fixed"] = "maximized"
    window_size: str = Field("1920,1080", pattern=r"^\d+,\d+$")
    headless: bool = True
    page_load_timeout: int = Field(30, gt=0)
    log_level: str = "INFO"
    artifacts_dir: str | None = None
