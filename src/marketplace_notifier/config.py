"""Configuration loader.

Settings come from a YAML or JSON file. Keys may be written in snake_case or
in the camelCase used by older notifier configs (``searchTerms``,
``activeHours`` ...). SMTP credentials fall back to the ``EMAIL_USER`` and
``EMAIL_PASS`` environment variables so they don't have to live in the file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from marketplace_notifier.exceptions import ConfigError
from marketplace_notifier.filters import FilterConfig

SortOrder = Literal[
    "creation_time_descend",
    "price_ascend",
    "price_descend",
    "distance",
    "best_match",
]


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActiveHours(_Section):
    start: int = Field(8, ge=0, le=23)
    end: int = Field(22, ge=0, le=23)

    def contains(self, hour: int) -> bool:
        return self.start <= hour <= self.end


class EmailConfig(_Section):
    sender: str = Field(default_factory=lambda: os.environ.get("EMAIL_USER", ""))
    password: str = Field(default_factory=lambda: os.environ.get("EMAIL_PASS", ""), repr=False)
    recipients: List[str] = []
    smtp_host: str = Field(
        default_factory=lambda: os.environ.get("SMTP_HOST", "smtp.gmail.com"), alias="smtpHost"
    )
    smtp_port: int = Field(
        default_factory=lambda: int(os.environ.get("SMTP_PORT", "465")), alias="smtpPort"
    )
    timeout_secs: float = Field(30.0, alias="timeoutSecs")


class BrowserConfig(_Section):
    backend: Literal["selenium", "http"] = "selenium"
    headless: bool = True
    page_wait_secs: float = Field(5.0, ge=0, alias="pageWaitSecs")
    detail_wait_secs: float = Field(3.0, ge=0, alias="detailWaitSecs")
    timeout_secs: float = Field(30.0, gt=0, alias="timeoutSecs")
    user_agent: str = Field(
        default_factory=lambda: os.environ.get(
            "HTTP_USER_AGENT",
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/124.0 Safari/537.36",
        ),
        alias="userAgent",
    )


class PathsConfig(_Section):
    seen_items: Path = Field(Path("pastItems.json"), alias="seenItems")
    buffer: Path = Path("bufferedMessages.txt")
    category_averages: Optional[Path] = Field(
        Path("categoryAvgPrice.json"), alias="categoryAverages"
    )


class AppConfig(_Section):
    location_ref: str = Field("", alias="locationRef")
    search_terms: List[str] = Field(default_factory=list, alias="searchTerms")
    days_since_listed: int = Field(1, ge=0, le=30, alias="daysSinceListed")
    sort_by: SortOrder = Field("creation_time_descend", alias="sortBy")
    exact: bool = False
    min_price: Optional[float] = Field(None, alias="minPrice")
    max_price: Optional[float] = Field(None, alias="maxPrice")
    include_free_items: bool = Field(True, alias="includeFreeItems")
    fetch_listing_details: bool = Field(True, alias="fetchListingDetails")
    price_estimation_enabled: bool = Field(True, alias="priceEstimationEnabled")
    quality_include_keywords: List[str] = Field(default_factory=list, alias="qualityIncludeKeywords")
    quality_exclude_keywords: List[str] = Field(default_factory=list, alias="qualityExcludeKeywords")
    active_hours: ActiveHours = Field(default_factory=ActiveHours, alias="activeHours")
    schedule: str = Field("*/15 * * * *", alias="cronSchedule")
    email: EmailConfig = Field(default_factory=EmailConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)

    def filter_config(self) -> FilterConfig:
        return FilterConfig(
            min_price=self.min_price,
            max_price=self.max_price,
            include_free_items=self.include_free_items,
            include_keywords=list(self.quality_include_keywords),
            exclude_keywords=list(self.quality_exclude_keywords),
        )


def load_config(path: str | os.PathLike[str]) -> AppConfig:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {p}: {e}") from e
    try:
        if p.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file {p}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {p} must contain a mapping")
    try:
        cfg = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {p}:\n{e}") from e
    # Relative state paths resolve against the config file's directory
    base = p.resolve().parent
    paths = cfg.paths
    cfg.paths = PathsConfig(
        seen_items=_resolve(base, paths.seen_items),
        buffer=_resolve(base, paths.buffer),
        category_averages=_resolve(base, paths.category_averages) if paths.category_averages else None,
    )
    return cfg


def _resolve(base: Path, p: Path) -> Path:
    return p if p.is_absolute() else base / p
