"""Page sources that turn a search term into raw marketplace feed nodes."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Protocol
from urllib.parse import quote

import requests
from scrapy import Selector

from marketplace_notifier.exceptions import SourceError

if TYPE_CHECKING:
    from marketplace_notifier.config import AppConfig

logger = logging.getLogger(__name__)

BASE_URL = "https://www.facebook.com/marketplace"
FEED_MARKER = '"marketplace_search":'


@dataclass
class ListingDetails:
    description: str = ""
    image: str = ""


class PageSource(Protocol):
    """Search and detail-page access, held open for one run."""

    def __enter__(self) -> "PageSource": ...

    def __exit__(self, *exc: object) -> None: ...

    def search(self, term: str) -> Optional[List[dict]]:
        """Return raw feed nodes for ``term``, or ``None`` when the page has no feed."""
        ...

    def fetch_details(self, link: str) -> ListingDetails:
        """Best-effort detail lookup; never raises."""
        ...


def build_search_url(term: str, config: "AppConfig") -> str:
    params = [
        f"daysSinceListed={config.days_since_listed}",
        f"sortBy={config.sort_by}",
    ]
    if config.min_price is not None:
        params.append(f"minPrice={_num(config.min_price)}")
    if config.max_price is not None:
        params.append(f"maxPrice={_num(config.max_price)}")
    params.append(f"query={quote(term, safe='')}")
    params.append(f"exact={'true' if config.exact else 'false'}")
    location = config.location_ref.strip("/")
    path = f"{BASE_URL}/{location}/search" if location else f"{BASE_URL}/search"
    return f"{path}?{'&'.join(params)}"


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def extract_feed_nodes(html: str) -> Optional[List[dict]]:
    """Pull ``feed_units.edges[*].node`` out of the embedded search payload.

    Returns ``None`` when the page carries no search payload at all and raises
    ``SourceError`` when the payload is there but can't be decoded.
    """
    idx = html.find(FEED_MARKER)
    if idx == -1:
        return None
    start = idx + len(FEED_MARKER)
    while start < len(html) and html[start].isspace():
        start += 1
    try:
        data, _end = json.JSONDecoder().raw_decode(html, start)
    except ValueError as e:
        raise SourceError(f"Failed to parse marketplace_search JSON: {e}") from e
    if not isinstance(data, dict):
        raise SourceError("marketplace_search payload is not an object")
    units = data.get("feed_units") or {}
    edges = units.get("edges") if isinstance(units, dict) else None
    nodes: List[dict] = []
    for edge in edges or []:
        node = edge.get("node") if isinstance(edge, dict) else None
        if isinstance(node, dict):
            nodes.append(node)
    return nodes


def parse_listing_details(html: str) -> ListingDetails:
    sel = Selector(text=html or "<html></html>")
    desc_el = sel.css('[data-testid="marketplace_pdp_description"]')
    description = " ".join(t.strip() for t in desc_el.xpath(".//text()").getall() if t.strip())
    image = (
        sel.css('img[data-testid="media-image"]::attr(src)').get()
        or sel.css("img::attr(src)").get()
        or ""
    )
    return ListingDetails(description=description, image=image)


class _BaseSource:
    def __init__(self, config: "AppConfig") -> None:
        self.config = config

    def __enter__(self) -> "_BaseSource":
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def _get(self, url: str, wait: float) -> str:
        raise NotImplementedError

    def search(self, term: str) -> Optional[List[dict]]:
        url = build_search_url(term, self.config)
        logger.info('Searching marketplace for "%s": %s', term, url)
        try:
            html = self._get(url, self.config.browser.page_wait_secs)
        except SourceError:
            raise
        except Exception as e:
            raise SourceError(f"Failed to load search page: {e}", term=term) from e
        nodes = extract_feed_nodes(html)
        if nodes is None:
            logger.warning('Could not find marketplace_search data for term "%s"', term)
        return nodes

    def fetch_details(self, link: str) -> ListingDetails:
        try:
            html = self._get(link, self.config.browser.detail_wait_secs)
            return parse_listing_details(html)
        except Exception as e:
            logger.warning("Failed to fetch details for listing %s: %s", link, e)
            return ListingDetails()


class BrowserPageSource(_BaseSource):
    """Renders pages in Chrome through Selenium, for JS-built result pages."""

    def __init__(self, config: "AppConfig") -> None:
        super().__init__(config)
        self._driver: Any = None

    def open(self) -> None:
        from selenium import webdriver  # type: ignore[import-not-found]
        from selenium.webdriver.chrome.options import Options  # type: ignore[import-not-found]

        options = Options()
        if self.config.browser.headless:
            options.add_argument("--headless=new")
        options.add_argument(f"--user-agent={self.config.browser.user_agent}")
        self._driver = webdriver.Chrome(options=options)
        self._driver.set_page_load_timeout(self.config.browser.timeout_secs)

    def close(self) -> None:
        if self._driver is not None:
            try:
                self._driver.quit()
            except Exception as e:
                logger.warning("Failed to close browser: %s", e)
            self._driver = None

    def _get(self, url: str, wait: float) -> str:
        if self._driver is None:
            raise SourceError("Browser is not open")
        self._driver.get(url)
        if wait:
            time.sleep(wait)
        return str(self._driver.page_source)


class HttpPageSource(_BaseSource):
    """Plain HTTP fetches; enough when the payload is server-rendered."""

    def __init__(self, config: "AppConfig", session: requests.Session | None = None) -> None:
        super().__init__(config)
        self._session = session
        self._owns_session = session is None

    def open(self) -> None:
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True
            self._session.headers["User-Agent"] = self.config.browser.user_agent

    def close(self) -> None:
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def _get(self, url: str, wait: float) -> str:
        if self._session is None:
            raise SourceError("HTTP session is not open")
        r = self._session.get(url, timeout=self.config.browser.timeout_secs)
        r.raise_for_status()
        return r.text


def make_page_source(config: "AppConfig") -> _BaseSource:
    if config.browser.backend == "http":
        return HttpPageSource(config)
    return BrowserPageSource(config)
