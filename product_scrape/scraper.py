"""Page fetching and the scrape entry point."""

import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import requests  # type: ignore[import-untyped]

from product_scrape.config import (
    BROWSER_ARGS,
    HEADERS,
    HTML_CONTENT_TYPES,
    MAX_RETRIES,
    MAX_RETRY_BACKOFF,
    NAVIGATION_TIMEOUT_MS,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_DELAY,
    RETRY_STATUS_CODES,
    VIEWPORT,
)
from product_scrape.html_utils import extract_product, parse_html
from product_scrape.logging_config import get_logger, log_scrape_event
from product_scrape.models import ScrapedData
from product_scrape.url_validation import URLValidationError, validate_url

__all__ = [
    "FetchedPage",
    "PageFetchError",
    "UnsupportedContentError",
    "create_session",
    "fetch_html",
    "fetch_rendered_html",
    "scrape_product",
]

# Get logger for this module
logger = get_logger("scraper")


class PageFetchError(Exception):
    """Raised when a page cannot be loaded after all retries."""
    pass


class UnsupportedContentError(PageFetchError):
    """Raised when the URL serves something other than an HTML document."""
    pass


@dataclass(frozen=True)
class FetchedPage:
    """HTML of a loaded page and the URL it ended up at after redirects."""

    url: str
    html: str


def create_session() -> requests.Session:
    """Create a requests Session with browser-like headers."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


def _backoff(attempt: int) -> float:
    """Delay before retry number ``attempt`` (0-based), with jitter."""
    delay = min(RETRY_DELAY * RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF)
    return delay + random.uniform(0, 0.5)


def _check_content_type(response: requests.Response, url: str) -> None:
    content_type = response.headers.get("Content-Type", "")
    if not content_type:
        return
    mime = content_type.split(";", 1)[0].strip().lower()
    if mime not in HTML_CONTENT_TYPES:
        raise UnsupportedContentError(
            f"Unsupported content type '{mime}' at {url}; expected an HTML page"
        )


def fetch_html(
    url: str,
    session: Optional[requests.Session] = None,
    max_retries: int = MAX_RETRIES,
    timeout: float = REQUEST_TIMEOUT,
) -> FetchedPage:
    """HTTP GET with exponential backoff retry.

    Args:
        url: URL to fetch
        session: Optional requests.Session for connection reuse
        max_retries: Retries after the first attempt
        timeout: Per-request timeout in seconds

    Returns:
        FetchedPage with the final URL and HTML content

    Raises:
        PageFetchError: If the URL is invalid or the request fails after all retries
        UnsupportedContentError: If the response is not HTML
    """
    try:
        url = validate_url(url)
    except URLValidationError as e:
        logger.error(f"URL validation failed: {e}")
        raise PageFetchError(f"Invalid URL: {e}") from e

    sess = session or create_session()
    last_exception: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        logger.info(f"Attempt {attempt + 1} of {max_retries + 1}: fetching {url}")
        try:
            resp = sess.get(url, timeout=timeout)

            if resp.status_code in RETRY_STATUS_CODES and attempt < max_retries:
                backoff = _backoff(attempt)
                logger.warning(
                    f"Received {resp.status_code}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(backoff)
                continue

            resp.raise_for_status()
            _check_content_type(resp, url)
            return FetchedPage(url=str(resp.url or url), html=str(resp.text))

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            reason = e.response.reason if e.response is not None else "unknown"
            logger.error(f"HTTP error fetching {url}: {e}")
            raise PageFetchError(f"HTTP Error {status_code}: {reason} while fetching {url}") from e

        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            last_exception = e
            if attempt < max_retries:
                backoff = _backoff(attempt)
                logger.warning(
                    f"{type(e).__name__}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(backoff)
                continue
            logger.error(f"Giving up on {url}: {e}")
            raise PageFetchError(f"Failed to fetch {url}: {e}") from e

        except requests.exceptions.RequestException as e:
            # Other request errors - don't retry
            logger.error(f"Request error fetching {url}: {e}")
            raise PageFetchError(f"Failed to fetch {url}: {e}") from e

    logger.error(f"Failed to fetch {url} after {max_retries} retries")
    raise PageFetchError(f"Failed to fetch {url} after {max_retries} retries") from last_exception


def _navigate(page, url: str, max_retries: int, timeout_ms: int, playwright_error) -> FetchedPage:
    """Navigate with retries; a fixed delay separates attempts."""
    last_exception: Optional[Exception] = None
    for attempt in range(max_retries + 1):
        logger.info(f"Attempt {attempt + 1} of {max_retries + 1}: navigating to {url}")
        try:
            page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            logger.info("Navigation successful")
            return FetchedPage(url=page.url or url, html=page.content())
        except playwright_error as e:
            last_exception = e
            logger.error(f"Attempt {attempt + 1} failed: {e}")
            if attempt < max_retries:
                time.sleep(RETRY_DELAY)

    raise PageFetchError(f"Failed to load {url}: {last_exception}") from last_exception


def fetch_rendered_html(
    url: str,
    max_retries: int = MAX_RETRIES,
    timeout_ms: int = NAVIGATION_TIMEOUT_MS,
) -> FetchedPage:
    """Load a page in headless Chromium and return the rendered DOM.

    Used for storefronts that build the product page with JavaScript. Each
    call launches and closes its own browser.

    Raises:
        PageFetchError: If the browser cannot start or navigation fails
            after all retries
    """
    try:
        url = validate_url(url)
    except URLValidationError as e:
        logger.error(f"URL validation failed: {e}")
        raise PageFetchError(f"Invalid URL: {e}") from e

    try:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright
    except ImportError as e:
        raise PageFetchError(f"Headless browser unavailable: {e}") from e

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                context = browser.new_context(
                    viewport=VIEWPORT,
                    user_agent=HEADERS["User-Agent"],
                    extra_http_headers={
                        "Accept-Language": HEADERS["Accept-Language"],
                        "Referer": HEADERS["Referer"],
                    },
                )
                page = context.new_page()
                return _navigate(page, url, max_retries, timeout_ms, PlaywrightError)
            finally:
                browser.close()
    except PlaywrightError as e:
        logger.error(f"Headless browser failed for {url}: {e}")
        raise PageFetchError(f"Headless browser failed for {url}: {e}") from e


def scrape_product(
    url: str,
    render: bool = False,
    session: Optional[requests.Session] = None,
    stop_on_filtered_empty: bool = False,
) -> ScrapedData:
    """Fetch a product page and extract its ScrapedData.

    Args:
        url: Product page URL
        render: If True, load the page in a headless browser
        session: Optional requests.Session (ignored when rendering)
        stop_on_filtered_empty: Passed through to image extraction

    Raises:
        PageFetchError: If the page never loaded
    """
    logger.info(f"Starting scrape for URL: {url}")
    log_scrape_event("scrape_start", {"url": url, "render": render})

    try:
        page = fetch_rendered_html(url) if render else fetch_html(url, session=session)
    except PageFetchError as e:
        log_scrape_event("fetch_error", {"url": url, "error": str(e)})
        raise

    data = extract_product(
        parse_html(page.html),
        source_url=page.url,
        scraped_at=datetime.now(timezone.utc),
        stop_on_filtered_empty=stop_on_filtered_empty,
    )

    logger.info(f"Successfully scraped product: {data.title}")
    log_scrape_event("scrape_complete", {
        "url": page.url,
        "title": data.title,
        "has_price": data.price is not None,
        "spec_count": len(data.specifications),
        "image_count": len(data.images),
    })
    return data
