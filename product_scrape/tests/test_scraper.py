"""Tests for page fetching and the scrape entry point.

All network access is replaced with mocks.
"""

import json
import logging
import sys
from unittest.mock import MagicMock, patch

import pytest
import requests
from playwright.sync_api import Error as PlaywrightError

from product_scrape import cli
from product_scrape.logging_config import ROOT_LOGGER
from product_scrape.scraper import (
    FetchedPage,
    PageFetchError,
    UnsupportedContentError,
    fetch_html,
    fetch_rendered_html,
    scrape_product,
)

PAGE_HTML = """
<html><body>
  <h1 class="product-title">Trail Shoe</h1>
  <div class="product-description">Grippy and light.</div>
  <div class="price">€89.00</div>
  <div class="product-gallery"><img src="shoe.jpg" alt="Shoe"></div>
  <div class="specs"><ul><li>Drop: 6 mm</li></ul></div>
</body></html>
"""


def _response(status=200, text=PAGE_HTML, content_type="text/html; charset=utf-8", url=None):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    resp.url = url or "https://shop.example.com/shoes/trail"
    resp.reason = "Error" if status >= 400 else "OK"
    resp.headers = {"Content-Type": content_type}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture(autouse=True)
def no_sleep():
    """Skip backoff delays."""
    with patch("product_scrape.scraper.time.sleep") as sleep:
        yield sleep


class TestFetchHtml:
    """Tests for the HTTP fetcher."""

    def test_success(self):
        session = MagicMock()
        session.get.return_value = _response(url="https://shop.example.com/shoes/trail?ref=1")

        page = fetch_html("https://shop.example.com/shoes/trail", session=session)

        assert isinstance(page, FetchedPage)
        assert page.url == "https://shop.example.com/shoes/trail?ref=1"
        assert "Trail Shoe" in page.html
        session.get.assert_called_once()

    def test_invalid_url_rejected_before_request(self):
        session = MagicMock()
        with pytest.raises(PageFetchError, match="Invalid URL"):
            fetch_html("javascript:alert(1)", session=session)
        session.get.assert_not_called()

    def test_retries_on_retryable_status(self, no_sleep):
        session = MagicMock()
        session.get.side_effect = [_response(status=503), _response(status=503), _response()]

        page = fetch_html("https://shop.example.com/p", session=session, max_retries=3)

        assert "Trail Shoe" in page.html
        assert session.get.call_count == 3
        assert no_sleep.call_count == 2

    def test_gives_up_after_retries(self):
        session = MagicMock()
        session.get.return_value = _response(status=503)

        with pytest.raises(PageFetchError, match="503"):
            fetch_html("https://shop.example.com/p", session=session, max_retries=2)
        assert session.get.call_count == 3

    def test_client_error_not_retried(self):
        session = MagicMock()
        session.get.return_value = _response(status=404)

        with pytest.raises(PageFetchError, match="404"):
            fetch_html("https://shop.example.com/missing", session=session)
        assert session.get.call_count == 1

    def test_connection_error_retried(self):
        session = MagicMock()
        session.get.side_effect = [requests.exceptions.ConnectionError("boom"), _response()]

        page = fetch_html("https://shop.example.com/p", session=session)
        assert "Trail Shoe" in page.html

    def test_timeout_exhausts_retries(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(PageFetchError):
            fetch_html("https://shop.example.com/p", session=session, max_retries=1)
        assert session.get.call_count == 2

    def test_non_html_rejected(self):
        session = MagicMock()
        session.get.return_value = _response(content_type="application/pdf")

        with pytest.raises(UnsupportedContentError):
            fetch_html("https://shop.example.com/manual.pdf", session=session)


class TestFetchRenderedHtml:
    """Tests for the headless browser fetch, with Playwright mocked."""

    URL = "https://shop.example.com/spa"

    @pytest.fixture
    def browser(self):
        """Patch sync_playwright and return the mocked browser."""
        playwright = MagicMock()
        manager = MagicMock()
        manager.__enter__.return_value = playwright
        with patch("playwright.sync_api.sync_playwright", return_value=manager):
            browser = playwright.chromium.launch.return_value
            page = browser.new_context.return_value.new_page.return_value
            page.url = self.URL
            page.content.return_value = PAGE_HTML
            yield browser

    def _page(self, browser):
        return browser.new_context.return_value.new_page.return_value

    def test_success(self, browser, no_sleep):
        result = fetch_rendered_html(self.URL)

        assert result == FetchedPage(url=self.URL, html=PAGE_HTML)
        self._page(browser).goto.assert_called_once_with(
            self.URL, wait_until="networkidle", timeout=60000
        )
        browser.close.assert_called_once()
        no_sleep.assert_not_called()

    def test_retries_navigation(self, browser, no_sleep):
        self._page(browser).goto.side_effect = [
            PlaywrightError("net::ERR_TIMED_OUT"),
            PlaywrightError("net::ERR_TIMED_OUT"),
            None,
        ]

        result = fetch_rendered_html(self.URL)

        assert result.html == PAGE_HTML
        assert self._page(browser).goto.call_count == 3
        assert no_sleep.call_count == 2
        no_sleep.assert_called_with(2.0)
        browser.close.assert_called_once()

    def test_gives_up_after_retries(self, browser, no_sleep):
        self._page(browser).goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with pytest.raises(PageFetchError, match="Failed to load"):
            fetch_rendered_html(self.URL)

        assert self._page(browser).goto.call_count == 4
        assert no_sleep.call_count == 3
        browser.close.assert_called_once()

    def test_launch_failure(self):
        with patch("playwright.sync_api.sync_playwright") as sync_playwright:
            playwright = sync_playwright.return_value.__enter__.return_value
            playwright.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

            with pytest.raises(PageFetchError, match="Executable doesn't exist"):
                fetch_rendered_html(self.URL)

    def test_playwright_not_installed(self):
        with patch.dict(sys.modules, {"playwright.sync_api": None}):
            with pytest.raises(PageFetchError, match="Headless browser unavailable"):
                fetch_rendered_html(self.URL)

    def test_context_failure_closes_browser(self, browser):
        browser.new_context.side_effect = PlaywrightError("Target closed")

        with pytest.raises(PageFetchError, match="Target closed"):
            fetch_rendered_html(self.URL)
        browser.close.assert_called_once()

    def test_invalid_url(self, browser):
        with pytest.raises(PageFetchError, match="Invalid URL"):
            fetch_rendered_html("javascript:alert(1)")
        browser.new_context.assert_not_called()


class TestScrapeProduct:
    """Tests for fetch + extract."""

    def test_scrape_product(self):
        session = MagicMock()
        session.get.return_value = _response()

        data = scrape_product("https://shop.example.com/shoes/trail", session=session)

        assert data.title == "Trail Shoe"
        assert data.description == "Grippy and light."
        assert data.price == "€89.00"
        assert data.specifications == {"Drop": "6 mm"}
        assert data.images[0].url == "https://shop.example.com/shoes/shoe.jpg"
        assert data.scraped_at.tzinfo is not None

    def test_rendered_fetch_used_when_requested(self):
        page = FetchedPage(url="https://shop.example.com/spa", html=PAGE_HTML)
        with patch("product_scrape.scraper.fetch_rendered_html", return_value=page) as rendered:
            data = scrape_product("https://shop.example.com/spa", render=True)

        rendered.assert_called_once_with("https://shop.example.com/spa")
        assert data.title == "Trail Shoe"

    def test_fetch_failure_propagates(self):
        session = MagicMock()
        session.get.return_value = _response(status=500)

        with pytest.raises(PageFetchError):
            scrape_product("https://shop.example.com/p", session=session)


class TestCli:
    """Tests for the command-line entry point."""

    @pytest.fixture(autouse=True)
    def reset_logging(self):
        """Drop handlers bound to the captured streams."""
        yield
        root = logging.getLogger(ROOT_LOGGER)
        root.handlers.clear()
        root.propagate = True

    def test_html_file(self, tmp_path, capsys):
        html_file = tmp_path / "page.html"
        html_file.write_text(PAGE_HTML, encoding="utf-8")

        exit_code = cli.main([
            "https://shop.example.com/shoes/trail",
            "--html-file", str(html_file),
            "--no-log-file",
        ])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["title"] == "Trail Shoe"
        assert payload["sourceUrl"] == "https://shop.example.com/shoes/trail"

    def test_output_file(self, tmp_path):
        html_file = tmp_path / "page.html"
        html_file.write_text(PAGE_HTML, encoding="utf-8")
        out = tmp_path / "product.json"

        exit_code = cli.main([
            "https://shop.example.com/shoes/trail",
            "--html-file", str(html_file),
            "-o", str(out),
            "--no-log-file",
        ])

        assert exit_code == 0
        assert json.loads(out.read_text(encoding="utf-8"))["price"] == "€89.00"

    def test_fetch_error_exit_code(self, capsys):
        with patch("product_scrape.cli.scrape_product", side_effect=PageFetchError("down")):
            exit_code = cli.main(["https://shop.example.com/p", "--no-log-file"])

        assert exit_code == 1
        assert "down" in capsys.readouterr().err
