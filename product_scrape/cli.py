"""Command-line interface for the product scraper."""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

__all__ = ["main", "parse_args", "scrape_to_dict"]

from product_scrape.config import SCRAPE_RENDER
from product_scrape.html_utils import extract_product, parse_html
from product_scrape.logging_config import setup_logging
from product_scrape.scraper import PageFetchError, scrape_product


def scrape_to_dict(
    url: str,
    render: bool = False,
    html_file: Optional[Path] = None,
) -> dict:
    """Scrape a URL (or extract from a saved page) and return the JSON dict.

    Args:
        url: Product page URL; used as base URL when reading ``html_file``
        render: Load the page in a headless browser
        html_file: Extract from this saved HTML file instead of fetching
    """
    if html_file is not None:
        html = Path(html_file).read_text(encoding="utf-8")
        data = extract_product(
            parse_html(html),
            source_url=url,
            scraped_at=datetime.now(timezone.utc),
        )
    else:
        data = scrape_product(url, render=render)
    return data.to_dict()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract title, description, price, specs and images from a product page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scrape a live product page and print JSON
  python -m product_scrape.cli https://shop.example.com/headphones

  # Render JavaScript-heavy pages in headless Chromium
  python -m product_scrape.cli https://shop.example.com/headphones --render

  # Re-run extraction on a saved page
  python -m product_scrape.cli https://shop.example.com/headphones --html-file page.html

  # Write the result to a file
  python -m product_scrape.cli https://shop.example.com/headphones -o product.json
        """,
    )

    parser.add_argument("url", help="Product page URL")
    parser.add_argument(
        "--render",
        action="store_true",
        default=SCRAPE_RENDER,
        help="Load the page in a headless browser before extracting",
    )
    parser.add_argument(
        "--html-file",
        type=Path,
        help="Extract from a saved HTML file instead of fetching the URL",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write JSON to this file instead of stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Don't write the JSONL scrape log",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
    )

    try:
        result = scrape_to_dict(args.url, render=args.render, html_file=args.html_file)
    except PageFetchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.html_file}: {e}", file=sys.stderr)
        return 1

    output = json.dumps(result, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(output + "\n", encoding="utf-8")
        print(f"Saved to {args.output}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
