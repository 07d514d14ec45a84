"""Data models for scraped product pages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

__all__ = ["SelectorPattern", "ImageCandidate", "ScrapedData"]


@dataclass(frozen=True)
class SelectorPattern:
    """A single ranked rule for locating a field in a page.

    With ``attribute`` unset the value is the element's visible text;
    otherwise it is the named attribute (e.g. ``content`` on ``<meta>``).
    """

    selector: str
    attribute: Optional[str] = None


@dataclass(frozen=True)
class ImageCandidate:
    """An image reference found on the page."""

    url: str
    alt: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "alt": self.alt}


@dataclass(frozen=True)
class ScrapedData:
    """Everything extracted from one product page.

    Produced once per scrape and never mutated afterwards. Title and
    description are always present; a value equal to the configured
    default means the field was not found on the page.
    """

    title: str
    description: str
    source_url: str
    scraped_at: datetime
    price: Optional[str] = None
    specifications: Dict[str, str] = field(default_factory=dict)
    images: Tuple[ImageCandidate, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape returned by the scrape endpoint."""
        return {
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "specifications": dict(self.specifications),
            "images": [image.to_dict() for image in self.images],
            "sourceUrl": self.source_url,
            "scrapedAt": self.scraped_at.isoformat(),
        }
