"""Curated stock photography for catalogs without usable product images.

No Unsplash API key is involved: a fixed set of Unsplash photos is returned,
annotated with the search that produced it.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

__all__ = ["search_stock_images", "CURATED_IMAGES"]

_UNSPLASH = "https://images.unsplash.com"

# (photo id, alt text, photographer)
_CURATED = [
    ("photo-1505740420928-5e560c06d30e", "Premium wireless headphones", "C D-X"),
    ("photo-1484704849700-f032a568e944", "Modern headphones design", "Blocks Fletcher"),
    ("photo-1583394838336-acd977736f90", "Professional audio equipment", "Malte Wingen"),
    ("photo-1546435770-a3e426bf472b", "Wireless technology", "John Tekeridis"),
    ("photo-1558756520-22cfe5d382ca", "Audio device close-up", "Garrett Morrow"),
    ("photo-1487215078519-e21cc028cb29", "Premium product photography", "Sennheiser"),
]

CURATED_IMAGES: List[Dict[str, str]] = [
    {
        "id": f"unsplash-{i}",
        "url": f"{_UNSPLASH}/{photo}?w=800&q=80",
        "alt": alt,
        "photographer": photographer,
        "downloadUrl": f"{_UNSPLASH}/{photo}?w=1200&q=85",
    }
    for i, (photo, alt, photographer) in enumerate(_CURATED, start=1)
]


def search_stock_images(
    query: str,
    count: int = 6,
    orientation: str = "landscape",
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Return up to ``count`` curated images tagged with the search parameters."""
    fetched_at = (now or datetime.now(timezone.utc)).isoformat()
    return [
        {**image, "query": query, "orientation": orientation, "fetchedAt": fetched_at}
        for image in CURATED_IMAGES[:count]
    ]
