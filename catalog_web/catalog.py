"""Server-side model of the block-based catalog editor.

A catalog holds the scraped product, the generated copy, layout choices, the
image list and an ordered list of content blocks. Edit functions mutate a
``CatalogData`` in place; ``apply_operations`` applies a batch of edits to a
copy and only returns it when every edit succeeded.
"""

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

__all__ = [
    "BLOCK_TYPES",
    "DEFAULT_BLOCK_CONTENT",
    "DEFAULT_BLOCK_SETTINGS",
    "DEFAULT_LAYOUT",
    "LAYOUT_CHOICES",
    "CatalogEditError",
    "ContentBlock",
    "CatalogData",
    "build_catalog",
    "add_block",
    "remove_block",
    "move_block",
    "update_block_content",
    "update_block_settings",
    "update_content_field",
    "update_layout",
    "reorder_images",
    "add_images",
    "sync_blocks_to_content",
    "apply_operations",
]

logger = logging.getLogger(__name__)

BLOCK_TYPES = (
    "title",
    "description",
    "imageGallery",
    "features",
    "specifications",
    "benefits",
    "price",
    "customSection",
)

DEFAULT_BLOCK_CONTENT: Dict[str, Dict[str, Any]] = {
    "title": {"text": "New Title"},
    "description": {"text": "Enter description here..."},
    "imageGallery": {"images": []},
    "features": {"items": ["Feature 1", "Feature 2"]},
    "specifications": {"items": {"Spec 1": "Value 1", "Spec 2": "Value 2"}},
    "benefits": {"items": ["Benefit 1", "Benefit 2"]},
    "price": {"value": "$0.00", "originalValue": "", "discount": ""},
    "customSection": {"title": "", "content": ""},
}

DEFAULT_BLOCK_SETTINGS: Dict[str, Dict[str, Any]] = {
    "imageGallery": {"columns": 3, "aspectRatio": "square"},
    "features": {"style": "list", "columns": 1},
    "specifications": {"style": "table", "columns": 2},
    "benefits": {"style": "cards", "columns": 3},
}

LAYOUT_CHOICES: Dict[str, Sequence[str]] = {
    "theme": ("modern", "classic", "minimal"),
    "colorScheme": ("blue", "purple", "green", "red"),
    "typography": ("sans", "serif", "mono"),
}

DEFAULT_LAYOUT = {"theme": "modern", "colorScheme": "blue", "typography": "sans"}

# Block sequence of a freshly built catalog
DEFAULT_BLOCK_SEQUENCE = (
    "imageGallery",
    "title",
    "description",
    "price",
    "features",
    "specifications",
    "benefits",
)

# Fields the editor may change directly on product and generated content
EDITABLE_FIELDS = ("title", "description", "price", "specifications", "features", "benefits")


class CatalogEditError(ValueError):
    """Raised for an invalid edit: unknown block, type, field or operation."""
    pass


def _new_block_id() -> str:
    return f"block-{uuid.uuid4().hex[:12]}"


@dataclass
class ContentBlock:
    """One reorderable section of the catalog."""

    type: str
    content: Dict[str, Any]
    settings: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=_new_block_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "content": copy.deepcopy(self.content),
            "settings": copy.deepcopy(self.settings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentBlock":
        block_type = data.get("type")
        if block_type not in BLOCK_TYPES:
            raise CatalogEditError(f"Unknown block type: {block_type}")
        return cls(
            id=data.get("id") or _new_block_id(),
            type=block_type,
            content=copy.deepcopy(data.get("content") or {}),
            settings=copy.deepcopy(data.get("settings") or {}),
        )


@dataclass
class CatalogData:
    """The editable catalog as exchanged with the editor and exporter."""

    product: Dict[str, Any]
    generated_content: Dict[str, Any]
    layout: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LAYOUT))
    images: List[Dict[str, Any]] = field(default_factory=list)
    content_blocks: List[ContentBlock] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the ``catalogData`` wire shape."""
        return {
            "product": copy.deepcopy(self.product),
            "generatedContent": copy.deepcopy(self.generated_content),
            "layout": dict(self.layout),
            "images": copy.deepcopy(self.images),
            "contentBlocks": [block.to_dict() for block in self.content_blocks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogData":
        """Create from the wire shape; missing blocks get the default sequence.

        Raises:
            CatalogEditError: If a section has the wrong JSON type.
        """
        for key in ("product", "generatedContent", "layout"):
            if not isinstance(data.get(key) or {}, dict):
                raise CatalogEditError(f"catalogData.{key} must be an object")
        for key in ("images", "contentBlocks"):
            items = data.get(key) or []
            if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
                raise CatalogEditError(f"catalogData.{key} must be an array of objects")

        catalog = cls(
            product=copy.deepcopy(data.get("product") or {}),
            generated_content=copy.deepcopy(data.get("generatedContent") or {}),
            layout={**DEFAULT_LAYOUT, **(data.get("layout") or {})},
            images=_normalize_images(data.get("images") or []),
        )
        blocks = data.get("contentBlocks")
        if blocks:
            catalog.content_blocks = [ContentBlock.from_dict(b) for b in blocks]
        else:
            catalog.content_blocks = _default_blocks(catalog)
        return catalog

    def find_block(self, block_id: str) -> ContentBlock:
        for block in self.content_blocks:
            if block.id == block_id:
                return block
        raise CatalogEditError(f"Unknown block id: {block_id}")


def _normalize_images(images: List[Dict[str, Any]], start: int = 0) -> List[Dict[str, Any]]:
    """Give every image an id, url, alt and a position following list order."""
    normalized = []
    for offset, image in enumerate(images):
        position = start + offset
        normalized.append({
            **image,
            "id": str(image.get("id") or f"image-{position}"),
            "url": image.get("url", ""),
            "alt": image.get("alt") or image.get("originalName") or "Product image",
            "position": position,
        })
    return normalized


def _new_block(block_type: str, content: Optional[Dict[str, Any]] = None) -> ContentBlock:
    return ContentBlock(
        type=block_type,
        content=copy.deepcopy(content if content is not None else DEFAULT_BLOCK_CONTENT[block_type]),
        settings=copy.deepcopy(DEFAULT_BLOCK_SETTINGS.get(block_type, {})),
    )


def _default_blocks(catalog: CatalogData) -> List[ContentBlock]:
    generated = catalog.generated_content
    product = catalog.product
    contents = {
        "imageGallery": {"images": copy.deepcopy(catalog.images)},
        "title": {"text": generated.get("title") or product.get("title", "")},
        "description": {"text": generated.get("description") or product.get("description", "")},
        "price": {"value": product.get("price") or "", "originalValue": "", "discount": ""},
        "features": {"items": list(generated.get("features") or [])},
        "specifications": {
            "items": dict(generated.get("specifications") or product.get("specifications") or {})
        },
        "benefits": {"items": list(generated.get("benefits") or [])},
    }
    return [_new_block(block_type, contents[block_type]) for block_type in DEFAULT_BLOCK_SEQUENCE]


def build_catalog(
    scraped: Dict[str, Any],
    generated: Dict[str, Any],
    images: Optional[List[Dict[str, Any]]] = None,
) -> CatalogData:
    """Assemble a catalog from scrape output, generated copy and images."""
    product = copy.deepcopy(scraped)
    product.setdefault("url", scraped.get("sourceUrl", ""))

    catalog = CatalogData(
        product=product,
        generated_content=copy.deepcopy(generated),
        images=_normalize_images(images or []),
    )
    catalog.content_blocks = _default_blocks(catalog)
    logger.debug("Built catalog for %s with %d images", product.get("title"), len(catalog.images))
    return catalog


def add_block(catalog: CatalogData, block_type: str, index: Optional[int] = None) -> ContentBlock:
    """Insert a block with the type's default content (appended when no index)."""
    if block_type not in BLOCK_TYPES:
        raise CatalogEditError(f"Unknown block type: {block_type}")
    block = _new_block(block_type)
    if index is None:
        catalog.content_blocks.append(block)
    else:
        if not 0 <= index <= len(catalog.content_blocks):
            raise CatalogEditError(f"Block index out of range: {index}")
        catalog.content_blocks.insert(index, block)
    return block


def remove_block(catalog: CatalogData, block_id: str) -> None:
    catalog.content_blocks.remove(catalog.find_block(block_id))


def move_block(catalog: CatalogData, from_index: int, to_index: int) -> None:
    """Take the block at ``from_index`` out and reinsert it at ``to_index``."""
    count = len(catalog.content_blocks)
    for index in (from_index, to_index):
        if not isinstance(index, int) or not 0 <= index < count:
            raise CatalogEditError(f"Block index out of range: {index}")
    block = catalog.content_blocks.pop(from_index)
    catalog.content_blocks.insert(to_index, block)


def update_block_content(catalog: CatalogData, block_id: str, content: Dict[str, Any]) -> None:
    block = catalog.find_block(block_id)
    block.content = {**block.content, **copy.deepcopy(content)}


def update_block_settings(catalog: CatalogData, block_id: str, settings: Dict[str, Any]) -> None:
    block = catalog.find_block(block_id)
    block.settings = {**block.settings, **copy.deepcopy(settings)}


def update_content_field(catalog: CatalogData, field_name: str, value: Any) -> None:
    """Write a field to both the product and the generated content."""
    if field_name not in EDITABLE_FIELDS:
        raise CatalogEditError(f"Field is not editable: {field_name}")
    catalog.product[field_name] = copy.deepcopy(value)
    catalog.generated_content[field_name] = copy.deepcopy(value)


def update_layout(catalog: CatalogData, changes: Dict[str, str]) -> None:
    for key, value in changes.items():
        choices = LAYOUT_CHOICES.get(key)
        if choices is None:
            raise CatalogEditError(f"Unknown layout option: {key}")
        if value not in choices:
            raise CatalogEditError(f"Invalid {key}: {value} (expected one of {', '.join(choices)})")
    catalog.layout.update(changes)


def _gallery_blocks(catalog: CatalogData) -> List[ContentBlock]:
    return [b for b in catalog.content_blocks if b.type == "imageGallery"]


def reorder_images(catalog: CatalogData, image_ids: List[str]) -> None:
    """Reorder images to match ``image_ids`` and re-index positions.

    ``image_ids`` must name every image exactly once. Gallery blocks that
    show those images follow the new order.
    """
    by_id = {image["id"]: image for image in catalog.images}
    if sorted(image_ids) != sorted(by_id):
        raise CatalogEditError("Image order must list every image id exactly once")

    catalog.images = _normalize_images([by_id[image_id] for image_id in image_ids])
    order = {image["id"]: image["position"] for image in catalog.images}

    for block in _gallery_blocks(catalog):
        gallery = block.content.get("images") or []
        ordered = sorted(gallery, key=lambda img: order.get(img.get("id"), len(order)))
        block.content["images"] = [
            {**img, "position": order.get(img.get("id"), img.get("position", 0))}
            for img in ordered
        ]


def add_images(catalog: CatalogData, images: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Append images to the catalog and to every image gallery block."""
    added = _normalize_images(images, start=len(catalog.images))
    known = {image["id"] for image in catalog.images}
    for image in added:
        if image["id"] in known:
            raise CatalogEditError(f"Duplicate image id: {image['id']}")
        known.add(image["id"])

    catalog.images.extend(added)
    for block in _gallery_blocks(catalog):
        block.content.setdefault("images", []).extend(copy.deepcopy(added))
    return added


def _first_block(catalog: CatalogData, block_type: str) -> Optional[ContentBlock]:
    for block in catalog.content_blocks:
        if block.type == block_type:
            return block
    return None


def sync_blocks_to_content(catalog: CatalogData) -> CatalogData:
    """Copy block edits back into product/generated content.

    The first block of each type is authoritative, so exports reflect what
    the editor shows.
    """
    text_fields = {"title": "text", "description": "text"}
    for block_type, key in text_fields.items():
        block = _first_block(catalog, block_type)
        if block is not None and isinstance(block.content.get(key), str):
            catalog.generated_content[block_type] = block.content[key]
            catalog.product[block_type] = block.content[key]

    price = _first_block(catalog, "price")
    if price is not None and "value" in price.content:
        catalog.product["price"] = price.content["value"]

    for block_type in ("features", "benefits"):
        block = _first_block(catalog, block_type)
        if block is not None and isinstance(block.content.get("items"), list):
            catalog.generated_content[block_type] = [str(i) for i in block.content["items"]]

    specs = _first_block(catalog, "specifications")
    if specs is not None and isinstance(specs.content.get("items"), dict):
        catalog.generated_content["specifications"] = {
            str(k): str(v) for k, v in specs.content["items"].items()
        }

    return catalog


def _require(operation: Dict[str, Any], key: str) -> Any:
    if key not in operation:
        raise CatalogEditError(f"Operation '{operation.get('op')}' requires '{key}'")
    return operation[key]


def _apply_one(catalog: CatalogData, operation: Dict[str, Any]) -> None:
    op = operation.get("op")
    if op == "add":
        add_block(catalog, _require(operation, "type"), operation.get("index"))
    elif op == "remove":
        remove_block(catalog, _require(operation, "id"))
    elif op == "move":
        move_block(catalog, _require(operation, "from"), _require(operation, "to"))
    elif op == "update_content":
        update_block_content(catalog, _require(operation, "id"), _require(operation, "content"))
    elif op == "update_settings":
        update_block_settings(catalog, _require(operation, "id"), _require(operation, "settings"))
    elif op == "update_field":
        update_content_field(catalog, _require(operation, "field"), _require(operation, "value"))
    elif op == "update_layout":
        update_layout(catalog, _require(operation, "layout"))
    elif op == "reorder_images":
        reorder_images(catalog, _require(operation, "order"))
    elif op == "add_images":
        add_images(catalog, _require(operation, "images"))
    else:
        raise CatalogEditError(f"Unknown operation: {op}")


def apply_operations(catalog: CatalogData, operations: List[Dict[str, Any]]) -> CatalogData:
    """Apply edit operations in order to a copy of ``catalog``.

    Raises:
        CatalogEditError: On the first invalid operation; ``catalog`` is left untouched.
    """
    edited = copy.deepcopy(catalog)
    for position, operation in enumerate(operations):
        try:
            _apply_one(edited, operation)
        except CatalogEditError as e:
            raise CatalogEditError(f"Operation {position}: {e}") from e
        except (TypeError, AttributeError) as e:
            raise CatalogEditError(f"Operation {position}: malformed operation ({e})") from e
    return edited
