"""Tests for the block-based catalog model and editor operations."""

import pytest

from catalog_web.catalog import (
    DEFAULT_BLOCK_CONTENT,
    CatalogData,
    CatalogEditError,
    add_block,
    add_images,
    apply_operations,
    build_catalog,
    move_block,
    remove_block,
    reorder_images,
    sync_blocks_to_content,
    update_block_content,
    update_block_settings,
    update_content_field,
    update_layout,
)

IMAGES = [
    {"id": "a", "url": "/uploads/a.webp", "alt": "Front"},
    {"id": "b", "url": "/uploads/b.webp", "originalName": "side.png"},
    {"id": "c", "url": "https://images.unsplash.com/c"},
]


@pytest.fixture
def catalog(product_data, generated_payload):
    return build_catalog(product_data, generated_payload, IMAGES)


def _types(catalog):
    return [block.type for block in catalog.content_blocks]


class TestBuildCatalog:
    """Tests for build_catalog."""

    def test_default_layout_and_blocks(self, catalog, generated_payload):
        assert catalog.layout == {"theme": "modern", "colorScheme": "blue", "typography": "sans"}
        assert _types(catalog) == [
            "imageGallery", "title", "description", "price", "features", "specifications", "benefits",
        ]
        blocks = {block.type: block for block in catalog.content_blocks}
        assert blocks["title"].content == {"text": generated_payload["title"]}
        assert blocks["price"].content["value"] == "€89.00"
        assert blocks["features"].settings["style"] == "list"
        assert blocks["specifications"].settings["style"] == "table"
        assert blocks["benefits"].settings["style"] == "cards"
        assert blocks["imageGallery"].settings["columns"] == 3
        assert len(blocks["imageGallery"].content["images"]) == 3

    def test_images_normalized(self, catalog):
        assert [img["position"] for img in catalog.images] == [0, 1, 2]
        assert catalog.images[1]["alt"] == "side.png"
        assert catalog.images[2]["alt"] == "Product image"

    def test_product_url_from_source_url(self, catalog, product_data):
        assert catalog.product["url"] == product_data["sourceUrl"]

    def test_block_ids_unique(self, catalog):
        ids = [block.id for block in catalog.content_blocks]
        assert len(set(ids)) == len(ids)

    def test_wire_round_trip(self, catalog):
        restored = CatalogData.from_dict(catalog.to_dict())
        assert restored.to_dict() == catalog.to_dict()

    def test_from_dict_without_blocks(self, catalog_data):
        catalog = CatalogData.from_dict(catalog_data)
        assert len(catalog.content_blocks) == 7
        assert catalog.layout["colorScheme"] == "green"

    @pytest.mark.parametrize(
        "key,value",
        [("layout", "blue"), ("images", ["a.webp"]), ("contentBlocks", [1]), ("generatedContent", "x")],
    )
    def test_from_dict_rejects_wrong_shapes(self, catalog_data, key, value):
        catalog_data[key] = value
        with pytest.raises(CatalogEditError, match=key):
            CatalogData.from_dict(catalog_data)


class TestBlockEdits:
    """Tests for block-level edit functions."""

    def test_add_block_defaults(self, catalog):
        block = add_block(catalog, "customSection")
        assert catalog.content_blocks[-1] is block
        assert block.content == DEFAULT_BLOCK_CONTENT["customSection"]

        price = add_block(catalog, "price", index=0)
        assert catalog.content_blocks[0] is price
        assert price.content == {"value": "$0.00", "originalValue": "", "discount": ""}

    def test_add_block_content_is_a_copy(self, catalog):
        block = add_block(catalog, "features")
        block.content["items"].append("Feature 3")
        assert DEFAULT_BLOCK_CONTENT["features"]["items"] == ["Feature 1", "Feature 2"]

    def test_add_block_rejects_unknown_type(self, catalog):
        with pytest.raises(CatalogEditError):
            add_block(catalog, "video")

    def test_remove_block(self, catalog):
        block_id = catalog.content_blocks[3].id
        remove_block(catalog, block_id)
        assert "price" not in _types(catalog)
        with pytest.raises(CatalogEditError):
            remove_block(catalog, block_id)

    def test_move_block(self, catalog):
        move_block(catalog, 0, 6)
        assert _types(catalog)[-1] == "imageGallery"
        assert _types(catalog)[0] == "title"

    @pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 7), (9, 1)])
    def test_move_block_out_of_range(self, catalog, from_index, to_index):
        with pytest.raises(CatalogEditError):
            move_block(catalog, from_index, to_index)

    def test_update_content_and_settings_merge(self, catalog):
        price = catalog.content_blocks[3]
        update_block_content(catalog, price.id, {"discount": "10%"})
        assert price.content == {"value": "€89.00", "originalValue": "", "discount": "10%"}

        gallery = catalog.content_blocks[0]
        update_block_settings(catalog, gallery.id, {"columns": 2})
        assert gallery.settings == {"columns": 2, "aspectRatio": "square"}


class TestCatalogEdits:
    """Tests for catalog-level edit functions."""

    def test_update_content_field_writes_both(self, catalog):
        update_content_field(catalog, "title", "New Name")
        assert catalog.product["title"] == "New Name"
        assert catalog.generated_content["title"] == "New Name"

    def test_update_content_field_rejects_unknown(self, catalog):
        with pytest.raises(CatalogEditError):
            update_content_field(catalog, "sourceUrl", "https://evil.example.com")

    def test_update_layout(self, catalog):
        update_layout(catalog, {"colorScheme": "purple", "typography": "serif"})
        assert catalog.layout == {"theme": "modern", "colorScheme": "purple", "typography": "serif"}

    @pytest.mark.parametrize("changes", [{"colorScheme": "orange"}, {"font": "sans"}])
    def test_update_layout_rejects_invalid(self, catalog, changes):
        with pytest.raises(CatalogEditError):
            update_layout(catalog, changes)
        assert catalog.layout["colorScheme"] == "blue"

    def test_reorder_images(self, catalog):
        reorder_images(catalog, ["c", "a", "b"])
        assert [(img["id"], img["position"]) for img in catalog.images] == [("c", 0), ("a", 1), ("b", 2)]
        gallery = catalog.content_blocks[0].content["images"]
        assert [img["id"] for img in gallery] == ["c", "a", "b"]

    @pytest.mark.parametrize("order", [["a", "b"], ["a", "b", "b"], ["a", "b", "z"]])
    def test_reorder_images_requires_permutation(self, catalog, order):
        with pytest.raises(CatalogEditError):
            reorder_images(catalog, order)

    def test_add_images(self, catalog):
        added = add_images(catalog, [{"id": "d", "url": "/uploads/d.webp"}])
        assert added[0]["position"] == 3
        assert catalog.images[-1]["id"] == "d"
        assert catalog.content_blocks[0].content["images"][-1]["id"] == "d"

        with pytest.raises(CatalogEditError):
            add_images(catalog, [{"id": "a", "url": "/uploads/a.webp"}])

    def test_sync_blocks_to_content(self, catalog):
        blocks = {block.type: block for block in catalog.content_blocks}
        update_block_content(catalog, blocks["title"].id, {"text": "Edited title"})
        update_block_content(catalog, blocks["features"].id, {"items": ["Only feature"]})
        update_block_content(catalog, blocks["specifications"].id, {"items": {"Size": 42}})
        update_block_content(catalog, blocks["price"].id, {"value": "€79.00"})

        sync_blocks_to_content(catalog)

        assert catalog.generated_content["title"] == "Edited title"
        assert catalog.product["title"] == "Edited title"
        assert catalog.generated_content["features"] == ["Only feature"]
        assert catalog.generated_content["specifications"] == {"Size": "42"}
        assert catalog.product["price"] == "€79.00"


class TestApplyOperations:
    """Tests for batched editor operations."""

    def test_applies_in_order(self, catalog):
        title_id = catalog.content_blocks[1].id
        edited = apply_operations(catalog, [
            {"op": "add", "type": "customSection", "index": 0},
            {"op": "move", "from": 0, "to": 7},
            {"op": "update_content", "id": title_id, "content": {"text": "Hello"}},
            {"op": "update_settings", "id": title_id, "settings": {"textColor": "#111"}},
            {"op": "update_field", "field": "description", "value": "New description"},
            {"op": "update_layout", "layout": {"theme": "minimal"}},
            {"op": "reorder_images", "order": ["b", "c", "a"]},
        ])

        assert _types(edited)[-1] == "customSection"
        assert edited.find_block(title_id).content["text"] == "Hello"
        assert edited.find_block(title_id).settings == {"textColor": "#111"}
        assert edited.generated_content["description"] == "New description"
        assert edited.layout["theme"] == "minimal"
        assert edited.images[0]["id"] == "b"

    def test_original_untouched_on_failure(self, catalog):
        before = catalog.to_dict()
        with pytest.raises(CatalogEditError, match="Operation 1"):
            apply_operations(catalog, [
                {"op": "remove", "id": catalog.content_blocks[0].id},
                {"op": "explode"},
            ])
        assert catalog.to_dict() == before

    @pytest.mark.parametrize(
        "operation",
        [
            {"op": "remove"},
            {"op": "remove", "id": "missing"},
            {"op": "update_layout", "layout": "blue"},
            {"op": "reorder_images", "order": [1, "a", None]},
        ],
    )
    def test_malformed_operations(self, catalog, operation):
        with pytest.raises(CatalogEditError):
            apply_operations(catalog, [operation])
