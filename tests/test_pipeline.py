"""Tests for the mapping pipeline."""

import pytest

from shopbridge.models.schema import TransformType
from shopbridge.errors import (
    ConversionError,
    InvalidSourceDocument,
    RequiredFieldMissing,
    ShapeConflict,
    UnsupportedTransformType,
)

from .conftest import rule


class TestDefaultProductRules:

    def test_full_product(self, pipeline, shopware_product, default_rules):
        result = pipeline.transform(shopware_product, default_rules)

        assert result.success
        assert result.data == {
            "id": "gid://shopify/Product/0189a1b2c3",
            "title": "Trail Runner",
            "descriptionHtml": "<p>Light shoe</p>",
            "variants": [{
                "sku": "SW-1001",
                "inventoryQuantity": 42,
                "price": "129.9",
                "weight": 0.85,
            }],
            "status": "ACTIVE",
            "vendor": "Acme Corp",
            "collections": [{"id": "c-1"}, {"id": "c-2"}],
            "media": [
                {
                    "mediaContentType": "IMAGE",
                    "originalSource": "media/shoe.jpg",
                    "alt": "Shoe",
                    "position": 1,
                },
                {
                    "mediaContentType": "IMAGE",
                    "originalSource": "https://cdn.example.com/side.jpg",
                    "alt": "Side",
                    "position": 2,
                },
            ],
            "seo": {"title": "Trail Runner"},
            "metafields": [
                {"namespace": "dimensions", "key": "width", "value": 11.5, "type": "number_decimal"},
                {"namespace": "dimensions", "key": "height", "value": 0.0, "type": "number_decimal"},
            ],
        }

    def test_missing_price_aborts(self, pipeline, shopware_product, default_rules):
        del shopware_product["price"]
        result = pipeline.transform(shopware_product, default_rules)

        assert isinstance(result.error, RequiredFieldMissing)
        assert result.error_message == "required field price[0].gross not found in source data"
        assert "status" not in result.data
        assert result.data["variants"] == [{"sku": "SW-1001", "inventoryQuantity": 42}]


class TestRequiredAndDefaults:

    def test_required_missing_stops_later_rules(self, pipeline):
        rules = [
            rule("name", "title"),
            rule("sku", "variants[0].sku", required=True),
            rule("name", "handle"),
        ]
        result = pipeline.transform({"name": "Shoe"}, rules)

        assert not result.success
        assert isinstance(result.error, RequiredFieldMissing)
        assert result.error.source_field == "sku"
        assert result.data == {"title": "Shoe"}

    def test_default_is_transformed(self, pipeline):
        rules = [rule("active", "status", TransformType.MAP,
                      {"true": "ACTIVE", "false": "DRAFT"}, default="false")]
        result = pipeline.transform({}, rules)
        assert result.data == {"status": "DRAFT"}

    def test_optional_missing_without_default_is_skipped(self, pipeline):
        rules = [rule("metaDescription", "seo.description"), rule("name", "title")]
        result = pipeline.transform({"name": "Shoe"}, rules)
        assert result.success
        assert result.data == {"title": "Shoe"}

    def test_present_null_is_not_missing(self, pipeline):
        result = pipeline.transform({"name": None}, [rule("name", "title", required=True)])
        assert result.success
        assert result.data == {"title": None}

    def test_default_not_used_when_field_present(self, pipeline):
        result = pipeline.transform({"name": ""}, [rule("name", "title", default="Untitled")])
        assert result.data == {"title": ""}


class TestFailFast:

    def test_transform_error_keeps_partial_output(self, pipeline):
        rules = [
            rule("name", "title"),
            rule("stock", "inventory", TransformType.CONVERT, {"type": "int"}),
            rule("name", "handle"),
        ]
        result = pipeline.transform({"name": "Shoe", "stock": "many"}, rules)

        assert isinstance(result.error, ConversionError)
        assert result.error_message.startswith("error transforming field stock:")
        assert result.data == {"title": "Shoe"}

    def test_unknown_transform_type_aborts(self, pipeline):
        rules = [rule("name", "title", "uppercase")]
        result = pipeline.transform({"name": "Shoe"}, rules)
        assert isinstance(result.error, UnsupportedTransformType)

    def test_destination_shape_conflict_aborts(self, pipeline):
        rules = [rule("name", "seo"), rule("name", "seo.title")]
        result = pipeline.transform({"name": "Shoe"}, rules)

        assert isinstance(result.error, ShapeConflict)
        assert "error setting field seo.title" in result.error_message
        assert result.data == {"seo": "Shoe"}

    def test_result_to_dict(self, pipeline):
        result = pipeline.transform({}, [rule("id", "id", required=True)])
        assert result.to_dict() == {
            "success": False,
            "data": {},
            "error": "required field id not found in source data",
            "error_type": "RequiredFieldMissing",
        }


class TestIsolation:

    def test_source_document_is_not_modified(self, pipeline):
        source = {"seo": {"title": "A"}, "metaDescription": "D"}
        rules = [
            rule("seo", "seo"),
            rule("metaDescription", "seo.description"),
        ]

        result = pipeline.transform(source, rules)

        assert result.data == {"seo": {"title": "A", "description": "D"}}
        assert source == {"seo": {"title": "A"}, "metaDescription": "D"}

    def test_json_path_subtree_is_copied(self, pipeline):
        source = {"attrs": {"size": {"eu": 42}}}
        rules = [
            rule("attrs", "size", TransformType.JSON_PATH, {"path": "size"}),
            rule("attrs.size.eu", "size.us", TransformType.CONVERT, {"type": "string"}),
        ]

        pipeline.transform(source, rules)

        assert source == {"attrs": {"size": {"eu": 42}}}

    def test_repeated_runs_share_no_state(self, pipeline):
        rules = [
            rule("kind", "meta", TransformType.MAP, {"x": {"label": "X"}, "_default": {}}),
            rule("extra", "meta.extra"),
        ]

        first = pipeline.transform({"kind": "x", "extra": "run1"}, rules)
        second = pipeline.transform({"kind": "x"}, rules)

        assert first.data == {"meta": {"label": "X", "extra": "run1"}}
        assert second.data == {"meta": {"label": "X"}}


class TestTransformJson:

    def test_accepts_bytes(self, pipeline):
        result = pipeline.transform_json(b'{"name": "Shoe"}', [rule("name", "title")])
        assert result.data == {"title": "Shoe"}

    @pytest.mark.parametrize("raw", ["[1, 2]", '"text"', "{broken"])
    def test_rejects_non_object_sources(self, pipeline, raw):
        with pytest.raises(InvalidSourceDocument):
            pipeline.transform_json(raw, [rule("name", "title")])
