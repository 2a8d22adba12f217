"""Tests for the per-rule transformation dispatcher."""

import pytest

from shopbridge.models.schema import FieldMapping, TransformType
from shopbridge.services.lookup import EntityLookup
from shopbridge.services.transformer import TransformEngine
from shopbridge.errors import (
    ConversionError,
    InvalidConfig,
    NoMappingMatch,
    PathNotFound,
    UnsupportedTransformType,
)

from .conftest import rule


def apply(engine, value, transform, config=""):
    return engine.apply(value, rule("src", "dst", transform, config))


class TestDispatch:

    def test_none_is_identity(self, engine):
        value = {"nested": [1, 2]}
        assert apply(engine, value, TransformType.NONE) is value

    def test_unknown_type_fails_at_apply(self, engine):
        mapping = FieldMapping.from_dict({
            "source_field": "a", "dest_field": "b", "transform_type": "explode",
        })
        with pytest.raises(UnsupportedTransformType, match="explode"):
            engine.apply("x", mapping)

    def test_malformed_config(self, engine):
        with pytest.raises(InvalidConfig):
            apply(engine, "x", TransformType.TEMPLATE, "{not json")

    def test_empty_config_for_type_that_needs_one(self, engine):
        with pytest.raises(InvalidConfig):
            apply(engine, "x", TransformType.MAP, "")

    def test_unknown_config_keys_are_ignored(self, engine):
        config = {"template": "<{{value}}>", "legacy": True}
        assert apply(engine, "x", TransformType.TEMPLATE, config) == "<x>"

    def test_check_config(self, engine):
        engine.check_config(rule("a", "b", TransformType.CONVERT, {"type": "int"}))
        with pytest.raises(InvalidConfig):
            engine.check_config(rule("a", "b", TransformType.CONVERT, {"type": "decimal"}))


class TestFormat:

    def test_reference_layouts(self, engine):
        config = {"source_format": "2006-01-02T15:04:05Z07:00", "dest_format": "2006-01-02"}
        assert apply(engine, "2024-03-05T10:20:30Z", TransformType.FORMAT, config) == "2024-03-05"

    def test_strftime_layouts(self, engine):
        config = {"source_format": "%d.%m.%Y", "dest_format": "%Y/%m/%d"}
        assert apply(engine, "05.03.2024", TransformType.FORMAT, config) == "2024/03/05"

    def test_lenient_parse_and_iso_output(self, engine):
        result = apply(engine, "March 5, 2024 10:20", TransformType.FORMAT, {})
        assert result == "2024-03-05T10:20:00"

    def test_unparseable_date(self, engine):
        config = {"source_format": "2006-01-02"}
        with pytest.raises(ConversionError):
            apply(engine, "05/03/2024", TransformType.FORMAT, config)

    def test_non_string_value(self, engine):
        with pytest.raises(ConversionError, match="not a string"):
            apply(engine, 20240305, TransformType.FORMAT, {})


class TestConvert:

    @pytest.mark.parametrize("target,value,expected", [
        ("int", "42", 42),
        ("int", "-7", -7),
        ("float", "0.85", 0.85),
        ("bool", "T", True),
        ("bool", "False", False),
        ("string", 129.9, "129.9"),
        ("string", 130.0, "130"),
        ("string", True, "true"),
        ("string", None, "null"),
        ("string", {"a": [1, 2]}, '{"a":[1,2]}'),
    ])
    def test_conversions(self, engine, target, value, expected):
        assert apply(engine, value, TransformType.CONVERT, {"type": target}) == expected

    @pytest.mark.parametrize("target,value", [
        ("int", " 42"),
        ("int", "42\n"),
        ("int", "\u0664\u0662"),
        ("float", "4.2\n"),
        ("float", "\u0664.\u0662"),
        ("int", "4.2"),
        ("float", "1_000.5"),
        ("float", ""),
        ("bool", "yes"),
    ])
    def test_strict_parsing(self, engine, target, value):
        with pytest.raises(ConversionError):
            apply(engine, value, TransformType.CONVERT, {"type": target})

    def test_numeric_target_requires_string_input(self, engine):
        with pytest.raises(ConversionError, match="not a string"):
            apply(engine, 42, TransformType.CONVERT, {"type": "int"})

    def test_unsupported_target(self, engine):
        with pytest.raises(InvalidConfig):
            apply(engine, "1", TransformType.CONVERT, {"type": "decimal"})


class TestMap:

    table = {"true": "ACTIVE", "false": "DRAFT"}

    def test_lookup_uses_stringified_value(self, engine):
        assert apply(engine, True, TransformType.MAP, self.table) == "ACTIVE"
        assert apply(engine, "false", TransformType.MAP, self.table) == "DRAFT"

    def test_default_entry(self, engine):
        table = dict(self.table, _default="ARCHIVED")
        assert apply(engine, "maybe", TransformType.MAP, table) == "ARCHIVED"

    def test_no_match(self, engine):
        with pytest.raises(NoMappingMatch, match="no mapping found for value: maybe"):
            apply(engine, "maybe", TransformType.MAP, self.table)

    def test_config_must_be_object(self, engine):
        with pytest.raises(InvalidConfig):
            apply(engine, "x", TransformType.MAP, '["a"]')

    def test_results_are_not_shared_between_runs(self, engine):
        table = {"x": {"label": "X"}, "_default": {"label": "other"}}
        first = apply(engine, "x", TransformType.MAP, table)
        first["extra"] = "run1"
        apply(engine, "y", TransformType.MAP, table)["extra"] = "run1"

        assert apply(engine, "x", TransformType.MAP, table) == {"label": "X"}
        assert apply(engine, "y", TransformType.MAP, table) == {"label": "other"}


class TestTemplate:

    def test_every_placeholder_is_replaced(self, engine):
        config = {"template": "{{value}}-{{value}}"}
        assert apply(engine, 5, TransformType.TEMPLATE, config) == "5-5"


class TestGraphQLId:

    def test_to_global(self, engine):
        config = {"resource_type": "Product", "direction": "to_global"}
        assert apply(engine, "123", TransformType.GRAPHQL_ID, config) == "gid://shopify/Product/123"

    def test_namespace_override(self, engine):
        config = {"resource_type": "Order", "direction": "to_global", "namespace": "staging"}
        assert apply(engine, "9", TransformType.GRAPHQL_ID, config) == "gid://staging/Order/9"

    def test_engine_namespace(self, lookup):
        engine = TransformEngine(entity_lookup=lookup, gid_namespace="other")
        config = {"resource_type": "Product", "direction": "to_global"}
        assert apply(engine, "1", TransformType.GRAPHQL_ID, config) == "gid://other/Product/1"

    def test_from_global(self, engine):
        config = {"resource_type": "Product", "direction": "from_global"}
        assert apply(engine, "gid://shopify/Product/123", TransformType.GRAPHQL_ID, config) == "123"

    def test_from_global_short_input_unchanged(self, engine):
        config = {"direction": "from_global"}
        assert apply(engine, "Product/123", TransformType.GRAPHQL_ID, config) == "Product/123"

    def test_bad_direction(self, engine):
        with pytest.raises(InvalidConfig):
            apply(engine, "1", TransformType.GRAPHQL_ID, {"direction": "sideways"})

    def test_value_must_be_string(self, engine):
        config = {"resource_type": "Product", "direction": "to_global"}
        with pytest.raises(ConversionError):
            apply(engine, 123, TransformType.GRAPHQL_ID, config)


class TestArrayMap:

    def test_elementwise_projection(self, engine):
        config = {"source_path": "id", "dest_path": "collection.id"}
        value = [{"id": "c-1"}, "skip-me", {"id": "c-2"}]
        assert apply(engine, value, TransformType.ARRAY_MAP, config) == [
            {"collection": {"id": "c-1"}},
            {"collection": {"id": "c-2"}},
        ]

    def test_remapping(self, engine):
        config = {"source_path": "code", "dest_path": "name", "mapping": {"de": "German"}}
        value = [{"code": "de"}, {"code": "fr"}]
        assert apply(engine, value, TransformType.ARRAY_MAP, config) == [
            {"name": "German"},
            {"name": "fr"},
        ]

    def test_single_object_is_promoted(self, engine):
        config = {"source_path": "id", "dest_path": "id"}
        assert apply(engine, {"id": 7}, TransformType.ARRAY_MAP, config) == [{"id": 7}]

    def test_missing_intermediate_yields_empty_object(self, engine):
        config = {"source_path": "a.b", "dest_path": "x"}
        assert apply(engine, [{"c": 1}], TransformType.ARRAY_MAP, config) == [{}]

    def test_missing_final_key_yields_null(self, engine):
        config = {"source_path": "a.b", "dest_path": "x"}
        assert apply(engine, [{"a": {}}], TransformType.ARRAY_MAP, config) == [{"x": None}]

    def test_empty_paths_copy_element(self, engine):
        value = [{"id": 1, "name": "n"}]
        assert apply(engine, value, TransformType.ARRAY_MAP, {}) == [{"id": 1, "name": "n"}]

    def test_rejects_scalars(self, engine):
        with pytest.raises(ConversionError, match="not an array or object"):
            apply(engine, "c-1", TransformType.ARRAY_MAP, {})


class TestJsonPath:

    def test_extracts_sub_tree(self, engine):
        value = {"a": {"b": [1, {"c": "deep"}]}}
        assert apply(engine, value, TransformType.JSON_PATH, {"path": "a.b[1].c"}) == "deep"

    def test_empty_path_returns_value(self, engine):
        assert apply(engine, [1, 2], TransformType.JSON_PATH, {"path": ""}) == [1, 2]

    def test_missing_path_propagates(self, engine):
        with pytest.raises(PathNotFound):
            apply(engine, {"a": 1}, TransformType.JSON_PATH, {"path": "b"})


class TestMediaMap:

    def test_builds_media_inputs(self, engine):
        value = [
            {"url": "media/shoe.jpg", "alt": "Shoe", "title": "ignored"},
            "not-an-object",
            {"url": "https://cdn.example.com/side.jpg"},
        ]
        result = apply(engine, value, TransformType.MEDIA_MAP, {"base_url": "https://shop.example.com/"})
        assert result == [
            {
                "mediaContentType": "IMAGE",
                "originalSource": "https://shop.example.com/media/shoe.jpg",
                "alt": "Shoe",
                "position": 1,
            },
            {
                "mediaContentType": "IMAGE",
                "originalSource": "https://cdn.example.com/side.jpg",
                "alt": "",
                "position": 3,
            },
        ]

    def test_base_url_joined_with_single_slash(self, engine):
        result = apply(engine, [{"url": "a.jpg"}], TransformType.MEDIA_MAP,
                       {"base_url": "https://shop.example.com"})
        assert result[0]["originalSource"] == "https://shop.example.com/a.jpg"

    def test_no_base_url(self, engine):
        result = apply(engine, [{"url": "a.jpg"}], TransformType.MEDIA_MAP, {"base_url": ""})
        assert result[0]["originalSource"] == "a.jpg"

    def test_requires_array(self, engine):
        with pytest.raises(ConversionError):
            apply(engine, {"url": "a.jpg"}, TransformType.MEDIA_MAP, {})


class TestMetafield:

    def config(self, metafield_type=""):
        return {"namespace": "dimensions", "key": "width", "type": metafield_type}

    @pytest.mark.parametrize("metafield_type,value,expected", [
        ("number_decimal", "11.5", 11.5),
        ("number_decimal", "abc", 0.0),
        ("number_integer", "7", 7),
        ("number_integer", "7.5", 0),
        ("boolean", "Yes", True),
        ("boolean", "no", False),
        ("json_string", {"a": 1}, '{"a":1}'),
        ("single_line_text_field", 5, "5"),
    ])
    def test_typed_values(self, engine, metafield_type, value, expected):
        result = apply(engine, value, TransformType.METAFIELD, self.config(metafield_type))
        assert result == {
            "namespace": "dimensions",
            "key": "width",
            "value": expected,
            "type": metafield_type,
        }

    def test_type_defaults_to_string(self, engine):
        result = apply(engine, 12, TransformType.METAFIELD, self.config())
        assert result["type"] == "string"
        assert result["value"] == "12"

    def test_namespace_and_key_required(self, engine):
        with pytest.raises(InvalidConfig, match="namespace and key are required"):
            apply(engine, "1", TransformType.METAFIELD, {"namespace": "dimensions"})


class FailingLookup(EntityLookup):

    def lookup(self, entity_type, entity_id, property):
        raise RuntimeError("lookup backend down")


class TestEntityLookup:

    config = {"entity_type": "manufacturer", "property": "name"}

    def test_resolves_property(self, engine):
        assert apply(engine, "m-1", TransformType.ENTITY_LOOKUP, self.config) == "Acme Corp"

    @pytest.mark.parametrize("entity_id", ["m-2", "m-404"])
    def test_miss_keeps_raw_id(self, engine, entity_id):
        assert apply(engine, entity_id, TransformType.ENTITY_LOOKUP, self.config) == entity_id

    def test_numeric_id_is_stringified(self, engine):
        assert apply(engine, 5, TransformType.ENTITY_LOOKUP, self.config) == "5"

    def test_without_collaborator(self):
        engine = TransformEngine()
        assert apply(engine, "m-1", TransformType.ENTITY_LOOKUP, self.config) == "m-1"

    def test_collaborator_error_keeps_raw_id(self, caplog):
        engine = TransformEngine(entity_lookup=FailingLookup())
        assert apply(engine, "m-1", TransformType.ENTITY_LOOKUP, self.config) == "m-1"
        assert "lookup backend down" in caplog.text

    def test_empty_id(self, engine):
        with pytest.raises(ConversionError, match="empty entity ID"):
            apply(engine, "", TransformType.ENTITY_LOOKUP, self.config)


class TestConditional:

    config = {
        "conditions": [
            {"operator": "greater_than", "value": 100, "result": "big"},
            {"operator": "contains", "value": "sale", "result": "promo"},
            {"operator": "equals", "value": True, "result": "flagged"},
        ],
        "default": "normal",
    }

    @pytest.mark.parametrize("value,expected", [
        (150, "big"),
        ("150.5", "big"),
        ("summer sale", "promo"),
        ("true", "flagged"),
        (5, "normal"),
        (["new", "sale"], "promo"),
    ])
    def test_first_match_wins(self, engine, value, expected):
        assert apply(engine, value, TransformType.CONDITIONAL, self.config) == expected

    def test_less_than(self, engine):
        config = {"conditions": [{"operator": "less_than", "value": "10", "result": "low"}]}
        assert apply(engine, 3, TransformType.CONDITIONAL, config) == "low"

    def test_results_are_not_shared_between_runs(self, engine):
        config = {
            "conditions": [{"operator": "equals", "value": "a", "result": {"tags": ["A"]}}],
            "default": {"tags": []},
        }
        apply(engine, "a", TransformType.CONDITIONAL, config)["tags"].append("changed")
        apply(engine, "b", TransformType.CONDITIONAL, config)["tags"].append("changed")

        assert apply(engine, "a", TransformType.CONDITIONAL, config) == {"tags": ["A"]}
        assert apply(engine, "b", TransformType.CONDITIONAL, config) == {"tags": []}

    def test_no_match_without_default_returns_input(self, engine):
        config = {"conditions": [{"operator": "less_than", "value": 0, "result": "neg"}]}
        assert apply(engine, "abc", TransformType.CONDITIONAL, config) == "abc"

    def test_explicit_null_default(self, engine):
        config = {"conditions": [], "default": None}
        assert apply(engine, "abc", TransformType.CONDITIONAL, config) is None

    def test_unknown_operator(self, engine):
        config = {"conditions": [{"operator": "matches", "value": ".*", "result": 1}]}
        with pytest.raises(InvalidConfig):
            apply(engine, "x", TransformType.CONDITIONAL, config)
