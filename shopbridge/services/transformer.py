"""Transformation engine for converting single field values between platforms."""

import copy
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from ..models.schema import TransformType, FieldMapping
from ..models.transforms import (
    ArrayMapConfig,
    ConditionalConfig,
    Condition,
    ConvertConfig,
    EntityLookupConfig,
    FormatConfig,
    GraphQLIdConfig,
    JsonPathConfig,
    MapConfig,
    MediaMapConfig,
    MetafieldConfig,
    TemplateConfig,
    parse_config,
)
from ..errors import (
    ConversionError,
    NoMappingMatch,
    UnsupportedTransformType,
)
from .formatting import (
    as_number,
    parse_bool,
    parse_float,
    parse_int,
    stringify,
    to_strftime,
)
from .lookup import EntityLookup, NOT_FOUND
from . import paths

logger = logging.getLogger(__name__)

DEFAULT_GID_NAMESPACE = "shopify"


class TransformEngine:
    """
    Applies the transform named by a field mapping to a single value.

    Each call parses the rule's raw config into the typed shape for its
    transform type and dispatches to the matching handler. Handlers raise a
    ``TransformError`` subclass on failure; nothing is defaulted silently.
    """

    def __init__(
        self,
        entity_lookup: Optional[EntityLookup] = None,
        gid_namespace: str = DEFAULT_GID_NAMESPACE
    ):
        """
        Initialize the transform engine.

        Args:
            entity_lookup: Side-table lookup for ``entity_lookup`` rules
            gid_namespace: Namespace used when building global IDs
        """
        self.entity_lookup = entity_lookup
        self.gid_namespace = gid_namespace
        self._transforms = self._register_builtin_transforms()

    def _register_builtin_transforms(self) -> Dict[str, Callable[[Any, Any], Any]]:
        """Register all built-in transformation functions."""
        return {
            TransformType.NONE.value: self._transform_none,
            TransformType.FORMAT.value: self._transform_format,
            TransformType.CONVERT.value: self._transform_convert,
            TransformType.MAP.value: self._transform_map,
            TransformType.TEMPLATE.value: self._transform_template,
            TransformType.GRAPHQL_ID.value: self._transform_graphql_id,
            TransformType.ARRAY_MAP.value: self._transform_array_map,
            TransformType.JSON_PATH.value: self._transform_json_path,
            TransformType.MEDIA_MAP.value: self._transform_media_map,
            TransformType.METAFIELD.value: self._transform_metafield,
            TransformType.ENTITY_LOOKUP.value: self._transform_entity_lookup,
            TransformType.CONDITIONAL.value: self._transform_conditional,
        }

    @property
    def supported_types(self) -> List[str]:
        return list(self._transforms)

    def apply(self, value: Any, mapping: FieldMapping) -> Any:
        """
        Transform a value according to a field mapping.

        Raises:
            UnsupportedTransformType: unknown transform type
            InvalidConfig: the rule's config does not fit its type
            ConversionError: the value cannot be converted
            NoMappingMatch: a ``map`` rule has no entry for the value
        """
        name = mapping.transform_name
        handler = self._transforms.get(name)
        if handler is None:
            raise UnsupportedTransformType(f"unsupported transformation type: {name}")

        config = parse_config(name, mapping.transform_config)
        return handler(value, config)

    def check_config(self, mapping: FieldMapping) -> None:
        """Parse a rule's config eagerly, raising what ``apply`` would raise."""
        name = mapping.transform_name
        if name not in self._transforms:
            raise UnsupportedTransformType(f"unsupported transformation type: {name}")
        parse_config(name, mapping.transform_config)

    # Built-in transform functions

    def _transform_none(self, value: Any, config: None) -> Any:
        """Direct copy without transformation."""
        return value

    def _transform_format(self, value: Any, config: FormatConfig) -> Any:
        """Reparse a date string and render it in another format."""
        if not isinstance(value, str):
            raise ConversionError("value is not a string")

        try:
            if config.source_format:
                parsed = datetime.strptime(value, to_strftime(config.source_format))
            else:
                parsed = date_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise ConversionError(f"error parsing date: {e}") from e

        if not config.dest_format:
            return parsed.isoformat()
        return parsed.strftime(to_strftime(config.dest_format))

    def _transform_convert(self, value: Any, config: ConvertConfig) -> Any:
        """Coerce a string into a scalar type."""
        if config.type == "string":
            return stringify(value)

        if not isinstance(value, str):
            raise ConversionError("value is not a string")

        parsers = {"int": parse_int, "float": parse_float, "bool": parse_bool}
        try:
            return parsers[config.type](value)
        except ValueError as e:
            raise ConversionError(f"error converting to {config.type}: {e}") from e

    def _transform_map(self, value: Any, config: MapConfig) -> Any:
        """Map value using a lookup table."""
        key = stringify(value)
        # Parsed configs are cached and shared between runs
        if key in config:
            return copy.deepcopy(config.lookup(key))
        if "_default" in config:
            return copy.deepcopy(config.lookup("_default"))
        raise NoMappingMatch(f"no mapping found for value: {key}")

    def _transform_template(self, value: Any, config: TemplateConfig) -> Any:
        """Interpolate the value into a template."""
        return config.template.replace("{{value}}", stringify(value))

    def _transform_graphql_id(self, value: Any, config: GraphQLIdConfig) -> Any:
        """Convert between plain IDs and GraphQL global IDs."""
        if not isinstance(value, str):
            raise ConversionError("value is not a string")

        if config.direction == "to_global":
            namespace = config.namespace or self.gid_namespace
            return f"gid://{namespace}/{config.resource_type}/{value}"

        # gid://shopify/Product/123 splits into 5 parts
        parts = value.split("/")
        if len(parts) < 4:
            return value
        return parts[-1]

    def _transform_array_map(self, value: Any, config: ArrayMapConfig) -> Any:
        """Restructure each element of an array into a fresh object."""
        if isinstance(value, dict):
            return [self._map_array_item(value, config)]

        if not isinstance(value, list):
            raise ConversionError("value is not an array or object")

        return [
            self._map_array_item(item, config)
            for item in value
            if isinstance(item, dict)
        ]

    def _map_array_item(self, item: Dict[str, Any], config: ArrayMapConfig) -> Dict[str, Any]:
        """Project, remap and re-nest a single array element."""
        result: Dict[str, Any] = {}

        if config.source_path:
            projected, found = paths.resolve(item, config.source_path)
            if not found:
                parent_path = config.source_path.rpartition(".")[0]
                parent, parent_found = (
                    paths.resolve(item, parent_path) if parent_path else (item, True)
                )
                if not parent_found or not isinstance(parent, dict):
                    return result
                projected = None
        else:
            projected = item

        if config.mapping and isinstance(projected, str) and projected in config.mapping:
            projected = config.mapping[projected]

        if not config.dest_path:
            result.update(item)
            return result

        return paths.set_value(result, config.dest_path, projected)

    def _transform_json_path(self, value: Any, config: JsonPathConfig) -> Any:
        """Extract a sub-tree from the value."""
        if not config.path:
            return value
        return paths.get_value(value, config.path)

    def _transform_media_map(self, value: Any, config: MediaMapConfig) -> Any:
        """Convert a media list into destination media inputs."""
        if not isinstance(value, list):
            raise ConversionError("media value is not an array")

        media = []
        for position, item in enumerate(value, start=1):
            if not isinstance(item, dict):
                continue

            url = stringify(item["url"]) if item.get("url") is not None else ""
            alt = stringify(item["alt"]) if item.get("alt") is not None else ""

            media.append({
                "mediaContentType": "IMAGE",
                "originalSource": self._absolute_url(url, config.base_url),
                "alt": alt,
                "position": position,
            })

        return media

    @staticmethod
    def _absolute_url(url: str, base_url: str) -> str:
        if not base_url or url.startswith("http"):
            return url
        if base_url.endswith("/"):
            return f"{base_url}{url}"
        return f"{base_url}/{url}"

    def _transform_metafield(self, value: Any, config: MetafieldConfig) -> Any:
        """Wrap a value into a typed metafield record."""
        metafield_type = config.type or "string"
        text = stringify(value)

        if metafield_type == "number_integer":
            try:
                metafield_value: Any = parse_int(text)
            except ValueError:
                metafield_value = 0
        elif metafield_type == "number_decimal":
            try:
                metafield_value = parse_float(text)
            except ValueError:
                metafield_value = 0.0
        elif metafield_type == "boolean":
            metafield_value = text.lower() in ("true", "1", "yes")
        elif metafield_type == "json_string":
            metafield_value = json.dumps(value, separators=(",", ":"))
        else:
            metafield_value = text

        return {
            "namespace": config.namespace,
            "key": config.key,
            "value": metafield_value,
            "type": metafield_type,
        }

    def _transform_entity_lookup(self, value: Any, config: EntityLookupConfig) -> Any:
        """Resolve an ID to a property of a related entity, or keep the ID."""
        entity_id = stringify(value) if value is not None else ""
        if not entity_id:
            raise ConversionError("empty entity ID")

        if self.entity_lookup is None:
            logger.warning(f"No entity lookup configured, keeping {config.entity_type} ID {entity_id}")
            return entity_id

        try:
            resolved = self.entity_lookup.lookup(config.entity_type, entity_id, config.property)
        except Exception as e:
            logger.warning(f"Lookup of {config.entity_type} {entity_id} failed, keeping ID: {e}")
            return entity_id

        if resolved is NOT_FOUND:
            logger.debug(f"{config.entity_type} {entity_id} has no {config.property}, keeping ID")
            return entity_id
        return resolved

    def _transform_conditional(self, value: Any, config: ConditionalConfig) -> Any:
        """Return the result of the first matching condition."""
        for condition in config.conditions:
            if self._matches(value, condition):
                return copy.deepcopy(condition.result)

        if config.has_default:
            return copy.deepcopy(config.default)
        return value

    @staticmethod
    def _matches(value: Any, condition: Condition) -> bool:
        if condition.operator == "equals":
            return stringify(value) == stringify(condition.value)

        if condition.operator == "contains":
            if isinstance(value, list):
                expected = stringify(condition.value)
                return any(stringify(item) == expected for item in value)
            return stringify(condition.value) in stringify(value)

        left, right = as_number(value), as_number(condition.value)
        if left is None or right is None:
            return False
        if condition.operator == "greater_than":
            return left > right
        return left < right
