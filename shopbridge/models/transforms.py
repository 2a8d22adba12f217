"""Typed config shapes for each transformation type.

Stored mappings keep their config as a raw JSON string. The shapes below are
lenient in the same way the stored rows were written: unknown keys are
ignored and missing string keys fall back to empty strings.
"""

from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, RootModel, ValidationError, model_validator

from .schema import TransformType
from ..errors import InvalidConfig


class TransformConfig(BaseModel):
    """Base class for transform configs."""
    model_config = ConfigDict(extra="ignore", frozen=True)


class FormatConfig(TransformConfig):
    source_format: str = ""
    dest_format: str = ""


class ConvertConfig(TransformConfig):
    type: Literal["string", "int", "float", "bool"]


class MapConfig(RootModel[Dict[str, Any]]):
    """Free-form lookup table, with an optional ``_default`` entry."""

    def lookup(self, key: str) -> Any:
        return self.root[key]

    def __contains__(self, key: str) -> bool:
        return key in self.root


class TemplateConfig(TransformConfig):
    template: str = ""


class GraphQLIdConfig(TransformConfig):
    resource_type: str = ""
    direction: Literal["to_global", "from_global"]
    namespace: Optional[str] = None


class ArrayMapConfig(TransformConfig):
    source_path: str = ""
    dest_path: str = ""
    mapping: Optional[Dict[str, str]] = None


class JsonPathConfig(TransformConfig):
    path: str = ""


class MediaMapConfig(TransformConfig):
    base_url: str = ""


class MetafieldConfig(TransformConfig):
    namespace: str = ""
    key: str = ""
    type: str = ""

    @model_validator(mode="after")
    def _require_namespace_and_key(self) -> "MetafieldConfig":
        if not self.namespace or not self.key:
            raise ValueError("metafield namespace and key are required")
        return self


class EntityLookupConfig(TransformConfig):
    entity_type: str = ""
    property: str = ""


class Condition(TransformConfig):
    operator: Literal["equals", "contains", "greater_than", "less_than"]
    value: Any = None
    result: Any = None


class ConditionalConfig(TransformConfig):
    conditions: List[Condition] = []
    default: Any = None

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set


CONFIG_MODELS: Dict[str, Type[BaseModel]] = {
    TransformType.FORMAT.value: FormatConfig,
    TransformType.CONVERT.value: ConvertConfig,
    TransformType.MAP.value: MapConfig,
    TransformType.TEMPLATE.value: TemplateConfig,
    TransformType.GRAPHQL_ID.value: GraphQLIdConfig,
    TransformType.ARRAY_MAP.value: ArrayMapConfig,
    TransformType.JSON_PATH.value: JsonPathConfig,
    TransformType.MEDIA_MAP.value: MediaMapConfig,
    TransformType.METAFIELD.value: MetafieldConfig,
    TransformType.ENTITY_LOOKUP.value: EntityLookupConfig,
    TransformType.CONDITIONAL.value: ConditionalConfig,
}


@lru_cache(maxsize=512)
def parse_config(transform_type: str, raw: str) -> Optional[BaseModel]:
    """
    Parse a raw config string into the shape for ``transform_type``.

    Returns None for types that take no config.

    Raises:
        InvalidConfig: the string is not JSON or does not fit the shape
    """
    model = CONFIG_MODELS.get(transform_type)
    if model is None:
        return None

    try:
        return model.model_validate_json(raw or "")
    except ValidationError as e:
        raise InvalidConfig(f"invalid transform config: {_summarize(e)}") from e


def _summarize(error: ValidationError) -> str:
    """One-line summary of a pydantic validation error."""
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        message = item.get("msg", "")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)
