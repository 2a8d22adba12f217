"""Dataflow, connector and field mapping models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from enum import Enum
import json


class ConnectorType(str, Enum):
    """Platform role of a connector."""
    SHOPWARE = "shopware"
    SHOPIFY = "shopify"


class DataflowType(str, Enum):
    """Category of data carried by a dataflow."""
    PRODUCT = "product"
    ORDER = "order"


class DataflowStatus(str, Enum):
    """Whether a dataflow accepts new events."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class TransformType(str, Enum):
    """Supported transformation types."""
    NONE = "none"
    FORMAT = "format"
    CONVERT = "convert"
    MAP = "map"
    TEMPLATE = "template"
    GRAPHQL_ID = "graphql_id"
    ARRAY_MAP = "array_map"
    JSON_PATH = "json_path"
    CONDITIONAL = "conditional"
    MEDIA_MAP = "media_map"
    METAFIELD = "metafield"
    ENTITY_LOOKUP = "entity_lookup"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Connector:
    """Connection details for a store on one of the two platforms."""
    name: str
    type: ConnectorType
    url: str
    id: Optional[int] = None
    username: str = ""
    api_key: str = ""
    api_secret: str = ""
    access_token: str = ""
    password: str = ""
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (credentials omitted)."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "url": self.url,
            "username": self.username,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Connector":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            type=ConnectorType(data.get("type", "shopware")),
            url=data.get("url", ""),
            username=data.get("username", ""),
            api_key=data.get("api_key", ""),
            api_secret=data.get("api_secret", ""),
            access_token=data.get("access_token", ""),
            password=data.get("password", ""),
            is_active=data.get("is_active", True),
        )


@dataclass
class FieldMapping:
    """
    A single mapping rule from a source path to a destination path.

    ``transform_config`` is kept as the raw JSON string it was stored as; it
    is only interpreted when the rule is applied.
    """
    source_field: str
    dest_field: str
    is_required: bool = False
    default_value: str = ""
    transform_type: Union[TransformType, str] = TransformType.NONE
    transform_config: str = ""
    id: Optional[int] = None
    dataflow_id: Optional[int] = None

    @property
    def transform_name(self) -> str:
        """The transform type as a plain string."""
        if isinstance(self.transform_type, TransformType):
            return self.transform_type.value
        return self.transform_type

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "dataflow_id": self.dataflow_id,
            "source_field": self.source_field,
            "dest_field": self.dest_field,
            "is_required": self.is_required,
            "default_value": self.default_value,
            "transform_type": self.transform_name,
            "transform_config": self.transform_config,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldMapping":
        """
        Create from dictionary representation.

        Unknown transform types are kept as raw strings so that they fail
        when applied. A config given as a JSON object is serialized.
        """
        transform = data.get("transform_type") or TransformType.NONE.value
        try:
            transform = TransformType(transform)
        except ValueError:
            pass

        config = data.get("transform_config", "")
        if config is None:
            config = ""
        elif not isinstance(config, str):
            config = json.dumps(config)

        return cls(
            id=data.get("id"),
            dataflow_id=data.get("dataflow_id"),
            source_field=data.get("source_field", ""),
            dest_field=data.get("dest_field", ""),
            is_required=data.get("is_required", False),
            default_value=data.get("default_value") or "",
            transform_type=transform,
            transform_config=config,
        )

    @classmethod
    def list_from_json_file(cls, file_path: str) -> List["FieldMapping"]:
        """Load an ordered rule list from a JSON file.

        Accepts either a bare list or an object with a ``field_mappings`` key.
        """
        with open(file_path, 'r') as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("field_mappings", [])
        return [cls.from_dict(item) for item in data]


@dataclass
class Dataflow:
    """A source/destination connector pairing with an ordered rule set."""
    name: str
    type: DataflowType
    source_connector: Connector
    dest_connector: Connector
    description: str = ""
    status: DataflowStatus = DataflowStatus.ACTIVE
    field_mappings: List[FieldMapping] = field(default_factory=list)
    id: Optional[int] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == DataflowStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "status": self.status.value,
            "source_connector": self.source_connector.to_dict(),
            "dest_connector": self.dest_connector.to_dict(),
            "field_mappings": [m.to_dict() for m in self.field_mappings],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataflow":
        """Create from dictionary representation."""
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            description=data.get("description", ""),
            type=DataflowType(data.get("type", "product")),
            status=DataflowStatus(data.get("status", "active")),
            source_connector=Connector.from_dict(data.get("source_connector", {})),
            dest_connector=Connector.from_dict(data.get("dest_connector", {})),
            field_mappings=[
                FieldMapping.from_dict(fm) for fm in data.get("field_mappings", [])
            ],
        )


def default_product_mappings(dataflow_id: Optional[int] = None) -> List[FieldMapping]:
    """Default rules mapping a Shopware product onto a Shopify product input."""
    rules = [
        ("id", "id", True, "", TransformType.GRAPHQL_ID,
         '{"resource_type": "Product", "direction": "to_global"}'),
        ("name", "title", True, "", TransformType.NONE, ""),
        ("description", "descriptionHtml", False, "", TransformType.NONE, ""),
        ("productNumber", "variants[0].sku", False, "", TransformType.NONE, ""),
        ("stock", "variants[0].inventoryQuantity", False, "", TransformType.CONVERT,
         '{"type": "int"}'),
        ("price[0].gross", "variants[0].price", True, "", TransformType.CONVERT,
         '{"type": "string"}'),
        ("active", "status", False, "ACTIVE", TransformType.MAP,
         '{"true": "ACTIVE", "false": "DRAFT", "_default": "DRAFT"}'),
        ("manufacturerId", "vendor", False, "", TransformType.ENTITY_LOOKUP,
         '{"entity_type": "manufacturer", "property": "name"}'),
        ("categoryIds", "collections", False, "", TransformType.ARRAY_MAP,
         '{"source_path": "id", "dest_path": "id"}'),
        ("media", "media", False, "", TransformType.MEDIA_MAP, '{"base_url": ""}'),
        ("metaTitle", "seo.title", False, "", TransformType.NONE, ""),
        ("metaDescription", "seo.description", False, "", TransformType.NONE, ""),
        ("weight", "variants[0].weight", False, "", TransformType.CONVERT,
         '{"type": "float"}'),
        ("width", "metafields[0]", False, "", TransformType.METAFIELD,
         '{"namespace": "dimensions", "key": "width", "type": "number_decimal"}'),
        ("height", "metafields[1]", False, "", TransformType.METAFIELD,
         '{"namespace": "dimensions", "key": "height", "type": "number_decimal"}'),
        ("length", "metafields[2]", False, "", TransformType.METAFIELD,
         '{"namespace": "dimensions", "key": "length", "type": "number_decimal"}'),
    ]

    return [
        FieldMapping(
            dataflow_id=dataflow_id,
            source_field=source,
            dest_field=dest,
            is_required=required,
            default_value=default,
            transform_type=transform,
            transform_config=config,
        )
        for source, dest, required, default, transform, config in rules
    ]
