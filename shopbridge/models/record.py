"""Record models for mapping results and inbound change events."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .schema import DataflowType
from ..errors import ShopbridgeError


# Webhook event names per data category
EVENT_CATEGORIES: Dict[str, DataflowType] = {
    "product.written": DataflowType.PRODUCT,
    "order.placed": DataflowType.ORDER,
}


@dataclass
class MappingResult:
    """
    Outcome of running a ruleset over one source document.

    ``data`` holds the destination tree as built up to the failure point;
    ``error`` is the terminal error, if any.
    """
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ShopbridgeError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "success": self.success,
            "data": self.data,
            "error": self.error_message,
            "error_type": type(self.error).__name__ if self.error is not None else None,
        }


class WebhookPayloadItem(BaseModel):
    """One changed entity reported by a webhook."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    entity: str = ""
    operation: str = ""
    primary_key: Any = Field(default=None, alias="primaryKey")
    updated_fields: List[str] = Field(default_factory=list, alias="updatedFields")
    version_id: Optional[str] = Field(default=None, alias="versionId")


class WebhookData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str = ""
    payload: List[WebhookPayloadItem] = Field(default_factory=list)


class WebhookSource(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str = ""
    event_id: str = Field(default="", alias="eventId")


class WebhookEvent(BaseModel):
    """Change notification sent by the source store."""
    model_config = ConfigDict(extra="ignore")

    data: WebhookData = Field(default_factory=WebhookData)
    source: WebhookSource = Field(default_factory=WebhookSource)
    timestamp: Optional[int] = None

    @property
    def category(self) -> Optional[DataflowType]:
        """Data category for the event, or None for events we do not handle."""
        return EVENT_CATEGORIES.get(self.data.event)

    @property
    def entity_name(self) -> str:
        """Entity name used in payload items (``product.written`` -> ``product``)."""
        return self.data.event.split(".", 1)[0]

    @property
    def source_id(self) -> Optional[str]:
        """Primary key of the first payload item for this event's entity."""
        for item in self.data.payload:
            if item.entity == self.entity_name and item.primary_key is not None:
                return str(item.primary_key)
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WebhookEvent":
        """Create from dictionary representation."""
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
