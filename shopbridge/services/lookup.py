"""Entity lookup collaborators used by the ``entity_lookup`` transform."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class _NotFound:
    """Sentinel for an unresolved lookup."""

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()


class EntityLookup(ABC):
    """
    Point lookup against a side table of related entities
    (manufacturers, categories, ...).
    """

    @abstractmethod
    def lookup(self, entity_type: str, entity_id: str, property: str) -> Any:
        """
        Return ``property`` of the entity, or ``NOT_FOUND``.

        Args:
            entity_type: Side table to search (e.g. "manufacturer")
            entity_id: ID of the entity
            property: Property to return from the entity record
        """
        pass


class InMemoryEntityLookup(EntityLookup):
    """Entity lookup backed by nested dictionaries."""

    def __init__(self, tables: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        """
        Args:
            tables: entity_type -> entity_id -> record
        """
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {
            entity_type: dict(records) for entity_type, records in (tables or {}).items()
        }

    def add(self, entity_type: str, entity_id: str, record: Dict[str, Any]) -> None:
        """Register a record under an entity type."""
        self._tables.setdefault(entity_type, {})[entity_id] = record

    def lookup(self, entity_type: str, entity_id: str, property: str) -> Any:
        record = self._tables.get(entity_type, {}).get(entity_id)
        if record is None or property not in record:
            return NOT_FOUND
        return record[property]
