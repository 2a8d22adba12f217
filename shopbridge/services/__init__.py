"""Service layer for shopbridge."""

from .transformer import TransformEngine
from .pipeline import MappingPipeline
from .lifecycle import MigrationLifecycle
from .lookup import EntityLookup, InMemoryEntityLookup, NOT_FOUND

__all__ = [
    "TransformEngine",
    "MappingPipeline",
    "MigrationLifecycle",
    "EntityLookup",
    "InMemoryEntityLookup",
    "NOT_FOUND",
]
