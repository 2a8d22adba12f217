"""Error taxonomy for the mapping engine, lifecycle and storage layers."""

from typing import Optional


class ShopbridgeError(Exception):
    """Base class for all errors raised by shopbridge."""


# Path accessor

class PathError(ShopbridgeError):
    """A path could not be resolved or assigned."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class InvalidPath(PathError):
    """The path expression itself is malformed."""


class PathNotFound(PathError):
    """A segment of the path does not exist in the tree."""


class IndexOutOfBounds(PathError):
    """An indexed segment points past the end of a sequence."""


class ShapeConflict(PathError):
    """An existing value has the wrong shape for the path being written."""


# Transformation dispatcher

class TransformError(ShopbridgeError):
    """A transformation could not be applied to a value."""


class InvalidConfig(TransformError):
    """The transform config does not match the shape its type expects."""


class ConversionError(TransformError):
    """The value could not be coerced by the transform."""


class NoMappingMatch(TransformError):
    """A `map` transform has neither a matching key nor a `_default`."""


class UnsupportedTransformType(TransformError):
    """The rule names a transform type the engine does not know."""


# Mapping pipeline

class RequiredFieldMissing(ShopbridgeError):
    """A required source field is absent from the source document."""

    def __init__(self, source_field: str):
        super().__init__(f"required field {source_field} not found in source data")
        self.source_field = source_field


class InvalidSourceDocument(ShopbridgeError):
    """The source payload is not a JSON object."""


# Lifecycle and storage

class InvalidStatusTransition(ShopbridgeError):
    """A migration log was asked to move to a state it cannot reach."""


class MigrationLogNotFound(ShopbridgeError):
    """No migration log exists with the given id."""


class DataflowNotFound(ShopbridgeError):
    """No dataflow exists with the given id."""


class DataflowInUse(ShopbridgeError):
    """The dataflow is referenced by migration logs and cannot change."""


class InvalidDataflow(ShopbridgeError):
    """The dataflow violates one of its invariants."""


class FieldMappingNotFound(ShopbridgeError):
    """No field mapping exists with the given id."""


class InvalidFieldMapping(ShopbridgeError):
    """The field mapping is missing its source or destination field."""


class InvalidConnector(ShopbridgeError):
    """The connector is missing its name or URL."""


# Workflow hand-off

class WorkflowSubmissionError(ShopbridgeError):
    """The external workflow engine did not accept the hand-off."""
