"""Mapping pipeline - applies an ordered ruleset to a source document."""

import copy
import json
import logging
from typing import Any, Dict, List, Optional, Union

from ..models.schema import FieldMapping
from ..models.record import MappingResult
from ..errors import (
    InvalidSourceDocument,
    PathError,
    RequiredFieldMissing,
    ShopbridgeError,
    TransformError,
)
from .transformer import TransformEngine
from . import paths

logger = logging.getLogger(__name__)


class MappingPipeline:
    """
    Builds a destination document from a source document and a ruleset.

    Rules run in declared order and the run stops at the first error. The
    partially built destination tree is returned alongside that error.
    """

    def __init__(self, engine: Optional[TransformEngine] = None):
        self.engine = engine or TransformEngine()

    def transform(self, source: Dict[str, Any], mappings: List[FieldMapping]) -> MappingResult:
        """
        Apply every rule in ``mappings`` to ``source``.

        Args:
            source: Source document
            mappings: Ordered rules

        Returns:
            MappingResult with the destination tree and the terminal error, if any
        """
        if not isinstance(source, dict):
            raise InvalidSourceDocument("source data must be a JSON object")

        result = MappingResult()

        for mapping in mappings:
            try:
                self._apply_rule(source, mapping, result.data)
            except ShopbridgeError as e:
                logger.error(f"Mapping {mapping.source_field} -> {mapping.dest_field} aborted: {e}")
                result.error = e
                break

        return result

    def transform_json(self, raw: Union[str, bytes], mappings: List[FieldMapping]) -> MappingResult:
        """Decode a JSON source document and transform it."""
        try:
            source = json.loads(raw)
        except ValueError as e:
            raise InvalidSourceDocument(f"error parsing source data: {e}") from e

        if not isinstance(source, dict):
            raise InvalidSourceDocument("source data must be a JSON object")

        return self.transform(source, mappings)

    def _apply_rule(self, source: Dict[str, Any], mapping: FieldMapping, dest: Dict[str, Any]) -> None:
        value, found = paths.resolve(source, mapping.source_field)
        # The destination tree must not share containers with the source
        value = copy.deepcopy(value)

        if not found:
            if mapping.is_required:
                raise RequiredFieldMissing(mapping.source_field)
            if not mapping.default_value:
                logger.debug(f"Skipping {mapping.source_field}: not in source and no default")
                return
            logger.warning(f"Using default for missing field {mapping.source_field}")
            value = mapping.default_value

        try:
            transformed = self.engine.apply(value, mapping)
        except (TransformError, PathError) as e:
            raise type(e)(f"error transforming field {mapping.source_field}: {e}") from e

        try:
            paths.set_value(dest, mapping.dest_field, transformed)
        except PathError as e:
            raise type(e)(f"error setting field {mapping.dest_field}: {e}", mapping.dest_field) from e
