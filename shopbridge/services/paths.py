"""
Nested path access for schema-less JSON trees.

Paths are dot-separated segments, each optionally carrying one bracketed
index, e.g. ``variants[0].price`` or ``seo.title``.
"""

import re
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from ..errors import (
    PathError,
    InvalidPath,
    PathNotFound,
    IndexOutOfBounds,
    ShapeConflict,
)

logger = logging.getLogger(__name__)

Segment = Tuple[str, Optional[int]]

_SEGMENT_RE = re.compile(r"^([^\[\]]+)(?:\[(\d+)\])?$")


@lru_cache(maxsize=1024)
def parse_path(path: str) -> Tuple[Segment, ...]:
    """Split a path into ``(key, index)`` segments."""
    if not path:
        raise InvalidPath("empty path", path)

    segments = []
    for part in path.split("."):
        match = _SEGMENT_RE.match(part)
        if not match:
            raise InvalidPath(f"invalid path segment: {part!r}", path)
        key, index = match.groups()
        segments.append((key, int(index) if index is not None else None))

    return tuple(segments)


def get_value(tree: Any, path: str) -> Any:
    """
    Get the value at ``path``.

    Raises:
        PathNotFound: a key is missing or a parent has the wrong shape
        IndexOutOfBounds: an index points past the end of its sequence
        InvalidPath: the path is malformed
    """
    current = tree

    for key, index in parse_path(path):
        if not isinstance(current, dict):
            raise PathNotFound(f"cannot access {key}: parent is not an object", path)
        if key not in current:
            raise PathNotFound(f"field {key} not found", path)
        current = current[key]

        if index is not None:
            if not isinstance(current, list):
                raise PathNotFound(f"field {key} is not an array", path)
            if index >= len(current):
                raise IndexOutOfBounds(f"array index out of bounds: {index}", path)
            current = current[index]

    return current


def resolve(tree: Any, path: str) -> Tuple[Any, bool]:
    """Get the value at ``path`` as a ``(value, found)`` pair."""
    try:
        return get_value(tree, path), True
    except PathError as e:
        logger.debug(f"Path {path!r} not resolved: {e}")
        return None, False


def set_value(tree: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
    """
    Set the value at ``path``, building missing containers on the way.

    Missing intermediate keys become empty objects. Sequences shorter than an
    index are padded with empty objects up to ``index + 1``. A null in an
    intermediate position is treated as absent.

    Raises:
        ShapeConflict: an existing intermediate value has the wrong shape
        InvalidPath: the path is malformed
    """
    if not isinstance(tree, dict):
        raise ShapeConflict("destination root is not an object", path)

    segments = parse_path(path)
    last = len(segments) - 1
    current = tree

    for position, (key, index) in enumerate(segments):
        is_last = position == last

        if index is None:
            if is_last:
                current[key] = value
                break

            child = current.get(key)
            if child is None:
                child = current[key] = {}
            elif not isinstance(child, dict):
                raise ShapeConflict(f"field {key} is not an object", path)
            current = child
            continue

        sequence = current.get(key)
        if sequence is None:
            sequence = current[key] = []
        elif not isinstance(sequence, list):
            raise ShapeConflict(f"field {key} is not an array", path)

        _pad(sequence, index)

        if is_last:
            sequence[index] = value
            break

        child = sequence[index]
        if child is None:
            child = sequence[index] = {}
        elif not isinstance(child, dict):
            raise ShapeConflict(f"array element at index {index} is not an object", path)
        current = child

    return tree


def _pad(sequence: List[Any], index: int) -> None:
    """Grow ``sequence`` so that ``index`` is addressable."""
    missing = index + 1 - len(sequence)
    if missing > 0:
        sequence.extend({} for _ in range(missing))
