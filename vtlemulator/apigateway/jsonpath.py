"""
Evaluator for the restricted JSONPath dialect supported in mapping templates: an optional root ``$``
followed by dotted property names and integer array indices (``$.a.b``, ``$.a[0].b``, ``a.0.b``).
Filters, wildcards and recursive descent are not supported.
"""
import functools
import re
from typing import Any, Optional, Tuple, Union

PathSegment = Union[str, int]
JsonPath = Tuple[PathSegment, ...]


class _NotFound:
    def __bool__(self):
        return False

    def __repr__(self):
        return "NOT_FOUND"


# result of evaluating a path that does not resolve (distinct from a JSON null value)
NOT_FOUND = _NotFound()

REGEX_NAME = re.compile(r"\.([^.\[\]]+)")
REGEX_INDEX = re.compile(r"\[\s*(-?\d+)\s*\]")
REGEX_QUOTED_KEY = re.compile(r"\[\s*(['\"])(.*?)\1\s*\]")


@functools.lru_cache(maxsize=256)
def parse_path(path: str, require_root: bool = True) -> Optional[JsonPath]:
    """
    Parse the given path expression into a tuple of segments (property names and array indices).
    An empty tuple denotes the whole document, ``None`` an invalid expression.

    :param path: the path expression
    :param require_root: if set, the path must start with ``$.`` (or ``$[``); only ``""`` and ``$`` are
        accepted without it. Otherwise, a leading ``$`` is optional and bare dotted paths are accepted.
    """
    path = (path or "").strip()
    if path in ("", "$"):
        return ()

    if path.startswith("$"):
        remainder = path[1:]
    elif require_root:
        return None
    else:
        remainder = path
    if not remainder.startswith((".", "[")):
        if require_root:
            return None
        remainder = f".{remainder}"

    segments = []
    position = 0
    while position < len(remainder):
        if match := REGEX_NAME.match(remainder, position):
            segments.append(match.group(1).strip())
        elif match := REGEX_INDEX.match(remainder, position):
            segments.append(int(match.group(1)))
        elif match := REGEX_QUOTED_KEY.match(remainder, position):
            segments.append(match.group(2))
        else:
            return None
        position = match.end()
    return tuple(segments)


def navigate(value: Any, segments: JsonPath) -> Any:
    """Follow the given segments through `value`, returning NOT_FOUND as soon as a segment does not resolve."""
    current = value
    for segment in segments:
        if isinstance(segment, str) and isinstance(current, dict):
            if segment not in current:
                return NOT_FOUND
            current = current[segment]
            continue
        if isinstance(segment, str) and segment.isdigit():
            segment = int(segment)
        if not isinstance(segment, int) or not isinstance(current, list):
            return NOT_FOUND
        if segment < 0 or segment >= len(current):
            return NOT_FOUND
        current = current[segment]
    return current


def evaluate(value: Any, path: str, strict: bool = True) -> Any:
    """Evaluate the path expression against the given (parsed JSON) value."""
    segments = parse_path(str(path or ""), require_root=strict)
    if segments is None:
        return NOT_FOUND
    return navigate(value, segments)


def evaluate_json_path(value: Any, path: str) -> Any:
    """Grammar used by ``$input.json(..)``: requires a leading ``$.``, except for ``$`` and ``""``."""
    return evaluate(value, path, strict=True)


def evaluate_path(value: Any, path: str) -> Any:
    """Grammar used by ``$input.path(..)``: a leading ``$`` is optional, bare dotted paths are accepted."""
    return evaluate(value, path, strict=False)
