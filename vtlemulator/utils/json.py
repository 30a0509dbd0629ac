import decimal
import json
import math
from datetime import date, datetime
from typing import Any

from .strings import to_str
from .time import TIMESTAMP_FORMAT, timestamp

# separators used by Jackson/JSON.stringify, which is what API Gateway emits
COMPACT_SEPARATORS = (",", ":")


class CustomEncoder(json.JSONEncoder):
    """Helper class to convert JSON documents with datetime, decimals, or bytes."""

    def default(self, o):
        if isinstance(o, decimal.Decimal):
            if o % 1 > 0:
                return float(o)
            else:
                return int(o)
        if isinstance(o, (datetime, date)):
            return timestamp(o, format=TIMESTAMP_FORMAT)
        if isinstance(o, (set, tuple)):
            return list(o)
        try:
            if isinstance(o, bytes):
                return to_str(o, errors="replace")
            return super(CustomEncoder, self).default(o)
        except TypeError:
            return None


def to_json_str(obj: Any, compact: bool = True) -> str:
    """
    Serialize the given object to a JSON string, keeping non-ASCII characters as they are. Non-finite
    numbers (e.g., from parsing ``1e400``) are serialized as ``null``, like JSON.stringify does.
    """
    separators = COMPACT_SEPARATORS if compact else None
    try:
        return json.dumps(
            obj, cls=CustomEncoder, separators=separators, ensure_ascii=False, allow_nan=False
        )
    except ValueError:
        return json.dumps(
            replace_non_finite(obj),
            cls=CustomEncoder,
            separators=separators,
            ensure_ascii=False,
            allow_nan=False,
        )


def replace_non_finite(obj: Any) -> Any:
    """Return a copy of the given structure with NaN/Infinity floats replaced by None."""
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, dict):
        return {key: replace_non_finite(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [replace_non_finite(value) for value in obj]
    return obj
