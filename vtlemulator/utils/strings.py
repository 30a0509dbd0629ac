import base64
import binascii
import re
import uuid
from typing import Union

from vtlemulator.config import DEFAULT_ENCODING

# standard Base64 alphabet, with optional padding
REGEX_BASE64 = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def to_str(obj: Union[str, bytes], encoding: str = DEFAULT_ENCODING, errors="strict") -> str:
    """If ``obj`` is an instance of ``binary_type``, return
    ``obj.decode(encoding, errors)``, otherwise return ``obj``"""
    return obj.decode(encoding, errors) if isinstance(obj, bytes) else obj


def truncate(data: str, max_length: int = 100) -> str:
    data = str(data or "")
    return ("%s..." % data[:max_length]) if len(data) > max_length else data


def long_uid() -> str:
    return str(uuid.uuid4())


def base64_decode(data: Union[str, bytes]) -> bytes:
    """Decode the given Base64 data, tolerating missing padding and surrounding whitespace.

    :raises binascii.Error: if the data contains characters outside the Base64 alphabet
    """
    data = to_str(data).strip()
    data = "".join(data.split())
    if not REGEX_BASE64.match(data):
        raise binascii.Error("Invalid base64 characters in input")
    missing_padding = -len(data) % 4
    if missing_padding == 3:
        raise binascii.Error("Invalid base64 length")
    return base64.b64decode(data + "=" * missing_padding)
