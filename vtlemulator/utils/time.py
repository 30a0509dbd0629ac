import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Java date pattern tokens, longest first so that "yyyy" wins over "yy"
_JAVA_PATTERN_TOKENS = re.compile(r"yyyy|yy|MMM|MM|dd|HH|mm|ss|SSS|Z")


def timestamp(time=None, format: str = TIMESTAMP_FORMAT) -> str:
    if not time:
        time = datetime.now(tz=timezone.utc)
    if isinstance(time, (int, float)):
        time = datetime.fromtimestamp(time, tz=timezone.utc)
    return time.strftime(format)


def now(millis: bool = False, tz: Optional[tzinfo] = None) -> int:
    return mktime(datetime.now(tz=tz), millis=millis)


def now_utc(millis: bool = False) -> int:
    return now(millis, timezone.utc)


def mktime(ts: datetime, millis: bool = False) -> int:
    if millis:
        return int(ts.timestamp() * 1000)
    return int(ts.timestamp())


def format_java_pattern(pattern: str, time: Optional[datetime] = None) -> str:
    """
    Format the given time (defaults to the current UTC time) using a Java ``SimpleDateFormat``-style
    pattern. Only the tokens ``yyyy yy MMM MM dd HH mm ss SSS Z`` are substituted, all other characters
    are copied verbatim.
    """
    time = time or datetime.now(tz=timezone.utc)

    def _replace(match: re.Match) -> str:
        token = match.group(0)
        if token == "yyyy":
            return f"{time.year:04d}"
        if token == "yy":
            return f"{time.year % 100:02d}"
        if token == "MMM":
            return time.strftime("%b")
        if token == "MM":
            return f"{time.month:02d}"
        if token == "dd":
            return f"{time.day:02d}"
        if token == "HH":
            return f"{time.hour:02d}"
        if token == "mm":
            return f"{time.minute:02d}"
        if token == "ss":
            return f"{time.second:02d}"
        if token == "SSS":
            return f"{time.microsecond // 1000:03d}"
        return time.strftime("%z") or "+0000"

    return _JAVA_PATTERN_TOKENS.sub(_replace, pattern)
