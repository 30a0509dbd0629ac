"""Tools for formatting emulator logs."""
import logging
from functools import lru_cache

MAX_THREAD_NAME_LEN = 12
MAX_NAME_LEN = 26

LOG_FORMAT = f"%(asctime)s.%(msecs)03d %(vtl_level)5s --- [%(vtl_thread){MAX_THREAD_NAME_LEN}s] %(vtl_name)-{MAX_NAME_LEN}s : %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

CUSTOM_LEVEL_NAMES = {
    50: "FATAL",
    40: "ERROR",
    30: "WARN",
    20: "INFO",
    10: "DEBUG",
}


class DefaultFormatter(logging.Formatter):
    """
    A formatter that uses ``LOG_FORMAT`` and ``LOG_DATE_FORMAT``.
    """

    def __init__(self, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT):
        super(DefaultFormatter, self).__init__(fmt=fmt, datefmt=datefmt)


class AddFormattedAttributes(logging.Filter):
    """
    Filter that adds three attributes to a log record:

    - vtl_level: the abbreviated loglevel that's max 5 characters long
    - vtl_name: the abbreviated name of the logger (e.g., `v.apigateway.renderer`), trimmed to ``MAX_NAME_LEN``
    - vtl_thread: the abbreviated thread name (prefix trimmed, .e.g, ``omeThread-108``)
    """

    max_name_len: int
    max_thread_len: int

    def __init__(self, max_name_len: int = None, max_thread_len: int = None):
        super(AddFormattedAttributes, self).__init__()
        self.max_name_len = max_name_len if max_name_len else MAX_NAME_LEN
        self.max_thread_len = max_thread_len if max_thread_len else MAX_THREAD_NAME_LEN

    def filter(self, record):
        record.vtl_level = CUSTOM_LEVEL_NAMES.get(record.levelno, record.levelname)
        record.vtl_name = self._get_compressed_logger_name(record.name)
        record.vtl_thread = record.threadName[-self.max_thread_len :]
        return True

    @lru_cache(maxsize=256)
    def _get_compressed_logger_name(self, name):
        return compress_logger_name(name, self.max_name_len)


def compress_logger_name(name: str, length: int) -> str:
    """
    Creates a short version of a logger name. For example ``my.very.long.logger.name`` with length=17 turns into
    ``m.v.l.logger.name``.

    :param name: the logger name
    :param length: the max length of the logger name
    :return: the compressed name
    """
    if len(name) <= length:
        return name

    parts = name.split(".")
    parts.reverse()

    new_parts = []

    # we start by assuming that all parts are collapsed
    # x.x.x requires 5 = 2n - 1 characters
    cur_length = (len(parts) * 2) - 1

    for i in range(len(parts)):
        # try to expand the current part and calculate the resulting length
        part = parts[i]
        next_len = cur_length + (len(part) - 1)

        if next_len > length:
            # the remaining parts only get their first letter
            new_parts += [p[0] for p in parts[i:]]

            # the first part is never collapsed to nothing
            if i == 0:
                remaining = length - cur_length
                if remaining > 0:
                    new_parts[0] = part[: (remaining + 1)]

            break

        new_parts.append(part)
        cur_length = next_len

    new_parts.reverse()
    return ".".join(new_parts)


class RenderTraceFormatter(logging.Formatter):
    """Formatter for render trace records, which carry the template and the rendered result as extras."""

    render_trace_log_format = LOG_FORMAT + "; template(%(template)s); result(%(result)s)"
    max_value_length = 512

    def __init__(self):
        super().__init__(fmt=self.render_trace_log_format, datefmt=LOG_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        record.template = self._shorten(getattr(record, "template", ""))
        record.result = self._shorten(getattr(record, "result", ""))
        return super().format(record)

    def _shorten(self, value) -> str:
        value = str(value if value is not None else "")
        if len(value) > self.max_value_length:
            return f"{value[: self.max_value_length]}... ({len(value)} chars)"
        return value
