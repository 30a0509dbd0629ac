import logging

import pytest

from vtlemulator.logging.format import (
    AddFormattedAttributes,
    DefaultFormatter,
    RenderTraceFormatter,
    compress_logger_name,
)


def test_compress_logger_name():
    assert compress_logger_name("log", 1) == "l"
    assert compress_logger_name("log", 3) == "log"
    name = "vtlemulator.apigateway.renderer"
    assert compress_logger_name(name, 40) == name
    assert compress_logger_name(name, 26) == "v.apigateway.renderer"
    assert compress_logger_name(name, 12) == "v.a.renderer"
    assert compress_logger_name(name, 8) == "v.a.rend"
    assert compress_logger_name(name, 1) == "v.a.r"


class CollectingHandler(logging.Handler):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.messages = []

    def emit(self, record):
        self.messages.append(self.format(record))


@pytest.fixture
def get_logger():
    handlers: list[logging.Handler] = []
    logger = logging.getLogger("test.vtlemulator.logger")

    def _get_logger(handler: logging.Handler) -> logging.Logger:
        handlers.append(handler)

        # avoid propagation to parent loggers
        logger.propagate = False
        logger.setLevel(logging.DEBUG)
        logger.addHandler(handler)
        return logger

    yield _get_logger

    for handler in handlers:
        logger.removeHandler(handler)


def test_default_formatter_with_formatted_attributes(get_logger):
    handler = CollectingHandler()
    handler.setFormatter(DefaultFormatter())
    handler.addFilter(AddFormattedAttributes())
    logger = get_logger(handler)

    logger.warning("something happened")

    assert len(handler.messages) == 1
    message = handler.messages[0]
    assert " WARN --- [" in message
    assert "test.vtlemulator.logger" in message
    assert message.endswith(": something happened")


def test_formatted_attributes():
    record = logging.LogRecord(
        "vtlemulator.apigateway.templates", logging.DEBUG, __file__, 1, "msg", None, None
    )
    record.threadName = "ThreadPoolExecutor-0_1"
    AddFormattedAttributes(max_name_len=20, max_thread_len=5).filter(record)

    assert record.vtl_level == "DEBUG"
    assert record.vtl_name == "v.a.templates"
    assert record.vtl_thread == "r-0_1"


def test_render_trace_formatter(get_logger):
    handler = CollectingHandler()
    handler.setFormatter(RenderTraceFormatter())
    handler.addFilter(AddFormattedAttributes())
    logger = get_logger(handler)

    logger.debug("rendered", extra={"template": "$input.body", "result": '{"a":1}'})
    logger.debug("rendered", extra={"template": "x" * 600, "result": None})
    logger.debug("no extras")

    assert handler.messages[0].endswith('rendered; template($input.body); result({"a":1})')
    assert handler.messages[1].endswith(f"template({'x' * 512}... (600 chars)); result()")
    assert handler.messages[2].endswith("no extras; template(); result()")
