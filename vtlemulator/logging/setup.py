import logging
import sys
import warnings

from vtlemulator import config, constants

from .format import AddFormattedAttributes, DefaultFormatter, RenderTraceFormatter

# The log levels for modules are evaluated incrementally for logging granularity,
# from highest (DEBUG) to lowest (TRACE_INTERNAL). Hence, each module below should have
# higher level which serves as the default.

default_log_levels = {
    "airspeed": logging.WARNING,
    "vtlemulator.apigateway.accessors": logging.INFO,
    "vtlemulator.render.trace": logging.WARNING,
}

trace_log_levels = {
    "vtlemulator.render.trace": logging.DEBUG,
}

trace_internal_log_levels = {
    "airspeed": logging.DEBUG,
    "vtlemulator.apigateway.accessors": logging.DEBUG,
}


def get_log_level_from_config():
    # overriding the log level if VTL_LOG has been set
    if config.VTL_LOG:
        log_level = str(config.VTL_LOG).upper()
        if log_level.lower() in constants.TRACE_LOG_LEVELS:
            log_level = "DEBUG"
        log_level = logging.getLevelName(log_level)
        return log_level

    return logging.DEBUG if config.DEBUG else logging.INFO


def setup_logging_from_config():
    log_level = get_log_level_from_config()
    setup_logging(log_level)

    if config.is_trace_logging_enabled():
        for name, level in trace_log_levels.items():
            logging.getLogger(name).setLevel(level)
        setup_render_trace_logger()
    if config.VTL_LOG == constants.VTL_LOG_TRACE_INTERNAL:
        for name, level in trace_internal_log_levels.items():
            logging.getLogger(name).setLevel(level)


def create_default_handler(log_level: int):
    log_handler = logging.StreamHandler(stream=sys.stderr)
    log_handler.setLevel(log_level)
    log_handler.setFormatter(DefaultFormatter())
    log_handler.addFilter(AddFormattedAttributes())
    return log_handler


def setup_logging(log_level=logging.INFO) -> None:
    """
    Configures the python logging environment for the emulator.

    :param log_level: the optional log level.
    """
    # set create a default handler for the root logger (basically logging.basicConfig but explicit)
    log_handler = create_default_handler(log_level)

    # replace any existing handlers
    logging.basicConfig(level=log_level, handlers=[log_handler], force=True)

    # disable some logs and warnings
    warnings.filterwarnings("ignore")
    logging.captureWarnings(True)

    # set log levels of loggers
    logging.root.setLevel(log_level)
    logging.getLogger("vtlemulator").setLevel(log_level)
    for logger, level in default_log_levels.items():
        logging.getLogger(logger).setLevel(level)


def setup_render_trace_logger() -> None:
    """
    Gives the render trace logger its own handler, so template and result of each render call are
    printed next to the regular log line.
    """
    logger = logging.getLogger("vtlemulator.render.trace")
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.addFilter(AddFormattedAttributes())
    handler.setFormatter(RenderTraceFormatter())
    logger.handlers = [handler]
    logger.propagate = False
