import logging
import os
import time
from typing import Union

from vtlemulator.constants import (
    AWS_REGION_US_EAST_1,
    LOG_LEVELS,
    TRACE_LOG_LEVELS,
    TRUE_STRINGS,
)

# keep track of start time, for performance debugging
load_start_time = time.time()


def eval_log_type(env_var_name: str) -> Union[str, bool]:
    """Get the log type from environment variable"""
    vtl_log = os.environ.get(env_var_name, "").lower().strip()
    return vtl_log if vtl_log in LOG_LEVELS else False


def is_env_true(env_var_name: str) -> bool:
    """Whether the given environment variable has a truthy value."""
    return os.environ.get(env_var_name, "").lower().strip() in TRUE_STRINGS


def parse_int_env(env_var_name: str, default: int) -> int:
    """Parse the value of the given env variable as a non-negative integer, falling back to `default`."""
    value = os.environ.get(env_var_name, "").strip()
    try:
        return max(int(value), 0) if value else default
    except ValueError:
        return default


# whether to enable verbose debug logging
VTL_LOG = eval_log_type("VTL_LOG")
DEBUG = is_env_true("DEBUG") or VTL_LOG in TRACE_LOG_LEVELS

# default encoding used to convert strings to byte arrays
DEFAULT_ENCODING = "utf-8"

# whether render failures are raised as typed errors instead of being returned as "Error: ..." strings
STRICT_RENDERING = is_env_true("VTL_STRICT_RENDERING")

# whether rendered output that is valid JSON gets re-serialized into its compact form
MINIFY_JSON_OUTPUT = is_env_true("VTL_MINIFY_JSON")

# whether $input.json(..) renders a missing path as the literal "null" (default: empty string)
INPUT_JSON_MISSING_AS_NULL = is_env_true("VTL_INPUT_JSON_MISSING_AS_NULL")

# max number of compiled templates kept in memory (0 disables caching)
TEMPLATE_CACHE_SIZE = parse_int_env("VTL_TEMPLATE_CACHE_SIZE", 128)

# region used to build default $context values, like the domain name
DEFAULT_REGION = os.environ.get("VTL_DEFAULT_REGION", "").strip() or AWS_REGION_US_EAST_1


def is_trace_logging_enabled():
    if VTL_LOG:
        log_level = str(VTL_LOG).upper()
        return log_level.lower() in TRACE_LOG_LEVELS
    return False


LOG = logging.getLogger(__name__)
if is_trace_logging_enabled():
    load_end_time = time.time()
    LOG.debug(
        "Initializing the configuration took %s ms", int((load_end_time - load_start_time) * 1000)
    )
