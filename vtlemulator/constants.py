# strings to indicate truthy values of environment variables
TRUE_STRINGS = ("1", "true", "True")

# log levels accepted by VTL_LOG
LOG_LEVELS = ("trace-internal", "trace", "debug", "info", "warn", "error", "warning")
VTL_LOG_TRACE = "trace"
VTL_LOG_TRACE_INTERNAL = "trace-internal"
TRACE_LOG_LEVELS = [VTL_LOG_TRACE, VTL_LOG_TRACE_INTERNAL]

AWS_REGION_US_EAST_1 = "us-east-1"

# placeholder values exposed via $context when the simulated request does not define them
DEFAULT_AWS_ACCOUNT_ID = "123456789012"
DEFAULT_API_ID = "abc123def4"
DEFAULT_STAGE = "test"
DEFAULT_DEPLOYMENT_ID = "deployment-123"
DEFAULT_RESOURCE_ID = "resource-123"
DEFAULT_RESOURCE_PATH = "/resource"
DEFAULT_PROTOCOL = "HTTP/1.1"
DEFAULT_HTTP_METHOD = "GET"
DEFAULT_REQUEST_PATH = "/"
DEFAULT_PRINCIPAL_ID = "user123"
DEFAULT_SOURCE_IP = "127.0.0.1"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_CALLER = "AIDACKCEVSQ6C2EXAMPLE"
DEFAULT_WAF_RESPONSE_CODE = "WAF_ALLOW"

# date format of $context.requestTime, e.g. "09/Apr/2015:12:34:56 +0000"
REQUEST_TIME_DATE_FORMAT = "%d/%b/%Y:%H:%M:%S %z"

# default pattern of $util.time.nowFormatted()
DEFAULT_TIME_PATTERN = "yyyy-MM-dd HH:mm:ss"

# prefix of error strings returned by the render driver in non-strict mode
RENDER_ERROR_PREFIX = "Error: "
