import base64
import binascii
import json
import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import quote_plus, unquote_plus

from vtlemulator import config, constants
from vtlemulator.apigateway.accessors import (
    AccessorKind,
    AccessorRegistry,
    PropertyAccessor,
    VelocityBinding,
)
from vtlemulator.apigateway.context import VelocityContext, context_accessors
from vtlemulator.apigateway.jsonpath import NOT_FOUND, evaluate_json_path, evaluate_path
from vtlemulator.apigateway.models import NormalizedContext
from vtlemulator.utils.json import to_json_str
from vtlemulator.utils.strings import base64_decode, long_uid, to_str
from vtlemulator.utils.templating import (
    APIGW_SOURCE,
    ExtendedString,
    JsonDict,
    TemplateCache,
    VelocityUtil,
    VtlTemplate,
    to_template_string,
    to_template_value,
)
from vtlemulator.utils.time import format_java_pattern, now_utc

LOG = logging.getLogger(__name__)

# characters escaped by $util.escapeJavaScript(..), other control characters are escaped as \uXXXX
JS_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\f": "\\f",
    "\b": "\\b",
}
REGEX_JS_ESCAPE = re.compile(r"[\\\"'\x00-\x1f]")


class ParameterGroup(JsonDict):
    """One group of request parameters (path, querystring), `get(..)` returns "" for missing keys."""

    def get(self, key, default=""):
        value = super().get(self.normalize_key(key))
        return default if value is None else value

    @staticmethod
    def normalize_key(key):
        return key


class HeaderGroup(ParameterGroup):
    """Request headers, looked up case-insensitively."""

    def __init__(self, headers: Optional[Dict] = None):
        super().__init__({str(key).lower(): value for key, value in (headers or {}).items()})

    def __missing__(self, key):
        lowered = self.normalize_key(key)
        if lowered != key and lowered in self:
            return self[lowered]
        raise KeyError(key)

    @staticmethod
    def normalize_key(key):
        return str(key).lower() if key is not None else key


class VelocityInput(VelocityBinding):
    """
    Simple class to mimic the behavior of variable '$input' in AWS API Gateway integration
    velocity templates.
    See: http://docs.aws.amazon.com/apigateway/latest/developerguide/api-gateway-mapping-template-reference.html
    """

    accessor_kind = AccessorKind.INPUT

    def __init__(
        self,
        request: NormalizedContext,
        registry: AccessorRegistry,
        json_missing_as_null: bool = None,
    ):
        super().__init__(registry)
        self.request = request
        self.parameters = JsonDict(
            {
                "header": HeaderGroup(request.headers_lower),
                "querystring": ParameterGroup(request.query),
                "path": ParameterGroup(request.path_params),
            }
        )
        if json_missing_as_null is None:
            json_missing_as_null = config.INPUT_JSON_MISSING_AS_NULL
        self.json_missing_as_null = json_missing_as_null

    def path(self, path=None):
        """
        Without argument, return the request path. Otherwise, return the value of the path parameter
        with the given name, or navigate the payload if the argument is a path expression (like
        ``$.items[0]`` or ``items.0``). The payload value is returned as an object, for further
        manipulation in the template.
        """
        if not path:
            return ExtendedString(self.request.path or constants.DEFAULT_REQUEST_PATH)
        path = str(path)
        if not path.startswith("$"):
            if path in self.request.path_params:
                return to_template_string(self.request.path_params[path])
            if "." not in path and "[" not in path:
                return ""
        result = evaluate_path(self.request.parsed_body, path)
        return "" if result is NOT_FOUND else to_template_value(result)

    def json(self, path=None):
        """
        Evaluate the JSONPath expression (``$``, ``$.a.b``, ``$.a[0]``) against the payload and return
        the result as JSON text (e.g., a string value renders with its quotes). Maps and lists are
        returned as template values, which render as JSON but still allow member access after
        ``#set``. A path that does not resolve yields "" (or "null", if configured via
        ``VTL_INPUT_JSON_MISSING_AS_NULL``).
        """
        result = evaluate_json_path(self.request.parsed_body, "$" if path is None else path)
        if result is NOT_FOUND:
            return ExtendedString("null") if self.json_missing_as_null else ExtendedString("")
        if isinstance(result, (dict, list)):
            return to_template_value(result)
        return ExtendedString(to_json_str(result))

    @property
    def body(self):
        return ExtendedString(self.request.raw_body)

    def getBody(self):
        return self.body

    def querystring(self, name=None):
        return self.parameters["querystring"].get(name)

    def header(self, name=None):
        return self.parameters["header"].get(name)

    def headers(self, name=None):
        return self.header(name)

    def method(self):
        return ExtendedString(self.request.http_method or constants.DEFAULT_HTTP_METHOD)

    def params(self, name=None):
        if name is None:
            return self.parameters
        # search order documented by AWS: path, query string, header
        for group in ["path", "querystring", "header"]:
            value = self.parameters[group].get(name, None)
            if value is not None:
                return to_template_string(value)
        return ""

    def size(self):
        body = self.request.parsed_body
        return len(body) if isinstance(body, (list, dict)) else 0

    def all(self):
        """Return a JSON representation of the payload and all request parameters."""
        result = {
            "body": self.request.parsed_body,
            "path": self.request.path_params,
            "querystring": self.request.query,
            "header": self.request.headers_lower,
        }
        return ExtendedString(to_json_str(result))

    def __repr__(self):
        return "$input"


class VelocityTimeUtil:
    """Implementation of '$util.time', based on the current UTC time."""

    def nowEpochSeconds(self):
        return now_utc()

    def nowEpochMilliSeconds(self):
        return now_utc(millis=True)

    def nowFormatted(self, pattern=None):
        return ExtendedString(format_java_pattern(str(pattern or constants.DEFAULT_TIME_PATTERN)))


class VelocityUtilApiGateway(VelocityUtil, VelocityBinding):
    """
    Simple class to mimic the behavior of variable '$util' in AWS API Gateway integration
    velocity templates. None of the functions raise an error for invalid inputs.
    See: http://docs.aws.amazon.com/apigateway/latest/developerguide/api-gateway-mapping-template-reference.html
    """

    accessor_kind = AccessorKind.UTIL

    def __init__(self, registry: AccessorRegistry = None):
        VelocityBinding.__init__(self, registry or create_accessor_registry())
        self.time = VelocityTimeUtil()

    def base64Encode(self, s):
        if s is None:
            return ""
        if not isinstance(s, str):
            s = to_json_str(s)
        encoded_str = s.encode(config.DEFAULT_ENCODING)
        encoded_b64_str = base64.b64encode(encoded_str)
        return ExtendedString(encoded_b64_str.decode(config.DEFAULT_ENCODING))

    def base64Decode(self, s):
        if not s:
            return ""
        if not isinstance(s, str):
            s = to_json_str(s)
        try:
            return ExtendedString(to_str(base64_decode(s), errors="replace"))
        except (binascii.Error, ValueError) as e:
            LOG.debug("Unable to decode base64 string %r: %s", s, e)
            return ""

    def parseJson(self, s):
        if s is None:
            return None
        if not isinstance(s, str):
            return to_template_value(s)
        if not s.strip():
            return None
        try:
            return to_template_value(json.loads(s))
        except ValueError:
            LOG.debug("Unable to parse JSON string: %s", s)
            return None

    def toJson(self, obj):
        try:
            return ExtendedString(to_json_str(obj))
        except (TypeError, ValueError) as e:
            LOG.debug("Unable to serialize object to JSON: %s", e)
            return ExtendedString("null")

    def urlEncode(self, s):
        if s is None:
            return ""
        return ExtendedString(quote_plus(to_template_string(s)))

    def urlDecode(self, s):
        if s is None:
            return ""
        return ExtendedString(unquote_plus(to_template_string(s)))

    def escapeJavaScript(self, s):
        if s is None:
            return ""
        if not isinstance(s, str):
            s = to_json_str(s)
        return ExtendedString(REGEX_JS_ESCAPE.sub(_escape_js_char, s))

    def randomUUID(self):
        return ExtendedString(long_uid())

    def matches(self, s, pattern):
        if s is None or pattern is None:
            return False
        try:
            return re.search(str(pattern), to_template_string(s)) is not None
        except re.error:
            LOG.debug("Invalid regular expression: %s", pattern)
            return False

    def __repr__(self):
        return "$util"


def _escape_js_char(match: re.Match) -> str:
    char = match.group(0)
    return JS_ESCAPES.get(char) or "\\u%04x" % ord(char)


def _resolve_body_property(binding: VelocityInput, name: str) -> Any:
    body = binding.request.parsed_body
    return to_template_value(body.get(name)) if isinstance(body, dict) else None


def _resolve_nothing(binding: VelocityBinding, name: str) -> Any:
    return None


def create_accessor_registry() -> AccessorRegistry:
    """Create a registry with the default accessors of $input, $util and $context."""
    registry = AccessorRegistry(context_accessors())
    # unknown properties of $input resolve to the top-level attributes of the payload
    registry.register(
        PropertyAccessor.catch_all(AccessorKind.INPUT, _resolve_body_property, name="input.fallback")
    )
    registry.register(
        PropertyAccessor.catch_all(AccessorKind.UTIL, _resolve_nothing, name="util.fallback")
    )
    return registry


class ApiGatewayVtlTemplate(VtlTemplate):
    """Util class for rendering VTL templates with API Gateway specific extensions"""

    def __init__(self, cache: TemplateCache = None, registry: AccessorRegistry = None):
        super().__init__(cache=cache)
        self.registry = registry or create_accessor_registry()

    def build_variables_mapping(
        self,
        request: NormalizedContext,
        variables: Dict[str, Any] = None,
        json_missing_as_null: bool = None,
        request_id: str = None,
    ) -> Dict[str, Any]:
        """
        Build the variables available to the template: `$input`, `$util`, `$context` and
        `$stageVariables`, plus the given additional `variables` (which never replace the former).
        """
        mapping = dict(variables or {})
        mapping.update(
            {
                "input": VelocityInput(
                    request, self.registry, json_missing_as_null=json_missing_as_null
                ),
                "util": VelocityUtilApiGateway(self.registry),
                "context": VelocityContext(request, self.registry, request_id=request_id),
                "stageVariables": request.stage_variables,
            }
        )
        return mapping

    def prepare_namespace(self, variables, source=APIGW_SOURCE) -> Dict[str, Any]:
        return super().prepare_namespace(variables, source=source)
