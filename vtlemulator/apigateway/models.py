import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from vtlemulator.exceptions import InputParseError
from vtlemulator.utils.json import to_json_str
from vtlemulator.utils.strings import to_str

LOG = logging.getLogger(__name__)

# type definition for request bodies (raw JSON string, or already parsed payload)
RequestBody = Union[str, bytes, Dict, list, int, float, bool, None]


class SimulatedRequest:
    """
    Simulated API Gateway request, following the shape of a Lambda proxy integration event
    (``httpMethod``, ``path``, ``headers``, ``queryStringParameters``, ``pathParameters``, ``body``,
    ``stageVariables``, ``requestContext``). All fields are optional.
    """

    http_method: Optional[str]
    path: Optional[str]
    headers: Optional[Dict[str, str]]
    query_string_parameters: Optional[Dict[str, str]]
    path_parameters: Optional[Dict[str, str]]
    body: RequestBody
    stage_variables: Optional[Dict[str, str]]
    request_context: Optional[Dict[str, Any]]

    def __init__(
        self,
        http_method: str = None,
        path: str = None,
        headers: Dict[str, str] = None,
        query_string_parameters: Dict[str, str] = None,
        path_parameters: Dict[str, str] = None,
        body: RequestBody = None,
        stage_variables: Dict[str, str] = None,
        request_context: Dict[str, Any] = None,
    ):
        self.http_method = http_method
        self.path = path
        self.headers = headers
        self.query_string_parameters = query_string_parameters
        self.path_parameters = path_parameters
        self.body = body
        self.stage_variables = stage_variables
        self.request_context = request_context

    @classmethod
    def from_event(cls, event: Optional[Mapping[str, Any]]) -> "SimulatedRequest":
        """Create a request from a dict in the format of an API Gateway proxy integration event."""
        event = event or {}
        return cls(
            http_method=event.get("httpMethod"),
            path=event.get("path"),
            headers=event.get("headers"),
            query_string_parameters=event.get("queryStringParameters"),
            path_parameters=event.get("pathParameters"),
            body=event.get("body"),
            stage_variables=event.get("stageVariables"),
            request_context=event.get("requestContext"),
        )

    def __repr__(self):
        return f"SimulatedRequest({self.http_method} {self.path})"


class NormalizedContext:
    """Canonical, read-only view of a SimulatedRequest, created once per render call."""

    http_method: Optional[str]
    path: Optional[str]
    # header names are lower-cased, values are passed through unchanged
    headers_lower: Dict[str, Any]
    query: Dict[str, Any]
    path_params: Dict[str, Any]
    # parsed JSON payload ({} if the body is absent or not valid JSON)
    parsed_body: Any
    # original payload, used verbatim for $input.body
    raw_body: str
    stage_variables: Dict[str, Any]
    request_context: Dict[str, Any]

    def __init__(
        self,
        http_method: str = None,
        path: str = None,
        headers_lower: Dict[str, Any] = None,
        query: Dict[str, Any] = None,
        path_params: Dict[str, Any] = None,
        parsed_body: Any = None,
        raw_body: str = "",
        stage_variables: Dict[str, Any] = None,
        request_context: Dict[str, Any] = None,
    ):
        self.http_method = http_method
        self.path = path
        self.headers_lower = {} if headers_lower is None else headers_lower
        self.query = {} if query is None else query
        self.path_params = {} if path_params is None else path_params
        self.parsed_body = {} if parsed_body is None else parsed_body
        self.raw_body = raw_body
        self.stage_variables = {} if stage_variables is None else stage_variables
        self.request_context = {} if request_context is None else request_context


def normalize_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in _as_dict(headers, "headers").items()}


def parse_request_body(body: RequestBody, strict: bool = False) -> Tuple[Any, str]:
    """
    Return a tuple ``(parsed_body, raw_body)`` for the given request body. Dicts, lists and other
    non-string values are used as-is (their raw form is the compact JSON serialization), strings are
    parsed as JSON. A string that is not valid JSON yields an empty object, unless ``strict`` is set.

    :raises InputParseError: if ``strict`` is set and the body is not valid JSON
    """
    if body is None:
        return {}, ""
    if isinstance(body, bytes):
        body = to_str(body, errors="replace")
    if not isinstance(body, str):
        return body, to_json_str(body)
    try:
        return json.loads(body), body
    except ValueError as e:
        if strict:
            raise InputParseError(f"Request body is not valid JSON: {e}", body=body) from e
        LOG.debug("Unable to parse request body as JSON, using empty object: %s", e)
        return {}, body


def normalize_request(request: Union[SimulatedRequest, Mapping[str, Any], None]) -> NormalizedContext:
    """Turn a raw simulated request (or proxy event dict) into a NormalizedContext, without modifying it."""
    if not isinstance(request, SimulatedRequest):
        request = SimulatedRequest.from_event(request)

    parsed_body, raw_body = parse_request_body(request.body)
    return NormalizedContext(
        http_method=request.http_method,
        path=request.path,
        headers_lower=normalize_headers(request.headers),
        query=_as_dict(request.query_string_parameters, "queryStringParameters"),
        path_params=_as_dict(request.path_parameters, "pathParameters"),
        parsed_body=parsed_body,
        raw_body=raw_body,
        stage_variables=_as_dict(request.stage_variables, "stageVariables"),
        request_context=_as_dict(request.request_context, "requestContext"),
    )


def _as_dict(value: Optional[Mapping], name: str) -> Dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        LOG.debug("Ignoring request attribute %s of unexpected type %s", name, type(value))
        return {}
    return dict(value)
