"""
Implementation of the ``$context`` variable. Values supplied in the request context take precedence,
documented fields fall back to static stand-in values, and any other property resolves to ``""``.
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type, Union

from vtlemulator import config, constants
from vtlemulator.apigateway.accessors import (
    AccessorKind,
    AccessorRegistry,
    PropertyAccessor,
    VelocityBinding,
)
from vtlemulator.apigateway.models import NormalizedContext
from vtlemulator.utils.strings import long_uid
from vtlemulator.utils.templating import JsonDict, to_template_string, to_template_value

# default of a documented field, either a static value or a function of the map it is resolved on
FieldDefault = Union[Any, Callable[["ContextMap"], Any]]


class ContextMap(VelocityBinding, JsonDict):
    """
    Map bound into the template as (part of) ``$context``. Its items are the values supplied in the
    request, which is also what ``keySet()`` returns and what the map renders to. Property access is
    dispatched to the accessor registry, so documented fields and unknown properties never fail.
    """

    # documented scalar fields of this map, with their defaults
    defaults: Dict[str, FieldDefault] = {}
    # documented fields that are maps themselves
    nested_types: Dict[str, Type["ContextMap"]] = {}

    def __init__(self, values: Optional[Dict], registry: AccessorRegistry, root: "VelocityContext" = None):
        values = values if isinstance(values, dict) else {}
        # empty values count as absent, so that documented fields fall back to their defaults
        JsonDict.__init__(self, {key: value for key, value in values.items() if not _is_empty(value)})
        VelocityBinding.__init__(self, registry)
        self._root = root if root is not None else self
        for name in self.nested_types:
            if isinstance(dict.get(self, name), dict):
                resolve_nested(self, name)

    def __missing__(self, key):
        # item lookups are used by the engine when assigning nested values, e.g. #set($context.a.b = 1)
        if not isinstance(key, str) or key.startswith("_"):
            raise KeyError(key)
        if key in vars(self):
            return vars(self)[key]
        return self._registry.resolve(self, key)

    def supplied(self, name: str) -> Any:
        """Return the value supplied for the given name, or None if it is absent or empty."""
        value = dict.get(self, name)
        return None if _is_empty(value) else value


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


class CertValidityContext(ContextMap):
    accessor_kind = AccessorKind.CERT_VALIDITY
    defaults = {
        "notBefore": "Jan 01 00:00:00 2023 GMT",
        "notAfter": "Jan 01 00:00:00 2024 GMT",
    }


class ClientCertContext(ContextMap):
    accessor_kind = AccessorKind.CLIENT_CERT
    defaults = {
        "clientCertPem": (
            "-----BEGIN CERTIFICATE-----\n"
            "MIIDXTCCAkWgAwIBAgIJAKoK/OvK5tYzMA0GCSqGSIb3DQEBCwUAMEUxCzAJBgNV\n"
            "-----END CERTIFICATE-----"
        ),
        "subjectDN": "CN=example.com, O=Example Corp, C=US",
        "issuerDN": "CN=Example CA, O=Example Corp, C=US",
        "serialNumber": "1234567890123456789012345678901234567890",
    }
    nested_types = {"validity": CertValidityContext}


class IdentityContext(ContextMap):
    accessor_kind = AccessorKind.IDENTITY
    defaults = {
        "accountId": lambda identity: identity._root.accountId,
        "apiKey": "",
        "apiKeyId": "",
        "caller": constants.DEFAULT_CALLER,
        "cognitoAuthenticationProvider": (
            "cognito-idp.us-east-1.amazonaws.com/us-east-1_example,"
            "cognito-idp.us-east-1.amazonaws.com/us-east-1_example:CognitoSignIn:user123"
        ),
        "cognitoAuthenticationType": "authenticated",
        "cognitoIdentityId": "us-east-1:12345678-1234-1234-1234-123456789012",
        "cognitoIdentityPoolId": "us-east-1:12345678-1234-1234-1234-123456789012",
        "principalOrgId": "o-1234567890",
        "sourceIp": constants.DEFAULT_SOURCE_IP,
        "user": constants.DEFAULT_CALLER,
        "userAgent": lambda identity: identity._root._request.headers_lower.get("user-agent")
        or constants.DEFAULT_USER_AGENT,
        "userArn": lambda identity: f"arn:aws:iam::{identity.accountId}:user/example-user",
        "vpcId": "vpc-12345678",
        "vpceId": "vpce-12345678",
    }
    nested_types = {"clientCert": ClientCertContext}


class ClaimsContext(ContextMap):
    """Claims of a Cognito authorizer, arbitrary keys are looked up dynamically."""

    accessor_kind = AccessorKind.CLAIMS


class AuthorizerContext(ContextMap):
    accessor_kind = AccessorKind.AUTHORIZER
    defaults = {"principalId": constants.DEFAULT_PRINCIPAL_ID}
    nested_types = {"claims": ClaimsContext}


class ErrorContext(ContextMap):
    accessor_kind = AccessorKind.ERROR
    defaults = {
        "message": "Internal server error",
        "messageString": '"Internal server error"',
        "responseType": "DEFAULT_5XX",
        "validationErrorString": "Validation error: Invalid parameter value",
    }


class VelocityContext(ContextMap):
    """
    Simple class to mimic the behavior of variable '$context' in AWS API Gateway integration
    velocity templates.
    See: https://docs.aws.amazon.com/apigateway/latest/developerguide/api-gateway-mapping-template-reference.html#context-variable-reference
    """

    accessor_kind = AccessorKind.CONTEXT
    defaults = {
        "accountId": constants.DEFAULT_AWS_ACCOUNT_ID,
        "apiId": constants.DEFAULT_API_ID,
        "requestId": lambda ctx: ctx._request_id,
        "extendedRequestId": lambda ctx: ctx._request_id,
        "awsEndpointRequestId": lambda ctx: ctx.extendedRequestId,
        "httpMethod": lambda ctx: ctx._request.http_method or constants.DEFAULT_HTTP_METHOD,
        "path": lambda ctx: ctx._request.path or f"/{ctx.stage}{ctx.resourcePath}",
        "stage": constants.DEFAULT_STAGE,
        "deploymentId": constants.DEFAULT_DEPLOYMENT_ID,
        "domainName": lambda ctx: f"{ctx.apiId}.execute-api.{ctx._region}.amazonaws.com",
        "domainPrefix": lambda ctx: ctx.apiId,
        "protocol": constants.DEFAULT_PROTOCOL,
        "resourceId": constants.DEFAULT_RESOURCE_ID,
        "resourcePath": constants.DEFAULT_RESOURCE_PATH,
        "requestTime": lambda ctx: ctx._request_time.strftime(constants.REQUEST_TIME_DATE_FORMAT),
        "requestTimeEpoch": lambda ctx: int(ctx._request_time.timestamp() * 1000),
        "isCanaryRequest": False,
        "wafResponseCode": constants.DEFAULT_WAF_RESPONSE_CODE,
        "webaclArn": lambda ctx: (
            f"arn:aws:wafv2:{ctx._region}:{ctx.accountId}:regional/webacl/test-webacl/"
            "12345678-1234-1234-1234-123456789012"
        ),
    }
    nested_types = {
        "identity": IdentityContext,
        "authorizer": AuthorizerContext,
        "error": ErrorContext,
    }

    def __init__(
        self,
        request: NormalizedContext,
        registry: AccessorRegistry,
        request_id: str = None,
        request_time: datetime = None,
        region: str = None,
    ):
        super().__init__(request.request_context, registry)
        self._request = request
        self._request_id = request_id or long_uid()
        self._request_time = request_time or datetime.now(tz=timezone.utc)
        self._region = region or config.DEFAULT_REGION
        # overrides can be assigned by the template, e.g. #set($context.responseOverride.status = 400)
        self.requestOverride = JsonDict({"header": {}, "path": {}, "querystring": {}})
        self.responseOverride = JsonDict({"header": {}})

    def __repr__(self):
        return "$context"


def resolve_field(binding: ContextMap, name: str) -> Any:
    value = binding.supplied(name)
    if value is not None:
        return value if isinstance(value, (dict, list)) else to_template_string(value)
    default = binding.defaults[name]
    return to_template_value(default(binding) if callable(default) else default)


def resolve_nested(binding: ContextMap, name: str) -> ContextMap:
    supplied = binding.supplied(name)
    nested = binding.nested_types[name](supplied, binding._registry, root=binding._root)
    # keep the instance, so that values assigned by the template are retained
    binding.__dict__[name] = nested
    if isinstance(supplied, dict):
        # the engine looks up items before attributes, both resolve to the same map
        dict.__setitem__(binding, name, nested)
    return nested


def resolve_supplied(binding: ContextMap, name: str) -> Any:
    value = binding.supplied(name)
    if value is None:
        return ""
    return value if isinstance(value, (dict, list)) else to_template_string(value)


CONTEXT_MAP_TYPES: List[Type[ContextMap]] = [
    VelocityContext,
    IdentityContext,
    ClientCertContext,
    CertValidityContext,
    AuthorizerContext,
    ClaimsContext,
    ErrorContext,
]


def context_accessors() -> List[PropertyAccessor]:
    """Return the accessors resolving the documented fields and the fallbacks of all $context maps."""
    result = []
    for map_type in CONTEXT_MAP_TYPES:
        kind = map_type.accessor_kind
        if map_type.defaults:
            result.append(
                PropertyAccessor.for_names(
                    kind, map_type.defaults, resolve_field, name=f"{kind.value}.fields"
                )
            )
        if map_type.nested_types:
            result.append(
                PropertyAccessor.for_names(
                    kind, map_type.nested_types, resolve_nested, name=f"{kind.value}.nested"
                )
            )
        result.append(
            PropertyAccessor.catch_all(kind, resolve_supplied, name=f"{kind.value}.fallback")
        )
    return result
