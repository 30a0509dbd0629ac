import logging
import re
import threading
from typing import Any, Dict, Optional

import airspeed
from cachetools import LRUCache

from vtlemulator import config
from vtlemulator.utils.json import to_json_str
from vtlemulator.utils.patch import patch

LOG = logging.getLogger(__name__)

SOURCE_NAMESPACE_VARIABLE = "__VTL_EMULATOR_SOURCE__"
APIGW_SOURCE = "APIGW"

# inserted between "#" and "$" to enable syntax like "test#${foo.bar}", removed again after rendering
EMPTY_PLACEHOLDER = " __pLaCe-HoLdEr__ "


@patch(airspeed.operators.VariableExpression.calculate)
def calculate(fn, self, namespace, loader, global_namespace=None):
    result = fn(self, namespace, loader, global_namespace)

    if global_namespace is None:
        global_namespace = namespace
    if (source := global_namespace.top().get(SOURCE_NAMESPACE_VARIABLE)) and source == APIGW_SOURCE:
        # Apigateway does not return None but returns an empty string instead
        result = "" if result is None else result

    return result


class ExtendedString(str):
    """String type handed to templates, extended with the Java string methods used in VTL."""

    def toString(self, *_, **__):
        return self

    def trim(self, *args, **kwargs):
        return ExtendedString(self.strip(*args, **kwargs))

    def toLowerCase(self, *_, **__):
        return ExtendedString(self.lower())

    def toUpperCase(self, *_, **__):
        return ExtendedString(self.upper())

    def contains(self, *args):
        return self.find(*args) >= 0

    def replaceAll(self, regex, replacement):
        escaped_replacement = replacement.replace("$", "\\")
        return ExtendedString(re.sub(regex, escaped_replacement, self))

    def length(self):
        return len(self)

    def startsWith(self, prefix):
        return self.startswith(prefix)

    def endsWith(self, suffix):
        return self.endswith(suffix)

    def equals(self, other):
        return other is not None and str(self) == str(other)

    def equalsIgnoreCase(self, other):
        return other is not None and self.lower() == str(other).lower()

    def isEmpty(self):
        return len(self) == 0

    def indexOf(self, sub):
        return self.find(sub)

    def substring(self, begin, end=None):
        return ExtendedString(self[begin:end])


class JsonDict(dict):
    """
    Map type handed to templates. Renders as compact JSON and supports the Java map methods
    commonly used in mapping templates, e.g. ``$map.keySet()`` or ``$map.containsKey("k")``.
    Keys can also be accessed as attributes (``$map.key``).
    """

    def __init__(self, *args, **kwargs):
        super().__init__()
        for key, value in dict(*args, **kwargs).items():
            dict.__setitem__(self, key, to_template_value(value))

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)

    def __setitem__(self, key, value):
        super().__setitem__(key, to_template_value(value))

    def __str__(self):
        return to_json_str(self)

    def keySet(self):
        return JsonList(self.keys())

    def entrySet(self):
        return JsonList({"key": key, "value": value} for key, value in self.items())

    def values(self):
        return JsonList(super().values())

    def containsKey(self, key):
        return key in self

    def put(self, key, value):
        existing = self.get(key)
        self[key] = value
        return existing

    def putAll(self, values):
        for key, value in (values or {}).items():
            self[key] = value

    def remove(self, key):
        return self.pop(key, None)

    def size(self):
        return len(self)

    def isEmpty(self):
        return len(self) == 0


class JsonList(list):
    """List type handed to templates. Renders as compact JSON and supports Java list methods."""

    def __init__(self, items=()):
        super().__init__(to_template_value(item) for item in items)

    def __str__(self):
        return to_json_str(self)

    def size(self):
        return len(self)

    def isEmpty(self):
        return len(self) == 0

    def contains(self, item):
        return item in self

    def add(self, item):
        self.append(to_template_value(item))
        return True

    def get(self, index):
        try:
            return self[int(index)]
        except (IndexError, TypeError, ValueError):
            return None


def to_template_value(value: Any) -> Any:
    """
    Convert the given (JSON) value into the types handed to templates: strings become ExtendedString,
    dicts and lists become JsonDict / JsonList (recursively). Other values are returned unchanged.
    Cyclic structures are not supported.
    """
    if isinstance(value, (ExtendedString, JsonDict, JsonList)):
        return value
    if isinstance(value, str):
        return ExtendedString(value)
    if isinstance(value, dict):
        return JsonDict(value)
    if isinstance(value, (list, tuple)):
        return JsonList(value)
    return value


def to_template_string(value: Any) -> ExtendedString:
    """Stringify the given value the way it renders in a template (booleans lower-case, maps/lists as JSON)."""
    if value is None:
        return ExtendedString("")
    if isinstance(value, bool):
        return ExtendedString(str(value).lower())
    if isinstance(value, (dict, list)):
        return ExtendedString(to_json_str(value))
    return ExtendedString(value)


class VelocityUtil:
    """
    Simple class to mimic the behavior of variable '$util' in AWS velocity templates.

    This class defines basic shared functions, which can be overwritten/extended by
    subclasses (e.g., for API Gateway).
    """

    def quiet(self, *args, **kwargs):
        """No-op util function, often used as wrapper around other functions to suppress output"""
        pass

    def qr(self, *args, **kwargs):
        self.quiet(*args, **kwargs)


class TemplateCache:
    """
    Memoizes parsed ``airspeed.Template`` instances by template text. Templates are parsed lazily by the
    engine on first use, so a cached instance skips parsing for all subsequent renders.
    A ``maxsize`` of 0 disables caching.
    """

    def __init__(self, maxsize: Optional[int] = None):
        maxsize = config.TEMPLATE_CACHE_SIZE if maxsize is None else maxsize
        self.maxsize = maxsize
        self._templates = LRUCache(maxsize=maxsize) if maxsize > 0 else None
        self._mutex = threading.RLock()

    def get(self, template: str) -> airspeed.Template:
        if self._templates is None:
            return airspeed.Template(template)
        with self._mutex:
            compiled = self._templates.get(template)
            if compiled is None:
                compiled = self._templates[template] = airspeed.Template(template)
            return compiled

    def clear(self):
        with self._mutex:
            if self._templates is not None:
                self._templates.clear()

    def __len__(self):
        return len(self._templates) if self._templates is not None else 0


class VtlTemplate:
    """Utility class for rendering Velocity templates"""

    def __init__(self, cache: Optional[TemplateCache] = None):
        self.cache = cache

    def render_vtl(self, template: str, variables: Dict) -> str:
        """
        Render the given VTL template against the dict of variables. Maps, lists and strings in
        `variables` are converted to template values (see `to_template_value`), so the passed
        objects are not modified by the template.
        :param template: the template string
        :param variables: dict of variables available to the template
        :return: the rendered template string value
        """
        if variables is None:
            variables = {}

        if not template:
            return template

        template = self.preprocess(template)

        # prepare and render template
        t = self.cache.get(template) if self.cache else airspeed.Template(template)
        namespace = self.prepare_namespace(variables)
        rendered_template = t.merge(namespace)

        # revert temporary changes from the fixes in preprocess(..)
        rendered_template = rendered_template.replace(EMPTY_PLACEHOLDER, "")
        return rendered_template

    @staticmethod
    def preprocess(template: str) -> str:
        # fix "#set" commands
        template = re.sub(r"(^|\n)#\s+set(.*)", r"\1#set\2", template, flags=re.MULTILINE)

        # enable syntax like "test#${foo.bar}"
        template = re.sub(
            r"([^\s]+)#\$({)?(.*)",
            r"\1#%s$\2\3" % EMPTY_PLACEHOLDER,
            template,
            flags=re.MULTILINE,
        )
        return template

    def prepare_namespace(self, variables: Dict[str, Any], source: str = "") -> Dict:
        namespace = {key: to_template_value(value) for key, value in (variables or {}).items()}
        namespace.setdefault("context", JsonDict())
        if not namespace.get("util"):
            namespace["util"] = VelocityUtil()
        namespace[SOURCE_NAMESPACE_VARIABLE] = source
        return namespace
