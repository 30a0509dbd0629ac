"""
Dispatch of dynamic property access on the objects bound into the template namespace.

Every bound object declares an ``AccessorKind``. Property names that are not regular attributes of the
object are resolved by the ``AccessorRegistry``: the registered ``PropertyAccessor`` entries of that kind
are evaluated in order and the first matching entry wins. The fallback (catch-all) entries of all kinds
are always evaluated after the regular ones, with the ``$context`` fallback last.
"""
import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

LOG = logging.getLogger(__name__)


class AccessorKind(Enum):
    INPUT = "input"
    UTIL = "util"
    CONTEXT = "context"
    IDENTITY = "identity"
    AUTHORIZER = "authorizer"
    CLAIMS = "claims"
    CLIENT_CERT = "clientCert"
    CERT_VALIDITY = "validity"
    ERROR = "error"


# evaluation order of the fallback entries, the $context fallback must come last
FALLBACK_ORDER = (
    AccessorKind.INPUT,
    AccessorKind.UTIL,
    AccessorKind.IDENTITY,
    AccessorKind.AUTHORIZER,
    AccessorKind.CLAIMS,
    AccessorKind.CLIENT_CERT,
    AccessorKind.CERT_VALIDITY,
    AccessorKind.ERROR,
    AccessorKind.CONTEXT,
)


class PropertyAccessor:
    """
    Resolves properties of bound objects of a given kind.

    ``match(name)`` decides whether this accessor handles the property ``name``, ``resolve(binding, name)``
    returns its value. To expose a method, ``resolve`` returns a callable, which is then invoked by the
    template engine with the call arguments.
    """

    kind: AccessorKind
    match: Callable[[str], bool]
    resolve: Callable[[Any, str], Any]
    name: str
    fallback: bool

    def __init__(
        self,
        kind: AccessorKind,
        match: Callable[[str], bool],
        resolve: Callable[[Any, str], Any],
        name: str = None,
        fallback: bool = False,
    ):
        self.kind = kind
        self.match = match
        self.resolve = resolve
        self.name = name or getattr(resolve, "__name__", "accessor")
        self.fallback = fallback

    @classmethod
    def for_names(
        cls, kind: AccessorKind, names: Iterable[str], resolve: Callable[[Any, str], Any], name=None
    ) -> "PropertyAccessor":
        """Create an accessor that matches a fixed set of property names."""
        names = frozenset(names)
        return cls(kind, lambda prop: prop in names, resolve, name=name)

    @classmethod
    def catch_all(
        cls, kind: AccessorKind, resolve: Callable[[Any, str], Any], name=None
    ) -> "PropertyAccessor":
        """Create a fallback accessor that matches any property name of the given kind."""
        return cls(kind, lambda _: True, resolve, name=name, fallback=True)

    def __repr__(self):
        return f"PropertyAccessor({self.kind.value}:{self.name})"


class AccessorRegistry:
    """Ordered collection of property accessors, first match wins."""

    def __init__(self, accessors: Iterable[PropertyAccessor] = None):
        self._accessors: List[PropertyAccessor] = []
        self._fallbacks: List[PropertyAccessor] = []
        for accessor in accessors or []:
            self.register(accessor)

    @property
    def accessors(self) -> List[PropertyAccessor]:
        """All accessors in evaluation order."""
        fallbacks = sorted(self._fallbacks, key=lambda accessor: FALLBACK_ORDER.index(accessor.kind))
        return self._accessors + fallbacks

    def register(self, accessor: PropertyAccessor):
        """Append the accessor to the regular entries, which are all evaluated before any fallback entry."""
        if accessor.fallback:
            self._fallbacks.append(accessor)
        else:
            self._accessors.append(accessor)

    def find(self, kind: AccessorKind, name: str) -> Optional[PropertyAccessor]:
        for accessor in self.accessors:
            if accessor.kind == kind and accessor.match(name):
                return accessor
        return None

    def resolve(self, binding: "VelocityBinding", name: str) -> Any:
        kind = binding.accessor_kind
        accessor = self.find(kind, name)
        if accessor is None:
            raise AttributeError(f"${kind.value} has no property {name!r}")
        LOG.debug("Resolving property %s.%s via %s", kind.value, name, accessor)
        return accessor.resolve(binding, name)


class VelocityBinding:
    """
    Mixin for objects bound into the template namespace. Accessing an attribute that is not defined
    on the object itself is dispatched to the accessor registry.
    """

    accessor_kind: AccessorKind

    def __init__(self, registry: AccessorRegistry):
        self._registry = registry

    def __getattr__(self, name):
        # private/dunder lookups (e.g., by copy or pickle) are never dispatched
        if name.startswith("_"):
            raise AttributeError(name)
        return self._registry.resolve(self, name)
