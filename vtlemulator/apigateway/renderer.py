"""
Render driver: normalizes the simulated request, binds ``$input``, ``$util``, ``$context`` and
``$stageVariables``, renders the mapping template and post-processes the result.
"""
import json
import logging
import threading
from typing import Any, Dict, Mapping, Optional, Union

import airspeed

from vtlemulator import config
from vtlemulator.apigateway.accessors import AccessorRegistry
from vtlemulator.apigateway.models import SimulatedRequest, normalize_request
from vtlemulator.apigateway.templates import ApiGatewayVtlTemplate
from vtlemulator.constants import RENDER_ERROR_PREFIX
from vtlemulator.exceptions import BindingError, TemplateSyntaxError, VtlEmulatorError
from vtlemulator.utils.json import to_json_str
from vtlemulator.utils.strings import long_uid, truncate
from vtlemulator.utils.templating import TemplateCache

LOG = logging.getLogger(__name__)
TRACE_LOG = logging.getLogger("vtlemulator.render.trace")

Request = Union[SimulatedRequest, Mapping[str, Any], None]


class TemplateRenderer:
    """
    Renders API Gateway mapping templates against simulated requests. Each renderer owns a cache of
    parsed templates and an accessor registry, and can be shared between threads.
    """

    def __init__(
        self,
        cache_size: int = None,
        registry: AccessorRegistry = None,
        throw_on_error: bool = None,
        minify_json: bool = None,
    ):
        self.cache = TemplateCache(maxsize=cache_size)
        self.vtl = ApiGatewayVtlTemplate(cache=self.cache, registry=registry)
        self.throw_on_error = config.STRICT_RENDERING if throw_on_error is None else throw_on_error
        self.minify_json = config.MINIFY_JSON_OUTPUT if minify_json is None else minify_json

    @property
    def registry(self) -> AccessorRegistry:
        return self.vtl.registry

    def render(
        self,
        template: str,
        request: Request = None,
        throw_on_error: bool = None,
        minify_json: bool = None,
        preserve_whitespace: bool = False,
        variables: Dict[str, Any] = None,
        json_missing_as_null: bool = None,
    ) -> str:
        """
        Render the given mapping template against the simulated request.

        :param template: the VTL template
        :param request: the simulated request, either a SimulatedRequest or a dict in the format of an
            API Gateway proxy integration event
        :param throw_on_error: raise failures as TemplateSyntaxError/BindingError, instead of returning
            an "Error: <message>" string (defaults to ``VTL_STRICT_RENDERING``)
        :param minify_json: re-serialize results that are valid JSON into their compact form (defaults
            to ``VTL_MINIFY_JSON``)
        :param preserve_whitespace: return the result without trimming leading/trailing whitespace
        :param variables: additional variables available to the template, which never replace the
            built-in `$input`, `$util`, `$context` and `$stageVariables`
        :param json_missing_as_null: render a missing `$input.json(..)` path as "null" instead of ""
            (defaults to ``VTL_INPUT_JSON_MISSING_AS_NULL``)
        :return: the rendered result
        """
        throw_on_error = self.throw_on_error if throw_on_error is None else throw_on_error
        minify_json = self.minify_json if minify_json is None else minify_json
        request_id = long_uid()

        try:
            result = self._render(
                template or "",
                request,
                variables=variables,
                json_missing_as_null=json_missing_as_null,
                request_id=request_id,
            )
        except VtlEmulatorError as e:
            if throw_on_error:
                raise
            LOG.info(
                "Unable to render mapping template (request %s): %s",
                request_id,
                e,
                exc_info=LOG.isEnabledFor(logging.DEBUG),
            )
            return f"{RENDER_ERROR_PREFIX}{e}"

        result = post_process(result, minify_json=minify_json, preserve_whitespace=preserve_whitespace)
        TRACE_LOG.debug(
            "Rendered mapping template (request %s)",
            request_id,
            extra={"template": template, "result": result},
        )
        return result

    def _render(
        self,
        template: str,
        request: Request,
        variables: Optional[Dict[str, Any]],
        json_missing_as_null: Optional[bool],
        request_id: str,
    ) -> str:
        LOG.debug("Rendering mapping template of %s chars: %s", len(template), truncate(template))
        try:
            normalized = normalize_request(request)
            variables = self.vtl.build_variables_mapping(
                normalized,
                variables=variables,
                json_missing_as_null=json_missing_as_null,
                request_id=request_id,
            )
            return self.vtl.render_vtl(template, variables=variables)
        except airspeed.TemplateSyntaxError as e:
            position = (getattr(e, "line", None), getattr(e, "column", None))
            raise TemplateSyntaxError(
                str(e), template_position=position if None not in position else None
            ) from e
        except Exception as e:
            raise BindingError(str(e) or e.__class__.__name__) from e

    def close(self):
        """Release the cached templates of this renderer."""
        self.cache.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def post_process(result: str, minify_json: bool = False, preserve_whitespace: bool = False) -> str:
    """Compact the result if it is valid JSON and minification is requested, otherwise trim it."""
    if minify_json:
        try:
            return to_json_str(json.loads(result))
        except ValueError:
            pass
    return result if preserve_whitespace else result.strip()


_default_renderer: Optional[TemplateRenderer] = None
_default_renderer_mutex = threading.Lock()


def get_default_renderer() -> TemplateRenderer:
    global _default_renderer
    with _default_renderer_mutex:
        if _default_renderer is None:
            _default_renderer = TemplateRenderer()
        return _default_renderer


def reset_default_renderer():
    """Close and discard the renderer used by `render(..)`, it is re-created on next use."""
    global _default_renderer
    with _default_renderer_mutex:
        if _default_renderer is not None:
            _default_renderer.close()
        _default_renderer = None


def render(
    template: str,
    request: Request = None,
    throw_on_error: bool = None,
    minify_json: bool = None,
    preserve_whitespace: bool = False,
    variables: Dict[str, Any] = None,
    json_missing_as_null: bool = None,
) -> str:
    """Render the mapping template against the simulated request, using the default renderer."""
    return get_default_renderer().render(
        template,
        request,
        throw_on_error=throw_on_error,
        minify_json=minify_json,
        preserve_whitespace=preserve_whitespace,
        variables=variables,
        json_missing_as_null=json_missing_as_null,
    )
