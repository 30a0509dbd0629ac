import pytest

from vtlemulator.apigateway.renderer import TemplateRenderer, reset_default_renderer


@pytest.fixture
def renderer():
    """A non-strict renderer that returns results unminified, closed after the test."""
    _renderer = TemplateRenderer(throw_on_error=False, minify_json=False)
    yield _renderer
    _renderer.close()


@pytest.fixture
def strict_renderer():
    _renderer = TemplateRenderer(throw_on_error=True, minify_json=False)
    yield _renderer
    _renderer.close()


@pytest.fixture(autouse=True)
def reset_renderer():
    """Discard the default renderer after each test, so config changes made via monkeypatch take effect."""
    yield
    reset_default_renderer()
