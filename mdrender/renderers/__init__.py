"""Renderer subsystem: external backends that turn diagram source into images."""

from mdrender.renderers.invoker import (
    build_markdown_image,
    render_chunk,
    resolve_extension,
    run_backend,
)
from mdrender.renderers.models import (
    RenderError,
    RendererBackend,
    UnsupportedLanguageError,
)
from mdrender.renderers.registry import (
    get_backend,
    register_backend,
    supported_languages,
)

__all__ = [
    "RenderError",
    "RendererBackend",
    "UnsupportedLanguageError",
    "build_markdown_image",
    "get_backend",
    "register_backend",
    "render_chunk",
    "resolve_extension",
    "run_backend",
    "supported_languages",
]
