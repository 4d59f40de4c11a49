"""Registry of rendering backends, keyed by fence language."""

from __future__ import annotations

from mdrender.renderers.models import RendererBackend, UnsupportedLanguageError

_BACKEND_MAP: dict[str, RendererBackend] = {
    "dot": RendererBackend(
        language="dot",
        executable="dot",
        extensions=("svg", "png"),
        format_flags={"svg": "-Tsvg", "png": "-Tpng"},
    ),
    "plantuml": RendererBackend(
        language="plantuml",
        executable="plantuml",
        extensions=("svg", "png"),
        format_flags={"svg": "-tsvg", "png": "-tpng"},
        extra_args=("-pipe",),
    ),
    "pikchr": RendererBackend(
        language="pikchr",
        executable="pikchr",
        extensions=("svg",),
        extra_args=("--svg-only", "-"),
    ),
}


def register_backend(backend: RendererBackend) -> None:
    """Add or replace the backend for ``backend.language``."""
    _BACKEND_MAP[backend.language] = backend


def get_backend(language: str) -> RendererBackend:
    backend = _BACKEND_MAP.get(language)
    if backend is None:
        raise UnsupportedLanguageError(language, supported_languages())
    return backend


def supported_languages() -> list[str]:
    return sorted(_BACKEND_MAP)
