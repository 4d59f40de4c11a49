"""Document subsystem: chunking, layouts, change detection and rewriting."""

from mdrender.document.directive import match_directive, parse_render_options
from mdrender.document.fingerprint import (
    build_hash_comment,
    fingerprint,
    recover_rendered_hash,
    should_render,
)
from mdrender.document.models import (
    Chunk,
    ChunkError,
    DirectiveError,
    DocumentError,
    RenderMode,
    RenderOptions,
    TemplateError,
)
from mdrender.document.rewriter import (
    assemble,
    read_document,
    split_lines,
    write_document,
    write_if_changed,
)
from mdrender.document.scanner import scan_chunks
from mdrender.document.templates import LAYOUTS, build_layout, resolve_layout

__all__ = [
    "Chunk",
    "ChunkError",
    "DirectiveError",
    "DocumentError",
    "LAYOUTS",
    "RenderMode",
    "RenderOptions",
    "TemplateError",
    "assemble",
    "build_hash_comment",
    "build_layout",
    "fingerprint",
    "match_directive",
    "parse_render_options",
    "read_document",
    "recover_rendered_hash",
    "resolve_layout",
    "scan_chunks",
    "should_render",
    "split_lines",
    "write_document",
    "write_if_changed",
]
