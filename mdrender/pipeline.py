"""Per-file render pipeline: scan, detect changes, render, rewrite."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from pathlib import Path

from pydantic import BaseModel, Field

from mdrender.config.models import MdRenderConfig
from mdrender.document.fingerprint import should_render
from mdrender.document.models import Chunk, ChunkError, DocumentError
from mdrender.document.rewriter import (
    assemble,
    read_document,
    split_lines,
    write_if_changed,
)
from mdrender.document.scanner import scan_chunks
from mdrender.renderers.invoker import render_chunk
from mdrender.renderers.models import RenderError, UnsupportedLanguageError
from mdrender.renderers.registry import get_backend

logger = logging.getLogger(__name__)


class ProcessResult(BaseModel):
    """Outcome of processing one markdown file."""

    path: str
    rendered: list[str] = Field(default_factory=list)
    changed: bool = False


class StaleBlock(BaseModel):
    """A renderable block whose image is missing or out of date."""

    path: str
    line: int
    language: str
    filename: str
    current_hash: str
    recorded_hash: str = ""


def validate_languages(languages: Collection[str]) -> None:
    """Check that there is something to render and a backend for each language.

    Raises ValueError for an empty collection and UnsupportedLanguageError
    (also a ValueError) for the first language without a backend.
    """
    if not languages:
        raise ValueError("no languages to render")
    for language in languages:
        get_backend(language)


def _scan(path: Path, languages: Collection[str]) -> tuple[str, list[Chunk]]:
    if not path.is_file():
        raise DocumentError(str(path), "read file", FileNotFoundError(f"no such file: {path}"))
    try:
        original = read_document(path)
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(str(path), "read file", e) from e
    try:
        chunks = scan_chunks(split_lines(original), languages)
    except ChunkError as e:
        raise DocumentError(str(path), "scan", e) from e
    return original, chunks


def process_file(path: str | Path, config: MdRenderConfig) -> ProcessResult:
    """Render every stale block in one file and rewrite it if anything changed."""
    path = Path(path)
    render_cfg = config.render
    original, chunks = _scan(path, render_cfg.languages)
    output_dir = Path(render_cfg.output_dir) if render_cfg.output_dir else path.parent

    result = ProcessResult(path=str(path))
    for chunk in chunks:
        if not should_render(chunk):
            if chunk.is_renderable:
                logger.debug("[%s:%d] up to date", path, chunk.fence_line_index + 1)
            continue
        line = chunk.fence_line_index + 1
        try:
            filename = render_chunk(
                chunk,
                output_dir,
                link_prefix=render_cfg.link_prefix,
                executables=config.executables,
            )
        except (RenderError, UnsupportedLanguageError) as e:
            raise DocumentError(str(path), f"line {line}: render chunk", e) from e
        logger.info("[%s:%d] Rendered %s", path, line, filename)
        result.rendered.append(filename)

    try:
        result.changed = write_if_changed(path, original, assemble(chunks))
    except OSError as e:
        raise DocumentError(str(path), "write file", e) from e
    return result


def process_files(paths: Iterable[str | Path], config: MdRenderConfig) -> list[ProcessResult]:
    """Process files in order, stopping at the first failure.

    Files processed before the failure keep their changes.
    """
    validate_languages(config.render.languages)
    results: list[ProcessResult] = []
    for path in paths:
        results.append(process_file(path, config))
    return results


def check_file(path: str | Path, languages: Collection[str]) -> list[StaleBlock]:
    """Report blocks that would be rendered, without rendering or writing."""
    path = Path(path)
    _, chunks = _scan(path, languages)
    stale: list[StaleBlock] = []
    for chunk in chunks:
        if not should_render(chunk):
            continue
        stale.append(StaleBlock(
            path=str(path),
            line=chunk.fence_line_index + 1,
            language=chunk.language,
            filename=chunk.output_filename(),
            current_hash=chunk.hash_content(),
            recorded_hash=chunk.rendered_hash,
        ))
    return stale
