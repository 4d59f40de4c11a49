"""Split a markdown file into plain and renderable chunks."""

from __future__ import annotations

import logging
from collections.abc import Collection

from mdrender.document.directive import match_directive, parse_render_options
from mdrender.document.fingerprint import recover_rendered_hash
from mdrender.document.models import (
    Chunk,
    ChunkError,
    DirectiveError,
    TemplateError,
)
from mdrender.document.templates import resolve_layout

logger = logging.getLogger(__name__)


def scan_chunks(lines: list[str], languages: Collection[str]) -> list[Chunk]:
    """Partition ``lines`` into ordered, contiguous chunks.

    Lines between renderable blocks become plain chunks that are passed
    through untouched. Joining every chunk's lines gives back ``lines``.
    """
    chunks: list[Chunk] = []
    cursor = 0
    ordinal = 0
    idx = 0
    while idx < len(lines):
        language = match_directive(lines[idx], languages)
        if language is None:
            idx += 1
            continue

        try:
            chunk = build_renderable_chunk(lines, idx, language, floor=cursor)
        except (DirectiveError, TemplateError) as e:
            raise ChunkError(idx + 1, "get renderable chunk", e) from e
        chunk.code_block_index = ordinal
        ordinal += 1

        if chunk.start_line_index > cursor:
            chunks.append(_plain_chunk(lines, cursor, chunk.start_line_index - 1))
        chunks.append(chunk)
        cursor = chunk.end_line_index + 1
        idx = cursor

    if cursor < len(lines):
        chunks.append(_plain_chunk(lines, cursor, len(lines) - 1))

    logger.debug(
        "scanned %d lines into %d chunks (%d renderable)",
        len(lines), len(chunks), ordinal,
    )
    return chunks


def build_renderable_chunk(
    lines: list[str], fence_index: int, language: str, floor: int = 0
) -> Chunk:
    """Build the renderable chunk for the block opened at ``fence_index``."""
    options = parse_render_options(lines[fence_index], language)
    layout = resolve_layout(lines, fence_index, options.mode, floor=floor)

    chunk = Chunk(
        lines=lines[layout.start : layout.end + 1],
        start_line_index=layout.start,
        end_line_index=layout.end,
        is_renderable=True,
        language=language,
        fence_line_index=fence_index,
        code_block_content=lines[fence_index + 1 : layout.close_index],
        code_block_lines=lines[fence_index : layout.close_index + 1],
        image_relative_line_index=layout.image_offset,
        # A custom filename cannot carry the hash, so it goes in a comment.
        has_hash_comment=bool(options.filename),
        render_options=options,
        layout_complete=layout.complete,
    )
    chunk.rendered_hash = recover_rendered_hash(chunk.image_line, options.filename)
    if layout.matched_mode is not None and not layout.complete:
        logger.debug(
            "line %d: block changed from %s to %s layout",
            fence_index + 1, layout.matched_mode.value, options.mode.value,
        )
    return chunk


def _plain_chunk(lines: list[str], start: int, end: int) -> Chunk:
    return Chunk(lines=lines[start : end + 1], start_line_index=start, end_line_index=end)
