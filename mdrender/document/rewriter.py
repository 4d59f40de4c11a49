"""Reassemble chunks and write documents back only when they changed."""

from __future__ import annotations

import logging
from pathlib import Path

from mdrender.document.models import Chunk

logger = logging.getLogger(__name__)


def read_document(path: str | Path) -> str:
    """Read a document without translating its line endings."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_document(path: str | Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only; ``"\\n".join`` of the result gives back ``text``."""
    return text.split("\n")


def assemble(chunks: list[Chunk]) -> str:
    lines: list[str] = []
    for chunk in chunks:
        lines.extend(chunk.lines)
    return "\n".join(lines)


def write_if_changed(path: str | Path, original: str, updated: str) -> bool:
    """Write ``updated`` to ``path`` unless it equals ``original``.

    Returns True if the file was written.
    """
    if updated == original:
        logger.debug("%s unchanged, not writing", path)
        return False
    write_document(path, updated)
    logger.info("wrote %s (%d bytes)", path, len(updated.encode("utf-8")))
    return True
