"""Change detection for renderable chunks.

Nothing is cached outside the document: the hash of the source a block was
last rendered from is read back from its image line, either from a
generated ``render-<md5>.<ext>`` filename or from a ``<!-- hash:... -->``
comment.
"""

from __future__ import annotations

import hashlib
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mdrender.document.models import Chunk

SHORT_HASH_LENGTH = 8

# Match: ![render-db6d08bb022ed12c2cc74d86d7a4707d.svg](/prefix/render-db6d08bb022ed12c2cc74d86d7a4707d.svg)
# Capture group on the hash.
_RENDERED_IMAGE_RE = re.compile(
    r"!\[render-[0-9a-f]{32}\.[^\]]+\]\([^)]*render-(?P<hash>[0-9a-f]{32})\.[^)]+\)"
)
_HASH_COMMENT_RE = re.compile(r"<!-- hash:(?P<hash>[0-9a-f]{8}) -->")


def fingerprint(content_lines: list[str]) -> str:
    return hashlib.md5("\n".join(content_lines).encode("utf-8")).hexdigest()


def build_hash_comment(short_hash: str) -> str:
    return f"<!-- hash:{short_hash} -->"


def recover_rendered_hash(image_line: str | None, explicit_filename: str | None = None) -> str:
    """Recover the hash an image line was rendered from, or ``""``.

    A generated filename only counts when the block has no explicit
    filename, since a block with one would next render under that name.
    """
    if not image_line:
        return ""
    if not explicit_filename:
        m = _RENDERED_IMAGE_RE.search(image_line)
        if m:
            return m.group("hash")
    m = _HASH_COMMENT_RE.search(image_line)
    if m:
        return m.group("hash")
    return ""


def should_render(chunk: Chunk) -> bool:
    """True unless the recorded hash matches the current source, in full or short form."""
    if not chunk.is_renderable:
        return False
    current = chunk.hash_content()
    recorded = chunk.rendered_hash
    return recorded not in (current, current[:SHORT_HASH_LENGTH])
