"""Layouts for renderable blocks, one per render mode.

A layout is the scaffold a mode places around a code block: lines before
the opening fence, lines after the closing fence, and one slot in the
trailing lines for the image reference. Resolving a layout against a
document tells the scanner how far a renderable chunk extends and where its
image line is. Building a layout produces those lines for a block that does
not have them yet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mdrender.document.models import RenderMode, TemplateError

CLOSING_FENCE = "```"

# Match: ![render-abc.svg](/optional/prefix/render-abc.svg) <!-- hash:... -->
# Only images whose link target ends with their alt text count as generated.
# Targets may contain spaces ("my images/flow.svg").
_GENERATED_IMAGE_RE = re.compile(r"!\[(?P<alt>[^\]]+)\]\((?P<target>[^)]+)\)")
_SUMMARY_RE = re.compile(r"<summary>.*</summary>")


def is_generated_image(line: str) -> bool:
    m = _GENERATED_IMAGE_RE.match(line.strip())
    return bool(m) and m.group("target").endswith(m.group("alt"))


@dataclass(frozen=True)
class ScaffoldLine:
    """One line of layout scaffold and how to recognize it in a document."""

    text: str
    pattern: re.Pattern[str] | None = None
    is_image: bool = False

    def matches(self, line: str) -> bool:
        if self.is_image:
            return is_generated_image(line)
        if self.pattern is not None:
            return bool(self.pattern.fullmatch(line.strip()))
        return line.rstrip() == self.text


IMAGE = ScaffoldLine("", is_image=True)
_BLANK = ScaffoldLine("")


@dataclass(frozen=True)
class Layout:
    before: tuple[ScaffoldLine, ...]
    after: tuple[ScaffoldLine, ...]

    @property
    def image_index(self) -> int:
        """Position of the image slot within ``after``."""
        return self.after.index(IMAGE)

    def matches(self, lines: list[str], fence_index: int, close_index: int, floor: int) -> bool:
        start = fence_index - len(self.before)
        end = close_index + len(self.after)
        if start < floor or end >= len(lines):
            return False
        for scaffold, line in zip(self.before, lines[start:fence_index]):
            if not scaffold.matches(line):
                return False
        for scaffold, line in zip(self.after, lines[close_index + 1 : end + 1]):
            if not scaffold.matches(line):
                return False
        return True


LAYOUTS: dict[RenderMode, Layout] = {
    RenderMode.NORMAL: Layout(before=(), after=(IMAGE,)),
    RenderMode.CODE_COLLAPSED: Layout(
        before=(
            ScaffoldLine("<details>"),
            ScaffoldLine("<summary>Source</summary>", _SUMMARY_RE),
            _BLANK,
        ),
        after=(_BLANK, ScaffoldLine("</details>"), _BLANK, IMAGE),
    ),
    RenderMode.IMAGE_COLLAPSED: Layout(
        before=(),
        after=(
            _BLANK,
            ScaffoldLine("<details>"),
            ScaffoldLine("<summary>Image</summary>", _SUMMARY_RE),
            _BLANK,
            IMAGE,
            _BLANK,
            ScaffoldLine("</details>"),
        ),
    ),
    # The source stays in the file inside an HTML comment so later runs can
    # still fingerprint it; only the image shows up once rendered.
    RenderMode.CODE_HIDDEN: Layout(
        before=(ScaffoldLine("<!--"),),
        after=(ScaffoldLine("-->"), IMAGE),
    ),
}


@dataclass(frozen=True)
class ResolvedLayout:
    """Where a renderable chunk sits in the document.

    ``image_offset`` is relative to ``start`` and only set when the
    requested mode's layout is already present (``complete``).
    ``matched_mode`` names the layout found around the block, which differs
    from the requested one after a mode change, and is None for a bare block.
    """

    start: int
    end: int
    close_index: int
    image_offset: int | None
    matched_mode: RenderMode | None
    complete: bool


def find_closing_fence(lines: list[str], fence_index: int) -> int:
    for idx in range(fence_index + 1, len(lines)):
        if lines[idx].rstrip() == CLOSING_FENCE:
            return idx
    raise TemplateError(f"code block opened on line {fence_index + 1} is never closed")


def resolve_layout(
    lines: list[str], fence_index: int, mode: RenderMode, floor: int = 0
) -> ResolvedLayout:
    """Resolve the span of the renderable chunk opened at ``fence_index``.

    The requested mode's layout is tried first, then the other modes' so a
    block whose mode changed absorbs its old scaffold. A block with no
    recognizable layout spans exactly its fences. ``floor`` is the first
    line not yet claimed by an earlier chunk.
    """
    if mode not in LAYOUTS:
        raise TemplateError(f"unsupported mode: {mode!r}")

    close_index = find_closing_fence(lines, fence_index)
    candidates = [mode] + [m for m in RenderMode if m != mode]
    for candidate in candidates:
        layout = LAYOUTS[candidate]
        if not layout.matches(lines, fence_index, close_index, floor):
            continue
        start = fence_index - len(layout.before)
        complete = candidate == mode
        image_offset = None
        if complete:
            image_offset = close_index + 1 + layout.image_index - start
        return ResolvedLayout(
            start=start,
            end=close_index + len(layout.after),
            close_index=close_index,
            image_offset=image_offset,
            matched_mode=candidate,
            complete=complete,
        )

    return ResolvedLayout(
        start=fence_index,
        end=close_index,
        close_index=close_index,
        image_offset=None,
        matched_mode=None,
        complete=False,
    )


def build_layout(
    mode: RenderMode, code_block_lines: list[str], image_line: str
) -> tuple[list[str], int]:
    """Lay out a code block and its image for ``mode``.

    Returns the chunk lines and the offset of the image line within them.
    """
    layout = LAYOUTS.get(mode)
    if layout is None:
        raise TemplateError(f"unsupported mode: {mode!r}")

    lines = [s.text for s in layout.before]
    lines.extend(code_block_lines)
    image_offset = len(lines) + layout.image_index
    lines.extend(image_line if s.is_image else s.text for s in layout.after)
    return lines, image_offset
