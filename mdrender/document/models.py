"""Data models for the document chunking subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, field_validator

from mdrender.document.fingerprint import SHORT_HASH_LENGTH, fingerprint


class RenderMode(str, Enum):
    """Layouts a renderable code block and its image can take."""

    NORMAL = "normal"
    CODE_COLLAPSED = "code-collapsed"
    IMAGE_COLLAPSED = "image-collapsed"
    CODE_HIDDEN = "code-hidden"


class RenderOptions(BaseModel):
    """Options parsed from the JSON payload of a render directive."""

    mode: RenderMode = RenderMode.NORMAL
    filename: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _default_mode(cls, v: object) -> object:
        if v is None or v == "":
            return RenderMode.NORMAL
        return v

    @field_validator("filename", mode="before")
    @classmethod
    def _empty_filename(cls, v: object) -> object:
        if v == "":
            return None
        return v


class DirectiveError(ValueError):
    """Raised when a render directive carries invalid options."""


class TemplateError(ValueError):
    """Raised when the layout of a renderable block cannot be resolved."""


class ChunkError(Exception):
    """Wraps a scan-time failure with the line of the offending fence."""

    def __init__(self, line: int, operation: str, cause: Exception) -> None:
        self.line = line
        self.operation = operation
        super().__init__(f"line {line}: {operation}: {cause}")
        self.__cause__ = cause


class DocumentError(Exception):
    """File-level failure: wraps any error raised while processing a file."""

    def __init__(self, path: str, operation: str, cause: Exception) -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"process file {path}: {operation}: {cause}")
        self.__cause__ = cause


@dataclass
class Chunk:
    """A contiguous segment of a markdown file.

    Plain chunks only carry their lines and bounds. Renderable chunks also
    carry the code block they were built from and where their image line
    sits. Bounds are inclusive and relative to the input file.
    """

    lines: list[str]
    start_line_index: int
    end_line_index: int
    is_renderable: bool = False

    language: str = ""
    code_block_index: int = 0
    fence_line_index: int = 0
    code_block_content: list[str] = field(default_factory=list)
    code_block_lines: list[str] = field(default_factory=list)
    image_relative_line_index: int | None = None
    rendered_hash: str = ""
    has_hash_comment: bool = False
    render_options: RenderOptions = field(default_factory=RenderOptions)
    layout_complete: bool = False

    def hash_content(self) -> str:
        """md5 of the code block source, as 32 hex characters."""
        return fingerprint(self.code_block_content)

    def short_hash(self) -> str:
        return self.hash_content()[:SHORT_HASH_LENGTH]

    def output_filename(self) -> str:
        """Explicit filename from the directive, else one derived from the hash."""
        if self.render_options.filename:
            return self.render_options.filename
        return f"render-{self.hash_content()}.svg"

    @property
    def image_line(self) -> str | None:
        if self.image_relative_line_index is None:
            return None
        return self.lines[self.image_relative_line_index]

    def set_image(self, image_line: str) -> None:
        """Point the chunk at a freshly rendered image.

        An existing layout only has its image line replaced. Otherwise the
        layout for the chunk's mode is built around the code block.
        """
        if not self.is_renderable:
            raise TypeError("only renderable chunks carry an image")
        if self.layout_complete and self.image_relative_line_index is not None:
            self.lines[self.image_relative_line_index] = image_line
            return

        # Imported here: templates depends on this module.
        from mdrender.document.templates import build_layout

        self.lines, self.image_relative_line_index = build_layout(
            self.render_options.mode, self.code_block_lines, image_line
        )
        self.layout_complete = True
