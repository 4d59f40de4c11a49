"""mdrender - render diagram code blocks in markdown files to images."""

from mdrender.config import MdRenderConfig, load_config
from mdrender.document import Chunk, RenderMode, RenderOptions, scan_chunks, should_render
from mdrender.pipeline import check_file, process_file, process_files
from mdrender.renderers import RendererBackend, register_backend, render_chunk

__version__ = "0.1.0"

__all__ = [
    "Chunk",
    "MdRenderConfig",
    "RenderMode",
    "RenderOptions",
    "RendererBackend",
    "check_file",
    "load_config",
    "process_file",
    "process_files",
    "register_backend",
    "render_chunk",
    "scan_chunks",
    "should_render",
]
