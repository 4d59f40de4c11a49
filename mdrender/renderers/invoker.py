"""Render chunks through their backend and point them at the result."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path, PurePath

from mdrender.document.fingerprint import build_hash_comment
from mdrender.document.models import Chunk
from mdrender.renderers.models import RenderError, RendererBackend
from mdrender.renderers.registry import get_backend

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "svg"


def resolve_extension(
    filename: str, accepted: tuple[str, ...], default: str = DEFAULT_EXTENSION
) -> str:
    """Extension of ``filename`` if the backend accepts it, else ``default``."""
    ext = PurePath(filename).suffix.lstrip(".")
    return ext if ext in accepted else default


def build_markdown_image(filename: str, link_prefix: str = "") -> str:
    return f"![{filename}]({link_prefix}{filename})"


def run_backend(
    backend: RendererBackend, source: str, ext: str, executable: str | None = None
) -> bytes:
    """Pipe ``source`` through the backend and return what it writes to stdout."""
    cmd = [executable or backend.executable, *backend.args(ext)]
    logger.debug("running %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            input=source.encode("utf-8"),
            capture_output=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise RenderError(backend.language, "render", f"executable not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
        detail = f"{cmd[0]} exited with status {e.returncode}"
        if stderr:
            detail += f": {stderr}"
        raise RenderError(backend.language, "render", detail) from e
    except OSError as e:
        raise RenderError(backend.language, "render", e) from e
    return proc.stdout


def _output_path(output_dir: Path, filename: str, language: str) -> Path:
    if PurePath(filename).is_absolute():
        raise RenderError(language, "write image", f"filename must be relative: {filename}")
    dest = output_dir / filename
    # Guard against filenames escaping the output directory
    if not dest.resolve().is_relative_to(output_dir.resolve()):
        raise RenderError(language, "write image", f"filename escapes output directory: {filename}")
    return dest


def render_chunk(
    chunk: Chunk,
    output_dir: str | Path,
    link_prefix: str = "",
    executables: Mapping[str, str] | None = None,
) -> str:
    """Render ``chunk`` into ``output_dir`` and update its image line.

    Returns the filename of the written image.
    """
    backend = get_backend(chunk.language)
    filename = chunk.output_filename()
    ext = resolve_extension(filename, backend.extensions)
    dest = _output_path(Path(output_dir), filename, chunk.language)

    source = "\n".join(chunk.code_block_content)
    executable = (executables or {}).get(chunk.language)
    content = run_backend(backend, source, ext, executable=executable)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(content)
    except OSError as e:
        raise RenderError(chunk.language, "write image", e) from e
    logger.debug("wrote %s (%d bytes)", dest, len(content))

    image = build_markdown_image(filename, link_prefix)
    if chunk.has_hash_comment:
        image = f"{image} {build_hash_comment(chunk.short_hash())}"
    chunk.set_image(image)
    return filename
