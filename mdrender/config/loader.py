"""Locate, read and merge mdrender configuration.

The effective config is one YAML file (the first found of ``--config``,
``./mdrender.yaml``, ``~/.mdrender/config.yaml``) with command-line
overrides laid over its ``render`` section, validated as a whole.
"""

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import MdRenderConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path("mdrender.yaml")
USER_CONFIG = Path(".mdrender") / "config.yaml"


def find_config_file(cli_path: str | None = None) -> Path | None:
    """Return the config file to use, or None when there is none."""
    if cli_path:
        path = Path(cli_path)
        if not path.is_file():
            raise ValueError(f"Config file not found: {cli_path}")
        return path
    for path in (PROJECT_CONFIG, Path.home() / USER_CONFIG):
        if path.is_file():
            return path
    return None


def read_config_file(path: Path) -> dict:
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}")
    return raw


def load_config(
    cli_path: str | None = None,
    render_overrides: Mapping[str, object] | None = None,
) -> MdRenderConfig:
    """Load the config file and apply ``render_overrides`` on top of it.

    Overrides set to None are ignored, so unset command-line flags leave
    the file's values alone.
    """
    path = find_config_file(cli_path)
    raw = read_config_file(path) if path else {}
    source = str(path) if path else "defaults"

    overrides = {k: v for k, v in (render_overrides or {}).items() if v is not None}
    if overrides:
        render = raw.get("render") or {}
        if not isinstance(render, dict):
            raise ValueError(f"Invalid config in {source}: render must be a mapping")
        raw = {**raw, "render": {**render, **overrides}}
        source = f"{source} + command line"

    try:
        config = MdRenderConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid config in {source}: {e}") from e
    logger.debug("loaded config from %s", source)
    return config


# Default YAML template for `mdrender config init`
DEFAULT_CONFIG_TEMPLATE = """\
# mdrender.yaml

render:
  # Directory rendered images are written to. Defaults to the directory
  # of each markdown file.
  # output_dir: "docs/images"
  languages: [dot, plantuml, pikchr]
  link_prefix: ""              # prepended to image links, e.g. "images/"

# Executable overrides per language
# executables:
#   plantuml: "/opt/plantuml/bin/plantuml"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
