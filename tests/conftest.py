"""Shared test fixtures for mdrender."""

import subprocess
from unittest.mock import patch

import pytest

from mdrender.config.models import MdRenderConfig, RenderConfig


def fake_svg(source: bytes) -> bytes:
    return b"<svg><!-- " + source + b" --></svg>"


@pytest.fixture
def fake_backend():
    """Patch subprocess.run in the invoker; every backend 'renders' an SVG of its input."""

    def _run(cmd, input=None, capture_output=False, check=False):
        return subprocess.CompletedProcess(cmd, 0, stdout=fake_svg(input or b""), stderr=b"")

    with patch("mdrender.renderers.invoker.subprocess.run", side_effect=_run) as mock_run:
        yield mock_run


@pytest.fixture
def failing_backend():
    """Patch subprocess.run so every backend exits non-zero."""

    def _run(cmd, input=None, capture_output=False, check=False):
        raise subprocess.CalledProcessError(1, cmd, output=b"", stderr=b"syntax error in line 1")

    with patch("mdrender.renderers.invoker.subprocess.run", side_effect=_run) as mock_run:
        yield mock_run


@pytest.fixture
def sample_config(tmp_path):
    return MdRenderConfig(
        render=RenderConfig(
            output_dir=str(tmp_path / "images"),
            languages=["dot", "plantuml", "pikchr"],
        )
    )


@pytest.fixture
def sample_markdown():
    return (
        "# Architecture\n"
        "\n"
        "Some intro text.\n"
        "\n"
        "```dot render\n"
        "digraph{a->b}\n"
        "```\n"
        "\n"
        "```python\n"
        "print('not a diagram')\n"
        "```\n"
        "\n"
        "```plantuml render {\"mode\": \"code-collapsed\"}\n"
        "@startuml\n"
        "Alice -> Bob\n"
        "@enduml\n"
        "```\n"
        "\n"
        "The end.\n"
    )


@pytest.fixture
def svg_bytes():
    """What the fake backends return for a given source."""
    return fake_svg
