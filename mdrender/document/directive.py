"""Recognition of render directives on fenced code block openings."""

from __future__ import annotations

import logging
import re
from collections.abc import Collection

from pydantic import ValidationError

from mdrender.document.models import DirectiveError, RenderOptions

logger = logging.getLogger(__name__)

# Match: ```dot render {"mode": "code-collapsed"}
# The language token is captured whole, so "dot" never matches "dotty".
_DIRECTIVE_RE = re.compile(r"^```(?P<language>[\w.+-]+) render(?P<options>(?:\s.*|\{.*)?)$")


def match_directive(line: str, languages: Collection[str]) -> str | None:
    """Return the requested language a fence line asks to render, if any."""
    m = _DIRECTIVE_RE.match(line.rstrip())
    if m is None:
        return None
    language = m.group("language")
    return language if language in languages else None


def parse_render_options(line: str, language: str) -> RenderOptions:
    """Parse the options payload following ``render`` on a fence line.

    Text that does not start with ``{`` is ignored and the defaults apply.
    """
    prefix = f"```{language} render"
    payload = line.rstrip()
    if not payload.startswith(prefix):
        raise DirectiveError(f"not a {language} render directive: {line!r}")
    payload = payload[len(prefix):].strip()

    if not payload.startswith("{"):
        if payload:
            logger.debug("ignoring trailing directive text %r", payload)
        return RenderOptions()

    try:
        return RenderOptions.model_validate_json(payload)
    except ValidationError as e:
        raise DirectiveError(f"invalid render options {payload}: {_first_error(e)}") from e


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]
