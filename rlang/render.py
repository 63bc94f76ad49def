"""Console rendering of ``RLangError`` diagnostics from Jinja2 templates."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2

from .errors import RLangError
from .source import SourceInfo

TEMPLATE_DIR = Path(__file__).parent / "templates"
DIAGNOSTIC_TEMPLATE = "diagnostic.txt.j2"


@functools.lru_cache(maxsize=None)
def _environment(template_dir: Path) -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(template_dir),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def render(template_name: str, template_dir: Path | None = None, **kwargs: Any) -> str:
    """Render a Jinja2 template with the given keyword arguments."""
    env = _environment(template_dir or TEMPLATE_DIR)
    return env.get_template(template_name).render(**kwargs)


@dataclass(frozen=True)
class Excerpt:
    line: str
    caret: str


def excerpt(error: RLangError, source: SourceInfo) -> Excerpt:
    line = source.get_line(error.location.line)
    # Keep tabs so the caret lines up under tab-indented source.
    pad = "".join(
        ch if ch == "\t" else " " for ch in line[: max(error.location.col - 1, 0)]
    )
    return Excerpt(line=line, caret=f"{pad}^")


def render_error(
    error: RLangError,
    source: SourceInfo | None = None,
    template_dir: Path | None = None,
) -> str:
    """``At file:line:col:`` header, optional source excerpt, then ``Kind : message``."""
    return render(
        DIAGNOSTIC_TEMPLATE,
        template_dir,
        location=error.location_string,
        excerpt=excerpt(error, source) if source is not None else None,
        kind=error.kind_name,
        message=error.message,
    )
