"""Per-file runs: load, parse into fresh bindings, report."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .bindings import Bindings, LocalBindings
from .config import Settings
from .errors import PRELUDE, RLangError
from .parser import parse_source
from .render import render_error
from .result import Err, Ok
from .source import SourceInfo
from .terms import FormulaSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileReport:
    """Outcome of running a single source file."""

    path: str
    success: bool
    theorems: Mapping[str, FormulaSchema] = field(default_factory=dict)
    """Axioms stored at the file's top-level scope, by name."""
    error: RLangError | None = None
    rendered: str | None = None
    """The diagnostic as printed to the console, when ``success`` is False."""
    bindings: Bindings | None = None


def run_file(path: str, settings: Settings) -> FileReport:
    """Run one file against freshly initialised bindings."""
    logger.info("Running %s", path)
    match SourceInfo.load(path, PRELUDE):
        case Ok(source):
            pass
        case Err(error):
            logger.warning("Could not load %s: %s", path, error)
            return FileReport(
                path,
                success=False,
                error=error,
                rendered=render_error(error, None, settings.template_dir),
            )

    globals_ = Bindings()
    locals_ = LocalBindings()
    match parse_source(source, globals_, locals_):
        case Ok(bindings):
            assert locals_.is_empty(), "binders left open after a successful parse"
            theorems = bindings.theorems()
            logger.info("%s: %d axioms", path, len(theorems))
            return FileReport(path, success=True, theorems=theorems, bindings=bindings)
        case Err(error):
            logger.warning("%s failed: %s", path, error)
            excerpt_source = source if settings.show_excerpt else None
            return FileReport(
                path,
                success=False,
                error=error,
                rendered=render_error(error, excerpt_source, settings.template_dir),
            )


def run_files(paths: Sequence[str], settings: Settings) -> list[FileReport]:
    """Run each file independently; a failure never affects later files."""
    return [run_file(path, settings) for path in paths]
