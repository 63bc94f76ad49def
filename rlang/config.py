"""Runtime settings, read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .result import Err, Ok, Result

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    show_excerpt: bool = True
    """Print the offending source line under each diagnostic."""
    template_dir: Path | None = None
    """Overrides the bundled diagnostic templates when set."""

    @property
    def log_level_number(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]

    @classmethod
    def from_env(cls) -> Result[Settings, ValueError]:
        """Build settings from ``RLANG_*`` variables, loading ``.env`` first."""
        load_dotenv()

        level = os.getenv("RLANG_LOG_LEVEL", cls.log_level).strip().upper()
        if level not in logging.getLevelNamesMapping():
            return Err(ValueError(f"RLANG_LOG_LEVEL: unknown logging level {level!r}"))

        match os.getenv("RLANG_SHOW_EXCERPT", "").strip().lower():
            case "":
                show_excerpt = cls.show_excerpt
            case flag if flag in _TRUE:
                show_excerpt = True
            case flag if flag in _FALSE:
                show_excerpt = False
            case flag:
                return Err(ValueError(f"RLANG_SHOW_EXCERPT: expected a boolean, got {flag!r}"))

        match os.getenv("RLANG_TEMPLATE_DIR"):
            case str(path) if path.strip():
                template_dir: Path | None = Path(path.strip())
            case _:
                template_dir = None

        return Ok(cls(log_level=level, show_excerpt=show_excerpt, template_dir=template_dir))
