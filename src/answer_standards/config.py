"""
Runtime settings loaded from environment variables.

    ANSWER_STANDARDS_DB_PATH               override store (default data/answer_standards.db)
    ANSWER_STANDARDS_PASS_THRESHOLD        minimum passing score (default 80)
    ANSWER_STANDARDS_ERROR_PENALTY         points per error (default 25)
    ANSWER_STANDARDS_WARNING_PENALTY       points per warning (default 10)
    ANSWER_STANDARDS_INFO_PENALTY          points per info (default 5)
    ANSWER_STANDARDS_MAX_FORMAT_ITERATIONS format/re-validate rounds (default 3)
    ANSWER_STANDARDS_LOG_LEVEL             logging level name (default WARNING)

Unparseable numbers fall back to the default.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .overrides.schema import DEFAULT_DB_PATH
from .validation.models import ScoringPolicy

logger = logging.getLogger(__name__)

ENV_PREFIX = "ANSWER_STANDARDS_"


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"[Config] {ENV_PREFIX}{name}={raw!r} is not an integer, using {default}")
        return default


@dataclass
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    max_format_iterations: int = 3
    log_level: str = "WARNING"


def load_settings() -> Settings:
    """Build Settings from the environment."""
    defaults = ScoringPolicy()
    return Settings(
        db_path=Path(os.environ.get(ENV_PREFIX + "DB_PATH", str(DEFAULT_DB_PATH))),
        scoring=ScoringPolicy(
            error_penalty=_get_int("ERROR_PENALTY", defaults.error_penalty),
            warning_penalty=_get_int("WARNING_PENALTY", defaults.warning_penalty),
            info_penalty=_get_int("INFO_PENALTY", defaults.info_penalty),
            pass_threshold=_get_int("PASS_THRESHOLD", defaults.pass_threshold),
        ),
        max_format_iterations=max(1, _get_int("MAX_FORMAT_ITERATIONS", 3)),
        log_level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", "WARNING").upper(),
    )
