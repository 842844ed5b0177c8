"""
Runtime settings — single source of truth.

Environment variables (or the repo-root .env file) are loaded via
pydantic-settings and exposed as the singleton `settings`.  Risk
configurations (weights, thresholds, cutoffs) are NOT settings: they are
versioned values managed by the configuration registry.
"""

import logging
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator

_config_logger = logging.getLogger("lendrisk.config")

# Resolve paths relative to repo root (one level up from this package)
_REPO_ROOT = Path(__file__).resolve().parent.parent  # lendrisk/config.py → repo root
_ENV_FILE = _REPO_ROOT / ".env"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    # ── General ──────────────────────────────────────────────
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # ── Human review policy ──────────────────────────────────
    human_review_confidence_floor: float = Field(
        default=70.0,
        description="Assessments with confidence below this are flagged for human review",
    )

    # ── Credit data freshness ────────────────────────────────
    credit_score_fresh_days: int = Field(default=90)
    credit_score_min_confidence: float = Field(default=50.0)

    # ── Default risk configuration ───────────────────────────
    default_config_version: str = Field(default="v1.0")

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if not 0 <= self.human_review_confidence_floor <= 100:
            raise ValueError(
                "HUMAN_REVIEW_CONFIDENCE_FLOOR must be between 0 and 100, "
                f"got {self.human_review_confidence_floor}"
            )
        if self.credit_score_fresh_days < 0:
            raise ValueError("CREDIT_SCORE_FRESH_DAYS must not be negative")
        if not 0 <= self.credit_score_min_confidence <= 100:
            raise ValueError("CREDIT_SCORE_MIN_CONFIDENCE must be between 0 and 100")
        return self

    model_config = {
        "env_file": str(_ENV_FILE),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
    logging.getLogger().setLevel(level_name)
    _config_logger.debug("Logging configured at %s (environment=%s)", level_name, settings.environment)
