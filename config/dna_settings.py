# config/dna_settings.py

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional

# ----------------------------------------------------
# Load environment variables (local dev only)
# ----------------------------------------------------
try:
    from dotenv import load_dotenv  # type: ignore

    load_dotenv()
except Exception:
    pass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DnaSettings:
    """
    Tunable constants of the DNA engines.

    None of these are load-bearing: they are heuristics and every one can be
    overridden from the environment.
    """

    # Profile evolution
    evolution_step: float = 0.05

    # describe(): axes with |value| above this are "significant"
    describe_threshold: float = 0.15

    # Per-decision flip detection
    flip_impact_threshold: float = 0.3
    flip_threshold: float = 1.0
    severity_medium_boundary: float = 1.5
    severity_high_boundary: float = 1.75

    # Conflict forecast
    forecast_impact_threshold: float = 0.2
    divided_friction_threshold: float = 40.0

    # Group aggregation
    # 0 = compute party pivot over every member
    party_pivot_sample_size: int = 0
    dominant_category_limit: int = 3

    @property
    def pivot_sample_limit(self) -> Optional[int]:
        return self.party_pivot_sample_size if self.party_pivot_sample_size > 0 else None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default


def load_dna_settings() -> DnaSettings:
    d = DnaSettings()
    settings = DnaSettings(
        evolution_step=_env_float("DNA_EVOLUTION_STEP", d.evolution_step),
        describe_threshold=_env_float("DNA_DESCRIBE_THRESHOLD", d.describe_threshold),
        flip_impact_threshold=_env_float("DNA_FLIP_IMPACT_THRESHOLD", d.flip_impact_threshold),
        flip_threshold=_env_float("DNA_FLIP_THRESHOLD", d.flip_threshold),
        severity_medium_boundary=_env_float("DNA_SEVERITY_MEDIUM_BOUNDARY", d.severity_medium_boundary),
        severity_high_boundary=_env_float("DNA_SEVERITY_HIGH_BOUNDARY", d.severity_high_boundary),
        forecast_impact_threshold=_env_float("DNA_FORECAST_IMPACT_THRESHOLD", d.forecast_impact_threshold),
        divided_friction_threshold=_env_float("DNA_DIVIDED_FRICTION_THRESHOLD", d.divided_friction_threshold),
        party_pivot_sample_size=max(0, _env_int("DNA_PARTY_PIVOT_SAMPLE_SIZE", d.party_pivot_sample_size)),
        dominant_category_limit=max(1, _env_int("DNA_DOMINANT_CATEGORY_LIMIT", d.dominant_category_limit)),
    )

    if settings.severity_high_boundary < settings.severity_medium_boundary:
        logger.warning(
            "DNA_SEVERITY_HIGH_BOUNDARY (%s) below medium boundary (%s); using medium boundary",
            settings.severity_high_boundary,
            settings.severity_medium_boundary,
        )
        settings = replace(settings, severity_high_boundary=settings.severity_medium_boundary)

    return settings


@lru_cache(maxsize=1)
def get_settings() -> DnaSettings:
    return load_dna_settings()
