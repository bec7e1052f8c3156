"""Burn-date extraction for a single wildfire event.

Resolves the study area from fire perimeter records (with an ignition-point
fallback), composites a season of monthly burn-date frames into one annual
raster and derives burned-area statistics from it.
"""

from .config import ExtractionConfig, FireEvent, load_extraction_config
from .errors import ConfigurationError, FireBurndateError, MissingBand, ResourceLimitExceeded
from .pipeline import BurnDateExtractionResult, run_burn_date_extraction

__all__ = [
    "BurnDateExtractionResult",
    "ConfigurationError",
    "ExtractionConfig",
    "FireBurndateError",
    "FireEvent",
    "MissingBand",
    "ResourceLimitExceeded",
    "load_extraction_config",
    "run_burn_date_extraction",
]
