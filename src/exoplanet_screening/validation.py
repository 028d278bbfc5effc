"""
Plausibility gate for parsed light curves
"""
import logging

import numpy as np

from exoplanet_screening.config import settings
from exoplanet_screening.models import LightCurve

logger = logging.getLogger(__name__)


def validate_light_curve(curve: LightCurve) -> bool:
    """
    Coarse physical sanity check, not a statistical test.

    Rejects curves that are empty, misaligned, hold non-finite values,
    cover a time span outside [min_time_span, max_time_span], have a mean flux outside
    [min_flux_mean, max_flux_mean], or whose peak-to-peak flux exceeds
    max_flux_variation times the mean (equality passes).
    """
    time = getattr(curve, "time", None)
    flux = getattr(curve, "flux", None)
    error = getattr(curve, "error", None)
    logger.debug(
        f"Validating light curve: time={len(time) if time is not None else None}, "
        f"flux={len(flux) if flux is not None else None}, has_error={error is not None}"
    )

    if time is None or flux is None or len(time) == 0 or len(flux) == 0:
        logger.info("Validation failed: missing time or flux data")
        return False

    if len(time) != len(flux):
        logger.info("Validation failed: time and flux arrays have different lengths")
        return False

    time_arr = np.asarray(time, dtype=np.float64)
    flux_arr = np.asarray(flux, dtype=np.float64)

    if not (np.all(np.isfinite(time_arr)) and np.all(np.isfinite(flux_arr))):
        logger.info("Validation failed: non-finite time or flux values")
        return False

    time_span = float(np.max(time_arr) - np.min(time_arr))
    if time_span < settings.min_time_span or time_span > settings.max_time_span:
        logger.info(f"Validation failed: time span {time_span} outside acceptable limits")
        return False

    flux_mean = float(np.mean(flux_arr))
    flux_min = float(np.min(flux_arr))
    flux_max = float(np.max(flux_arr))
    logger.debug(f"Flux stats: mean={flux_mean}, min={flux_min}, max={flux_max}")

    if flux_mean < settings.min_flux_mean or flux_mean > settings.max_flux_mean:
        logger.info(f"Validation failed: flux mean {flux_mean} outside acceptable range")
        return False

    flux_variation = (flux_max - flux_min) / flux_mean
    if flux_variation > settings.max_flux_variation:
        logger.info(f"Validation failed: excessive flux variation ({flux_variation:.3f})")
        return False

    logger.debug("Light curve validation passed")
    return True
