"""
Light curve ingestion from loosely structured sources (Kepler/K2/TESS exports).

CSV tables are column-sniffed from their header, whitespace tables are read
positionally, and FITS uploads are not decoded yet: they yield placeholder
data so callers always get a curve back.
"""
from __future__ import annotations
import logging
import math
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Union

import numpy as np

from exoplanet_screening.config import settings
from exoplanet_screening.exceptions import FormatError
from exoplanet_screening.models import LightCurve, LightCurveMetadata, MissionSource

logger = logging.getLogger(__name__)


# Substring keywords per column role; the bare aliases must match the whole cell
TIME_KEYWORDS = ("time", "bjd", "jd", "date", "t")
TIME_ALIASES = ("x", "0")
FLUX_KEYWORDS = ("flux", "pdcsap_flux", "sap_flux", "brightness", "magnitude")
FLUX_ALIASES = ("y", "1")
ERROR_KEYWORDS = ("error", "flux_err", "err", "sigma", "uncertainty")

COMMENT_PREFIXES = ("#", "%")
TARGET_ID_PATTERN = re.compile(r"(?:kic|epic|tic)\s*(\d+)", re.IGNORECASE)

CSV_EXTENSIONS = (".csv",)
BINARY_EXTENSIONS = (".fits", ".fit", ".fts")


class ParseStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ParseResult:
    """Outcome of reading a table, before any fallback is applied"""
    status: ParseStatus
    curve: Optional[LightCurve] = None
    message: Optional[str] = None
    headers: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK


def _find_column(headers: Sequence[str], keywords: Sequence[str], aliases: Sequence[str] = ()) -> Optional[int]:
    for index, header in enumerate(headers):
        if header in aliases or any(keyword in header for keyword in keywords):
            return index
    return None


def _parse_float(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _is_data_line(line: str) -> bool:
    return bool(line) and not line.startswith(COMMENT_PREFIXES)


def _aligned_errors(errors: List[Optional[float]]) -> Optional[List[float]]:
    """Keep the error column only if some row carried it; fill the gaps with 0."""
    if all(e is None for e in errors):
        return None
    return [0.0 if e is None else e for e in errors]


def detect_data_source(headers: Sequence[str]) -> MissionSource:
    """Infer the mission from header names"""
    header_str = " ".join(headers).lower()

    if "kepler" in header_str or "kic" in header_str:
        return MissionSource.KEPLER
    if "k2" in header_str or "epic" in header_str:
        return MissionSource.K2
    if "tess" in header_str or "tic" in header_str:
        return MissionSource.TESS

    return MissionSource.UNKNOWN


def extract_target_id(content: str) -> Optional[str]:
    """First KIC/EPIC/TIC number mentioned anywhere in the raw content"""
    match = TARGET_ID_PATTERN.search(content)
    return match.group(1) if match else None


def generate_mock_light_curve(seed: Optional[int] = None) -> LightCurve:
    """
    Placeholder Kepler-like light curve with a box-shaped periodic dip.

    Args:
        seed: Seed for the jitter; None draws fresh entropy on every call

    Returns:
        LightCurve tagged as Kepler data for the mock target
    """
    rng = np.random.default_rng(seed)
    n_points = int(round(settings.mock_duration / settings.mock_cadence))

    elapsed = np.arange(n_points) * settings.mock_cadence
    time = settings.mock_start_time + elapsed

    phase = np.mod(elapsed, settings.mock_period) / settings.mock_period
    flux = np.where(phase < settings.mock_transit_fraction, 1.0 - settings.mock_transit_depth, 1.0)
    flux = flux + (rng.random(n_points) - 0.5) * 0.001

    error = rng.random(n_points) * 0.0005 + 0.0001

    return LightCurve(
        time=time.tolist(),
        flux=flux.tolist(),
        error=error.tolist(),
        metadata=LightCurveMetadata(source=MissionSource.KEPLER, target_id=settings.mock_target_id)
    )


def _read_csv_rows(lines: Sequence[str], time_index: int, flux_index: int,
                   error_index: Optional[int]):
    time: List[float] = []
    flux: List[float] = []
    errors: List[Optional[float]] = []
    required = max(time_index, flux_index)

    for raw in lines[1:]:
        line = raw.strip()
        if not _is_data_line(line):
            continue

        values = [v.strip() for v in line.split(",")]
        if len(values) <= required:
            continue

        time_val = _parse_float(values[time_index])
        flux_val = _parse_float(values[flux_index])
        if time_val is None or flux_val is None:
            continue

        time.append(time_val)
        flux.append(flux_val)

        if error_index is not None and error_index < len(values):
            error_val = _parse_float(values[error_index])
            errors.append(0.0 if error_val is None else error_val)
        else:
            errors.append(None)

    return time, flux, _aligned_errors(errors)


def read_csv(text: str) -> ParseResult:
    """
    Parse a CSV light curve without masking failures.

    Returns:
        ParseResult with status OK and the curve, EMPTY when no row held
        numeric time and flux, or MALFORMED when no time/flux columns exist
    """
    lines = text.strip().split("\n")
    headers = [h.strip().lower() for h in lines[0].split(",")]
    logger.debug(f"CSV headers: {headers}")

    time_index = _find_column(headers, TIME_KEYWORDS, TIME_ALIASES)
    flux_index = _find_column(headers, FLUX_KEYWORDS, FLUX_ALIASES)
    error_index = _find_column(headers, ERROR_KEYWORDS)

    if time_index is None or flux_index is None:
        if len(headers) < 2:
            return ParseResult(
                status=ParseStatus.MALFORMED,
                message=FormatError(headers).message,
                headers=headers
            )
        logger.warning(f"No time/flux header recognized in {headers}; using first two columns")
        time_index, flux_index, error_index = 0, 1, 2

    logger.debug(f"Column indices: time={time_index}, flux={flux_index}, error={error_index}")

    time, flux, error = _read_csv_rows(lines, time_index, flux_index, error_index)
    logger.info(f"Parsed {len(time)} data points")

    if not time:
        return ParseResult(status=ParseStatus.EMPTY, message="No numeric rows found", headers=headers)

    curve = LightCurve(
        time=time,
        flux=flux,
        error=error,
        metadata=LightCurveMetadata(
            source=detect_data_source(headers),
            target_id=extract_target_id(text)
        )
    )
    return ParseResult(status=ParseStatus.OK, curve=curve, headers=headers)


def parse_csv(text: str) -> LightCurve:
    """
    Parse a CSV light curve, substituting placeholder data for empty tables.

    Raises:
        FormatError: header has neither recognizable columns nor two cells
    """
    result = read_csv(text)

    if result.status is ParseStatus.MALFORMED:
        raise FormatError(result.headers)
    if result.status is ParseStatus.EMPTY:
        logger.warning("No data points parsed, generating mock light curve")
        return generate_mock_light_curve()

    return result.curve


def parse_text(text: str) -> LightCurve:
    """Parse whitespace-delimited columns: time, flux and optionally error."""
    time: List[float] = []
    flux: List[float] = []
    errors: List[Optional[float]] = []

    for raw in text.strip().split("\n"):
        line = raw.strip()
        if not _is_data_line(line):
            continue

        values = line.split()
        if len(values) < 2:
            continue

        time_val = _parse_float(values[0])
        flux_val = _parse_float(values[1])
        if time_val is None or flux_val is None:
            continue

        time.append(time_val)
        flux.append(flux_val)

        if len(values) >= 3:
            error_val = _parse_float(values[2])
            errors.append(0.0 if error_val is None else error_val)
        else:
            errors.append(None)

    logger.info(f"Parsed {len(time)} data points from text table")

    # No mock fallback here: an empty table stays empty
    return LightCurve(
        time=time,
        flux=flux,
        error=_aligned_errors(errors),
        metadata=LightCurveMetadata(source=MissionSource.UNKNOWN)
    )


def parse_binary(data: bytes) -> LightCurve:
    """FITS decoding is not supported; always returns the placeholder curve."""
    logger.warning(f"FITS parsing not implemented ({len(data)} bytes ignored), using mock data")
    return generate_mock_light_curve()


def parse_light_curve(content: Union[str, bytes], filename: str = "") -> LightCurve:
    """Route an uploaded file to the parser matching its extension"""
    extension = os.path.splitext(filename.lower())[1]

    if extension in BINARY_EXTENSIONS:
        data = content if isinstance(content, bytes) else content.encode("utf-8")
        return parse_binary(data)

    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    if extension in CSV_EXTENSIONS:
        return parse_csv(text)
    return parse_text(text)
