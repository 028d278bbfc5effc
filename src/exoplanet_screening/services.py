import asyncio
import math
import numpy as np
from typing import Optional
import logging
from abc import ABC, abstractmethod

from exoplanet_screening.models import LightCurve, Prediction
from exoplanet_screening.exceptions import ProcessingError
from exoplanet_screening.config import settings

logger = logging.getLogger(__name__)


PLANET_TYPES = (
    (0.9, "Super Earth"),
    (0.7, "Terrestrial"),
    (0.5, "Mini-Neptune"),
)
DEFAULT_PLANET_TYPE = "Gas Giant"

# Linear blend of the signal scores
VARIATION_WEIGHT = 0.4
PERIODICITY_WEIGHT = 0.3
QUALITY_WEIGHT = 0.3
NOISE_AMPLITUDE = 0.05


class FeatureExtractor:
    """Signal statistics feeding the transit score"""

    @staticmethod
    def normalize(values) -> np.ndarray:
        """Min-max scale to [0, 1]; a constant series maps to 0.5"""
        arr = np.asarray(values, dtype=np.float64)
        if arr.size == 0:
            return arr
        lo = float(np.min(arr))
        rng = float(np.max(arr)) - lo
        if rng == 0:
            return np.full(arr.shape, 0.5)
        return (arr - lo) / rng

    def build_feature_vector(self, curve: LightCurve, length: int = None) -> np.ndarray:
        """
        Fixed-length model input: normalized time, flux and error blocks.

        Missing uncertainties are replaced by a zero block of the same length.
        Not consumed by the heuristic score; kept as the input contract for a
        trained model.
        """
        if length is None:
            length = settings.feature_vector_length

        error_block = (
            self.normalize(curve.error) if curve.error is not None
            else np.zeros(len(curve.flux))
        )
        features = np.concatenate([
            self.normalize(curve.time),
            self.normalize(curve.flux),
            error_block,
        ])

        if len(features) >= length:
            return features[:length]
        return np.pad(features, (0, length - len(features)), 'constant')

    @staticmethod
    def variation_score(flux: np.ndarray) -> float:
        """Higher scatter suggests transit-like dips"""
        return min(float(np.std(flux)) * 10, 1.0)

    @staticmethod
    def periodicity_score(flux: np.ndarray) -> float:
        """Peak-to-peak amplitude relative to the flux level"""
        flux_max = float(np.max(flux))
        flux_min = float(np.min(flux))
        total = flux_max + flux_min
        if total == 0:
            return 0.0
        return min((flux_max - flux_min) / total * 2, 1.0)

    @staticmethod
    def gap_fraction(time: np.ndarray) -> float:
        """Share of cadence intervals longer than 3x the median interval"""
        if len(time) < 2:
            return 1.0

        intervals = np.diff(time)
        median_interval = np.sort(intervals)[len(intervals) // 2]
        large_gaps = int(np.count_nonzero(intervals > median_interval * 3))
        return large_gaps / len(intervals)

    def quality_score(self, curve: LightCurve) -> float:
        """Mean of completeness, gap quality and error quality"""
        flux = np.asarray(curve.flux, dtype=np.float64)
        time = np.asarray(curve.time, dtype=np.float64)

        # Not capped: long curves push this above 1
        completeness = len(flux) / settings.ideal_curve_length
        gap_quality = max(0.0, 1.0 - self.gap_fraction(time))
        if curve.error is None:
            error_quality = 1.0
        else:
            error_quality = max(0.0, 1.0 - float(np.mean(curve.error)) * 100)

        return (completeness + gap_quality + error_quality) / 3


def classify_planet_type(probability: float) -> str:
    for threshold, label in PLANET_TYPES:
        if probability > threshold:
            return label
    return DEFAULT_PLANET_TYPE


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def build_prediction(probability: float, confidence: float, degraded: bool = False) -> Prediction:
    """Expand a probability into the full prediction record"""
    return Prediction(
        probability=probability,
        confidence=confidence,
        planet_type=classify_planet_type(probability),
        is_habitable=probability > 0.7,
        has_atmosphere=probability > 0.6,
        has_water=probability > 0.8,
        temperature=_round_half_up(200 + probability * 200),  # K
        radius=0.5 + probability * 2.5,  # Earth radii
        distance_from_star=0.02 + probability * 0.5,  # AU
        degraded=degraded
    )


class ILightCurveScorer(ABC):
    """Interface for light curve scorers"""

    @abstractmethod
    async def score(self, curve: LightCurve, noise: Optional[float] = None) -> Prediction:
        """Score a light curve; noise pins the random term when given"""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether the backing model is loaded"""
        pass


class ExoplanetScorer(ILightCurveScorer):
    """
    Heuristic transit scorer behind a model-style interface.

    The model load is simulated; concurrent callers of ensure_ready() share
    one in-flight load.
    """

    def __init__(self, seed: Optional[int] = None):
        self.feature_extractor = FeatureExtractor()
        self._rng = np.random.default_rng(seed)
        self._ready = False
        self._loading: Optional[asyncio.Future] = None
        self._load_count = 0

    @property
    def load_count(self) -> int:
        """Number of load attempts started so far"""
        return self._load_count

    def is_ready(self) -> bool:
        return self._ready

    def reset(self) -> None:
        """Forget the loaded state. An in-flight load is not cancelled."""
        self._ready = False
        self._loading = None

    async def ensure_ready(self) -> None:
        if self._ready:
            return

        if self._loading is None:
            self._loading = asyncio.ensure_future(self._load_model())
        loading = self._loading

        try:
            if not loading.done():
                # A cancelled waiter must not cancel the load shared with other callers
                await asyncio.shield(loading)
        except asyncio.CancelledError:
            if not loading.cancelled():
                raise

        if loading.cancelled():
            logger.warning("Scoring model load was cancelled; continuing with heuristic scoring")

        # A load forgotten by reset() no longer decides readiness
        if loading is self._loading:
            self._ready = True

    async def _load_model(self) -> None:
        self._load_count += 1
        try:
            logger.info("Loading scoring model...")
            await self._load_weights()
            logger.info("Scoring model loaded (heuristic mode)")
        except Exception as e:
            logger.error(f"Error loading scoring model: {e}")
            logger.warning("Continuing with heuristic scoring")

    async def _load_weights(self) -> None:
        # No trained weights ship with the package; stand in for the load time
        await asyncio.sleep(settings.model_load_delay)

    async def score(self, curve: LightCurve, noise: Optional[float] = None) -> Prediction:
        """
        Score a light curve. Never raises: failures yield a degraded mock prediction.

        Args:
            curve: Parsed light curve
            noise: Fixed noise term; drawn from U(-0.05, 0.05) when None

        Returns:
            Prediction
        """
        try:
            await self.ensure_ready()

            self.feature_extractor.build_feature_vector(curve)
            probability = self._estimate_probability(curve, noise)
            confidence = min(probability * 1.2, 1.0)

            result = build_prediction(probability, confidence)
            logger.info(
                f"Prediction for {curve.metadata.target_id or 'unnamed target'}: "
                f"{result.planet_type} ({probability:.3f})"
            )
            return result

        except Exception as e:
            logger.error(f"Error making prediction: {e}")
            return self._mock_prediction()

    def _estimate_probability(self, curve: LightCurve, noise: Optional[float] = None) -> float:
        if len(curve.flux) == 0:
            raise ProcessingError("probability estimation", "empty light curve")

        flux = np.asarray(curve.flux, dtype=np.float64)

        variation = self.feature_extractor.variation_score(flux)
        periodicity = self.feature_extractor.periodicity_score(flux)
        quality = self.feature_extractor.quality_score(curve)

        base_probability = (
            variation * VARIATION_WEIGHT
            + periodicity * PERIODICITY_WEIGHT
            + quality * QUALITY_WEIGHT
        )
        if noise is None:
            noise = float(self._rng.uniform(-NOISE_AMPLITUDE, NOISE_AMPLITUDE))

        probability = base_probability + noise
        if not math.isfinite(probability):
            raise ProcessingError("probability estimation", f"non-finite score {probability}")

        logger.debug(
            f"Scores: variation={variation:.4f}, periodicity={periodicity:.4f}, "
            f"quality={quality:.4f}, noise={noise:.4f}"
        )
        return max(0.0, min(1.0, probability))

    def _mock_prediction(self) -> Prediction:
        probability = 0.7 + float(self._rng.random()) * 0.25
        logger.warning(f"Using mock prediction (probability={probability:.3f})")
        return build_prediction(probability, probability * 0.9, degraded=True)


# Shared instance
scorer = ExoplanetScorer()
