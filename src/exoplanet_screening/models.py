from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator


class MissionSource(str, Enum):
    """Survey a light curve was recorded by"""
    KEPLER = "kepler"
    K2 = "k2"
    TESS = "tess"
    UNKNOWN = "unknown"


class LightCurveMetadata(BaseModel):
    """Provenance of a light curve"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: MissionSource = Field(MissionSource.UNKNOWN, description="Source mission")
    target_id: Optional[str] = Field(None, alias="targetId", description="KIC/EPIC/TIC number")
    campaign: Optional[str] = Field(None, description="K2 campaign")
    sector: Optional[str] = Field(None, description="TESS sector")


class LightCurve(BaseModel):
    """Brightness measurements of a single target, immutable once built"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    time: Tuple[float, ...] = Field(..., description="Timestamps (BJD or mission time)")
    flux: Tuple[float, ...] = Field(..., description="Flux values, parallel to time")
    error: Optional[Tuple[float, ...]] = Field(None, description="Per-point flux uncertainty")
    metadata: LightCurveMetadata = Field(default_factory=LightCurveMetadata)

    @model_validator(mode='after')
    def check_parallel_arrays(self):
        if len(self.time) != len(self.flux):
            raise ValueError(
                f"time and flux must have the same length ({len(self.time)} != {len(self.flux)})"
            )
        if self.error is not None and len(self.error) != len(self.time):
            raise ValueError(
                f"error must match time length ({len(self.error)} != {len(self.time)})"
            )
        return self

    @property
    def has_error(self) -> bool:
        return self.error is not None


class Prediction(BaseModel):
    """Scoring outcome for one light curve"""
    model_config = ConfigDict(populate_by_name=True)

    probability: float = Field(..., ge=0, le=1, description="Transit likelihood")
    confidence: float = Field(..., ge=0, le=1)
    planet_type: str = Field(..., alias="planetType")
    is_habitable: bool = Field(..., alias="isHabitable")
    has_atmosphere: bool = Field(..., alias="hasAtmosphere")
    has_water: bool = Field(..., alias="hasWater")
    temperature: float = Field(..., description="Equilibrium temperature estimate (K)")
    radius: float = Field(..., description="Radius estimate (Earth radii)")
    distance_from_star: float = Field(..., alias="distanceFromStar", description="Orbital distance (AU)")
    degraded: bool = Field(False, description="True when produced by the fallback path")


class LightCurveSummary(BaseModel):
    """Compact description of a parsed upload"""
    points: int
    source: MissionSource
    target_id: Optional[str] = Field(None, alias="targetId")
    has_error: bool = Field(..., alias="hasError")
    time_span: float = Field(..., alias="timeSpan")
    valid: bool

    model_config = ConfigDict(populate_by_name=True)
