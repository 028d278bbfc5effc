"""
Pytest configuration and shared fixtures for the screening tests.
"""

import numpy as np
import pytest

from exoplanet_screening.config import settings
from exoplanet_screening.models import LightCurve, LightCurveMetadata, MissionSource


@pytest.fixture(autouse=True)
def instant_model_load(monkeypatch):
    """Skip the simulated model load delay."""
    monkeypatch.setattr(settings, "model_load_delay", 0.0)


@pytest.fixture
def kepler_csv():
    """Small Kepler export with a comment line and one bad row."""
    return (
        "time,pdcsap_flux,pdcsap_flux_err,kic_id\n"
        "# KIC 11446443 quarter 1\n"
        "131.512,1.0001,0.0002,11446443\n"
        "131.532,0.9998,0.0002,11446443\n"
        "131.553,n/a,0.0002,11446443\n"
        "131.573,0.9901,0.0003,11446443\n"
        "\n"
        "131.594,0.9903,0.0002,11446443\n"
    )


@pytest.fixture
def constant_curve():
    """Ten evenly spaced points of constant flux."""
    return LightCurve(
        time=[float(i) for i in range(10)],
        flux=[1.0] * 10,
        error=[0.001] * 10,
        metadata=LightCurveMetadata(source=MissionSource.UNKNOWN)
    )


@pytest.fixture
def transit_curve():
    """Two days of 30 minute cadence with a 1% box dip."""
    rng = np.random.default_rng(42)
    time = np.arange(100) * 0.02
    flux = np.ones_like(time)
    flux[40:50] -= 0.01
    flux += (rng.random(len(time)) - 0.5) * 0.001
    return LightCurve(
        time=time.tolist(),
        flux=flux.tolist(),
        metadata=LightCurveMetadata(source=MissionSource.TESS, target_id="25155310")
    )
