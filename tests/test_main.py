"""Tests for the HTTP surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from exoplanet_screening.main import app, get_scorer
from exoplanet_screening.services import ExoplanetScorer


@pytest.fixture
def client():
    test_scorer = ExoplanetScorer(seed=0)
    app.dependency_overrides[get_scorer] = lambda: test_scorer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestApi:

    def test_health(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_parse_upload(self, client, kepler_csv) -> None:
        response = client.post("/parse", files={"file": ("kplr011446443.csv", kepler_csv, "text/csv")})

        assert response.status_code == 200
        body = response.json()
        assert body["points"] == 4
        assert body["source"] == "kepler"
        assert body["targetId"] == "11446443"
        assert body["hasError"] is True
        assert body["valid"] is True

    def test_predict_upload(self, client, kepler_csv) -> None:
        response = client.post("/predict/upload", files={"file": ("lc.csv", kepler_csv, "text/csv")})

        assert response.status_code == 200
        body = response.json()
        assert 0.0 <= body["probability"] <= 1.0
        assert body["planetType"] in ("Super Earth", "Terrestrial", "Mini-Neptune", "Gas Giant")
        assert body["degraded"] is False

    def test_predict_json(self, client, transit_curve) -> None:
        payload = transit_curve.model_dump(by_alias=True, mode="json")
        response = client.post("/predict", json=payload)

        assert response.status_code == 200
        assert "distanceFromStar" in response.json()

    def test_predict_rejects_implausible_curve(self, client) -> None:
        response = client.post("/predict", json={"time": [1.0, 1.0], "flux": [1.0, 1.0]})

        assert response.status_code == 422
        assert response.json()["error"] == "INVALID_DATA"

    def test_predict_rejects_misaligned_arrays(self, client) -> None:
        response = client.post("/predict", json={"time": [1.0, 2.0, 3.0], "flux": [1.0]})
        assert response.status_code == 422

    def test_malformed_csv_upload(self, client) -> None:
        response = client.post("/predict/upload", files={"file": ("lc.csv", "value\n1\n", "text/csv")})

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_FORMAT"

    def test_empty_text_upload_is_invalid(self, client) -> None:
        response = client.post("/predict/upload", files={"file": ("lc.txt", "time flux\n", "text/plain")})
        assert response.status_code == 422

    def test_metrics_endpoint(self, client) -> None:
        client.get("/health")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_predict_rejects_nan_flux(self, client) -> None:
        response = client.post(
            "/predict",
            content='{"time": [0.0, 1.0, 2.0], "flux": [1.0, NaN, 1.0]}',
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 422
