from fastapi import FastAPI, HTTPException, Depends, BackgroundTasks, Request, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
import uvicorn
from contextlib import asynccontextmanager
from typing import Any
import logging
from datetime import datetime

import numpy as np

from exoplanet_screening.config import settings
from exoplanet_screening.models import LightCurve, LightCurveSummary, Prediction
from exoplanet_screening.services import ExoplanetScorer, scorer
from exoplanet_screening.exceptions import ExoplanetScreeningError, InvalidDataError
from exoplanet_screening.data_ingestion import parse_light_curve
from exoplanet_screening.validation import validate_light_curve

# Dedicated registry so repeated imports never register duplicates
REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    'http_requests_total', 'Total HTTP requests', ['method', 'path', 'status'], registry=REGISTRY
)
REQUEST_LATENCY = Histogram(
    'http_request_duration_seconds', 'HTTP request latency in seconds', ['method', 'path'], registry=REGISTRY
)
PREDICTIONS_TOTAL = Counter(
    'predictions_total', 'Total predictions made', ['endpoint', 'degraded'], registry=REGISTRY
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format=settings.log_format
)
logger = logging.getLogger(__name__)


class ServiceContainer:
    """Container for dependency injection"""

    def __init__(self):
        self._services = {}

    def register(self, name: str, service: Any):
        """Register a service"""
        self._services[name] = service

    def get(self, name: str):
        """Get a registered service"""
        if name not in self._services:
            raise ValueError(f"Service '{name}' not registered")
        return self._services[name]


container = ServiceContainer()
container.register("scorer", scorer)


async def get_scorer() -> ExoplanetScorer:
    """Dependency to obtain the scorer"""
    try:
        return container.get("scorer")
    except ValueError:
        raise HTTPException(status_code=503, detail="Scorer unavailable")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warm up the scorer on startup"""
    logger.info("Initializing Exoplanet Screening API...")
    await container.get("scorer").ensure_ready()
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)

START_TIME = datetime.now()


@app.middleware("http")
async def _metrics_middleware(request: Request, call_next):
    """Collect request count and latency"""
    start = datetime.now()
    try:
        response = await call_next(request)
    except Exception:
        REQUEST_COUNT.labels(request.method, request.url.path, '500').inc()
        raise
    REQUEST_LATENCY.labels(request.method, request.url.path).observe((datetime.now() - start).total_seconds())
    REQUEST_COUNT.labels(request.method, request.url.path, str(response.status_code)).inc()
    return response


@app.exception_handler(ExoplanetScreeningError)
async def screening_exception_handler(request, exc: ExoplanetScreeningError):
    """Handler for screening exceptions"""
    logger.error(f"Screening error: {exc.message} - {exc.details}")
    status_code = 422 if isinstance(exc, InvalidDataError) else 400
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handler for HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail}
    )


async def _read_upload(file: UploadFile) -> LightCurve:
    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.max_upload_bytes} bytes")
    return parse_light_curve(content, file.filename or "")


async def _validated_score(curve: LightCurve, detector: ExoplanetScorer, endpoint: str) -> Prediction:
    if not validate_light_curve(curve):
        raise InvalidDataError(
            field="light_curve",
            value=f"{len(curve.time)} points",
            expected="non-empty, aligned arrays with plausible time span and flux level"
        )
    result = await detector.score(curve)
    PREDICTIONS_TOTAL.labels(endpoint, str(result.degraded).lower()).inc()
    return result


def log_prediction_request(target_id: str, points: int):
    """Log prediction request (background task)"""
    logger.info(f"Prediction requested for {target_id or 'unnamed target'} ({points} points)")


@app.get("/health", tags=["Monitoring"])
async def health_check(detector: ExoplanetScorer = Depends(get_scorer)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(),
        "version": settings.api_version,
        "model_ready": detector.is_ready(),
        "uptime_seconds": (datetime.now() - START_TIME).total_seconds()
    }


@app.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    """Expose metrics in Prometheus format"""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


@app.post("/parse", response_model=LightCurveSummary, tags=["Ingestion"])
async def parse_upload(file: UploadFile = File(...)):
    """Parse an uploaded light curve and report what was read"""
    curve = await _read_upload(file)
    time_span = float(np.ptp(curve.time)) if curve.time else 0.0
    return LightCurveSummary(
        points=len(curve.time),
        source=curve.metadata.source,
        target_id=curve.metadata.target_id,
        has_error=curve.has_error,
        time_span=time_span,
        valid=validate_light_curve(curve)
    )


@app.post("/predict", response_model=Prediction, tags=["Prediction"])
async def predict(
    curve: LightCurve,
    background_tasks: BackgroundTasks,
    detector: ExoplanetScorer = Depends(get_scorer)
):
    """Score a light curve supplied as JSON"""
    background_tasks.add_task(log_prediction_request, curve.metadata.target_id, len(curve.time))
    return await _validated_score(curve, detector, 'json')


@app.post("/predict/upload", response_model=Prediction, tags=["Prediction"])
async def predict_upload(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    detector: ExoplanetScorer = Depends(get_scorer)
):
    """Parse an uploaded CSV/text/FITS file and score it"""
    curve = await _read_upload(file)
    background_tasks.add_task(log_prediction_request, curve.metadata.target_id, len(curve.time))
    return await _validated_score(curve, detector, 'upload')


if __name__ == "__main__":
    uvicorn.run(
        "exoplanet_screening.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )
