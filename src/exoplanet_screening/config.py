"""
Centralized application settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings using Pydantic Settings"""

    # API Settings
    api_title: str = "Exoplanet Screening API"
    api_description: str = "Light curve ingestion and transit likelihood scoring"
    api_version: str = "1.0.0"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_methods: List[str] = ["*"]
    cors_headers: List[str] = ["*"]

    # Scorer Settings (the model load is simulated)
    model_load_delay: float = 1.0  # seconds
    feature_vector_length: int = 1000
    ideal_curve_length: int = 1000

    # Placeholder light curve (Kepler-like cadence)
    mock_start_time: float = 2454833.0  # Kepler mission start (BJD)
    mock_duration: float = 1000.0  # days
    mock_cadence: float = 0.02  # ~30 min
    mock_period: float = 365.0  # days
    mock_transit_depth: float = 0.01
    mock_transit_fraction: float = 0.1
    mock_target_id: str = "mock_target"

    # Validation thresholds
    min_time_span: float = 0.001
    max_time_span: float = 100000.0
    min_flux_mean: float = 0.01
    max_flux_mean: float = 100.0
    max_flux_variation: float = 10.0

    # Uploads
    max_upload_bytes: int = 50 * 1024 * 1024

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_prefix = "EXO_"
        case_sensitive = False
        protected_namespaces = ('settings_',)


# Global settings instance
settings = Settings()
