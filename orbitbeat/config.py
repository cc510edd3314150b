"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Tempo analysis
    energy_window_seconds: float = 0.1  # 100ms windows, hop = window / 2
    peak_threshold_ratio: float = 0.3
    min_bpm: int = 60
    max_bpm: int = 200

    # Rotation
    angle_step: float = 0.05  # radians per reference tick per unit of speed
    reference_frame_rate: float = 60.0
    frame_rate: float = 60.0
    default_speed: float = 2.5
    default_intensity: float = 1.0
    default_radius: float = 5.0

    # Config clamp bounds
    min_speed: float = 0.01
    max_speed: float = 15.0
    min_intensity: float = 0.0
    max_intensity: float = 2.0
    min_radius: float = 0.1
    max_radius: float = 10.0

    # Visualization analyser
    analyser_fft_size: int = 2048
    analyser_smoothing: float = 0.3
    analyser_min_decibels: float = -100.0
    analyser_max_decibels: float = -30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50
    log_level: str = "info"

    model_config = {"env_prefix": "ORBITBEAT_"}


settings = Settings()
