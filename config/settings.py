from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class MonitoringSettings(BaseSettings):
    """Performance monitoring settings loaded from environment variables."""

    slow_threshold_ms: int = Field(1000, ge=0)
    reservoir_capacity: int = Field(1000, ge=1)
    export_dir: str = "logs"

    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        valid = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {valid}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def _validate_format(cls, v: str) -> str:
        if v.lower() not in {"json", "console"}:
            raise ValueError("Log format must be 'json' or 'console'")
        return v.lower()

    class Config:
        env_prefix = "PERF_MONITOR_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
