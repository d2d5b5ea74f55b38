"""Core configuration with Pydantic v2 Settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Factur-X settings with environment variable support."""

    log_level: str = "INFO"

    # Indentation of the generated CII XML (element order and values are unaffected)
    xml_pretty_print: bool = True

    # Reconciliation rules (BR-CO-*) compare amounts quantized to this many places
    amount_decimal_places: int = Field(default=2, ge=0, le=8)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        up = value.upper()
        if up not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return "INFO"
        return up


# Global settings instance
settings = Settings()
