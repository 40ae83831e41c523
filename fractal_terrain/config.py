"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from TERRAIN_* environment variables."""

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    # Output Configuration
    output_dir: str = Field(default=".", description="Directory for generated scene files")

    # Generation Defaults
    default_exponent: int = Field(default=7, description="Default grid exponent n")
    default_dimension: float = Field(default=2.2, description="Default fractal dimension D")
    default_seed: int = Field(default=852, description="Default random seed")
    default_sigma: float = Field(default=1.0, description="Default initial standard deviation")
    max_exponent: int = Field(default=12, description="Largest grid exponent accepted")

    # Scene Configuration
    image_width: int = Field(default=800, description="Rendered image width")
    image_height: int = Field(default=600, description="Rendered image height")

    model_config = SettingsConfigDict(
        env_prefix="TERRAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
