"""
warmpath Configuration Settings
"""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Pathfinding defaults (same bounds the API layer enforces before calling down)
    max_hops: int = Field(
        default=3,
        ge=1,
        le=10,
        alias="WARMPATH_MAX_HOPS",
        description="Maximum number of hops in an introduction chain"
    )
    max_results: int = Field(
        default=5,
        ge=1,
        le=20,
        alias="WARMPATH_MAX_RESULTS",
        description="Maximum number of ranked paths to return"
    )
    min_strength: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        alias="WARMPATH_MIN_STRENGTH",
        description="Edges weaker than this are pruned during search"
    )

    # Search budget - exceeding either one means "no additional paths found"
    max_nodes_explored: int = Field(
        default=50_000,
        ge=1,
        alias="WARMPATH_MAX_NODES_EXPLORED",
        description="Upper bound on partial paths expanded per search"
    )
    search_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        alias="WARMPATH_SEARCH_TIMEOUT",
        description="Wall-clock budget for a single search (seconds)"
    )

    # Reference SQLite store used by the scripts
    db_path: Path = Field(
        default=Path("./data/warmpath.db"),
        alias="WARMPATH_DB_PATH"
    )

    log_level: str = Field(default="INFO", alias="WARMPATH_LOG_LEVEL")


settings = Settings()
