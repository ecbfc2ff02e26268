"""
AisAB - AIS Abnormal Behaviour Analyzer
Configuration Management Module

This module centralizes all configuration parameters for AisAB.
Covers the tracker, the statistical analyses, the persistence layer
and the HTTP surface. Values are fixed at startup.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value in (None, ""):
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value in (None, ""):
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GridConfig:
    """
    Spatial Grid Configuration.

    Attributes:
        resolution: Size of a grid cell in degrees (both latitude and longitude)
    """
    resolution: float = 0.005


@dataclass(frozen=True)
class TrackerConfig:
    """
    Track Registry Configuration.

    Attributes:
        stale_timeout_seconds: Inactivity after which a track becomes stale
        sweep_interval_seconds: Interval between staleness sweeps
    """
    stale_timeout_seconds: float = 1800.0  # 30 minutes
    sweep_interval_seconds: float = 60.0


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Statistical Analysis Configuration (one per analysis kind).

    Attributes:
        enabled: Whether the analysis subscribes to track notifications
        total_ship_count_threshold: Cell totals at or below this are inconclusive
        pd: Probability below which a judgment is abnormal
        ship_length_min: Vessels shorter than this are not analysed
        use_aggregated_stats: Collapse the ship type dimension when counting
    """
    enabled: bool = True
    total_ship_count_threshold: int = 1000
    pd: float = 0.001
    ship_length_min: int = 50
    use_aggregated_stats: bool = False


@dataclass(frozen=True)
class DispatcherConfig:
    """
    Notification Dispatcher Configuration.

    Attributes:
        max_workers: Worker threads for concurrent delivery (0 = synchronous)
    """
    max_workers: int = 4


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database Persistence Configuration.

    Supports SQLite (default) and PostgreSQL for production.

    Attributes:
        url: Database connection URL (overridable via DATABASE_URL env)
        echo: Log emitted SQL
    """
    url: str = "sqlite:///data/aisab.db"
    echo: bool = False


@dataclass(frozen=True)
class APIConfig:
    """
    API Server Configuration.

    Attributes:
        host: Server host address
        port: Server port
        cors_origins: Origins allowed to call the API from a browser
    """
    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: Tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass
class AisabConfig:
    """
    Master Configuration Container.

    Aggregates all sub-configurations. This is the primary configuration
    object handed to the analyzer pipeline.
    """
    grid: GridConfig = field(default_factory=GridConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    course_over_ground: AnalysisConfig = field(default_factory=AnalysisConfig)
    speed_over_ground: AnalysisConfig = field(default_factory=AnalysisConfig)
    ship_type_and_size: AnalysisConfig = field(default_factory=AnalysisConfig)
    dispatcher: DispatcherConfig = field(default_factory=DispatcherConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    api: APIConfig = field(default_factory=APIConfig)
    build_statistics: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "AisabConfig":
        """
        Build configuration from AISAB_* environment variables.

        A .env file is loaded first when present.

        Args:
            dotenv_path: Optional explicit path to a .env file

        Returns:
            AisabConfig with environment overrides applied
        """
        load_dotenv(dotenv_path)

        def analysis(prefix: str) -> AnalysisConfig:
            defaults = AnalysisConfig()
            return AnalysisConfig(
                enabled=_env_bool(f"{prefix}_ENABLED", defaults.enabled),
                total_ship_count_threshold=_env_int(
                    f"{prefix}_CELL_SHIPCOUNT_MIN", defaults.total_ship_count_threshold
                ),
                pd=_env_float(f"{prefix}_PD", defaults.pd),
                ship_length_min=_env_int(f"{prefix}_SHIPLENGTH_MIN", defaults.ship_length_min),
                use_aggregated_stats=_env_bool(
                    f"{prefix}_USE_AGGREGATED_STATS", defaults.use_aggregated_stats
                ),
            )

        return cls(
            grid=GridConfig(
                resolution=_env_float("AISAB_GRID_RESOLUTION", GridConfig.resolution)
            ),
            tracker=TrackerConfig(
                stale_timeout_seconds=_env_float(
                    "AISAB_TRACK_STALE_TIMEOUT", TrackerConfig.stale_timeout_seconds
                ),
                sweep_interval_seconds=_env_float(
                    "AISAB_TRACK_SWEEP_INTERVAL", TrackerConfig.sweep_interval_seconds
                ),
            ),
            course_over_ground=analysis("AISAB_ANALYSIS_COG"),
            speed_over_ground=analysis("AISAB_ANALYSIS_SOG"),
            ship_type_and_size=analysis("AISAB_ANALYSIS_TYPESIZE"),
            dispatcher=DispatcherConfig(
                max_workers=_env_int("AISAB_DISPATCHER_WORKERS", DispatcherConfig.max_workers)
            ),
            database=DatabaseConfig(
                url=os.getenv("DATABASE_URL", DatabaseConfig.url),
                echo=_env_bool("AISAB_DEBUG", DatabaseConfig.echo),
            ),
            api=APIConfig(
                host=os.getenv("AISAB_API_HOST", APIConfig.host),
                port=_env_int("AISAB_API_PORT", APIConfig.port),
                cors_origins=_env_list("AISAB_CORS_ORIGINS", APIConfig.cors_origins),
            ),
            build_statistics=_env_bool("AISAB_BUILD_STATISTICS", False),
        )
