# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load all configuration from environment variables / .env file.
#   Provides typed config objects to the engine, the adapters and
#   the CLI.
#
# CLASSES:
# --------
# - AnalysisConfig (dataclass)
#     sample_cap: int              (default 1000)  RELINFER_SAMPLE_CAP
#     min_sample_size: int         (default 10)    RELINFER_MIN_SAMPLE_SIZE
#     auto_suggest_threshold: float(default 0.70)  RELINFER_AUTO_SUGGEST_THRESHOLD
#     schema_baseline: float       (default 0.75)  RELINFER_SCHEMA_BASELINE
#     max_workers: int             (default 4)     RELINFER_MAX_WORKERS
#     progress_every_pairs: int    (default 10)    RELINFER_PROGRESS_EVERY_PAIRS
#     one_to_one_owner             (default source) RELINFER_ONE_TO_ONE_OWNER
#
# - MySQLConfig (dataclass)     MYSQL_HOST / PORT / USER / PASSWORD / DATABASE
# - MongoConfig (dataclass)     MONGO_HOST / PORT / USER / PASSWORD / DATABASE
# - AirtableConfig (dataclass)  AIRTABLE_API_KEY / BASE_ID / API_URL / TIMEOUT_SECONDS
#
# - AppConfig (dataclass)
#     analysis, mysql, mongo, airtable
#     log_level: str  (default "INFO")  LOG_LEVEL
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# USAGE:
# ------
#   from relinfer.config import get_config
#   config = get_config()
#   print(config.analysis.max_workers)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from relinfer.analysis.decision import OneToOneOwnership


@dataclass
class AnalysisConfig:
    """Knobs of one inference run."""
    sample_cap: int = 1000
    min_sample_size: int = 10
    auto_suggest_threshold: float = 0.70
    schema_baseline: float = 0.75
    max_workers: int = 4
    progress_every_pairs: int = 10
    one_to_one_owner: OneToOneOwnership = OneToOneOwnership.SOURCE

    def __post_init__(self):
        if self.sample_cap < 1:
            raise ValueError("sample_cap must be at least 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.progress_every_pairs < 1:
            raise ValueError("progress_every_pairs must be at least 1")
        if not 0.0 <= self.auto_suggest_threshold <= 1.0:
            raise ValueError("auto_suggest_threshold must be within [0, 1]")
        if not 0.0 <= self.schema_baseline <= 1.0:
            raise ValueError("schema_baseline must be within [0, 1]")


@dataclass
class MySQLConfig:
    """MySQL destination configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = "root"
    database: str = "relinfer"


@dataclass
class MongoConfig:
    """MongoDB source configuration."""
    host: str = "localhost"
    port: int = 27017
    user: Optional[str] = None
    password: Optional[str] = None
    database: str = "relinfer"


@dataclass
class AirtableConfig:
    api_key: Optional[str] = None
    base_id: Optional[str] = None
    api_url: str = "https://api.airtable.com"
    timeout_seconds: float = 30.0


@dataclass
class AppConfig:
    """Main application configuration."""
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    mongo: MongoConfig = field(default_factory=MongoConfig)
    airtable: AirtableConfig = field(default_factory=AirtableConfig)
    log_level: str = "INFO"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    analysis_config = AnalysisConfig(
        sample_cap=int(os.getenv("RELINFER_SAMPLE_CAP", "1000")),
        min_sample_size=int(os.getenv("RELINFER_MIN_SAMPLE_SIZE", "10")),
        auto_suggest_threshold=float(os.getenv("RELINFER_AUTO_SUGGEST_THRESHOLD", "0.70")),
        schema_baseline=float(os.getenv("RELINFER_SCHEMA_BASELINE", "0.75")),
        max_workers=int(os.getenv("RELINFER_MAX_WORKERS", "4")),
        progress_every_pairs=int(os.getenv("RELINFER_PROGRESS_EVERY_PAIRS", "10")),
        one_to_one_owner=OneToOneOwnership(os.getenv("RELINFER_ONE_TO_ONE_OWNER", "source").lower()),
    )

    mysql_config = MySQLConfig(
        host=os.getenv("MYSQL_HOST", "localhost"),
        port=int(os.getenv("MYSQL_PORT", "3306")),
        user=os.getenv("MYSQL_USER", "root"),
        password=os.getenv("MYSQL_PASSWORD", "root"),
        database=os.getenv("MYSQL_DATABASE", "relinfer"),
    )

    mongo_config = MongoConfig(
        host=os.getenv("MONGO_HOST", "localhost"),
        port=int(os.getenv("MONGO_PORT", "27017")),
        user=os.getenv("MONGO_USER") or None,
        password=os.getenv("MONGO_PASSWORD") or None,
        database=os.getenv("MONGO_DATABASE", "relinfer"),
    )

    airtable_config = AirtableConfig(
        api_key=os.getenv("AIRTABLE_API_KEY") or None,
        base_id=os.getenv("AIRTABLE_BASE_ID") or None,
        api_url=os.getenv("AIRTABLE_API_URL", "https://api.airtable.com"),
        timeout_seconds=float(os.getenv("AIRTABLE_TIMEOUT_SECONDS", "30")),
    )

    _config_instance = AppConfig(
        analysis=analysis_config,
        mysql=mysql_config,
        mongo=mongo_config,
        airtable=airtable_config,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    return _config_instance


def reset_config() -> None:
    """Forget the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None
