"""
Configuration settings for the city wall loader
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import os
import re

from dotenv import load_dotenv
from loguru import logger


_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class ExtractConfig:
    """What to pull out of the PBF extract"""
    input_path: str = "germany-latest.osm.pbf"
    
    # Target category (exactly one key=value tag)
    tag_key: str = "barrier"
    tag_value: str = "city_wall"
    
    # Tag passed through verbatim as the record name
    name_tag: str = "name"
    
    # Digits after the decimal point in LineString text
    coordinate_precision: int = 7


@dataclass
class DatabaseConfig:
    """PostGIS destination settings"""
    host: str = "localhost"
    port: int = 5432
    dbname: str = "cwall_dir"
    user: str = "cwall"
    password: str = "cwall"
    
    # Destination table, dropped and recreated on every run
    table: str = "cwalls"
    srid: int = 4326
    
    connect_timeout: int = 10  # seconds
    
    def dsn(self) -> Dict[str, Any]:
        """Connection keywords for psycopg2.connect"""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.dbname,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
        }


@dataclass
class PipelineConfig:
    """Pipeline configuration"""
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


# Global config instance
config = PipelineConfig()


def get_config() -> PipelineConfig:
    """Get global configuration"""
    return config


# Environment variable -> (section, attribute, converter)
ENV_OVERRIDES = {
    "CWALL_PBF": ("extract", "input_path", str),
    "CWALL_DB_HOST": ("database", "host", str),
    "CWALL_DB_PORT": ("database", "port", int),
    "CWALL_DB_NAME": ("database", "dbname", str),
    "CWALL_DB_USER": ("database", "user", str),
    "CWALL_DB_PASSWORD": ("database", "password", str),
    "CWALL_DB_TABLE": ("database", "table", str),
}


def load_config_from_env(
    base: Optional[PipelineConfig] = None,
    env_file: Optional[str] = None
) -> PipelineConfig:
    """
    Apply CWALL_* environment variables on top of a configuration.
    
    A .env file is loaded first (existing environment variables win).
    
    Args:
        base: Configuration to update (defaults to a fresh PipelineConfig)
        env_file: Explicit .env path, otherwise python-dotenv searches for one
        
    Returns:
        The updated configuration
        
    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    cfg = base or PipelineConfig()
    
    if env_file:
        load_dotenv(env_file, override=False)
    else:
        load_dotenv(override=False)
    
    for name, (section, attr, convert) in ENV_OVERRIDES.items():
        raw = os.getenv(name)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError as e:
            raise ValueError(f"{name} has an invalid value {raw!r}") from e
        setattr(getattr(cfg, section), attr, value)
        logger.debug(f"Config override from {name}: {section}.{attr}")
    
    return cfg


def validate_config(config: PipelineConfig) -> None:
    """
    Validate that all required configuration values are set.
    Raises ValueError if any required value is missing or invalid.
    """
    errors = []
    
    extract = config.extract
    if not extract.input_path:
        errors.append("extract.input_path is required but not set")
    if not extract.tag_key or not extract.tag_value:
        errors.append("extract.tag_key and extract.tag_value are required but not set")
    if not 0 <= extract.coordinate_precision <= 15:
        errors.append(
            f"extract.coordinate_precision must be between 0 and 15, got {extract.coordinate_precision}"
        )
    
    db = config.database
    if not db.host:
        errors.append("database.host is required but not set")
    if not 0 < db.port < 65536:
        errors.append(f"database.port must be between 1 and 65535, got {db.port}")
    if not db.dbname:
        errors.append("database.dbname is required but not set")
    # Table name is interpolated into DDL, so only plain identifiers are allowed
    if not db.table or not _IDENTIFIER_RE.match(db.table):
        errors.append(f"database.table must be a plain SQL identifier, got {db.table!r}")
    
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ValueError(error_msg)
