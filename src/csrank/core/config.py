"""
Configuration Management for CSRank Bridge

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (CSRANK_*, plus PORT, STEAM_API_KEY, JWT_SECRET)
2. Configuration file
3. Default values
"""

import json
import logging
import logging.handlers
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class DatabaseConfig:
    """Configuration for the document store."""

    # SQLite file backing the documents table
    path: str = str(Path.home() / ".csrank" / "bridge.db")


@dataclass
class SteamConfig:
    """Configuration for Steam OpenID login and the Steam Web API."""

    api_key: str = ""
    # Where the mobile app receives the login result
    app_redirect_url: str = "csrank://auth/success"
    http_timeout_seconds: float = 10.0


@dataclass
class AuthConfig:
    """Configuration for application access tokens."""

    jwt_secret: str = ""
    algorithm: str = "HS256"
    expiry_hours: int = 24


@dataclass
class IngestConfig:
    """Configuration for webhook ingestion."""

    # Fallback match id when the payload has none: "timestamp" or "uuid"
    match_id_fallback: str = "timestamp"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class CSRankConfig:
    """Main configuration container."""

    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    steam: SteamConfig = field(default_factory=SteamConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    home = Path.home()
    return [
        Path.cwd() / "csrank.yaml",
        Path.cwd() / "csrank.toml",
        Path.cwd() / "csrank.json",
        home / ".config" / "csrank" / "config.yaml",
        home / ".csrank.yaml",
    ]


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    import yaml

    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    import tomllib

    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


ENV_MAPPINGS: dict[str, tuple[str, str]] = {
    "CSRANK_HOST": ("server", "host"),
    "CSRANK_PORT": ("server", "port"),
    "PORT": ("server", "port"),
    "CSRANK_DB_PATH": ("database", "path"),
    "STEAM_API_KEY": ("steam", "api_key"),
    "CSRANK_APP_REDIRECT_URL": ("steam", "app_redirect_url"),
    "CSRANK_STEAM_TIMEOUT": ("steam", "http_timeout_seconds"),
    "JWT_SECRET": ("auth", "jwt_secret"),
    "CSRANK_TOKEN_EXPIRY_HOURS": ("auth", "expiry_hours"),
    "CSRANK_MATCH_ID_FALLBACK": ("ingest", "match_id_fallback"),
    "CSRANK_LOG_LEVEL": ("logging", "level"),
    "CSRANK_LOG_FILE": ("logging", "file"),
}

# Secrets and free-form strings are never coerced to numbers
_STRING_KEYS = {("steam", "api_key"), ("auth", "jwt_secret"), ("database", "path")}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if section not in config:
            config[section] = {}

        if (section, key) not in _STRING_KEYS:
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

        config[section][key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> CSRankConfig:
    """Convert a dictionary to CSRankConfig, ignoring unknown keys."""
    config = CSRankConfig()

    for section_name in ("server", "database", "steam", "auth", "ingest", "logging"):
        section = getattr(config, section_name)
        for key, value in (data.get(section_name) or {}).items():
            if hasattr(section, key):
                setattr(section, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section_name}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> CSRankConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged CSRankConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        config_data = merge_configs(config_data, load_env_config())

    return dict_to_config(config_data)


def config_to_dict(config: CSRankConfig) -> dict[str, Any]:
    """Convert CSRankConfig to a dictionary."""
    return asdict(config)


# ============================================================================
# Logging Setup
# ============================================================================


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger from a LoggingConfig."""
    root = logging.getLogger()
    root.setLevel(config.level.upper())

    formatter = logging.Formatter(config.format)
    if not root.handlers:
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        root.addHandler(stream)

    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.file,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: CSRankConfig | None = None


def get_config() -> CSRankConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: CSRankConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration so the next access reloads it."""
    global _global_config
    _global_config = None
