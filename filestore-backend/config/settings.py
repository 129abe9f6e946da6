"""
Settings Management

Pydantic-based settings schema with environment variable support.
Integrates with the TOML config file and provides type-safe access.

@.architecture
Incoming: utils/config.py, Environment variables, config/filestore.toml --- {Dict from load_toml_config, str from os.getenv, get_settings calls}
Processing: get_settings(), reload_settings(), Settings.__init__(), field_validator() --- {4 jobs: configuration_loading, environment_variable_merging, schema_validation, caching}
Outgoing: scripts/filestore_cli.py, tests/conftest.py --- {Settings Pydantic model with typed config sections}
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from utils.config import load_config as load_toml_config


# =============================================================================
# Settings Schemas
# =============================================================================

class StorageSettings(BaseModel):
    """File storage defaults."""
    base_path: Path = Field(default_factory=lambda: Path("./data/storage/files"))
    create_directories: bool = False
    overwrite_files: bool = False
    confine_to_base: bool = False
    delete_exact_match: bool = True


class MonitoringSettings(BaseModel):
    """Logging configuration. Unset level/format fall back to the environment preset."""
    log_level: Optional[str] = None
    log_format: Optional[str] = None  # json|text
    log_file: Optional[Path] = None

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: Optional[str]) -> Optional[str]:
        if v not in (None, 'json', 'text'):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    def logging_overrides(self) -> Dict[str, Any]:
        """configure_from_preset() keyword arguments for the values that are set."""
        overrides: Dict[str, Any] = {}
        if self.log_level:
            overrides['level'] = self.log_level
        if self.log_format:
            overrides['format_type'] = self.log_format
        if self.log_file:
            overrides['log_file'] = self.log_file
        return overrides


class Settings(BaseModel):
    """
    Main application settings.

    Loads configuration from:
    1. TOML config file (config/filestore.toml)
    2. Environment variables
    3. Defaults defined in schemas

    Priority: Environment variables > TOML config > Defaults
    """

    app_name: str = "FileStore Backend"
    app_version: str = "1.0.0"
    environment: str = "development"  # development|production|test

    storage: StorageSettings = Field(default_factory=StorageSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @property
    def confinement_dir(self) -> Optional[Path]:
        """Base directory passed to storage operations, or None when unconfined."""
        return self.storage.base_path if self.storage.confine_to_base else None

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ['development', 'production', 'test']
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v


# =============================================================================
# Settings Loader
# =============================================================================

def _env_flag(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@lru_cache()
def get_settings() -> Settings:
    """
    Load and return application settings (cached).

    Merges configuration from:
    1. TOML config file (via utils.config)
    2. Environment variables
    3. Default values

    Returns:
        Settings: Complete application settings
    """
    toml_config = load_toml_config(os.getenv("FILESTORE_CONFIG_FILE"))

    storage_settings: Dict[str, Any] = dict(toml_config.get("STORAGE", {}))
    monitoring_settings: Dict[str, Any] = dict(toml_config.get("MONITORING", {}))

    # Override with environment variables if present
    if base_path := os.getenv("STORAGE_BASE_PATH"):
        storage_settings["base_path"] = base_path
    if confine := os.getenv("STORAGE_CONFINE_TO_BASE"):
        storage_settings["confine_to_base"] = _env_flag(confine)
    if create := os.getenv("STORAGE_CREATE_DIRECTORIES"):
        storage_settings["create_directories"] = _env_flag(create)
    if overwrite := os.getenv("STORAGE_OVERWRITE_FILES"):
        storage_settings["overwrite_files"] = _env_flag(overwrite)

    if log_level := os.getenv("MONITORING_LOG_LEVEL"):
        monitoring_settings["log_level"] = log_level
    if log_format := os.getenv("MONITORING_LOG_FORMAT"):
        monitoring_settings["log_format"] = log_format
    if log_file := os.getenv("MONITORING_LOG_FILE"):
        monitoring_settings["log_file"] = log_file

    return Settings(
        environment=os.getenv("FILESTORE_ENVIRONMENT", "development"),
        storage=storage_settings,
        monitoring=monitoring_settings,
    )


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Use this when settings need to be refreshed (e.g., after config file changes).

    Returns:
        Settings: Reloaded application settings
    """
    get_settings.cache_clear()
    return get_settings()
