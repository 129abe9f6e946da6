"""
Simple config loader for backend components.
Reads directly from the centralized TOML config.

@.architecture
Incoming: config/filestore.toml, config/settings.py --- {TOML file, load_config calls}
Processing: load_config(), get_fallback_config() --- {2 jobs: config_loading, fallback_generation}
Outgoing: config/settings.py --- {Dict[str, Any] config data}
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "filestore.toml"


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from the centralized TOML file.

    Falls back to built-in defaults when the file is missing or unreadable.
    """
    config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Failed to load config from {config_file}: {e}")
        return get_fallback_config()


def get_fallback_config() -> Dict[str, Any]:
    """Fallback configuration if TOML file can't be loaded."""
    return {
        "STORAGE": {
            "base_path": "./data/storage/files",
            "create_directories": False,
            "overwrite_files": False,
            "confine_to_base": False,
            "delete_exact_match": True,
        },
        "MONITORING": {},
    }
