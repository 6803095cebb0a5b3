"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Single .env at the project root
_root_env = Path(__file__).resolve().parent.parent / ".env"
if _root_env.exists():
    load_dotenv(_root_env)

DATA_SOURCES = ("json", "http")


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Catalog source: "json" (dataset folder) | "http" (remote catalog API)
    data_source: str = "json"
    datasets_dir: Path = Path(__file__).parent.parent / "datasets"
    dataset_name: Optional[str] = None
    catalog_api_url: Optional[str] = None

    # Recommendation records and bandit arms; in-memory when unset
    storage_dir: Optional[Path] = None

    # Optional JSON file merged into RecommendationConfig defaults
    algorithm_config_path: Optional[Path] = None

    # Whole-population batch every N minutes; 0 disables the scheduler
    batch_interval_minutes: float = 0.0

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent
        data_source = os.getenv("DATA_SOURCE", "json").strip().lower() or "json"
        if data_source not in DATA_SOURCES:
            data_source = "json"

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            data_source=data_source,
            datasets_dir=_path_env("DATASETS_DIR", base_dir / "datasets"),
            dataset_name=os.getenv("DATASET_NAME") or None,
            catalog_api_url=os.getenv("CATALOG_API_URL") or None,
            storage_dir=_path_env("STORAGE_DIR"),
            algorithm_config_path=_path_env("ALGORITHM_CONFIG_PATH"),
            batch_interval_minutes=float(os.getenv("BATCH_INTERVAL_MINUTES", "0") or 0),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.data_source == "json" and not self.datasets_dir.exists():
            errors.append(f"Datasets directory not found: {self.datasets_dir}")
        if self.data_source == "http" and not self.catalog_api_url:
            errors.append("CATALOG_API_URL is required when DATA_SOURCE=http")
        if self.algorithm_config_path and not self.algorithm_config_path.exists():
            errors.append(f"Algorithm config not found: {self.algorithm_config_path}")
        if self.batch_interval_minutes < 0:
            errors.append("BATCH_INTERVAL_MINUTES must be >= 0")
        return len(errors) == 0, errors

    def ensure_directories(self):
        """Create the storage directory if one is configured."""
        if self.storage_dir is not None:
            self.storage_dir.mkdir(parents=True, exist_ok=True)

    def load_algorithm_config(self) -> Dict[str, Any]:
        """Raw algorithm config dict from ALGORITHM_CONFIG_PATH ({} when unset)."""
        if not self.algorithm_config_path:
            return {}
        with open(self.algorithm_config_path) as f:
            return json.load(f)


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
        _config.ensure_directories()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
