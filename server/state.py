"""Application state: catalog, stores, orchestrator and batch generator."""

import logging
from typing import Any, Dict, Optional

from recommender import (
    BatchGenerator,
    InMemoryBanditArmStore,
    InMemoryRecommendationStore,
    RecommendationConfig,
    RecommendationOrchestrator,
)
from recommender.catalog import GameCatalog

from .config import ServerConfig, get_config
from .services import (
    DatasetGameCatalog,
    DatasetLoader,
    HttpGameCatalog,
    JsonBanditArmStore,
    JsonRecommendationStore,
    LoadedDataset,
)

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(self, config: ServerConfig, catalog: Optional[GameCatalog] = None):
        self.config = config
        self.dataset_loader = DatasetLoader(config.datasets_dir)
        self.current_dataset: Optional[LoadedDataset] = None
        self.catalog = catalog if catalog is not None else self._create_catalog(config)
        logger.info("[startup] Catalog: %s", type(self.catalog).__name__)

        if config.storage_dir is not None:
            self.recommendation_store = JsonRecommendationStore(
                config.storage_dir / "recommendations.json"
            )
            self.arm_store = JsonBanditArmStore(config.storage_dir / "bandit_arms.json")
        else:
            self.recommendation_store = InMemoryRecommendationStore()
            self.arm_store = InMemoryBanditArmStore()
        logger.info("[startup] Recommendation store: %s", type(self.recommendation_store).__name__)

        self.algorithm_config: Dict[str, Any] = config.load_algorithm_config()
        self.orchestrator: RecommendationOrchestrator = None
        self.batch_generator: BatchGenerator = None
        self.apply_algorithm_config(self.algorithm_config)

    def _create_catalog(self, config: ServerConfig) -> GameCatalog:
        """Create the catalog from config (HTTP API or dataset folder)."""
        if config.data_source == "http":
            if not config.catalog_api_url:
                raise ValueError("CATALOG_API_URL is required when DATA_SOURCE=http")
            return HttpGameCatalog(config.catalog_api_url)
        folder = config.dataset_name
        if not folder:
            datasets = self.dataset_loader.list_datasets()
            if not datasets:
                raise FileNotFoundError(f"No datasets found in {config.datasets_dir}")
            folder = datasets[0]["folder_name"]
        self.current_dataset = self.dataset_loader.load_dataset(folder)
        return DatasetGameCatalog(self.current_dataset)

    def apply_algorithm_config(self, raw: Dict[str, Any]) -> RecommendationConfig:
        """Validate raw config and rebuild the engine around the existing stores."""
        engine_config = RecommendationConfig.from_dict(raw)
        self.algorithm_config = raw
        self.orchestrator = RecommendationOrchestrator(
            self.catalog,
            recommendations=self.recommendation_store,
            arms=self.arm_store,
            config=engine_config,
        )
        if self.batch_generator is None:
            self.batch_generator = BatchGenerator(self.orchestrator)
        else:
            # Keep the instance so a running scheduler picks up the new engine
            self.batch_generator.orchestrator = self.orchestrator
            self.batch_generator.config = engine_config
        return engine_config

    @property
    def engine_config(self) -> RecommendationConfig:
        return self.orchestrator.config


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState(get_config())
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (None resets it)."""
    global _state
    _state = state
