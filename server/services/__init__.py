"""Backing logic: dataset loading, catalog providers, JSON-file stores."""

from .catalog_provider import DatasetGameCatalog, HttpGameCatalog
from .dataset_loader import DatasetLoader, DatasetManifest, LoadedDataset
from .json_stores import JsonBanditArmStore, JsonRecommendationStore

__all__ = [
    "DatasetGameCatalog",
    "DatasetLoader",
    "DatasetManifest",
    "HttpGameCatalog",
    "JsonBanditArmStore",
    "JsonRecommendationStore",
    "LoadedDataset",
]
