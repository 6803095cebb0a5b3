"""
Dataset Loader

Loads catalog datasets from the datasets directory.
Each dataset must have a manifest.json and games.json; players.json and
plays.json are optional.

Usage:
    loader = DatasetLoader(datasets_dir)

    # List available datasets
    datasets = loader.list_datasets()

    # Load a specific dataset
    dataset = loader.load_dataset("sample")
    print(dataset.manifest)
    print(f"Loaded {len(dataset.games)} games")
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from recommender.models.game import Game, PlayRecord, Player, ensure_games, ensure_plays

logger = logging.getLogger(__name__)


@dataclass
class DatasetManifest:
    """Parsed manifest.json for a dataset."""
    version: str
    name: str
    description: str
    created_at: str
    schema_version: str
    game_count: int
    player_count: int
    play_count: int
    source: Dict[str, str]

    @classmethod
    def from_dict(cls, data: Dict) -> "DatasetManifest":
        return cls(
            version=data.get("version", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            created_at=data.get("created_at", ""),
            schema_version=data.get("schema_version", "1.0"),
            game_count=data.get("game_count", 0),
            player_count=data.get("player_count", 0),
            play_count=data.get("play_count", 0),
            source=data.get("source", {}),
        )


@dataclass
class LoadedDataset:
    """A loaded dataset with its manifest and typed records."""
    folder_name: str
    path: Path
    manifest: DatasetManifest
    games: List[Game]
    players: List[Player]
    plays: List[PlayRecord]

    def get_game(self, game_id: str) -> Optional[Game]:
        return next((g for g in self.games if g.id == game_id), None)


def _read_json(path: Path) -> Any:
    with open(path) as f:
        return json.load(f)


class DatasetLoader:
    """
    Loads datasets from the datasets directory.

    Expected directory structure:
        datasets/
        ├── sample/
        │   ├── manifest.json
        │   ├── games.json
        │   ├── players.json (optional)
        │   └── plays.json (optional)
        └── ...
    """

    def __init__(self, datasets_dir: Path):
        self.datasets_dir = Path(datasets_dir)
        self._loaded_datasets: Dict[str, LoadedDataset] = {}

    def list_datasets(self) -> List[Dict[str, Any]]:
        """
        List all available datasets.

        Returns:
            List of dicts with dataset info (folder_name, version, name, counts)
        """
        datasets = []
        if not self.datasets_dir.exists():
            return datasets

        for folder in sorted(self.datasets_dir.iterdir()):
            if not folder.is_dir():
                continue
            manifest_path = folder / "manifest.json"
            if not manifest_path.exists():
                continue
            try:
                manifest_data = _read_json(manifest_path)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning("[datasets] MANIFEST_UNREADABLE folder=%s error=%s", folder.name, e)
                continue
            datasets.append({
                "folder_name": folder.name,
                "version": manifest_data.get("version", ""),
                "name": manifest_data.get("name", folder.name),
                "description": manifest_data.get("description", ""),
                "game_count": manifest_data.get("game_count", 0),
                "player_count": manifest_data.get("player_count", 0),
                "path": str(folder),
            })
        return datasets

    def load_dataset(self, folder_name: str) -> LoadedDataset:
        """
        Load a dataset.

        Raises:
            FileNotFoundError: If dataset folder or required files don't exist
            ValueError: If dataset records are invalid
        """
        if folder_name in self._loaded_datasets:
            return self._loaded_datasets[folder_name]

        folder_path = self.datasets_dir / folder_name
        if not folder_path.exists():
            raise FileNotFoundError(f"Dataset folder not found: {folder_path}")

        manifest_path = folder_path / "manifest.json"
        if not manifest_path.exists():
            raise FileNotFoundError(f"manifest.json not found in {folder_path}")
        manifest = DatasetManifest.from_dict(_read_json(manifest_path))

        games_file = manifest.source.get("games_file", "games.json")
        games_path = folder_path / games_file
        if not games_path.exists():
            raise FileNotFoundError(f"{games_file} not found in {folder_path}")
        games = ensure_games(_read_json(games_path))

        players: List[Player] = []
        players_path = folder_path / manifest.source.get("players_file", "players.json")
        if players_path.exists():
            players = [Player.model_validate(p) for p in _read_json(players_path)]

        plays: List[PlayRecord] = []
        plays_path = folder_path / manifest.source.get("plays_file", "plays.json")
        if plays_path.exists():
            plays = ensure_plays(_read_json(plays_path))

        loaded = LoadedDataset(
            folder_name=folder_name,
            path=folder_path,
            manifest=manifest,
            games=games,
            players=players,
            plays=plays,
        )
        self._loaded_datasets[folder_name] = loaded
        logger.info(
            "[datasets] LOADED folder=%s games=%s players=%s plays=%s",
            folder_name, len(games), len(players), len(plays),
        )
        return loaded

    def unload_dataset(self, folder_name: str) -> bool:
        """Drop a cached dataset. Returns False if it wasn't loaded."""
        return self._loaded_datasets.pop(folder_name, None) is not None

    def reload_dataset(self, folder_name: str) -> LoadedDataset:
        """Reload a dataset, clearing any cached version."""
        self.unload_dataset(folder_name)
        return self.load_dataset(folder_name)
