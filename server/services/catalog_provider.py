"""
Catalog providers for the server.

Implementations of recommender.catalog.GameCatalog:
- DatasetGameCatalog: a file-based dataset loaded by DatasetLoader
- HttpGameCatalog: a remote catalog API (requests, run off the event loop)
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from recommender.catalog import InMemoryGameCatalog
from recommender.errors import UpstreamUnavailable
from recommender.models.game import Game, PlayRecord, Player, ensure_games, ensure_plays

from .dataset_loader import LoadedDataset

logger = logging.getLogger(__name__)


class DatasetGameCatalog(InMemoryGameCatalog):
    """Catalog backed by a LoadedDataset (file-based)."""

    def __init__(self, dataset: LoadedDataset):
        super().__init__(dataset.games, dataset.players, dataset.plays)
        self.dataset = dataset


class HttpGameCatalog:
    """
    Catalog backed by a remote HTTP API.

    Expected endpoints (JSON):
        GET /games?game_type=&provider=     -> [game]
        GET /games/{id}                     -> game | 404
        GET /players                        -> [player]
        GET /players/{id}                   -> player | 404
        GET /players/{id}/plays             -> [play]
        GET /plays?since=ISO8601            -> [play]
    """

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except requests.exceptions.ConnectionError as e:
            logger.error("[catalog] CONNECTION_FAILED url=%s error=%s", url, e)
            raise UpstreamUnavailable(f"Cannot connect to catalog API at {self.base_url}")
        except requests.exceptions.RequestException as e:
            logger.error("[catalog] REQUEST_FAILED url=%s error=%s", url, e)
            raise UpstreamUnavailable(f"Catalog API request failed: {e}")

    async def _fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        return await asyncio.to_thread(self._get, path, params)

    async def get_game(self, game_id: str) -> Optional[Game]:
        data = await self._fetch(f"/games/{game_id}")
        return Game.model_validate(data) if data else None

    async def get_player(self, player_id: str) -> Optional[Player]:
        data = await self._fetch(f"/players/{player_id}")
        return Player.model_validate(data) if data else None

    async def get_player_history(self, player_id: str) -> List[PlayRecord]:
        return ensure_plays(await self._fetch(f"/players/{player_id}/plays") or [])

    async def list_active_games(
        self,
        game_type: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> List[Game]:
        params = {k: v for k, v in (("game_type", game_type), ("provider", provider)) if v}
        games = ensure_games(await self._fetch("/games", params) or [])
        return [g for g in games if g.is_active]

    async def list_players(self) -> List[Player]:
        return [Player.model_validate(p) for p in await self._fetch("/players") or []]

    async def list_play_events(self, since: Optional[datetime] = None) -> List[PlayRecord]:
        params = {"since": since.isoformat()} if since else None
        return ensure_plays(await self._fetch("/plays", params) or [])
