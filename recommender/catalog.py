"""
Game & Player Catalog abstraction.

Read-only access to game metadata, players, and play history for the
strategies. Implementations: in-memory (tests, JSON datasets) here; the
server adds an HTTP client. Every method is async: catalog calls are the
only suspension points inside a recommendation request.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

from .models.game import Game, PlayRecord, Player, PlayerProfile, build_profile


class GameCatalog(Protocol):
    """Protocol for catalog access. Implement for in-memory data or a remote API."""

    async def get_game(self, game_id: str) -> Optional[Game]:
        """Return game metadata, or None if unknown."""
        ...

    async def get_player(self, player_id: str) -> Optional[Player]:
        """Return the player, or None if unknown."""
        ...

    async def get_player_history(self, player_id: str) -> List[PlayRecord]:
        """Return the player's plays (any order)."""
        ...

    async def list_active_games(
        self,
        game_type: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> List[Game]:
        """Return active games, optionally filtered."""
        ...

    async def list_players(self) -> List[Player]:
        """Return every known player (batch generation, collaborative filtering)."""
        ...

    async def list_play_events(self, since: Optional[datetime] = None) -> List[PlayRecord]:
        """Return plays at or after `since` (all plays when None)."""
        ...


async def load_profile(catalog: GameCatalog, player: Player) -> PlayerProfile:
    """Fetch history for a known player and build the profile read model."""
    history = await catalog.get_player_history(player.id)
    return build_profile(player, history)


class InMemoryGameCatalog:
    """
    Catalog backed by in-memory lists.
    Used for tests and for file-based datasets loaded by the server.
    """

    def __init__(
        self,
        games: Iterable[Game],
        players: Iterable[Player],
        plays: Iterable[PlayRecord] = (),
    ):
        self._games: Dict[str, Game] = {g.id: g for g in games}
        self._players: Dict[str, Player] = {p.id: p for p in players}
        self._plays: List[PlayRecord] = sorted(plays, key=lambda r: r.played_at)
        self._plays_by_player: Dict[str, List[PlayRecord]] = defaultdict(list)
        for record in self._plays:
            self._plays_by_player[record.player_id].append(record)

    async def get_game(self, game_id: str) -> Optional[Game]:
        return self._games.get(game_id)

    async def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    async def get_player_history(self, player_id: str) -> List[PlayRecord]:
        return list(self._plays_by_player.get(player_id, []))

    async def list_active_games(
        self,
        game_type: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> List[Game]:
        games = [g for g in self._games.values() if g.is_active]
        if game_type:
            games = [g for g in games if g.game_type == game_type]
        if provider:
            games = [g for g in games if g.provider == provider]
        return games

    async def list_players(self) -> List[Player]:
        return list(self._players.values())

    async def list_play_events(self, since: Optional[datetime] = None) -> List[PlayRecord]:
        if since is None:
            return list(self._plays)
        return [r for r in self._plays if r.played_at >= since]
