"""
Catalog models: games, players, and play history.

Used by every strategy instead of raw dicts.
Built from dataset/API dicts via Game.model_validate(d) or ensure_games().
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Game(BaseModel):
    """
    Game metadata as returned by the catalog.

    All fields except id are optional to support partial data from datasets/APIs.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    provider: Optional[str] = None
    game_type: Optional[str] = None
    volatility: Optional[str] = None
    theme: Optional[str] = None
    rtp: Optional[float] = None
    min_bet: Optional[float] = None
    max_bet: Optional[float] = None
    is_mobile: bool = True
    is_desktop: bool = True
    is_active: bool = True
    release_date: Optional[str] = None
    # Lifetime distinct players; used as the global popularity tie-breaker.
    total_players: int = 0

    @property
    def rtp_band(self) -> Optional[str]:
        """Coarse RTP band used as a content feature."""
        if self.rtp is None:
            return None
        if self.rtp < 94.0:
            return "<94"
        if self.rtp < 96.0:
            return "94-96"
        return ">=96"

    def metadata(self) -> Dict[str, Any]:
        """Metadata block attached to enriched recommendations."""
        return {
            "name": self.name,
            "provider": self.provider or "Unknown",
            "gameType": self.game_type or "Unknown",
            "volatility": self.volatility,
            "rtp": self.rtp,
            "isMobile": self.is_mobile,
            "isDesktop": self.is_desktop,
            "minBetAmount": self.min_bet,
            "releaseDate": self.release_date,
        }


class Player(BaseModel):
    """Player identity plus declared preferences and segment tag."""

    model_config = ConfigDict(extra="allow")

    id: str
    segment: Optional[str] = None
    preferred_game_types: List[str] = Field(default_factory=list)
    preferred_providers: List[str] = Field(default_factory=list)
    preferred_volatility: Optional[str] = None


class PlayRecord(BaseModel):
    """One play of a game by a player."""

    model_config = ConfigDict(extra="allow")

    player_id: str
    game_id: str
    played_at: datetime
    bet_amount: float = 0.0
    session_count: int = 1

    @field_validator("played_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class PlayerProfile(BaseModel):
    """
    Aggregated read model a strategy needs for one player.

    history is sorted newest first.
    """

    player: Player
    history: List[PlayRecord] = Field(default_factory=list)

    @property
    def player_id(self) -> str:
        return self.player.id

    @property
    def is_cold_start(self) -> bool:
        return not self.history

    @property
    def played_game_ids(self) -> List[str]:
        """Distinct played game ids, most recent first."""
        seen = []
        for record in self.history:
            if record.game_id not in seen:
                seen.append(record.game_id)
        return seen

    def prefers(self, game: Game) -> int:
        """Preference match count (game type, provider, volatility); used only as a tie-breaker."""
        player = self.player
        matches = 0
        if game.game_type and game.game_type in player.preferred_game_types:
            matches += 1
        if game.provider and game.provider in player.preferred_providers:
            matches += 1
        if game.volatility and game.volatility == player.preferred_volatility:
            matches += 1
        return matches


def build_profile(player: Player, history: List[PlayRecord]) -> PlayerProfile:
    """Build a PlayerProfile with history sorted newest first."""
    ordered = sorted(history, key=lambda r: r.played_at, reverse=True)
    return PlayerProfile(player=player, history=ordered)


def ensure_games(items: List[Union[Dict[str, Any], "Game"]]) -> List["Game"]:
    """Convert list of dicts or Games to list of Game models."""
    return [Game.model_validate(g) if isinstance(g, dict) else g for g in items]


def ensure_plays(items: List[Union[Dict[str, Any], "PlayRecord"]]) -> List["PlayRecord"]:
    """Convert list of dicts or PlayRecords to list of PlayRecord models."""
    return [PlayRecord.model_validate(p) if isinstance(p, dict) else p for p in items]
