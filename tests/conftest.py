"""
Shared fixtures: a small in-memory casino catalog with play history relative
to the current time, and an orchestrator with a seeded random source.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from recommender import (
    Game,
    InMemoryGameCatalog,
    PlayRecord,
    Player,
    RecommendationConfig,
    RecommendationOrchestrator,
)

NOW = datetime.now(timezone.utc)


def run(coro):
    """Drive a coroutine from a sync test."""
    return asyncio.run(coro)


def game(game_id, game_type, provider, volatility="medium", theme="fantasy", rtp=96.0, **extra):
    return Game(
        id=game_id,
        name=game_id.replace("-", " ").title(),
        provider=provider,
        game_type=game_type,
        volatility=volatility,
        theme=theme,
        rtp=rtp,
        **extra,
    )


def play(player_id, game_id, hours_ago, sessions=1):
    return PlayRecord(
        player_id=player_id,
        game_id=game_id,
        played_at=NOW - timedelta(hours=hours_ago),
        session_count=sessions,
    )


GAMES = [
    game("rpg-dragon", "rpg", "NetEnt", "high", "fantasy", 96.2, total_players=900),
    game("rpg-knight", "rpg", "NetEnt", "medium", "medieval", 95.5, total_players=700),
    game("rpg-elf", "rpg", "PlayNGo", "medium", "fantasy", 95.0, total_players=500),
    game("rpg-mage", "rpg", "PlayNGo", "low", "fantasy", 96.0, total_players=300),
    game("rpg-orc", "rpg", "NetEnt", "high", "fantasy", 96.5, total_players=250),
    game("rpg-rogue", "rpg", "Pragmatic", "high", "fantasy", 94.5, total_players=150),
    game("slot-star", "slots", "NetEnt", "low", "space", 96.1, total_players=2000),
    game("slot-fruit", "slots", "Pragmatic", "medium", "fruit", 93.5, total_players=1500),
    game("slot-egypt", "slots", "PlayNGo", "high", "egypt", 96.2, total_players=1800),
    game("table-roulette", "table", "Evolution", "low", "classic", 97.3, total_players=1200),
    game("table-blackjack", "table", "Evolution", "low", "classic", 99.5, total_players=1100),
    game("live-wheel", "live", "Evolution", "high", "gameshow", 95.5, total_players=1300),
    game("old-reels", "slots", "NetEnt", "medium", "classic", 95.0, is_active=False, total_players=50),
]

PLAYERS = [
    Player(id="p-rpg", preferred_game_types=["rpg"], preferred_providers=["NetEnt"]),
    Player(id="p-rpg2", preferred_game_types=["rpg"]),
    Player(id="p-slots", preferred_game_types=["slots"], preferred_providers=["Pragmatic"]),
    Player(id="p-table", preferred_game_types=["table"], preferred_volatility="low"),
    Player(id="p-mixed"),
    Player(id="p-cold", segment="new"),
]

PLAYS = [
    # p-rpg: three RPG plays
    play("p-rpg", "rpg-dragon", 30, sessions=4),
    play("p-rpg", "rpg-knight", 20, sessions=2),
    play("p-rpg", "rpg-elf", 5, sessions=1),
    # p-rpg2 overlaps with p-rpg and has played other RPGs
    play("p-rpg2", "rpg-dragon", 40, sessions=3),
    play("p-rpg2", "rpg-knight", 35, sessions=2),
    play("p-rpg2", "rpg-mage", 10, sessions=3),
    play("p-rpg2", "rpg-orc", 3, sessions=2),
    play("p-slots", "slot-star", 50, sessions=5),
    play("p-slots", "slot-fruit", 12, sessions=2),
    play("p-slots", "rpg-dragon", 2, sessions=1),
    play("p-table", "table-roulette", 100, sessions=6),
    play("p-table", "table-blackjack", 60, sessions=3),
    play("p-mixed", "slot-egypt", 4, sessions=2),
    play("p-mixed", "live-wheel", 1, sessions=1),
    play("p-mixed", "rpg-elf", 200, sessions=1),
]


@pytest.fixture
def catalog():
    return InMemoryGameCatalog(GAMES, PLAYERS, PLAYS)


@pytest.fixture
def config():
    return RecommendationConfig()


@pytest.fixture
def orchestrator(catalog, config):
    return RecommendationOrchestrator(catalog, config=config, rng=random.Random(7))
