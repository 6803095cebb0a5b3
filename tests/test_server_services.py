"""
Server Service Tests

Dataset loading, JSON-file stores surviving a restart, and the HTTP catalog
client's error mapping.

Run:
----
    pytest tests/test_server_services.py -v
"""

import random
from pathlib import Path

import pytest
import requests

from recommender import (
    GameRecommendation,
    InteractionLedger,
    NotFound,
    PersistenceFailure,
    RecommendationConfig,
    RecommendationOrchestrator,
    UpstreamUnavailable,
)
from server.config import ServerConfig
from server.services import (
    DatasetLoader,
    HttpGameCatalog,
    JsonBanditArmStore,
    JsonRecommendationStore,
)
from tests.conftest import run

ROOT = Path(__file__).resolve().parent.parent


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


class TestDatasetLoader:
    def test_list_and_load_sample(self):
        loader = DatasetLoader(ROOT / "datasets")
        names = [d["folder_name"] for d in loader.list_datasets()]
        assert "sample" in names
        dataset = loader.load_dataset("sample")
        assert dataset.manifest.game_count == len(dataset.games)
        assert dataset.manifest.player_count == len(dataset.players)
        assert dataset.manifest.play_count == len(dataset.plays)
        assert dataset.get_game("g-retired-reels").is_active is False
        assert loader.load_dataset("sample") is dataset
        assert loader.reload_dataset("sample") is not dataset

    def test_missing_dataset(self, tmp_path):
        loader = DatasetLoader(tmp_path)
        assert loader.list_datasets() == []
        with pytest.raises(FileNotFoundError):
            loader.load_dataset("nope")


class TestJsonStores:
    def test_recommendations_survive_reload(self, tmp_path):
        path = tmp_path / "recommendations.json"
        store = JsonRecommendationStore(path)
        rec = GameRecommendation(
            player_id="p1", game_id="g1", algorithm="hybrid",
            score=0.8, confidence=0.88, position=1, generation_id="gen-1",
        )
        store.save_many([rec])
        store.update(rec.model_copy(update={"is_clicked": True}))

        reopened = JsonRecommendationStore(path)
        loaded = reopened.get(rec.id)
        assert loaded is not None
        assert loaded.is_clicked
        assert loaded.generation_id == "gen-1"
        assert len(reopened.list(player_id="p1")) == 1

    def test_arms_survive_reload(self, tmp_path):
        path = tmp_path / "bandit_arms.json"
        store = JsonBanditArmStore(path)
        store.update("lobby", "g1", 1.0)
        store.update("lobby", "g1", 0.3)
        store.update("default", "g2", -0.2)

        reopened = JsonBanditArmStore(path)
        arm = reopened.get("lobby", "g1")
        assert arm.pulls == 2
        assert arm.cumulative_reward == pytest.approx(1.3)
        assert set(reopened.arms_for_context("default")) == {"g2"}

    def test_failed_write_leaves_store_unchanged(self, tmp_path):
        path = tmp_path / "recommendations.json"
        store = JsonRecommendationStore(path)
        path.mkdir()
        rec = GameRecommendation(
            player_id="p1", game_id="g1", algorithm="hybrid",
            score=0.8, confidence=0.88, position=1,
        )
        with pytest.raises(OSError):
            store.save_many([rec])
        assert store.get(rec.id) is None
        assert store.list() == []
        assert not (tmp_path / "recommendations.json.tmp").exists()

    def test_failed_interaction_write_can_be_retried(self, tmp_path):
        path = tmp_path / "recommendations.json"
        store = JsonRecommendationStore(path)
        ledger = InteractionLedger(store)
        rec = GameRecommendation(
            player_id="p1", game_id="g1", algorithm="bandit",
            score=0.5, confidence=0.45, position=1,
        )
        ledger.append_impressions([rec])

        path.unlink()
        path.mkdir()
        with pytest.raises(PersistenceFailure):
            ledger.record(rec.id, "click")
        assert not store.get(rec.id).is_clicked
        assert "clicks" not in ledger.counters()["bandit"]

        path.rmdir()
        updated, changed = ledger.record(rec.id, "click")
        assert changed and updated.is_clicked
        assert ledger.counters()["bandit"]["clicks"] == 1
        assert JsonRecommendationStore(path).get(rec.id).is_clicked

    def test_unaudited_generation_is_not_interactable(self, tmp_path, catalog):
        path = tmp_path / "recommendations.json"
        store = JsonRecommendationStore(path)
        path.mkdir()
        orchestrator = RecommendationOrchestrator(
            catalog, recommendations=store, rng=random.Random(5)
        )
        result = run(orchestrator.get_recommendations("p-rpg", algorithm="bandit", count=2))
        assert not result.audited
        rec_id = result.recommendations[0].id
        assert store.get(rec_id) is None
        with pytest.raises(NotFound):
            orchestrator.record_interaction(rec_id, "click")

    def test_failed_arm_write_keeps_old_state(self, tmp_path):
        path = tmp_path / "bandit_arms.json"
        store = JsonBanditArmStore(path)
        store.update("lobby", "g1", 1.0)
        path.unlink()
        path.mkdir()
        with pytest.raises(OSError):
            store.update("lobby", "g1", 0.3)
        with pytest.raises(OSError):
            store.update("lobby", "g2", 1.0)
        assert store.get("lobby", "g1").pulls == 1
        assert store.get("lobby", "g2") is None

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "recommendations.json"
        path.write_text("{not json")
        assert JsonRecommendationStore(path).list() == []


class TestHttpGameCatalog:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.catalog = HttpGameCatalog("http://catalog.local/")
        self.calls = []

    def _respond(self, monkeypatch, responses):
        def fake_get(url, params=None, timeout=None):
            self.calls.append((url, params, timeout))
            outcome = responses[url]
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        monkeypatch.setattr(self.catalog._session, "get", fake_get)

    def test_game_lookup(self, monkeypatch):
        self._respond(monkeypatch, {
            "http://catalog.local/games/g1": FakeResponse(payload={
                "id": "g1", "name": "Gem Rush", "provider": "NetEnt", "game_type": "slots",
            }),
            "http://catalog.local/games/g2": FakeResponse(status_code=404),
        })
        game = run(self.catalog.get_game("g1"))
        assert game.name == "Gem Rush"
        assert run(self.catalog.get_game("g2")) is None
        assert self.calls[0][2] == 30.0

    def test_active_games_are_filtered(self, monkeypatch):
        self._respond(monkeypatch, {
            "http://catalog.local/games": FakeResponse(payload=[
                {"id": "g1", "name": "On", "is_active": True},
                {"id": "g2", "name": "Off", "is_active": False},
            ]),
        })
        games = run(self.catalog.list_active_games(game_type="slots"))
        assert [g.id for g in games] == ["g1"]
        assert self.calls[0][1] == {"game_type": "slots"}

    def test_connection_error_is_upstream_unavailable(self, monkeypatch):
        self._respond(monkeypatch, {
            "http://catalog.local/players/p1": requests.exceptions.ConnectionError("refused"),
        })
        with pytest.raises(UpstreamUnavailable):
            run(self.catalog.get_player("p1"))

    def test_server_error_is_upstream_unavailable(self, monkeypatch):
        self._respond(monkeypatch, {
            "http://catalog.local/plays": FakeResponse(status_code=500),
        })
        with pytest.raises(UpstreamUnavailable):
            run(self.catalog.list_play_events())


class TestServerConfig:
    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATA_SOURCE", "HTTP")
        monkeypatch.setenv("CATALOG_API_URL", "http://catalog.local")
        monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
        monkeypatch.setenv("BATCH_INTERVAL_MINUTES", "15")
        config = ServerConfig.from_env()
        assert config.data_source == "http"
        assert config.storage_dir == tmp_path / "storage"
        assert config.batch_interval_minutes == 15.0
        assert config.validate() == (True, [])

    def test_validate_reports_problems(self, tmp_path):
        config = ServerConfig(
            data_source="http",
            algorithm_config_path=tmp_path / "missing.json",
            batch_interval_minutes=-1,
        )
        ok, errors = config.validate()
        assert not ok
        assert len(errors) == 3

    def test_bundled_algorithm_config_matches_defaults(self):
        config = ServerConfig(algorithm_config_path=ROOT / "config" / "algorithm.json")
        engine = RecommendationConfig.from_dict(config.load_algorithm_config())
        assert engine == RecommendationConfig()
