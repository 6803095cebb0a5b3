"""
JSON-file persistence for recommendation records and bandit arms.

Both stores load once on construction and rewrite their file on every
change. The file is written before the in-memory state is swapped in, so a
failed write raises and leaves both unchanged. Single process only.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Union

from recommender.models.recommendation import BanditArm, GameRecommendation
from recommender.stores import ArmKey, InMemoryBanditArmStore, InMemoryRecommendationStore

logger = logging.getLogger(__name__)


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    """Write to a sibling temp file, then replace `path`."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, path)
    except OSError:
        logger.error("[storage] WRITE_FAILED path=%s", path)
        if tmp.exists():
            tmp.unlink()
        raise


class JsonRecommendationStore(InMemoryRecommendationStore):
    """Recommendation store backed by a JSON file (e.g. storage/recommendations.json)."""

    def __init__(self, path: Union[Path, str]):
        super().__init__()
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("[storage] RECOMMENDATIONS_UNREADABLE path=%s error=%s", self._path, e)
            return
        records = [GameRecommendation.model_validate(r) for r in data.get("recommendations", [])]
        super()._commit(*self._staged(records))

    def _commit(self, records: Dict[str, GameRecommendation], order: List[str]) -> None:
        _write_json(
            self._path,
            {"recommendations": [records[rec_id].model_dump(mode="json") for rec_id in order]},
        )
        super()._commit(records, order)


class JsonBanditArmStore(InMemoryBanditArmStore):
    """Bandit arm arena backed by a JSON file (e.g. storage/bandit_arms.json)."""

    def __init__(self, path: Union[Path, str]):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Serializes whole-file snapshots across arms
        self._file_lock = threading.Lock()
        super().__init__(self._load())

    def _load(self) -> List[BanditArm]:
        if not self._path.exists():
            return []
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("[storage] ARMS_UNREADABLE path=%s error=%s", self._path, e)
            return []
        return [BanditArm.model_validate(a) for a in data.get("arms", [])]

    def _commit(self, key: ArmKey, arm: BanditArm) -> None:
        with self._file_lock:
            snapshot = dict(self._arms)
            snapshot[key] = arm
            _write_json(self._path, {"arms": [a.model_dump(mode="json") for a in snapshot.values()]})
            super()._commit(key, arm)
