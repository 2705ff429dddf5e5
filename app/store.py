import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import pydantic
import structlog

from app.errors import StoreIOError, StoreParseError
from app.models import Dataset

log = structlog.get_logger(__name__)


class JsonStore:
    """
    Whole-file JSON persistence for the Dataset.

    Every call goes to disk; nothing is cached between requests and no lock
    is held, so concurrent writers are last-writer-wins.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    # ── reads ─────────────────────────────────────────────────────────────────

    def load(self) -> Dataset:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreIOError(f"Cannot read {self.path}: {exc}") from exc

        if not raw.strip():
            return Dataset()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreParseError(f"Invalid JSON in {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreParseError(f"Expected an object at the top of {self.path}")

        try:
            return Dataset.model_validate(data)
        except pydantic.ValidationError as exc:
            raise StoreParseError(f"Unexpected data layout in {self.path}: {exc}") from exc

    # ── writes ────────────────────────────────────────────────────────────────

    def save(self, dataset: Dataset) -> None:
        payload = json.dumps(
            dataset.model_dump(mode="json", by_alias=True),
            indent=2,
            ensure_ascii=False,
        )
        tmp_path = None
        try:
            # unique temp name per write: concurrent saves must not share it
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StoreIOError(f"Cannot write {self.path}: {exc}") from exc

    def ensure_initialized(self, seed: Optional[Dataset] = None) -> bool:
        """Write the seed data if the data file is missing. Returns True if it did."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreIOError(f"Cannot create {self.path.parent}: {exc}") from exc

        if self.path.exists():
            log.info("store.ready", path=str(self.path))
            return False

        if seed is None:
            from scripts.seed_data import default_dataset
            seed = default_dataset()
        self.save(seed)
        log.info(
            "store.seeded",
            path=str(self.path),
            admins=len(seed.admins),
            clients=len(seed.clients),
        )
        return True
