from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class NotificationSnapshot:
    """Local JSON copy of the scheduled notifications.

    Lets the scheduler re-arm reminders at startup before (or without) a
    round trip to the database. The database stays authoritative.
    """

    def __init__(self, path: Optional[str | Path]):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()

    def load(self) -> List[dict]:
        if self.path is None or not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable notification snapshot %s: %s", self.path, e)
            return []
        return [item for item in data if isinstance(item, dict) and item.get("id")]

    def save(self, records: Iterable[dict]) -> None:
        if self.path is None:
            return
        with self._lock:
            self._write(list(records))

    def upsert(self, record: dict) -> None:
        if self.path is None:
            return
        with self._lock:
            items = [item for item in self.load() if item["id"] != record["id"]]
            items.append(record)
            self._write(items)

    def remove(self, notification_ids: Iterable[str]) -> None:
        if self.path is None:
            return
        ids = set(notification_ids)
        with self._lock:
            self._write([item for item in self.load() if item["id"] not in ids])

    def get(self, notification_id: str) -> Optional[dict]:
        for item in self.load():
            if item["id"] == notification_id:
                return item
        return None

    def _write(self, items: List[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(items, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)
