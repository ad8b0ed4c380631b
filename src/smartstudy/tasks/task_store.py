# src/smartstudy/tasks/task_store.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator

from ..core.ports import KeyValueStore
from .task_models import Task, default_tasks

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Ordered in-memory task collection backed by a key-value blob.

    Persistence model:
    - one JSON array under a single key, rewritten in full after every mutation
    - no partial writes, no incremental updates
    - malformed data on load falls back to the seed collection (the blob is a
      cache, not the source of truth)

    Not thread-safe on its own; callers serialize through AppState.lock.
    """

    def __init__(self, kv: KeyValueStore, key: str = "ssp_tasks", *, today: str | None = None) -> None:
        self._kv = kv
        self._key = key
        self._tasks: list[Task] = self.load(today=today)
        logger.info("TaskStore ready key=%s total=%d", self._key, len(self._tasks))

    # ---- persistence ----

    def load(self, *, today: str | None = None) -> list[Task]:
        try:
            raw = self._kv.get(self._key)
            if raw is None:
                return default_tasks(today)
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            tasks = [Task.from_dict(item) for item in data]
            ids = [t.id for t in tasks]
            if len(set(ids)) != len(ids):
                raise ValueError("duplicate task ids in persisted data")
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Persisted tasks under %s are malformed (%s); using defaults.", self._key, e)
            return default_tasks(today)

        return tasks

    def save(self) -> None:
        payload = json.dumps([t.to_dict() for t in self._tasks], ensure_ascii=False)
        self._kv.set(self._key, payload)
        logger.debug("Saved %d tasks to %s", len(self._tasks), self._key)

    # ---- reads ----

    def all(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks))

    # ---- mutations (each ends with a full snapshot write) ----

    def append(self, tasks: Iterable[Task]) -> None:
        new = list(tasks)
        known = {t.id for t in self._tasks}
        for t in new:
            if t.id in known:
                raise ValueError(f"duplicate task id: {t.id}")
            known.add(t.id)
        self._tasks.extend(new)
        self.save()

    def replace(self, task: Task) -> None:
        for i, t in enumerate(self._tasks):
            if t.id == task.id:
                self._tasks[i] = task
                self.save()
                return
        raise KeyError(task.id)

    def requeue(self, updated: Iterable[Task]) -> None:
        """
        Drop the tasks sharing ids with `updated`, then append `updated` at the end.

        Single snapshot write. Ids not present in the store are rejected so the
        collection can only change shape through append().
        """
        new = list(updated)
        known = {t.id for t in self._tasks}
        missing = [t.id for t in new if t.id not in known]
        if missing:
            raise KeyError(missing[0])
        drop = {t.id for t in new}
        self._tasks = [t for t in self._tasks if t.id not in drop] + new
        self.save()
