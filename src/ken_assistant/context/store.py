"""In-memory project context cache with optional JSON-file persistence."""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from ken_assistant.context.models import ProjectContext

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


class ContextSnapshotFile:
    """JSON-file backed persistence for context snapshots, one file per project."""

    def __init__(self, directory: Path) -> None:
        self._dir = directory

    def path_for(self, project_id: str) -> Path:
        safe = _UNSAFE_FILENAME_CHARS.sub("_", project_id)
        return self._dir / f"{safe}.json"

    def load(self, project_id: str) -> ProjectContext | None:
        path = self.path_for(project_id)
        if not path.exists():
            return None

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            context = ProjectContext.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError):
            logger.warning(
                "Context snapshot file is unreadable; treating as absent",
                extra={"path": str(path)},
            )
            return None

        if context.project_id != project_id:
            logger.warning(
                "Context snapshot file belongs to another project; ignoring",
                extra={"path": str(path), "stored_project_id": context.project_id},
            )
            return None
        return context

    def save(self, context: ProjectContext) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(context.project_id)
        tmp = path.parent / f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp"
        tmp.write_text(
            json.dumps(context.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        tmp.replace(path)

    def exists(self, project_id: str) -> bool:
        return self.path_for(project_id).exists()

    def delete(self, project_id: str) -> None:
        self.path_for(project_id).unlink(missing_ok=True)


class ContextStore:
    """Holds the last-fetched snapshot per project id.

    Reads never take the lock. Snapshots are immutable and the mapping entry is
    swapped in a single assignment, so a reader sees either the old or the new
    snapshot and never a partial one.
    """

    def __init__(self, persistence: ContextSnapshotFile | None = None) -> None:
        self._snapshots: dict[str, ProjectContext] = {}
        self._persistence = persistence
        self._write_lock = threading.Lock()

    def get(self, project_id: str) -> ProjectContext | None:
        """Return the cached snapshot, or None when the project was never fetched."""

        context = self._snapshots.get(project_id)
        if context is not None or self._persistence is None:
            return context

        loaded = self._persistence.load(project_id)
        if loaded is None:
            return None

        with self._write_lock:
            # A concurrent put wins over the on-disk copy; a concurrent invalidate
            # removed the file, so the copy read before it must not come back.
            if project_id not in self._snapshots and not self._persistence.exists(project_id):
                return None
            current = self._snapshots.setdefault(project_id, loaded)
        logger.debug("Loaded persisted context", extra={"project_id": project_id})
        return current

    def put(self, project_id: str, context: ProjectContext) -> None:
        """Replace the whole snapshot for a project."""

        if context.project_id != project_id:
            raise ValueError(
                f"Context for {context.project_id!r} cannot be stored under {project_id!r}"
            )

        with self._write_lock:
            if self._persistence is not None:
                try:
                    self._persistence.save(context)
                except OSError as e:
                    logger.warning(
                        "Could not persist project context; keeping it in memory only",
                        extra={"project_id": project_id, "error": str(e)},
                    )
            self._snapshots[project_id] = context

        logger.info(
            "Stored project context",
            extra={
                "project_id": project_id,
                "labels": len(context.labels),
                "members": len(context.members),
                "milestones": len(context.milestones),
            },
        )

    def invalidate(self, project_id: str) -> None:
        """Drop the snapshot so the next consumer has to request a refresh."""

        with self._write_lock:
            self._snapshots.pop(project_id, None)
            if self._persistence is not None:
                self._persistence.delete(project_id)

        logger.info("Invalidated project context", extra={"project_id": project_id})

    def is_stale(
        self, project_id: str, max_age: timedelta, *, now: datetime | None = None
    ) -> bool:
        context = self.get(project_id)
        if context is None:
            return True
        return context.age(now or datetime.now(UTC)) > max_age.total_seconds()
