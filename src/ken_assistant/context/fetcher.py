"""Pull fresh project metadata from the tracker into the context store."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from datetime import UTC, datetime
from typing import TypeVar

from ken_assistant.context.models import ProjectContext
from ken_assistant.context.store import ContextStore
from ken_assistant.errors import FetchError
from ken_assistant.trackers.base import TrackerClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContextFetcher:
    """Refreshes context snapshots, one in-flight fetch per project.

    A caller that arrives while a refresh of the same project is running waits for
    that refresh and shares its outcome (snapshot or FetchError). Refreshes of
    different projects never wait on each other. Retries are left to the tracker
    client.
    """

    def __init__(
        self,
        tracker: TrackerClient,
        store: ContextStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._tracker = tracker
        self._store = store
        self._clock = clock or (lambda: datetime.now(UTC))
        self._in_flight: dict[str, Future[ProjectContext]] = {}
        self._registry_lock = threading.Lock()

    def refresh(self, project_id: str) -> ProjectContext:
        """Fetch labels, members and milestones and store them as one snapshot.

        Raises:
            FetchError: If any of the three retrievals fails. Nothing is stored.
        """

        with self._registry_lock:
            pending = self._in_flight.get(project_id)
            leader = pending is None
            if pending is None:
                pending = Future()
                self._in_flight[project_id] = pending

        if not leader:
            logger.debug("Waiting on in-flight context refresh", extra={"project_id": project_id})
            return pending.result()

        try:
            context = self._fetch(project_id)
            self._store.put(project_id, context)
        except BaseException as e:
            pending.set_exception(e)
            raise
        else:
            pending.set_result(context)
            return context
        finally:
            with self._registry_lock:
                self._in_flight.pop(project_id, None)

    def _fetch(self, project_id: str) -> ProjectContext:
        logger.info("Refreshing project context", extra={"project_id": project_id})

        labels = self._retrieve(project_id, "labels", self._tracker.list_labels)
        members = self._retrieve(project_id, "members", self._tracker.list_members)
        milestones = self._retrieve(project_id, "milestones", self._tracker.list_milestones)

        return ProjectContext(
            project_id=project_id,
            labels=tuple(labels),
            members=tuple(members),
            milestones=tuple(milestones),
            fetched_at=self._clock(),
        )

    def _retrieve(
        self, project_id: str, what: str, fn: Callable[[str], Sequence[T]]
    ) -> Sequence[T]:
        try:
            return fn(project_id)
        except Exception as e:
            logger.warning(
                "Context retrieval failed",
                extra={"project_id": project_id, "retrieval": what, "error": str(e)},
            )
            raise FetchError(project_id, what, str(e)) from e
