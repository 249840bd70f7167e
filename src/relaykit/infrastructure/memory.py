"""In-memory repository and unit of work.

Repositories stage ``add`` / ``remove`` calls; nothing becomes visible to
other units of work until :meth:`InMemoryUnitOfWork.save_changes` commits
the staged changes of every enlisted repository.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from relaykit.domain.specification import Specification

logger = logging.getLogger(__name__)


def _default_identity(entity: Any) -> Hashable:
    return entity.id


class InMemoryRepository[E]:
    """Dict-backed repository implementing the ``Repository`` protocol.

    Parameters:
        identity: Extracts the key of an entity (default: ``entity.id``).
    """

    def __init__(self, identity: Callable[[E], Hashable] = _default_identity) -> None:
        self._identity = identity
        self._committed: dict[Hashable, E] = {}
        self._added: dict[Hashable, E] = {}
        self._removed: set[Hashable] = set()
        self._lock = threading.RLock()

    def find_by_id(self, entity_id: Hashable) -> E | None:
        with self._lock:
            if entity_id in self._removed:
                return None
            if entity_id in self._added:
                return self._added[entity_id]
            return self._committed.get(entity_id)

    def add(self, entity: E) -> None:
        with self._lock:
            key = self._identity(entity)
            self._removed.discard(key)
            self._added[key] = entity

    def remove(self, entity: E) -> None:
        with self._lock:
            key = self._identity(entity)
            self._added.pop(key, None)
            if key in self._committed:
                self._removed.add(key)

    def query(self, specification: Specification[E]) -> list[E]:
        with self._lock:
            visible = {**self._committed, **self._added}
            return [
                entity
                for key, entity in visible.items()
                if key not in self._removed and specification.is_satisfied_by(entity)
            ]

    @property
    def pending_changes(self) -> int:
        with self._lock:
            return len(self._added) + len(self._removed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._committed)

    # ------------------------------------------------------------------
    # Unit-of-work integration
    # ------------------------------------------------------------------

    def _commit(self) -> int:
        with self._lock:
            written = len(self._added) + len(self._removed)
            self._committed.update(self._added)
            for key in self._removed:
                self._committed.pop(key, None)
            self._added.clear()
            self._removed.clear()
            return written

    def _discard(self) -> None:
        with self._lock:
            self._added.clear()
            self._removed.clear()


class InMemoryUnitOfWork:
    """Commit or discard staged changes across a set of repositories."""

    def __init__(self, *repositories: InMemoryRepository[Any]) -> None:
        self._repositories = list(repositories)
        self.commits = 0
        self.rollbacks = 0

    def enlist(self, repository: InMemoryRepository[Any]) -> None:
        self._repositories.append(repository)

    def save_changes(self) -> int:
        written = sum(repo._commit() for repo in self._repositories)
        self.commits += 1
        logger.debug("Unit of work committed %d change(s)", written)
        return written

    def rollback(self) -> None:
        for repo in self._repositories:
            repo._discard()
        self.rollbacks += 1
