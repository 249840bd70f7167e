"""Infrastructure layer — in-memory collaborator implementations.

These satisfy the protocols in :mod:`relaykit.domain.contracts` and are
suitable for tests, prototypes, and single-process deployments.
"""

from relaykit.infrastructure.cache import MemoryCache
from relaykit.infrastructure.memory import InMemoryRepository, InMemoryUnitOfWork
from relaykit.infrastructure.validation import PydanticValidator, Rule, RuleValidator

__all__ = [
    "InMemoryRepository",
    "InMemoryUnitOfWork",
    "MemoryCache",
    "PydanticValidator",
    "Rule",
    "RuleValidator",
]
