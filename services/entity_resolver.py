"""
Cross-reference resolution for imported rows.

Turns the raw key a row carries (an id, an order number, a contact name)
into the id of an existing entity, a freshly created placeholder, or a
failure reason. One resolver serves one commit batch: its cache makes
sure a key first seen on row 3 and again on row 40 maps to the same
entity, and its lock keeps concurrent rows from creating the same
placeholder twice.
"""

import re
import threading
from dataclasses import dataclass
from typing import Optional, Protocol, Union
import structlog

from exceptions import AppError, DuplicateError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Matched:
    """Key refers to an entity that already existed."""
    entity_id: int


@dataclass(frozen=True)
class Created:
    """No entity existed; a placeholder was created for this key."""
    entity_id: int


@dataclass(frozen=True)
class Failed:
    """Key could not be resolved. transient marks store errors."""
    reason: str
    transient: bool = False


ResolutionResult = Union[Matched, Created, Failed]


class EntityRepository(Protocol):
    entity_name: str
    supports_placeholders: bool

    def find_by_id(self, entity_id: int, owner_id: int): ...

    def find_by_natural_key(self, key: str, owner_id: int): ...

    def create_placeholder(self, key: str, owner_id: int): ...


class EntityResolver:
    """
    Resolves natural keys against one repository for one batch.

    Args:
        repository: Lookup/creation access for the referenced entity
        placeholder_key_pattern: Keys must match this to get a placeholder.
            None means any non-empty key qualifies.
    """

    def __init__(
        self,
        repository: EntityRepository,
        placeholder_key_pattern: Optional[str] = None
    ):
        self.repository = repository
        self._placeholder_pattern = (
            re.compile(placeholder_key_pattern) if placeholder_key_pattern else None
        )
        self._lock = threading.Lock()
        self._resolved: dict[tuple[int, str], ResolutionResult] = {}
        self._placeholders: list[int] = []

    @property
    def placeholders_created(self) -> list[int]:
        """Ids of placeholders created by this resolver, in creation order."""
        with self._lock:
            return list(self._placeholders)

    def resolve(self, natural_key_value: str, owner_id: int) -> ResolutionResult:
        """
        Resolve a raw key for an owner.

        Order of attempts: id lookup (when the key is a positive integer),
        natural key lookup, then placeholder creation when the repository
        supports it and the key qualifies. A key resolved earlier in the
        batch returns the same entity without touching the store again.

        Never raises for missing data or store errors; those come back as
        Failed.
        """
        key = (natural_key_value or "").strip()
        entity = self.repository.entity_name
        if not key:
            return Failed(f"{entity} reference is empty")

        cache_key = (owner_id, key)
        with self._lock:
            cached = self._resolved.get(cache_key)
            if cached is not None:
                # Later rows see the placeholder as an existing entity
                if isinstance(cached, Created):
                    return Matched(cached.entity_id)
                return cached

            result = self._resolve_uncached(key, owner_id)
            if not (isinstance(result, Failed) and result.transient):
                self._resolved[cache_key] = result
            if isinstance(result, Created):
                self._placeholders.append(result.entity_id)
            return result

    def _resolve_uncached(self, key: str, owner_id: int) -> ResolutionResult:
        entity = self.repository.entity_name
        try:
            entity_id = _as_id(key)
            if entity_id is not None:
                found = self.repository.find_by_id(entity_id, owner_id)
                if found is not None:
                    return Matched(found.id)

            found = self.repository.find_by_natural_key(key, owner_id)
            if found is not None:
                return Matched(found.id)

            if not self._may_create_placeholder(key):
                logger.debug("entity_not_found", entity=entity, key=key)
                return Failed(f"{entity} not found: {key}")

            return self._create_placeholder(key, owner_id)

        except AppError as e:
            logger.warning(
                "entity_resolution_failed",
                entity=entity,
                key=key,
                error=e.message
            )
            return Failed(f"Could not resolve {entity.lower()} {key}: {e.message}", transient=True)

    def _may_create_placeholder(self, key: str) -> bool:
        if not self.repository.supports_placeholders:
            return False
        if self._placeholder_pattern is None:
            return True
        return self._placeholder_pattern.match(key) is not None

    def _create_placeholder(self, key: str, owner_id: int) -> ResolutionResult:
        try:
            created = self.repository.create_placeholder(key, owner_id)
            return Created(created.id)
        except DuplicateError:
            # Another writer got there first; use theirs
            found = self.repository.find_by_natural_key(key, owner_id)
            if found is not None:
                logger.info(
                    "placeholder_race_resolved",
                    entity=self.repository.entity_name,
                    key=key,
                    entity_id=found.id
                )
                return Matched(found.id)
            raise


def _as_id(key: str) -> Optional[int]:
    """Key as a positive integer id, or None."""
    try:
        value = int(key)
    except ValueError:
        return None
    return value if value > 0 else None
