"""
Knowledge Store - read-only access to the active knowledge base
SQL-backed store, in-memory fixture store, and a copy-and-swap cache
"""
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from campusbot.core.config import settings
from campusbot.core.database import SessionLocal
from campusbot.core.errors import MalformedEntryError, StoreUnavailableError
from campusbot.models import knowledge as kb_models
from campusbot.utils.tokenizer import normalize, parse_keywords

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnowledgeCategory:
    """A knowledge category as seen by the matcher"""
    id: int
    name: str
    description: Optional[str] = None
    active: bool = True


@dataclass(frozen=True)
class KnowledgeEntry:
    """
    Immutable snapshot of one knowledge entry.
    Normalized text is computed once here, never per query.
    """
    id: int
    category_id: int
    keywords: Tuple[str, ...]
    question: str
    answer: str
    priority: int = 1
    active: bool = True
    category_name: Optional[str] = None

    normalized_question: str = field(init=False, repr=False, compare=False)
    normalized_answer: str = field(init=False, repr=False, compare=False)
    search_blob: str = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "normalized_question", normalize(self.question))
        object.__setattr__(self, "normalized_answer", normalize(self.answer))
        object.__setattr__(self, "search_blob", normalize(
            " ".join((" ".join(self.keywords), self.question, self.answer))
        ))

    @classmethod
    def create(
        cls,
        *,
        id: int,
        category_id: int,
        keywords: Any,
        question: Any,
        answer: Any,
        priority: Any = 1,
        active: bool = True,
        category_name: Optional[str] = None
    ) -> "KnowledgeEntry":
        """
        Build an entry from raw stored values.
        Raises MalformedEntryError when a field cannot be interpreted.
        """
        try:
            entry_id, category_id = int(id), int(category_id)
        except (TypeError, ValueError):
            raise MalformedEntryError(f"Invalid id {id!r} / category {category_id!r}", entry_id=id)
        if not isinstance(question, str) or not isinstance(answer, str):
            raise MalformedEntryError("Question and answer must be text", entry_id=id)
        try:
            priority = int(priority if priority is not None else 1)
        except (TypeError, ValueError):
            raise MalformedEntryError(f"Invalid priority {priority!r}", entry_id=id)

        return cls(
            id=entry_id,
            category_id=category_id,
            keywords=parse_keywords(keywords, entry_id=id),
            question=question,
            answer=answer,
            priority=priority,
            active=bool(active),
            category_name=category_name
        )

    @classmethod
    def from_model(
        cls,
        item: "kb_models.KnowledgeItem",
        category: Optional["kb_models.KnowledgeCategory"] = None
    ) -> "KnowledgeEntry":
        category = category or item.category
        return cls.create(
            id=item.id,
            category_id=item.category_id,
            keywords=item.keywords,
            question=item.question,
            answer=item.answer,
            priority=item.priority,
            active=bool(item.is_active) and bool(category is not None and category.is_active),
            category_name=category.name if category is not None else None
        )


class KnowledgeStore(ABC):
    """Read-only view of the knowledge base used by the matcher"""

    @abstractmethod
    def active_entries(self) -> Sequence[KnowledgeEntry]:
        """
        All entries whose entry and category are both active, in no
        guaranteed order. Raises StoreUnavailableError on any backend failure.
        """

    @abstractmethod
    def entry_by_id(self, entry_id: int) -> Optional[KnowledgeEntry]:
        """Single entry lookup, None when missing"""


class SqlKnowledgeStore(KnowledgeStore):
    """
    Knowledge store backed by the knowledge_base / knowledge_categories tables.
    Opens a short-lived session per call.
    """

    def __init__(self, session_factory: Callable = SessionLocal):
        self.session_factory = session_factory

    def active_entries(self) -> List[KnowledgeEntry]:
        try:
            with self.session_factory() as db:
                rows = (
                    db.query(kb_models.KnowledgeItem, kb_models.KnowledgeCategory)
                    .join(
                        kb_models.KnowledgeCategory,
                        kb_models.KnowledgeItem.category_id == kb_models.KnowledgeCategory.id
                    )
                    .filter(
                        kb_models.KnowledgeItem.is_active == True,
                        kb_models.KnowledgeCategory.is_active == True
                    )
                    .all()
                )
                return _build_entries((item, category) for item, category in rows)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Knowledge store unavailable: {e}") from e

    def entry_by_id(self, entry_id: int) -> Optional[KnowledgeEntry]:
        try:
            with self.session_factory() as db:
                item = db.get(kb_models.KnowledgeItem, entry_id)
                if item is None:
                    return None
                try:
                    return KnowledgeEntry.from_model(item)
                except MalformedEntryError as e:
                    logger.warning("Knowledge entry %s is malformed: %s", entry_id, e)
                    return None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Knowledge store unavailable: {e}") from e


def _build_entries(rows: Iterable[Tuple[Any, Any]]) -> List[KnowledgeEntry]:
    """Convert ORM rows, skipping entries with unparseable data"""
    entries = []
    for item, category in rows:
        try:
            entries.append(KnowledgeEntry.from_model(item, category))
        except MalformedEntryError as e:
            logger.warning("Skipping malformed knowledge entry %s: %s", e.entry_id, e)
    return entries


class InMemoryKnowledgeStore(KnowledgeStore):
    """Fixture store holding categories and entries in memory"""

    def __init__(
        self,
        categories: Iterable[KnowledgeCategory] = (),
        entries: Iterable[KnowledgeEntry] = ()
    ):
        self.categories: Dict[int, KnowledgeCategory] = {c.id: c for c in categories}
        self.entries: Dict[int, KnowledgeEntry] = {e.id: e for e in entries}

    @classmethod
    def from_records(
        cls,
        categories: Iterable[Dict[str, Any]],
        entries: Iterable[Dict[str, Any]]
    ) -> "InMemoryKnowledgeStore":
        """Build from plain dict records, skipping malformed entries"""
        cats = [
            KnowledgeCategory(
                id=c["id"],
                name=c["name"],
                description=c.get("description"),
                active=c.get("active", True)
            )
            for c in categories
        ]
        names = {c.id: c.name for c in cats}

        parsed = []
        for record in entries:
            try:
                entry = KnowledgeEntry.create(
                    id=record.get("id"),
                    category_id=record.get("category_id"),
                    keywords=record.get("keywords"),
                    question=record.get("question"),
                    answer=record.get("answer"),
                    priority=record.get("priority", 1),
                    active=record.get("active", True)
                )
            except MalformedEntryError as e:
                logger.warning("Skipping malformed knowledge entry %s: %s", e.entry_id, e)
                continue
            parsed.append(replace(entry, category_name=names.get(entry.category_id)))
        return cls(cats, parsed)

    def active_entries(self) -> List[KnowledgeEntry]:
        active = []
        for entry in self.entries.values():
            category = self.categories.get(entry.category_id)
            if entry.active and category is not None and category.active:
                active.append(entry)
        return active

    def entry_by_id(self, entry_id: int) -> Optional[KnowledgeEntry]:
        return self.entries.get(entry_id)


class _Snapshot(NamedTuple):
    entries: Tuple[KnowledgeEntry, ...]
    by_id: Dict[int, KnowledgeEntry]
    loaded_at: Optional[float]


class CachedKnowledgeStore(KnowledgeStore):
    """
    In-memory cache over another store.

    The snapshot is rebuilt off to the side and published with one reference
    assignment, so readers see either the old or the new knowledge base,
    never a mix. Only refreshes take the lock.
    """

    def __init__(
        self,
        inner: KnowledgeStore,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.inner = inner
        self.ttl_seconds = settings.KB_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._snapshot: Optional[_Snapshot] = None
        self._lock = threading.Lock()
        self._generation = 0

    def active_entries(self) -> Tuple[KnowledgeEntry, ...]:
        snapshot = self._snapshot
        if snapshot is None or self._expired(snapshot):
            snapshot = self._refresh(snapshot)
        return snapshot.entries

    def entry_by_id(self, entry_id: int) -> Optional[KnowledgeEntry]:
        snapshot = self._snapshot
        if snapshot is not None and entry_id in snapshot.by_id:
            return snapshot.by_id[entry_id]
        return self.inner.entry_by_id(entry_id)

    def invalidate(self):
        """
        Force the next read to reload from the backing store.
        Does not take the refresh lock, so admin writes never wait on a slow load.
        """
        self._generation += 1
        snapshot = self._snapshot
        if snapshot is not None:
            self._snapshot = snapshot._replace(loaded_at=None)

    def stats(self) -> dict:
        snapshot = self._snapshot
        if snapshot is None:
            return {"loaded": False, "entries": 0, "age_seconds": None}
        age = None if snapshot.loaded_at is None else round(self._clock() - snapshot.loaded_at, 3)
        return {"loaded": True, "entries": len(snapshot.entries), "age_seconds": age}

    def _expired(self, snapshot: _Snapshot) -> bool:
        if snapshot.loaded_at is None:
            return True
        return self._clock() - snapshot.loaded_at >= self.ttl_seconds

    def _refresh(self, seen: Optional[_Snapshot]) -> _Snapshot:
        # Single-flight: the lock is held across the backing store read
        with self._lock:
            current = self._snapshot
            # Another reader refreshed while we waited
            if current is not None and current is not seen and not self._expired(current):
                return current

            generation = self._generation
            try:
                entries = tuple(self.inner.active_entries())
            except StoreUnavailableError as e:
                if current is None:
                    raise
                logger.warning(
                    "Knowledge refresh failed, serving %d cached entries: %s",
                    len(current.entries), e
                )
                # Back off for one TTL before hitting the store again
                current = current._replace(loaded_at=self._clock())
                self._snapshot = current
                return current

            # An invalidate during the load leaves the result already expired
            loaded_at = self._clock() if generation == self._generation else None
            fresh = _Snapshot(entries, {e.id: e for e in entries}, loaded_at)
            self._snapshot = fresh
            logger.info("Knowledge cache refreshed: %d active entries", len(entries))
            return fresh
