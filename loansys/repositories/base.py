"""
Base repository over a whole-collection storage backend.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import NotFoundError, StorageError
from ..models.base import Entity
from ..security.pii_protection import get_structured_logger
from .storage import LoadResult, StorageBackend

logger = get_structured_logger().get_logger(__name__)

T = TypeVar("T", bound=Entity)


class BaseRepository(ABC, Generic[T]):
    """Base repository class with common CRUD operations.

    The backend only knows how to load and save whole collections, so every
    write is a read-modify-write of the collection. The backend's lock for the
    collection serializes those cycles across every repository sharing the
    backend. Records are merged by id and the last write for an id wins.
    """

    SEQUENCE_SUFFIX = "_sequence"

    def __init__(self, storage: StorageBackend, strict_load: bool = False):
        self.storage = storage
        self.strict_load = strict_load
        self.last_load: Optional[LoadResult] = None
        self._collection = self._get_collection_name()
        self._model_class = self._get_model_class()
        self._lock = storage.lock_for(self._collection)

    @abstractmethod
    def _get_collection_name(self) -> str:
        """Return the storage collection name for this repository."""
        pass

    @abstractmethod
    def _get_model_class(self) -> Type[T]:
        """Return the model class for this repository."""
        pass

    def _row_to_model(self, row: Dict[str, Any]) -> T:
        """Convert a stored record to a model instance."""
        return self._model_class.from_record(row)

    def _model_to_dict(self, model: T) -> Dict[str, Any]:
        """Convert a model instance to a record for storage."""
        return model.to_record()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _load_models(self) -> List[T]:
        result = self.storage.load(self._collection)
        self.last_load = result

        if result.is_corrupt:
            logger.warning(
                "Corrupt collection",
                collection=self._collection,
                error=result.error,
                operation="load",
            )
            if self.strict_load:
                raise StorageError(
                    f"Collection '{self._collection}' is corrupt: {result.error}",
                    self._collection,
                )
            return []

        models = []
        for position, row in enumerate(result.records):
            try:
                models.append(self._row_to_model(row))
            except PydanticValidationError as e:
                logger.warning(
                    "Skipping invalid record",
                    collection=self._collection,
                    position=position,
                    error_count=e.error_count(),
                    operation="load",
                )
                if self.strict_load:
                    raise StorageError(
                        f"Invalid record at position {position} in '{self._collection}'",
                        self._collection,
                    ) from e
        return models

    def _write_models(self, models: List[T]) -> None:
        self.storage.save(self._collection, [self._model_to_dict(m) for m in models])

    def _next_id(self, models: List[T]) -> int:
        sequence_name = f"{self._collection}{self.SEQUENCE_SUFFIX}"
        result = self.storage.load(sequence_name)
        last_id = 0
        if result.records:
            last_id = int(result.records[0].get("lastId", 0) or 0)
        last_id = max([last_id] + [m.id for m in models if m.id is not None]) + 1
        self.storage.save(sequence_name, [{"lastId": last_id}])
        return last_id

    def find_by_id(self, id: int) -> Optional[T]:
        """Find entity by ID."""
        for model in self._load_models():
            if model.id == id:
                return model
        return None

    def get(self, id: int) -> T:
        """Find entity by ID or raise NotFoundError."""
        model = self.find_by_id(id)
        if model is None:
            raise NotFoundError(self._model_class.__name__, id)
        return model

    def find_all(self) -> List[T]:
        """Find all entities in stored order."""
        return self._load_models()

    def find_where(self, predicate: Callable[[T], bool]) -> List[T]:
        return [m for m in self._load_models() if predicate(m)]

    def save(self, model: T) -> T:
        """Save (insert or update) an entity."""
        with self._lock:
            models = self._load_models()
            if model.id is None:
                model = model.model_copy(update={"id": self._next_id(models)})
                models.append(model)
            else:
                for i, existing in enumerate(models):
                    if existing.id == model.id:
                        models[i] = model
                        break
                else:
                    models.append(model)
            self._write_models(models)
            return model

    def update(self, id: int, fn: Callable[[T], T]) -> T:
        """Apply ``fn`` to the stored entity and persist the result atomically."""
        with self._lock:
            models = self._load_models()
            for i, existing in enumerate(models):
                if existing.id == id:
                    updated = fn(existing)
                    models[i] = updated
                    self._write_models(models)
                    return updated
            raise NotFoundError(self._model_class.__name__, id)

    def delete(self, id: int) -> bool:
        """Delete entity by ID."""
        with self._lock:
            models = self._load_models()
            remaining = [m for m in models if m.id != id]
            if len(remaining) == len(models):
                return False
            self._write_models(remaining)
            return True

    def count(self) -> int:
        """Count total entities."""
        return len(self._load_models())
