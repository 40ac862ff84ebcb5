"""In-memory state container for one user's data.

`UserDataStore` owns the current `UserData` snapshot and exposes the closed set
of mutations the UI performs. Every mutation builds a new snapshot (the old one
keeps its lists) and then notifies the subscribed listeners, which is how the
persistence gateway learns it has something to save.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Union

from pydantic import BaseModel

from lumetrya.profile import normalize_company_profile
from lumetrya.schemas.user_data import COLLECTION_MODELS, CompanyProfile, UserData

log = logging.getLogger(__name__)

Listener = Callable[[UserData], None]
Item = Union[BaseModel, Mapping[str, Any]]


def _model_for(collection: str):
    try:
        return COLLECTION_MODELS[collection]
    except KeyError:
        raise KeyError(f"unknown collection: {collection!r}") from None


def _new_item(model, item: Item) -> BaseModel:
    data = item.model_dump() if isinstance(item, BaseModel) else dict(item)
    # Store-created items always get a fresh id
    data["id"] = str(uuid.uuid4())
    return model.model_validate(data)


class UserDataStore:
    def __init__(self, initial: UserData | None = None):
        self._snapshot = initial if initial is not None else UserData()
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    @property
    def snapshot(self) -> UserData:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, snapshot: UserData, notify: bool = True) -> UserData:
        with self._lock:
            self._snapshot = snapshot
        if notify:
            for listener in list(self._listeners):
                listener(snapshot)
        return snapshot

    def _with(self, collection: str, items: List[BaseModel]) -> UserData:
        return self._snapshot.model_copy(update={collection: items})

    # ---------- collection mutations ----------
    def add(self, collection: str, item: Item) -> UserData:
        model = _model_for(collection)
        with self._lock:
            current = getattr(self._snapshot, collection)
            snapshot = self._with(collection, [_new_item(model, item)] + list(current))
        return self._commit(snapshot)

    def add_many(self, collection: str, items: Iterable[Item]) -> UserData:
        """Prepend several items at once, keeping their relative order."""
        model = _model_for(collection)
        created = [_new_item(model, i) for i in items]
        with self._lock:
            current = getattr(self._snapshot, collection)
            snapshot = self._with(collection, created + list(current))
        return self._commit(snapshot)

    def update(self, collection: str, item_id: str, changes: Union[Item, Dict[str, Any]]) -> UserData:
        model = _model_for(collection)
        patch = changes.model_dump(exclude_unset=True) if isinstance(changes, BaseModel) else dict(changes)
        with self._lock:
            current = list(getattr(self._snapshot, collection))
            for idx, existing in enumerate(current):
                if existing.id == item_id:
                    merged = {**existing.model_dump(), **patch, "id": item_id}
                    current[idx] = model.model_validate(merged)
                    break
            else:
                raise KeyError(f"{collection}: no item with id {item_id!r}")
            snapshot = self._with(collection, current)
        return self._commit(snapshot)

    def delete(self, collection: str, item_id: str) -> UserData:
        _model_for(collection)
        with self._lock:
            current = getattr(self._snapshot, collection)
            remaining = [i for i in current if i.id != item_id]
            if len(remaining) == len(current):
                raise KeyError(f"{collection}: no item with id {item_id!r}")
            snapshot = self._with(collection, remaining)
        return self._commit(snapshot)

    # ---------- scalar fields ----------
    def set_company_profile(self, profile: Union[CompanyProfile, Mapping[str, Any]]) -> UserData:
        normalized = normalize_company_profile(profile)
        with self._lock:
            snapshot = self._snapshot.model_copy(update={"companyProfile": normalized})
        return self._commit(snapshot)

    def set_company_strategy(self, strategy: str) -> UserData:
        with self._lock:
            snapshot = self._snapshot.model_copy(update={"companyStrategy": strategy or ""})
        return self._commit(snapshot)

    def replace_all(self, data: Union[UserData, Mapping[str, Any]], notify: bool = True) -> UserData:
        """Swap in a whole snapshot (used after loading from the server).

        Pass notify=False to avoid echoing freshly loaded data back as a save.
        """
        snapshot = data if isinstance(data, UserData) else UserData.model_validate(data)
        log.debug("Replacing snapshot: %d reports", len(snapshot.reports))
        return self._commit(snapshot, notify=notify)
