"""Client-side persistence gateway.

Keeps a `UserDataStore` in sync with the REST backend: `load()` pulls the
stored snapshot once, and afterwards every store mutation schedules a debounced
full-snapshot save. Network trouble never propagates to the caller; it is
logged and the in-memory state stays authoritative until the next save.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import requests

from lumetrya.config import get_settings
from lumetrya.schemas.user_data import COLLECTION_MODELS, UserData
from lumetrya.store import UserDataStore
from lumetrya.template import build_template

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


def _is_empty(payload: Dict[str, Any]) -> bool:
    if any(payload.get(name) for name in COLLECTION_MODELS):
        return False
    return not payload.get("companyProfile") and not payload.get("companyStrategy")


class PersistenceGateway:
    """Debounced sync between a `UserDataStore` and `/api/user-data`.

    Args:
        store: The state container to load into and watch.
        base_url: Backend root, defaults to `LUMETRYA_API_URL`.
        save_delay: Debounce delay in seconds, defaults to `LUMETRYA_SAVE_DELAY`.
        session: Optional `requests.Session` (tests pass a fake one).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        store: UserDataStore,
        base_url: Optional[str] = None,
        save_delay: Optional[float] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if base_url is None or save_delay is None:
            settings = get_settings()
            base_url = settings.api_url if base_url is None else base_url
            save_delay = settings.save_delay if save_delay is None else save_delay
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.save_delay = save_delay
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

        self.loading = False
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._save_lock = threading.Lock()
        self._revision = 0
        self._sent_revision = 0
        self._unsubscribe = store.subscribe(self._on_change)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    # ---------- reads ----------
    def health_check(self) -> bool:
        try:
            r = self.session.get(self._url("/api/health"), timeout=self.timeout)
            r.raise_for_status()
            return r.json().get("status") == "ok"
        except (requests.RequestException, ValueError) as e:
            log.warning("Health check failed: %s", e)
            return False

    def load(self) -> UserData:
        """Fetch the stored snapshot into the store.

        Falls back to the template data set when the request fails or the
        server has nothing stored. Saves are suppressed while this runs.
        """
        self.loading = True
        try:
            data = None
            try:
                r = self.session.get(self._url("/api/user-data"), timeout=self.timeout)
                r.raise_for_status()
                payload = r.json()
                if isinstance(payload, dict) and not _is_empty(payload):
                    data = UserData.model_validate(payload)
                else:
                    log.info("No stored data, using template")
            except (requests.RequestException, ValueError) as e:
                log.warning("Loading user data failed, using template: %s", e)
            if data is None:
                data = build_template()
            return self.store.replace_all(data, notify=False)
        finally:
            self.loading = False

    # ---------- writes ----------
    def _on_change(self, snapshot: UserData) -> None:
        if self.loading:
            return
        with self._timer_lock:
            self._revision += 1
            revision = self._revision
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.save_delay, self._save, args=(snapshot, revision))
            self._timer.daemon = True
            self._timer.start()

    def schedule_save(self) -> None:
        """Restart the debounce timer for the current snapshot."""
        self._on_change(self.store.snapshot)

    def _save(self, snapshot: UserData, revision: int) -> bool:
        with self._save_lock:
            # A newer snapshot was already sent; this one would overwrite it
            if revision <= self._sent_revision:
                log.debug("Skipping stale save r%d (sent r%d)", revision, self._sent_revision)
                return False
            try:
                r = self.session.post(
                    self._url("/api/user-data"),
                    json=snapshot.model_dump(mode="json"),
                    timeout=self.timeout,
                )
                r.raise_for_status()
            except requests.RequestException as e:
                log.error("Saving user data failed: %s", e)
                return False
            self._sent_revision = revision
            log.info("Saved user data r%d", revision)
            return True

    def _cancel_timer(self) -> None:
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> bool:
        """Save the latest snapshot now instead of waiting for the timer."""
        self._cancel_timer()
        with self._timer_lock:
            self._revision += 1
            revision = self._revision
        return self._save(self.store.snapshot, revision)

    def close(self) -> None:
        """Cancel any pending save and stop watching the store."""
        self._cancel_timer()
        self._unsubscribe()
        if self._owns_session:
            self.session.close()
