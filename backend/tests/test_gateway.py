# backend/tests/test_gateway.py
import pytest
import requests

from lumetrya import gateway as gateway_mod
from lumetrya.gateway import PersistenceGateway
from lumetrya.store import UserDataStore


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    """Records calls; `fail` makes every request raise a connection error."""

    def __init__(self, user_data=None, fail=False):
        self.user_data = user_data if user_data is not None else {}
        self.fail = fail
        self.posts = []

    def get(self, url, timeout=None):
        if self.fail:
            raise requests.ConnectionError("backend down")
        if url.endswith("/api/health"):
            return FakeResponse({"status": "ok", "service": "lumetrya-server"})
        return FakeResponse(self.user_data)

    def post(self, url, json=None, timeout=None):
        if self.fail:
            raise requests.ConnectionError("backend down")
        self.posts.append(json)
        return FakeResponse({"success": True})


class FakeTimer:
    created = []

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True

    def fire(self):
        return self.function(*self.args)


@pytest.fixture(autouse=True)
def fake_timer(monkeypatch):
    FakeTimer.created = []
    monkeypatch.setattr(gateway_mod.threading, "Timer", FakeTimer)
    return FakeTimer

def _gateway(session, store=None):
    return PersistenceGateway(store or UserDataStore(), base_url="http://backend", save_delay=1.0, session=session)


def test_health_check():
    assert _gateway(FakeSession()).health_check() is True
    assert _gateway(FakeSession(fail=True)).health_check() is False

def test_load_puts_server_data_in_store_without_saving():
    session = FakeSession({"reports": [{"id": "r1", "name": "Report May 2024", "creationDate": "2024-05-31"}]})
    gw = _gateway(session)
    snap = gw.load()
    assert [r.id for r in snap.reports] == ["r1"]
    assert gw.store.snapshot is snap
    assert FakeTimer.created == [] and session.posts == []
    assert gw.loading is False

@pytest.mark.parametrize("session", [FakeSession(fail=True), FakeSession({}), FakeSession({"reports": []})])
def test_load_falls_back_to_template(session):
    snap = _gateway(session).load()
    assert snap.reports and snap.reports[0].id.startswith("template-")
    assert snap.companyProfile.companyName == "Demo Company"

def test_mutations_during_load_are_not_saved():
    session = FakeSession()
    gw = _gateway(session)
    gw.loading = True
    gw.store.add("links", {"url": "https://x"})
    assert FakeTimer.created == []

def test_debounce_restarts_timer_and_saves_latest():
    session = FakeSession()
    gw = _gateway(session)
    for url in ("a", "b", "c"):
        gw.store.add("links", {"url": url})
    timers = FakeTimer.created
    assert len(timers) == 3
    assert [t.cancelled for t in timers] == [True, True, False]
    assert timers[-1].interval == 1.0

    assert timers[-1].fire() is True
    assert len(session.posts) == 1
    assert [l["url"] for l in session.posts[0]["links"]] == ["c", "b", "a"]

def test_stale_save_is_skipped():
    session = FakeSession()
    gw = _gateway(session)
    gw.store.add("links", {"url": "old"})
    gw.store.add("links", {"url": "new"})
    older, newer = FakeTimer.created
    assert newer.fire() is True
    # The older snapshot arriving late must not overwrite the newer one
    assert older.fire() is False
    assert len(session.posts) == 1

def test_flush_saves_immediately_and_cancels_timer():
    session = FakeSession()
    gw = _gateway(session)
    gw.store.set_company_strategy("Focus on 3D")
    assert gw.flush() is True
    assert FakeTimer.created[0].cancelled is True
    assert session.posts[0]["companyStrategy"] == "Focus on 3D"

def test_save_failure_is_swallowed():
    gw = _gateway(FakeSession(fail=True))
    gw.store.add("links", {"url": "x"})
    assert gw.flush() is False

def test_close_cancels_and_unsubscribes():
    session = FakeSession()
    gw = _gateway(session)
    gw.store.add("links", {"url": "x"})
    gw.close()
    assert FakeTimer.created[0].cancelled is True
    gw.store.add("links", {"url": "y"})
    assert len(FakeTimer.created) == 1
