# backend/tests/conftest.py
import os, sys, sqlite3, pathlib, pytest
from fastapi.testclient import TestClient

BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]   # .../backend
PKG_DIR = BACKEND_DIR / "lumetrya"
DB_PATH = PKG_DIR / "data" / "test.db"

# Make `from lumetrya.*` importable
sys.path.insert(0, str(BACKEND_DIR))

# Set the database path early (engine is built at import time); never touch a real DB
os.environ["DATABASE_URL"] = f"sqlite:///{DB_PATH}"
os.environ["AUTO_BOOTSTRAP_DB"] = "0"
# Keep report analysis on the heuristic path
os.environ["OPENAI_API_KEY"] = ""

SCHEMA_SQL = PKG_DIR / "db" / "sql" / "init_schema.sql"

TABLES = (
    "company_profiles", "employees", "reports", "proposals", "campaigns",
    "links", "files", "payments", "other_reports", "system_config",
)

def _exec_sql(conn: sqlite3.Connection, file_path: pathlib.Path):
    with file_path.open("r", encoding="utf-8") as f:
        conn.executescript(f.read())

@pytest.fixture(scope="session", autouse=True)
def _prepare_db():
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    if DB_PATH.exists():
        DB_PATH.unlink()
    with sqlite3.connect(DB_PATH) as conn:
        _exec_sql(conn, SCHEMA_SQL)
    yield
    if DB_PATH.exists():
        DB_PATH.unlink()

@pytest.fixture()
def clean_db():
    """Empty every table so each API test starts from nothing stored."""
    with sqlite3.connect(DB_PATH) as conn:
        for t in TABLES:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    yield

@pytest.fixture()
def client(clean_db, monkeypatch):
    from lumetrya.main import app
    from lumetrya.api import ai_summary
    monkeypatch.setattr(ai_summary, "_LAST_CALL_TS", 0.0)
    return TestClient(app)

# ---------- report builders shared by the analytics tests ----------
def metrics(budget=0, clicks=0, leads=0, proposals=0, invoices=0, deals=0, sales=0):
    return {
        "budget": budget, "clicks": clicks, "leads": leads, "proposals": proposals,
        "invoices": invoices, "deals": deals, "sales": sales,
    }

def make_report(rid, date, name=None, directions=None, **m):
    from lumetrya.schemas.metrics import Report
    return Report.model_validate({
        "id": rid,
        "name": name or f"Report {rid} 2024",
        "creationDate": date,
        "metrics": metrics(**m),
        "directions": directions or {},
    })
