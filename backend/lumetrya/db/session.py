import os
import sqlite3
import logging
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

log = logging.getLogger(__name__)

# ── Paths are relative to this file (…/backend/lumetrya/db/session.py)
_THIS = Path(__file__).resolve()
PKG_DIR = _THIS.parents[1]             # backend/lumetrya
DB_DIR = PKG_DIR / "data"              # backend/lumetrya/data
DB_DIR.mkdir(parents=True, exist_ok=True)

# Default DB: backend/lumetrya/data/lumetrya.db
DEFAULT_DB_PATH = DB_DIR / "lumetrya.db"
DEFAULT_DB_URL = f"sqlite:///{DEFAULT_DB_PATH.as_posix()}"

DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DB_URL)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, future=True, connect_args=connect_args)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

# SQL scripts directory: backend/lumetrya/db/sql
SQL_DIR = _THIS.parent / "sql"
SCHEMA_SQL = SQL_DIR / "init_schema.sql"

# Every table the user-data snapshot is spread over
REQUIRED_TABLES = (
    "company_profiles", "employees", "reports", "proposals", "campaigns",
    "links", "files", "payments", "other_reports", "system_config",
)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_sqlite_conn() -> sqlite3.Connection:
    """Raw sqlite connection (for executing SQL scripts / direct queries)."""
    if engine.url.get_backend_name() != "sqlite":
        raise RuntimeError("get_sqlite_conn only supports sqlite backend")
    db_path = Path(engine.url.database)
    conn = sqlite3.connect(db_path.as_posix(), timeout=5, check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute("PRAGMA busy_timeout=5000;")
    conn.row_factory = sqlite3.Row
    return conn

def _table_exists(name: str) -> bool:
    try:
        with get_sqlite_conn() as c:
            cur = c.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,))
            return cur.fetchone() is not None
    except sqlite3.Error:
        return False

def _executescript(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"SQL file not found: {path}")
    sql = path.read_text(encoding="utf-8")
    with get_sqlite_conn() as c:
        c.executescript(sql)
        c.commit()

def bootstrap_schema(force: bool = False) -> bool:
    """Create missing tables. Returns True when the schema script ran."""
    if not force and all(_table_exists(t) for t in REQUIRED_TABLES):
        return False
    log.info("Bootstrapping schema from %s", SCHEMA_SQL)
    Path(engine.url.database).parent.mkdir(parents=True, exist_ok=True)
    _executescript(SCHEMA_SQL)
    return True

def _maybe_bootstrap():
    # Allow forced rebuild
    if os.getenv("RESET_DB", "0") == "1":
        p = Path(engine.url.database)
        if p.exists():
            log.warning("RESET_DB=1, removing %s", p)
            p.unlink()

    # Skip auto-bootstrap if disabled
    if os.getenv("AUTO_BOOTSTRAP_DB", "1") != "1":
        return

    bootstrap_schema()

try:
    _maybe_bootstrap()
except (OSError, sqlite3.Error, RuntimeError) as e:
    log.error("Schema bootstrap skipped due to error: %s", e)
