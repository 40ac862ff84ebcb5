# backend/lumetrya/main.py
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import importlib, logging

from lumetrya.config import get_settings
from lumetrya.db.session import get_db

settings = get_settings()
logging.basicConfig(level=settings.log_level)
log = logging.getLogger(__name__)

app = FastAPI(title="Lumetrya API", version="0.1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check
@app.get("/api/health")
def health():
    return {"status": "ok", "service": "lumetrya-server"}

@app.get("/api/db-check")
def db_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.exception("Database check failed")
        raise HTTPException(status_code=500, detail=f"Database connection failed: {e}") from e
    return {"ok": True, "db": "connected"}

# ---- Router mounting helper (logs reasons for optional modules; no silent failures) ----
def _mount_optional(module_path: str):
    try:
        mod = importlib.import_module(module_path)
        router = getattr(mod, "router")
        app.include_router(router)
        log.info("Mounted router: %s", module_path)
    except Exception as e:
        log.warning("Skip router %s due to error: %s", module_path, e)

# ===== Required: user data sync and dashboard (fail fast to avoid a half-broken system) =====
from lumetrya.api.user_data import router as user_data_router  # noqa: E402
from lumetrya.api.dashboard import router as dashboard_router  # noqa: E402
app.include_router(user_data_router)
app.include_router(dashboard_router)
log.info("Mounted routers: lumetrya.api.user_data, lumetrya.api.dashboard")

# ===== Optional modules (mount if present; if missing or failing, log the reason) =====
_optional_modules = [
    "lumetrya.api.analytics",   # /api/analytics/... (compare, conversions, unit economics, control chart)
    "lumetrya.api.config",      # /api/config/ai-key
    "lumetrya.api.ai_summary",  # /api/ai/report-analysis
]

for mod in _optional_modules:
    _mount_optional(mod)
