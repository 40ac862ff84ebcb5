# backend/lumetrya/api/user_data.py
from fastapi import APIRouter, Body, HTTPException
from typing import Any, Dict
import logging
import sqlite3

from lumetrya.config import get_settings
from lumetrya.db.repository import load_user_data, parse_payload, replace_user_data
from lumetrya.db.session import get_sqlite_conn

router = APIRouter(prefix="/api", tags=["user-data"])
log = logging.getLogger(__name__)


@router.get("/user-data")
def get_user_data() -> Dict[str, Any]:
    """Full snapshot for the configured user; missing parts come back empty."""
    user_id = get_settings().user_id
    try:
        with get_sqlite_conn() as conn:
            return load_user_data(conn, user_id)
    except sqlite3.Error as e:
        log.exception("Loading user data failed")
        raise HTTPException(status_code=500, detail=f"Failed to load user data: {e}") from e


@router.post("/user-data")
def save_user_data(payload: Dict[str, Any] = Body(default=None)):
    """
    Full replace of every part present in the body.

    Body: any subset of the `/api/user-data` fields, e.g.
    { "reports": [...], "companyProfile": {...}, "companyStrategy": "..." }

    All deletes and inserts run in one transaction: either the whole payload
    is stored or nothing changes.
    """
    if not payload:
        raise HTTPException(status_code=400, detail="No data provided")
    try:
        parsed = parse_payload(payload)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid payload: {e}") from e

    user_id = get_settings().user_id
    with get_sqlite_conn() as conn:
        cur = conn.cursor()
        try:
            cur.execute("BEGIN")
            replace_user_data(cur, user_id, parsed)
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise HTTPException(status_code=400, detail=f"Database constraint error: {e}") from e
        except sqlite3.Error as e:
            conn.rollback()
            log.exception("Saving user data failed")
            raise HTTPException(status_code=500, detail=f"Failed to sync with database: {e}") from e

    log.info("Stored user data: %s", ", ".join(sorted(parsed)))
    return {"success": True}
