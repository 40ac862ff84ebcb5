# backend/lumetrya/api/config.py
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional
import logging
import sqlite3

from lumetrya.db.repository import AI_KEY_CONFIG, get_config, set_config
from lumetrya.db.session import get_sqlite_conn

router = APIRouter(prefix="/api/config", tags=["config"])
log = logging.getLogger(__name__)


class AiKeyStatus(BaseModel):
    configured: bool
    maskedKey: Optional[str] = None


class AiKeyUpdate(BaseModel):
    apiKey: str = ""


def mask_key(value: str) -> str:
    """Star out everything but the last four characters."""
    return "*" * max(len(value) - 4, 0) + value[-4:]


def stored_ai_key() -> Optional[str]:
    with get_sqlite_conn() as conn:
        return get_config(conn, AI_KEY_CONFIG)


@router.get("/ai-key", response_model=AiKeyStatus)
def get_ai_key():
    try:
        value = stored_ai_key()
    except sqlite3.Error as e:
        log.exception("Reading AI key failed")
        raise HTTPException(status_code=500, detail="Internal server error") from e
    if not value:
        return AiKeyStatus(configured=False)
    return AiKeyStatus(configured=True, maskedKey=mask_key(value))


@router.post("/ai-key")
def update_ai_key(body: AiKeyUpdate):
    api_key = body.apiKey.strip()
    if not api_key:
        raise HTTPException(status_code=400, detail="API Key is required")
    with get_sqlite_conn() as conn:
        cur = conn.cursor()
        try:
            cur.execute("BEGIN")
            set_config(cur, AI_KEY_CONFIG, api_key)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            log.exception("Updating AI key failed")
            raise HTTPException(status_code=500, detail="Internal server error") from e
    return {"success": True, "message": "API Key updated successfully"}
