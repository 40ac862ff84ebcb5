"""Row mapping between the sqlite tables and the `UserData` snapshot.

Each collection maps to one table through a declarative field list. Values
tagged "json" are stored as JSON text; everything else goes in as-is.
The knowledge base and the company strategy have no table of their own and
live in `system_config` under per-user keys.

Write helpers take a cursor and never commit: the caller owns the transaction.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from lumetrya.profile import PROFILE_SCHEMA_VERSION, normalize_company_profile
from lumetrya.schemas.metrics import Report
from lumetrya.schemas.user_data import COLLECTION_MODELS, CompanyProfile

# (model field, column, kind)
ColumnSpec = Tuple[str, str, str]

def _cols(*entries: str) -> List[ColumnSpec]:
    out = []
    for s in entries:
        field, _, rest = s.partition(":")
        column, _, kind = (rest or field).partition("/")
        out.append((field, column or field, kind or "plain"))
    return out

TABLES: Dict[str, Tuple[str, List[ColumnSpec]]] = {
    "reports": ("reports", _cols(
        "id", "name", "creationDate:creation_date", "metrics:metrics/json",
        "directions:directions/json", "previousMetrics:previous_metrics/json",
        "netMetrics:net_metrics/json",
    )),
    "proposals": ("proposals", _cols(
        "id", "date", "direction", "proposalNumber:proposal_number",
        "invoiceNumber:invoice_number", "company", "item", "amount",
        "invoiceDate:invoice_date", "paymentDate:payment_date",
        "paymentType:payment_type", "status",
    )),
    "campaigns": ("campaigns", _cols(
        "id", "name", "status", "type", "budgetType:budget_type", "budget",
        "impressions", "clicks", "ctr", "spend", "conversions", "cpc",
        "conversionRate:conversion_rate", "cpa", "strategy", "period",
        "currencyCode:currency_code", "interactions",
        "interactionRate:interaction_rate", "avgPrice:avg_price",
    )),
    "links": ("links", _cols("id", "url", "comment", "date")),
    "files": ("files", _cols("id", "name", "type", "size", "content", "date")),
    "payments": ("payments", _cols(
        "id", "serviceName:service_name", "lastPaymentDate:last_payment_date",
        "nextPaymentDate:next_payment_date", "paymentPeriod:payment_period",
        "amount", "currency", "comment", "paymentMethod:payment_method",
        "paymentDetails:payment_details", "invoiceId:invoice_id",
        "recipientName:recipient_name", "recipientBin:recipient_bin",
        "recipientBank:recipient_bank", "recipientIic:recipient_iic",
    )),
    "otherReports": ("other_reports", _cols(
        "id", "name", "date", "category", "description", "kpis:kpis/json",
    )),
}

# Collections kept as a JSON document in system_config
CONFIG_COLLECTIONS = ("knowledgeBase",)

AI_KEY_CONFIG = "aiApiKey"

def strategy_key(user_id: str) -> str:
    return f"companyStrategy:{user_id}"

def collection_key(name: str, user_id: str) -> str:
    return f"{name}:{user_id}"

# ===== system_config =====
def get_config(conn: sqlite3.Connection, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM system_config WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None

def set_config(cur: sqlite3.Cursor, key: str, value: str) -> None:
    cur.execute("""
        INSERT INTO system_config (key, value, updated_at)
        VALUES (?, ?, CURRENT_TIMESTAMP)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
    """, (key, value))

# ===== reads =====
def _row_to_item(row: sqlite3.Row, fields: Sequence[ColumnSpec]) -> Dict[str, Any]:
    item = {}
    for field, column, kind in fields:
        value = row[column]
        if kind == "json" and value is not None:
            value = json.loads(value)
        item[field] = value
    return item

def load_collection(conn: sqlite3.Connection, user_id: str, name: str) -> List[Dict[str, Any]]:
    if name in CONFIG_COLLECTIONS:
        raw = get_config(conn, collection_key(name, user_id))
        return json.loads(raw) if raw else []
    table, fields = TABLES[name]
    rows = conn.execute(
        f"SELECT * FROM {table} WHERE user_id = ? ORDER BY sort_order, rowid", (user_id,)
    ).fetchall()
    return [_row_to_item(r, fields) for r in rows]

def load_reports(conn: sqlite3.Connection, user_id: str) -> List[Report]:
    return [Report.model_validate(r) for r in load_collection(conn, user_id, "reports")]

def load_company_profile(conn: sqlite3.Connection, user_id: str) -> Optional[CompanyProfile]:
    row = conn.execute("SELECT * FROM company_profiles WHERE user_id = ?", (user_id,)).fetchone()
    if not row:
        return None
    employees = conn.execute(
        "SELECT id, name, position FROM employees WHERE user_id = ? ORDER BY sort_order, rowid",
        (user_id,),
    ).fetchall()
    return CompanyProfile(
        companyName=row["company_name"],
        details=json.loads(row["details"]),
        contacts=json.loads(row["contacts"]),
        employees=[dict(e) for e in employees],
        socialMedia=json.loads(row["social_media"]),
        websites=json.loads(row["websites"]),
        about=row["about"],
        aiSystemInstruction=row["ai_system_instruction"],
        language=row["language"],
        darkModeEnabled=bool(row["dark_mode_enabled"]),
    )

def load_user_data(conn: sqlite3.Connection, user_id: str) -> Dict[str, Any]:
    """Everything stored for a user, in the `/api/user-data` response shape.

    A user with nothing stored gets empty collections, `{}` for the profile
    and an empty strategy.
    """
    data: Dict[str, Any] = {name: load_collection(conn, user_id, name) for name in COLLECTION_MODELS}
    profile = load_company_profile(conn, user_id)
    data["companyProfile"] = profile.model_dump() if profile else {}
    data["companyStrategy"] = get_config(conn, strategy_key(user_id)) or ""
    return data

# ===== writes =====
def parse_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate the parts of a save payload that are present.

    Items without an id get a fresh one. Raises `pydantic.ValidationError`
    on malformed items.
    """
    parsed: Dict[str, Any] = {}
    for name, model in COLLECTION_MODELS.items():
        if name not in payload or payload[name] is None:
            continue
        items = []
        for raw in payload[name]:
            raw = dict(raw)
            if not raw.get("id"):
                raw["id"] = str(uuid.uuid4())
            items.append(model.model_validate(raw))
        parsed[name] = items
    if payload.get("companyProfile"):
        parsed["companyProfile"] = normalize_company_profile(payload["companyProfile"])
    if "companyStrategy" in payload and payload["companyStrategy"] is not None:
        parsed["companyStrategy"] = str(payload["companyStrategy"])
    return parsed

def replace_collection(cur: sqlite3.Cursor, user_id: str, name: str, items: Sequence[Any]) -> None:
    if name in CONFIG_COLLECTIONS:
        doc = [i.model_dump(mode="json") for i in items]
        set_config(cur, collection_key(name, user_id), json.dumps(doc, ensure_ascii=False))
        return
    table, fields = TABLES[name]
    cur.execute(f"DELETE FROM {table} WHERE user_id = ?", (user_id,))
    if not items:
        return
    columns = ["user_id", "sort_order"] + [c for _, c, _ in fields]
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' * len(columns))})"
    rows = []
    for order, item in enumerate(items):
        dumped = item.model_dump(mode="json")
        values = [user_id, order]
        for field, _, kind in fields:
            value = dumped.get(field)
            if kind == "json" and value is not None:
                value = json.dumps(value, ensure_ascii=False)
            values.append(value)
        rows.append(values)
    cur.executemany(sql, rows)

def upsert_company_profile(cur: sqlite3.Cursor, user_id: str, profile: CompanyProfile) -> None:
    cur.execute("""
        INSERT INTO company_profiles (
            user_id, company_name, details, contacts, social_media, websites, about,
            ai_system_instruction, language, dark_mode_enabled, schema_version, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
        ON CONFLICT(user_id) DO UPDATE SET
            company_name = excluded.company_name,
            details = excluded.details,
            contacts = excluded.contacts,
            social_media = excluded.social_media,
            websites = excluded.websites,
            about = excluded.about,
            ai_system_instruction = excluded.ai_system_instruction,
            language = excluded.language,
            dark_mode_enabled = excluded.dark_mode_enabled,
            schema_version = excluded.schema_version,
            updated_at = CURRENT_TIMESTAMP
    """, (
        user_id,
        profile.companyName,
        json.dumps(profile.details.model_dump(), ensure_ascii=False),
        json.dumps(profile.contacts.model_dump(), ensure_ascii=False),
        json.dumps(profile.socialMedia, ensure_ascii=False),
        json.dumps(profile.websites, ensure_ascii=False),
        profile.about,
        profile.aiSystemInstruction,
        profile.language,
        int(profile.darkModeEnabled),
        PROFILE_SCHEMA_VERSION,
    ))
    cur.execute("DELETE FROM employees WHERE user_id = ?", (user_id,))
    cur.executemany(
        "INSERT INTO employees (id, user_id, name, position, sort_order) VALUES (?, ?, ?, ?, ?)",
        [(e.id, user_id, e.name, e.position, i) for i, e in enumerate(profile.employees)],
    )

def replace_user_data(cur: sqlite3.Cursor, user_id: str, parsed: Mapping[str, Any]) -> None:
    """Full replace of every part present in `parsed` (see `parse_payload`)."""
    for name in COLLECTION_MODELS:
        if name in parsed:
            replace_collection(cur, user_id, name, parsed[name])
    if "companyProfile" in parsed:
        upsert_company_profile(cur, user_id, parsed["companyProfile"])
    if "companyStrategy" in parsed:
        set_config(cur, strategy_key(user_id), parsed["companyStrategy"])

